# gunicorn.conf.py
import multiprocessing, os

wsgi_app = "jyotish.main:app"
bind = f"0.0.0.0:{os.getenv('PORT','5000')}"
workers = max(2, multiprocessing.cpu_count())  # ephemeris math is CPU-bound
threads = int(os.getenv("GUNICORN_THREADS", "1"))
worker_class = "sync"
timeout = 120  # 730-day transit scans
graceful_timeout = 30
keepalive = 2
accesslog = "-"   # stdout
errorlog = "-"    # stderr
loglevel = os.getenv("LOGLEVEL", "info")

access_log_format = (
    '%(h)s - "%(r)s" %(s)s %(b)s '
    'req_id:%({X-Request-ID}o)s rt:%(L)s'
)
