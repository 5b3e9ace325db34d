# jyotish/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Any, Dict, Optional

from flask import Flask, Response, g, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from jyotish.api.chart import chart_bp
from jyotish.api.helpers import body_json, ok, request_id, validation_response
from jyotish.api.transits import transits_bp
from jyotish.core.chart import adapter_for
from jyotish.core.errors import EngineError
from jyotish.core.timescales import build_instant
from jyotish.core.validate import ValidationError, validate_timescales_request
from jyotish.utils.config import engine_config_from, load_config
from jyotish.utils.metrics import GAUGE_APP_UP, MET_ENGINE_ERRORS, MET_REQUESTS, REQ_LATENCY, seed
from jyotish.version import VERSION

_METERED_ROUTES = (
    "/", "/health", "/healthz", "/metrics",
    "/api/chart", "/api/dasha", "/api/panchang", "/api/transits", "/api/timescales",
)

# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

def _register_errors(app: Flask) -> None:
    @app.errorhandler(EngineError)
    def _engine(e: EngineError):
        MET_ENGINE_ERRORS.labels(subsystem=e.subsystem).inc()
        app.logger.warning("engine error at %s %s: %s", request.method, request.path, e)
        return jsonify(ok=False, request_id=request_id(), **e.to_dict()), 422

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        app.logger.warning("HTTP %s at %s %s: %s", e.code, request.method, request.path, e.description)
        return jsonify(
            ok=False,
            error="http_error",
            code=e.code,
            name=e.name,
            message=e.description,
            path=request.path,
        ), e.code

    @app.errorhandler(Exception)
    def _any(e: Exception):
        tb = traceback.format_exc()
        app.logger.error("UNHANDLED %s at %s %s\n%s", type(e).__name__, request.method, request.path, tb)
        return jsonify(
            ok=False,
            error="internal_error",
            type=type(e).__name__,
            message=str(e),
            path=request.path,
            request_id=request_id(),
        ), 500

# ───────────────────────── health & utils ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(ok=True, service="jyotish-engine", version=VERSION, health="/health"), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok"), 200

def _metrics_auth_ok() -> bool:
    auth = request.authorization
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    return bool(
        auth and auth.type == "basic" and auth.username == user and auth.password == pw and user and pw
    )

# ───────────────────────── core API ─────────────────────────
def _register_core_api(app: Flask) -> None:
    def _timescales_handler():
        try:
            date_s, time_s, tz = validate_timescales_request(body_json())
        except ValidationError as e:
            return validation_response(e)
        inst = build_instant(date_s, time_s, tz)
        return ok({"timescales": inst.to_dict()}, inst.warnings)

    app.add_url_rule("/api/timescales", "timescales", _timescales_handler, methods=["POST"])

    @app.get("/api/config")
    def _config():
        return jsonify({
            "ok": True,
            "version": VERSION,
            "engine": app.config["ENGINE"].to_dict(),
            "ephemeris": adapter_for(app.config["ENGINE"]).ephemeris_diagnostics(),
        }), 200

# ───────────────────────── app factory ─────────────────────────
def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config["JSON_SORT_KEYS"] = False
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    app.cfg = load_config() if config is None else config  # type: ignore[attr-defined]
    app.config["ENGINE"] = engine_config_from(app.cfg)  # type: ignore[attr-defined]

    seed(_METERED_ROUTES)

    @app.before_request
    def _before():
        p = request.path or ""
        request_id()
        if p in _METERED_ROUTES:
            MET_REQUESTS.labels(route=p).inc()
            g.t0 = perf_counter()

    @app.after_request
    def _after(resp):
        p = request.path or ""
        t0 = g.get("t0")
        if p in _METERED_ROUTES and t0 is not None:
            REQ_LATENCY.labels(route=p).observe(perf_counter() - t0)
        resp.headers.setdefault("X-Request-ID", request_id())
        return resp

    _register_health(app)
    _register_errors(app)
    _register_core_api(app)
    app.register_blueprint(chart_bp, url_prefix="/api")
    app.register_blueprint(transits_bp, url_prefix="/api")

    # /metrics (Basic Auth)
    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        data = generate_latest(REGISTRY)
        return Response(data, mimetype=CONTENT_TYPE_LATEST)

    # CORS for browser UIs
    _allowed_origin = os.environ.get("CORS_ALLOW_ORIGIN") or "*"
    CORS(
        app,
        resources={r"/.*": {"origins": _allowed_origin}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        max_age=600,
    )

    app.logger.info(
        "App initialized; version=%s ephemeris=%s house_system=%s",
        VERSION, app.config["ENGINE"].ephemeris_provider, app.config["ENGINE"].house_system,
    )
    return app

# ───────────────────────── app instance ─────────────────────────
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
