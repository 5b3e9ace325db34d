from __future__ import annotations
from typing import Final, Iterable

from prometheus_client import Counter, Gauge, Histogram

MET_REQUESTS: Final = Counter("jyotish_api_requests_total", "API requests", ["route"])
REQ_LATENCY: Final = Histogram("jyotish_request_seconds", "API request latency", ["route"])
MET_ENGINE_ERRORS: Final = Counter("jyotish_engine_errors_total", "Engine errors surfaced or recovered", ["subsystem"])
MET_EPHEM_FALLBACKS: Final = Counter("jyotish_ephemeris_fallback_total", "Per-body analytic fallbacks", ["body"])
MET_HOUSE_FALLBACKS: Final = Counter("jyotish_house_fallback_total", "House system fallbacks", ["requested", "fallback"])
GAUGE_APP_UP: Final = Gauge("jyotish_app_up", "1 if app is running")

def record_warnings(warnings: Iterable[str]) -> None:
    """Count degraded:<body>:<stage> and house_fallback:<a>-><b> warnings."""
    for w in warnings:
        if w.startswith("degraded:"):
            parts = w.split(":")
            MET_EPHEM_FALLBACKS.labels(body=parts[1] if len(parts) > 1 else "unknown").inc()
            MET_ENGINE_ERRORS.labels(subsystem="ephemeris").inc()
        elif w.startswith("house_fallback:"):
            requested, _, fallback = w.split(":", 1)[1].partition("->")
            MET_HOUSE_FALLBACKS.labels(requested=requested, fallback=fallback).inc()

def seed(routes: Iterable[str]) -> None:
    for route in routes:
        MET_REQUESTS.labels(route=route).inc(0)
        REQ_LATENCY.labels(route=route).observe(0.0)
    for subsystem in ("time", "ephemeris", "houses", "dasha"):
        MET_ENGINE_ERRORS.labels(subsystem=subsystem).inc(0)
    MET_HOUSE_FALLBACKS.labels(requested="placidus", fallback="porphyry").inc(0)
    GAUGE_APP_UP.set(1.0)
