from __future__ import annotations
import uuid
from typing import Any, Dict, Iterable

from flask import current_app, g, jsonify, request

from jyotish.core.validate import ValidationError, validate_engine_options
from jyotish.utils.config import EngineConfig
from jyotish.utils.metrics import record_warnings

# ---- Request plumbing ---------------------------------------------------------

def request_id() -> str:
    """Incoming X-Request-ID, or a fresh uuid4 kept for the rest of the request."""
    rid = getattr(g, "request_id", None)
    if rid is None:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.request_id = rid
    return rid

def body_json() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data

def engine_config(data: Dict[str, Any]) -> EngineConfig:
    """App-wide EngineConfig with this request's overrides applied."""
    base: EngineConfig = current_app.config["ENGINE"]
    return validate_engine_options(data, base)

# ---- Responses ------------------------------------------------------------------

def validation_response(e: ValidationError):
    return jsonify({"ok": False, "error": "validation_error", "errors": e.errors(), "request_id": request_id()}), 422

def ok(payload: Dict[str, Any], warnings: Iterable[str] = ()):
    warnings = list(warnings)
    record_warnings(warnings)
    out: Dict[str, Any] = {"ok": True, "request_id": request_id(), **payload}
    out.setdefault("warnings", warnings)
    return jsonify(out), 200
