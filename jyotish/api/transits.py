from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint

from jyotish.api.helpers import body_json, engine_config, ok, validation_response
from jyotish.core.chart import adapter_for, compute_chart, natal_points
from jyotish.core.transits import daily_moon, scan_transits
from jyotish.core.validate import ValidationError, validate_transit_request

log = logging.getLogger(__name__)
transits_bp = Blueprint("transits", __name__)


@transits_bp.post("/transits")
def transits_endpoint():
    """Transit windows over the horizon, optionally with daily Moon samples."""
    try:
        data = body_json()
        cfg = engine_config(data)
        req = validate_transit_request(data, default_horizon=cfg.transit_horizon_days)
    except ValidationError as e:
        return validation_response(e)

    natal = compute_chart(req.birth, cfg)
    adapter = adapter_for(cfg)
    common = dict(
        start=req.start,
        horizon_days=req.horizon_days,
        ayanamsa_model=cfg.ayanamsa,
        ayanamsa_tweak_deg=cfg.ayanamsa_tweak_deg,
        workers=cfg.transit_workers,
    )
    windows = scan_transits(natal_points(natal), adapter, **common)

    payload: Dict[str, Any] = {
        "horizonDays": req.horizon_days,
        "windows": [w.to_dict() for w in windows],
    }
    if req.include_moon:
        samples = daily_moon(natal.planet("Moon").longitude, adapter, **common)
        payload["dailyMoon"] = [s.to_dict() for s in samples]
    log.debug("transits request: %d windows over %d days", len(windows), req.horizon_days)
    return ok(payload, natal.warnings)
