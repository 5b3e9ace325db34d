# jyotish/api/chart.py
"""
Natal endpoints: chart, Vimshottari ladder, Panchang.

Each handler validates into typed requests (422 + errors() on failure) and
calls one engine entry point. EngineError subclasses propagate to the app's
error handler, which maps them to 422 with their subsystem.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Blueprint

from jyotish.api.helpers import body_json, engine_config, ok, validation_response
from jyotish.core.chart import adapter_for, compute_chart
from jyotish.core.dasha import build_ladder, current_nodes, ladder_rows
from jyotish.core.panchang import compute_panchang
from jyotish.core.sidereal import sidereal_positions
from jyotish.core.timescales import build_instant
from jyotish.core.validate import (
    ValidationError,
    validate_birth,
    validate_dasha_request,
    validate_panchang_request,
)

log = logging.getLogger(__name__)
chart_bp = Blueprint("chart", __name__)


@chart_bp.post("/chart")
def chart_endpoint():
    try:
        data = body_json()
        birth = validate_birth(data)
        cfg = engine_config(data)
    except ValidationError as e:
        return validation_response(e)

    chart = compute_chart(birth, cfg)
    return ok(chart.to_dict(), chart.warnings)


@chart_bp.post("/dasha")
def dasha_endpoint():
    try:
        data = body_json()
        req = validate_dasha_request(data)
        cfg = engine_config(data)
    except ValidationError as e:
        return validation_response(e)

    inst = build_instant(req.birth.date.isoformat(), req.birth.time, req.birth.tz_name)
    rows, warnings = sidereal_positions(
        inst.jd_tt, adapter_for(cfg),
        ayanamsa_model=cfg.ayanamsa, ayanamsa_tweak_deg=cfg.ayanamsa_tweak_deg,
        names=["Moon"], with_speed=False,
    )
    moon = rows[0]
    ladder = build_ladder(inst.utc, moon.longitude, depth=req.depth, horizon_years=cfg.dasha_horizon_years)
    at = req.at or datetime.now(timezone.utc)

    payload: Dict[str, Any] = {
        "birthUTC": inst.utc_iso,
        "moon": {"siderealLongitude": moon.longitude, "nakshatra": moon.nakshatra, "lord": moon.nakshatra_lord},
        "depth": req.depth,
        "ladder": ladder_rows(ladder),
        "atISO": at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "current": [n.to_dict(nested=False) for n in current_nodes(ladder, at, depth=req.depth)],
    }
    return ok(payload, list(inst.warnings) + warnings)


@chart_bp.post("/panchang")
def panchang_endpoint():
    try:
        data = body_json()
        req = validate_panchang_request(data)
        cfg = engine_config(data)
    except ValidationError as e:
        return validation_response(e)

    birth = req.birth
    # limbs at the given clock time on the requested local date
    inst = build_instant(req.day.isoformat(), birth.time, birth.tz_name)
    rows, warnings = sidereal_positions(
        inst.jd_tt, adapter_for(cfg),
        ayanamsa_model=cfg.ayanamsa, ayanamsa_tweak_deg=cfg.ayanamsa_tweak_deg,
        names=["Sun", "Moon"], with_speed=False,
    )
    sun, moon = rows
    facts = compute_panchang(req.day, birth.tz_name, birth.lat, birth.lon, sun.longitude, moon.longitude)
    payload = facts.to_dict()
    payload["atISO"] = inst.utc_iso
    return ok(payload, list(inst.warnings) + warnings)
