from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from jyotish.core.ayanamsa import canonical_model
from jyotish.core.houses import ANGLE_MODELS, canonicalize_system
from jyotish.core.transits import clamp_horizon
from jyotish.utils.config import EngineConfig

class ValidationError(ValueError):
    def __init__(self, details: str | Dict[str, Any] | List[Dict[str, Any]]):
        if isinstance(details, str):
            self._details: List[Dict[str, Any]] = [{"loc": [], "msg": details, "type": "value_error"}]
            super().__init__(details)
        elif isinstance(details, dict):
            self._details = [details]
            super().__init__(details.get("msg", "validation_error"))
        else:
            self._details = details
            super().__init__(self._details[0]["msg"] if self._details else "validation_error")
    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)

@dataclass(frozen=True)
class BirthInput:
    date: date
    time: str           # HH:MM[:SS[.frac]] as given; parsed again by the time converter
    tz: ZoneInfo
    lat: float
    lon: float

    @property
    def tz_name(self) -> str:
        return self.tz.key

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "time": self.time, "tz": self.tz_name, "lat": self.lat, "lon": self.lon}

@dataclass(frozen=True)
class DashaRequest:
    birth: BirthInput
    depth: int
    at: Optional[datetime]

@dataclass(frozen=True)
class PanchangRequest:
    birth: BirthInput
    day: date

@dataclass(frozen=True)
class TransitRequest:
    birth: BirthInput
    start: Optional[date]
    horizon_days: int
    include_moon: bool

_TIME_RE = re.compile(r"^\s*\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*$")

def _require(obj: Dict[str, Any], key: str, ctx: List[str]) -> Any:
    if key not in obj or obj[key] is None:
        raise ValidationError({"loc": ctx + [key], "msg": "field required", "type": "value_error.missing"})
    return obj[key]

def _parse_date(s: Any, loc: List[str]) -> date:
    try:
        return date.fromisoformat(str(s))
    except ValueError:
        raise ValidationError({"loc": loc, "msg": "must be 'YYYY-MM-DD'", "type": "value_error.date"}) from None

def _parse_time(s: Any, loc: List[str]) -> str:
    if not isinstance(s, str) or not _TIME_RE.match(s):
        raise ValidationError({"loc": loc, "msg": "must be 'HH:MM' or 'HH:MM:SS'", "type": "value_error.time"})
    return s.strip()

def _parse_tz(s: Any, loc: List[str]) -> ZoneInfo:
    if not isinstance(s, str) or not s.strip():
        raise ValidationError({"loc": loc, "msg": "unknown IANA tz", "type": "value_error.timezone"})
    try:
        return ZoneInfo(s.strip())
    except (KeyError, ValueError, OSError):
        raise ValidationError({"loc": loc, "msg": "unknown IANA tz", "type": "value_error.timezone"}) from None

def _parse_float(v: Any, loc: List[str]) -> float:
    if isinstance(v, bool):
        raise ValidationError({"loc": loc, "msg": "must be a number", "type": "value_error.float"})
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise ValidationError({"loc": loc, "msg": "must be a number", "type": "value_error.float"}) from None
    if f != f or f in (float("inf"), float("-inf")):
        raise ValidationError({"loc": loc, "msg": "must be finite", "type": "value_error.float"})
    return f

def _parse_lat(v: Any, loc: List[str]) -> float:
    f = _parse_float(v, loc)
    if not -90.0 <= f <= 90.0:
        raise ValidationError({"loc": loc, "msg": "must be between -90 and 90", "type": "value_error.range"})
    return f

def _parse_lon(v: Any, loc: List[str]) -> float:
    f = _parse_float(v, loc)
    if not -180.0 <= f <= 180.0:
        raise ValidationError({"loc": loc, "msg": "must be between -180 and 180", "type": "value_error.range"})
    return f

def _parse_int(v: Any, loc: List[str], lo: int, hi: int) -> int:
    if isinstance(v, bool):
        raise ValidationError({"loc": loc, "msg": "must be an integer", "type": "value_error.int"})
    try:
        i = int(v)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError({"loc": loc, "msg": "must be an integer", "type": "value_error.int"}) from None
    if not lo <= i <= hi:
        raise ValidationError({"loc": loc, "msg": f"must be between {lo} and {hi}", "type": "value_error.range"})
    return i

def _parse_datetime(v: Any, loc: List[str]) -> datetime:
    try:
        dt = datetime.fromisoformat(str(v).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError({"loc": loc, "msg": "must be an ISO 8601 datetime", "type": "value_error.datetime"}) from None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def _object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data

def validate_birth(data: Any) -> BirthInput:
    """Birth fields at the top level, or nested under "birth"."""
    data = _object(data)
    raw = data.get("birth", data)
    ctx = ["birth"] if "birth" in data else []
    if not isinstance(raw, dict):
        raise ValidationError({"loc": ["birth"], "msg": "must be an object", "type": "type_error.dict"})

    errors: List[Dict[str, Any]] = []
    parsed: Dict[str, Any] = {}
    steps = (
        ("date", _parse_date),
        ("time", _parse_time),
        ("tz", _parse_tz),
        ("lat", _parse_lat),
        ("lon", _parse_lon),
    )
    for key, fn in steps:
        try:
            parsed[key] = fn(_require(raw, key, ctx), ctx + [key])
        except ValidationError as e:
            errors.extend(e.errors())
    if errors:
        raise ValidationError(errors)
    return BirthInput(**parsed)

def validate_engine_options(data: Any, base: EngineConfig) -> EngineConfig:
    """Per-request overrides: ayanamsa, houseSystem, anglesModel, dashaDepth."""
    data = _object(data)
    opts: Dict[str, Any] = {}
    if data.get("ayanamsa") is not None:
        try:
            opts["ayanamsa"] = canonical_model(str(data["ayanamsa"]))
        except ValueError as e:
            raise ValidationError({"loc": ["ayanamsa"], "msg": str(e), "type": "value_error.enum"}) from None
    if data.get("houseSystem") is not None:
        try:
            opts["house_system"] = canonicalize_system(str(data["houseSystem"]))
        except ValueError as e:
            raise ValidationError({"loc": ["houseSystem"], "msg": str(e), "type": "value_error.enum"}) from None
    if data.get("anglesModel") is not None:
        m = str(data["anglesModel"]).lower()
        if m not in ANGLE_MODELS:
            raise ValidationError({"loc": ["anglesModel"], "msg": f"must be one of {', '.join(ANGLE_MODELS)}", "type": "value_error.enum"})
        opts["angles_model"] = m
    if data.get("dashaDepth") is not None:
        opts["dasha_depth"] = _parse_int(data["dashaDepth"], ["dashaDepth"], 1, 3)
    return base.with_overrides(**opts)

def validate_dasha_request(data: Any) -> DashaRequest:
    birth = validate_birth(data)
    depth = _parse_int(data.get("depth", 3), ["depth"], 1, 3)
    at = _parse_datetime(data["at"], ["at"]) if data.get("at") is not None else None
    return DashaRequest(birth=birth, depth=depth, at=at)

def validate_panchang_request(data: Any) -> PanchangRequest:
    birth = validate_birth(data)
    raw_day = data.get("date") if "birth" in data else data.get("panchangDate")
    day = _parse_date(raw_day, ["date" if "birth" in data else "panchangDate"]) if raw_day is not None else birth.date
    return PanchangRequest(birth=birth, day=day)

def validate_transit_request(data: Any, default_horizon: int = 90) -> TransitRequest:
    birth = validate_birth(data)
    horizon = data.get("horizonDays", default_horizon)
    if isinstance(horizon, bool):
        raise ValidationError({"loc": ["horizonDays"], "msg": "must be an integer", "type": "value_error.int"})
    try:
        horizon_i = clamp_horizon(int(horizon))
    except (TypeError, ValueError, OverflowError):
        raise ValidationError({"loc": ["horizonDays"], "msg": "must be an integer", "type": "value_error.int"}) from None
    start = _parse_date(data["start"], ["start"]) if data.get("start") is not None else None
    include_moon = data.get("includeMoon", False)
    if not isinstance(include_moon, bool):
        raise ValidationError({"loc": ["includeMoon"], "msg": "must be a boolean", "type": "type_error.bool"})
    return TransitRequest(birth=birth, start=start, horizon_days=horizon_i, include_moon=include_moon)

def validate_timescales_request(data: Any) -> Tuple[str, str, str]:
    """(date, time, tz) strings for the time converter, each checked up front."""
    data = _object(data)
    errors: List[Dict[str, Any]] = []
    out: List[str] = []
    for key, fn in (("date", _parse_date), ("time", _parse_time), ("tz", _parse_tz)):
        try:
            fn(_require(data, key, []), [key])
            out.append(str(data[key]).strip())
        except ValidationError as e:
            errors.extend(e.errors())
    if errors:
        raise ValidationError(errors)
    return out[0], out[1], out[2]
