# jyotish/utils/config.py
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml

class AttrDict(dict):
    """Dict that also supports attribute access: cfg.engine and cfg['engine'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

def _env_bool(name: str) -> Optional[bool]:
    v = os.getenv(name)
    if v is None:
        return None
    return v.lower() in ("1", "true", "yes", "on")

# env var → (section, key, cast)
_ENV_OVERRIDES = {
    "JYOTISH_AYANAMSA": ("engine", "ayanamsa", str),
    "JYOTISH_AYANAMSA_TWEAK": ("engine", "ayanamsa_tweak_deg", float),
    "JYOTISH_EPHEMERIS": ("engine", "ephemeris_provider", str),
    "JYOTISH_EPHEMERIS_KERNEL": ("engine", "ephemeris_kernel", str),
    "JYOTISH_NODE_MODEL": ("engine", "node_model", str),
    "JYOTISH_HOUSE_SYSTEM": ("engine", "house_system", str),
    "JYOTISH_ANGLES_MODEL": ("engine", "angles_model", str),
    "JYOTISH_DASHA_DEPTH": ("dasha", "depth", int),
    "JYOTISH_TRANSIT_WORKERS": ("transits", "workers", int),
}

def load_config(path: Optional[str] = None) -> AttrDict:
    """
    Load YAML config from `path` (default: $JYOTISH_CONFIG or config/defaults.yaml)
    and apply JYOTISH_* environment overrides. A missing file yields an empty
    config so built-in defaults apply.
    """
    path = path or os.getenv("JYOTISH_CONFIG", "config/defaults.yaml")
    data: Dict[str, Any] = {}
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config root must be a mapping: {path}")

    for env, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.getenv(env)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError as e:
            raise ValueError(f"invalid {env}={raw!r}") from e
        data.setdefault(section, {})[key] = value

    fb = _env_bool("JYOTISH_ALLOW_FALLBACK")
    if fb is not None:
        data.setdefault("engine", {})["allow_fallback"] = fb

    return _to_attr(data)

@dataclass(frozen=True)
class EngineConfig:
    ayanamsa: str = "lahiri"
    ayanamsa_tweak_deg: float = 0.0
    ephemeris_provider: str = "analytic"
    ephemeris_kernel: Optional[str] = None
    node_model: str = "mean"
    allow_fallback: bool = True
    house_system: str = "whole_sign"
    angles_model: str = "mean"
    dasha_depth: int = 2
    dasha_horizon_years: float = 120.0
    transit_workers: int = 4
    transit_horizon_days: int = 90

    def with_overrides(self, **kw: Any) -> "EngineConfig":
        return replace(self, **{k: v for k, v in kw.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

def engine_config_from(cfg: Optional[Dict[str, Any]] = None) -> EngineConfig:
    """Flatten a loaded config (sections engine/dasha/transits) into an EngineConfig."""
    cfg = cfg if cfg is not None else load_config()
    eng = cfg.get("engine") or {}
    das = cfg.get("dasha") or {}
    tr = cfg.get("transits") or {}
    d = EngineConfig()
    return EngineConfig(
        ayanamsa=str(eng.get("ayanamsa", d.ayanamsa)),
        ayanamsa_tweak_deg=float(eng.get("ayanamsa_tweak_deg", d.ayanamsa_tweak_deg)),
        ephemeris_provider=str(eng.get("ephemeris_provider", d.ephemeris_provider)).lower(),
        ephemeris_kernel=eng.get("ephemeris_kernel", d.ephemeris_kernel),
        node_model=str(eng.get("node_model", d.node_model)).lower(),
        allow_fallback=bool(eng.get("allow_fallback", d.allow_fallback)),
        house_system=str(eng.get("house_system", d.house_system)),
        angles_model=str(eng.get("angles_model", d.angles_model)).lower(),
        dasha_depth=int(das.get("depth", d.dasha_depth)),
        dasha_horizon_years=float(das.get("horizon_years", d.dasha_horizon_years)),
        transit_workers=max(1, int(tr.get("workers", d.transit_workers))),
        transit_horizon_days=int(tr.get("horizon_days", d.transit_horizon_days)),
    )
