# jyotish/core/houses.py
from __future__ import annotations

"""
Ascendant & house placement façade.

What this module guarantees:
- Local sidereal angle and obliquity from one of two models:
    mean      GMST polynomial + mean obliquity (IAU 1976/Meeus)
    apparent  ERFA gst06a + obl06 + nut06a
- Ascendant with the eastern-horizon check, MC from RAMC.
- Canonical, slug-based normalization of house-system names.
- Polar policy: Placidus and Koch fall back to Porphyry where they are
  undefined, with a `house_fallback:<system>->porphyry` warning.
- GeometryDegenerate only at the geographic poles, where the horizon and
  the meridian no longer intersect the ecliptic in a unique point.
- Sidereal output: every angle and cusp minus the same ayanāṁśa.

Placement rules:
- whole_sign  house = ((planet_sign − asc_sign + 12) mod 12) + 1
- others      house i when cusp_i ≤ λ < cusp_{i+1} on the circle; a planet
              exactly on a cusp belongs to the house that cusp opens
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import math
import os

import erfa  # PyERFA

from jyotish.core.constants import J2000_JD, JULIAN_CENTURY_D, SIGN_NAMES, sign_index, wrap_deg
from jyotish.core.errors import GeometryDegenerate
from jyotish.core.house_systems import (
    HOUSE_SYSTEMS,
    POLAR_SENSITIVE_SYSTEMS,
    ascendant_deg,
    compute_cusps,
    mc_deg,
)

log = logging.getLogger(__name__)

__all__ = [
    "ANGLE_MODELS",
    "Angles",
    "HousePlacement",
    "canonicalize_system",
    "local_angles",
    "gmst_mean_deg",
    "mean_obliquity_deg",
    "whole_sign_house",
    "house_of",
    "compute_houses",
]

# ──────────────────────────────────────────────────────────────────────────────
# Config / env toggles
# ──────────────────────────────────────────────────────────────────────────────
NUMERIC_FALLBACK_ENABLED: bool = os.getenv(
    "JYOTISH_HOUSES_NUMERIC_FALLBACK", "1"
).lower() in ("1", "true", "yes", "on")

ANGLE_MODELS = ("mean", "apparent")
FALLBACK_SYSTEM = "porphyry"

_ALIASES: Dict[str, str] = {
    "whole": "whole_sign",
    "wholesign": "whole_sign",
    "whole_sign": "whole_sign",
    "rashi": "whole_sign",
    "equal": "equal",
    "porphyry": "porphyry",
    "porphyrius": "porphyry",
    "sripati": "sripati",
    "sripathi": "sripati",
    "bhava_chalit": "sripati",
    "placidus": "placidus",
    "koch": "koch",
    "regiomontanus": "regiomontanus",
    "regio": "regiomontanus",
    "campanus": "campanus",
}


def _slug(s: Optional[str]) -> str:
    return (s or "").strip().lower().replace("-", "_").replace(" ", "_")


def canonicalize_system(name: Optional[str]) -> str:
    key = _slug(name) or "whole_sign"
    try:
        return _ALIASES[key]
    except KeyError:
        raise ValueError(f"unknown house system '{name}' (allowed: {', '.join(HOUSE_SYSTEMS)})") from None

# ──────────────────────────────────────────────────────────────────────────────
# Fundamental angles
# ──────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Angles:
    model: str
    ramc: float          # local sidereal angle θ, degrees
    obliquity: float     # ε, degrees
    ascendant: float     # tropical
    mc: float            # tropical


def _split_jd(jd: float) -> Tuple[float, float]:
    d = math.floor(jd)
    return d, jd - d


def gmst_mean_deg(jd_ut: float) -> float:
    d = jd_ut - J2000_JD
    T = d / JULIAN_CENTURY_D
    return wrap_deg(280.46061837 + 360.98564736629 * d + 0.000387933 * T * T - (T ** 3) / 38710000.0)


def mean_obliquity_deg(jd_tt: float) -> float:
    T = (jd_tt - J2000_JD) / JULIAN_CENTURY_D
    arcsec = 84381.448 - 46.8150 * T - 0.00059 * T * T + 0.001813 * T ** 3
    return arcsec / 3600.0


def _gast_deg(jd_ut1: float, jd_tt: float) -> float:
    d1u, d2u = _split_jd(jd_ut1)
    d1t, d2t = _split_jd(jd_tt)
    return wrap_deg(math.degrees(erfa.gst06a(d1u, d2u, d1t, d2t)))


def _true_obliquity_deg(jd_tt: float) -> float:
    d1, d2 = _split_jd(jd_tt)
    eps0 = erfa.obl06(d1, d2)
    _dpsi, deps = erfa.nut06a(d1, d2)
    return math.degrees(eps0 + deps)


def local_angles(jd_ut: float, jd_tt: float, lat: float, lon: float, model: str = "mean") -> Angles:
    """RAMC, obliquity, ascendant and MC (tropical) for a place and instant."""
    if model == "apparent":
        # UT1 ≈ UTC at this precision
        gst = _gast_deg(jd_ut, jd_tt)
        eps = _true_obliquity_deg(jd_tt)
    elif model == "mean":
        gst = gmst_mean_deg(jd_ut)
        eps = mean_obliquity_deg(jd_tt)
    else:
        raise ValueError(f"unknown angles model '{model}' (allowed: {', '.join(ANGLE_MODELS)})")
    ramc = wrap_deg(gst + lon)
    return Angles(
        model=model,
        ramc=ramc,
        obliquity=eps,
        ascendant=ascendant_deg(lat, ramc, eps),
        mc=mc_deg(ramc, eps),
    )

# ──────────────────────────────────────────────────────────────────────────────
# Placement
# ──────────────────────────────────────────────────────────────────────────────
def whole_sign_house(planet_sign: int, asc_sign: int) -> int:
    return ((int(planet_sign) - int(asc_sign) + 12) % 12) + 1


def house_of(lon: float, cusps: Sequence[float]) -> int:
    """1-based house whose arc [cusp_i, cusp_{i+1}) contains lon."""
    lon = wrap_deg(lon)
    for i in range(12):
        start = cusps[i]
        span = wrap_deg(cusps[(i + 1) % 12] - start)
        if span > 0.0 and wrap_deg(lon - start) < span:
            return i + 1
    # only reachable with fully collapsed cusps
    return 1


@dataclass(frozen=True)
class HousePlacement:
    system: str                     # system actually used
    requested_system: str
    angles_model: str
    ascendant: float                # sidereal
    ascendant_sign_index: int
    mc: float                       # sidereal
    cusps: Tuple[float, ...]        # 12 sidereal cusps, house 1 first
    houses: Dict[str, int]          # planet → 1..12
    warnings: Tuple[str, ...] = ()

    @property
    def ascendant_sign(self) -> str:
        return SIGN_NAMES[self.ascendant_sign_index]

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["ascendant_sign"] = self.ascendant_sign
        d["cusps"] = list(self.cusps)
        d["warnings"] = list(self.warnings)
        return d


def _cusps_with_policy(system: str, *, lat: float, angles: Angles) -> Tuple[str, List[float], List[str]]:
    warnings: List[str] = []
    kw = dict(phi=lat, ramc=angles.ramc, eps=angles.obliquity, asc=angles.ascendant, mc=angles.mc)
    try:
        return system, compute_cusps(system, **kw), warnings
    except ValueError as e:
        if system not in POLAR_SENSITIVE_SYSTEMS or not NUMERIC_FALLBACK_ENABLED:
            raise GeometryDegenerate("cusps", f"{system} undefined at latitude {lat:.4f}", error=str(e)) from e
        log.warning("house system %s failed at lat=%.4f (%s); falling back to %s", system, lat, e, FALLBACK_SYSTEM)
        warnings.append(f"house_fallback:{system}->{FALLBACK_SYSTEM}")
        return FALLBACK_SYSTEM, compute_cusps(FALLBACK_SYSTEM, **kw), warnings


def compute_houses(
    *,
    jd_ut: float,
    jd_tt: float,
    lat: float,
    lon: float,
    ayanamsa: float,
    planets: Optional[Mapping[str, float]] = None,
    system: Optional[str] = "whole_sign",
    angles_model: str = "mean",
) -> HousePlacement:
    """
    Ascendant, cusps and per-planet houses in the sidereal zodiac.

    `planets` maps names to sidereal longitudes. Raises GeometryDegenerate at
    |lat| = 90°; ValueError for an unknown system/model or |lat| > 90°.
    """
    lat_f, lon_f = float(lat), float(lon)
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise ValueError("houses: lat/lon must be finite")
    if abs(lat_f) > 90.0:
        raise ValueError("houses: latitude must be within [-90, 90]")
    if abs(lat_f) == 90.0:
        raise GeometryDegenerate("latitude", "ascendant undefined at the geographic pole", lat=lat_f)

    requested = canonicalize_system(system)
    angles = local_angles(jd_ut, jd_tt, lat_f, lon_f, angles_model)
    used, tropical_cusps, warnings = _cusps_with_policy(requested, lat=lat_f, angles=angles)

    asc_sid = wrap_deg(angles.ascendant - ayanamsa)
    asc_sign = sign_index(asc_sid)
    if used == "whole_sign":
        # sign boundaries are sidereal, not shifted tropical ones
        cusps = tuple(wrap_deg(30.0 * ((asc_sign + i) % 12)) for i in range(12))
    else:
        cusps = tuple(wrap_deg(c - ayanamsa) for c in tropical_cusps)

    houses: Dict[str, int] = {}
    for name, plon in (planets or {}).items():
        if used == "whole_sign":
            houses[name] = whole_sign_house(sign_index(plon), asc_sign)
        else:
            houses[name] = house_of(plon, cusps)

    return HousePlacement(
        system=used,
        requested_system=requested,
        angles_model=angles.model,
        ascendant=asc_sid,
        ascendant_sign_index=asc_sign,
        mc=wrap_deg(angles.mc - ayanamsa),
        cusps=cusps,
        houses=houses,
        warnings=tuple(warnings),
    )
