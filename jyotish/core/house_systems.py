# jyotish/core/house_systems.py
"""
House cusp engines (tropical ecliptic longitudes, degrees).

Every engine takes the same geometric inputs (latitude φ, RAMC, obliquity ε,
ascendant, MC) and returns 12 cusps, cusp 1 first. Opposite cusps are filled
by exact 180° where the system is symmetric.

Systems
- whole_sign   sign boundaries from the ascendant's sign
- equal        ascendant + 30°·i
- porphyry     trisection of each quadrant in ecliptic longitude
- sripati      Bhava Chalit: midpoints of Porphyry cusps (bhava sandhis)
- placidus     semi-arc time division (iterative; undefined near the poles)
- koch         birthplace system (oblique ascension of the MC; polar failure)
- regiomontanus equal division of the celestial equator
- campanus     equal division of the prime vertical

Domain failures raise ValueError; policy (fallback to Porphyry) lives in
jyotish.core.houses.
"""

from __future__ import annotations

import math
import os
import sys
from typing import Callable, Dict, List, Optional

from jyotish.core.constants import wrap_deg

__all__ = [
    "HOUSE_SYSTEMS",
    "POLAR_SENSITIVE_SYSTEMS",
    "ascendant_deg",
    "mc_deg",
    "compute_cusps",
]

EPS_NUM = 4.0 * sys.float_info.epsilon   # ULP-aware tolerance for domain checks

PLACIDUS_MAX_ITERS = int(os.getenv("PLACIDUS_MAX_ITERS", "50"))
PLACIDUS_TOL_STEP = float(os.getenv("PLACIDUS_TOL_STEP", "1e-9"))   # last step (deg)

HOUSE_SYSTEMS = (
    "whole_sign", "equal", "porphyry", "sripati",
    "placidus", "koch", "regiomontanus", "campanus",
)
# Systems whose construction breaks down inside the polar circles
POLAR_SENSITIVE_SYSTEMS = frozenset({"placidus", "koch"})

# --------------------------- trig helpers ---------------------------

def _sind(a: float) -> float: return math.sin(math.radians(a))
def _cosd(a: float) -> float: return math.cos(math.radians(a))
def _tand(a: float) -> float: return math.tan(math.radians(a))

def _atan2d(y: float, x: float) -> float:
    if x == 0.0 and y == 0.0:
        raise ValueError("atan2(0,0) undefined in coordinate transformation")
    return wrap_deg(math.degrees(math.atan2(y, x)))

def _asin_strict_deg(x: float, ctx: str) -> float:
    if x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise ValueError(f"domain error asin({x:.16e}) in {ctx}")
    return math.degrees(math.asin(max(-1.0, min(1.0, x))))

def _acos_strict_deg(x: float, ctx: str) -> float:
    if x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise ValueError(f"domain error acos({x:.16e}) in {ctx}")
    return math.degrees(math.acos(max(-1.0, min(1.0, x))))

def _wrap180(x: float) -> float:
    d = wrap_deg(x)
    return d - 360.0 if d > 180.0 else d

def _midpoint_wrap(a: float, b: float) -> float:
    """Circular midpoint on [0,360): halfway from a to b moving forward."""
    return wrap_deg(a + 0.5 * wrap_deg(b - a))

# --------------------------- angles ---------------------------

def mc_deg(ramc: float, eps: float) -> float:
    """Midheaven: ecliptic point on the meridian, tan λ = sin θ / (cos θ·cos ε)."""
    return _atan2d(_sind(ramc) * _cosd(eps), _cosd(ramc))

def ascendant_deg(phi: float, ramc: float, eps: float) -> float:
    """
    Rising ecliptic point for local sidereal angle θ (= RAMC) at latitude φ.

    atan2(−cos θ, sin θ·cos ε + tan φ·sin ε) yields one of the two horizon
    intersections; the eastern one lies within 180° ahead of the MC.
    """
    asc = _atan2d(-_cosd(ramc), _sind(ramc) * _cosd(eps) + _tand(phi) * _sind(eps))
    # below the polar circles the eastern horizon point is always in (MC, MC+180)
    if wrap_deg(asc - mc_deg(ramc, eps)) > 180.0:
        asc = wrap_deg(asc + 180.0)
    return asc

def _decl_of_lambda_deg(lam: float, eps: float) -> float:
    return _asin_strict_deg(_sind(eps) * _sind(lam), "decl(lambda)")

def _lambda_of_ra_deg(ra: float, eps: float) -> float:
    # ecliptic point (β = 0) with right ascension ra
    return _atan2d(_sind(ra), _cosd(ra) * _cosd(eps))

def _sda_deg(dec: float, phi: float) -> float:
    # diurnal semi-arc: acos(−tan φ · tan δ)
    return _acos_strict_deg(-_tand(phi) * _tand(dec), "sda")

# --------------------------- common cusp helpers ---------------------------

def _blank() -> List[Optional[float]]:
    return [None] * 12

def _fill_opposites(cusps: List[Optional[float]]) -> List[float]:
    """Fill opposing cusps by exact 180° where only one side was computed."""
    for a in range(6):
        b = a + 6
        if cusps[a] is not None and cusps[b] is None:
            cusps[b] = wrap_deg(cusps[a] + 180.0)  # type: ignore[operator]
        elif cusps[b] is not None and cusps[a] is None:
            cusps[a] = wrap_deg(cusps[b] + 180.0)  # type: ignore[operator]
    return [wrap_deg(c) for c in cusps]  # type: ignore[arg-type]

def _quadrant_cusps(asc: float, mc: float, c11: float, c12: float, c2: float, c3: float) -> List[float]:
    cusps = _blank()
    cusps[0], cusps[9] = asc, mc
    cusps[10], cusps[11] = c11, c12
    cusps[1], cusps[2] = c2, c3
    return _fill_opposites(cusps)

# --------------------------- engines ---------------------------

def _whole_sign(asc: float) -> List[float]:
    first = math.floor(wrap_deg(asc) / 30.0) * 30.0
    return [wrap_deg(first + 30.0 * i) for i in range(12)]

def _equal(asc: float) -> List[float]:
    return [wrap_deg(asc + 30.0 * i) for i in range(12)]

def _porphyry(asc: float, mc: float) -> List[float]:
    cusps = _blank()
    A = cusps[0] = wrap_deg(asc)
    M = cusps[9] = wrap_deg(mc)
    D = cusps[6] = wrap_deg(asc + 180.0)
    I = cusps[3] = wrap_deg(mc + 180.0)
    def span(start: float, end: float) -> float: return wrap_deg(end - start)
    s = span(M, A); cusps[10] = wrap_deg(M + s / 3); cusps[11] = wrap_deg(M + 2 * s / 3)
    s = span(A, I); cusps[1] = wrap_deg(A + s / 3);  cusps[2] = wrap_deg(A + 2 * s / 3)
    s = span(I, D); cusps[4] = wrap_deg(I + s / 3);  cusps[5] = wrap_deg(I + 2 * s / 3)
    s = span(D, M); cusps[7] = wrap_deg(D + s / 3);  cusps[8] = wrap_deg(D + 2 * s / 3)
    return _fill_opposites(cusps)

def _sripati(asc: float, mc: float) -> List[float]:
    """Bhava sandhis: each cusp is the midpoint between consecutive Porphyry cusps."""
    por = _porphyry(asc, mc)
    return [_midpoint_wrap(por[(i - 1) % 12], por[i]) for i in range(12)]

def _placidus_cusp(phi: float, eps: float, ramc: float, seed: float,
                   offset: Callable[[float], float], label: str) -> float:
    """Fixed-point iteration: λ ← λ(RA = RAMC + offset(SDA(δ(λ))))."""
    lam = seed
    for _ in range(PLACIDUS_MAX_ITERS):
        sda = _sda_deg(_decl_of_lambda_deg(lam, eps), phi)
        nxt = _lambda_of_ra_deg(ramc + offset(sda), eps)
        if abs(_wrap180(nxt - lam)) < PLACIDUS_TOL_STEP:
            return nxt
        lam = nxt
    raise ValueError(f"placidus: {label} did not converge")

def _placidus(phi: float, ramc: float, eps: float, asc: float, mc: float) -> List[float]:
    # house 11/12 on the diurnal semi-arc; 2/3 on the nocturnal one (180 − SDA)
    por = _porphyry(asc, mc)
    c11 = _placidus_cusp(phi, eps, ramc, por[10], lambda s: s / 3.0, "C11")
    c12 = _placidus_cusp(phi, eps, ramc, por[11], lambda s: 2.0 * s / 3.0, "C12")
    c2 = _placidus_cusp(phi, eps, ramc, por[1], lambda s: 180.0 - 2.0 * (180.0 - s) / 3.0, "C2")
    c3 = _placidus_cusp(phi, eps, ramc, por[2], lambda s: 180.0 - (180.0 - s) / 3.0, "C3")
    return _quadrant_cusps(asc, mc, c11, c12, c2, c3)

def _koch(phi: float, ramc: float, eps: float, asc: float, mc: float) -> List[float]:
    dec_mc = _asin_strict_deg(_sind(mc) * _sind(eps), "koch:decl_mc")
    ad = _asin_strict_deg(_tand(dec_mc) * _tand(phi), "koch:asc_diff")
    oamc = ramc - ad
    dx = wrap_deg((ramc + 90.0) - oamc) / 3.0
    def cusp(h: float) -> float: return ascendant_deg(phi, wrap_deg(h), eps)
    c11 = cusp(oamc + dx - 90.0)
    c12 = cusp(oamc + 2.0 * dx - 90.0)
    c2 = cusp(ramc + dx)
    c3 = cusp(ramc + 2.0 * dx)
    return _quadrant_cusps(asc, mc, c11, c12, c2, c3)

def _regiomontanus(phi: float, ramc: float, eps: float, asc: float, mc: float) -> List[float]:
    # house circles through the north/south points, cutting the equator every 30°
    def cusp(h: float) -> float:
        pole = math.degrees(math.atan(_tand(phi) * _sind(h)))
        return ascendant_deg(pole, wrap_deg(ramc + h - 90.0), eps)
    return _quadrant_cusps(asc, mc, cusp(30.0), cusp(60.0), cusp(120.0), cusp(150.0))

def _campanus(phi: float, ramc: float, eps: float, asc: float, mc: float) -> List[float]:
    # prime vertical divided every 30°, projected onto the equator
    def cusp(a: float) -> float:
        h = _atan2d(_sind(a) * _cosd(phi), _cosd(a))
        pole = _asin_strict_deg(_sind(phi) * _sind(a), "campanus:pole")
        return ascendant_deg(pole, wrap_deg(ramc + h - 90.0), eps)
    return _quadrant_cusps(asc, mc, cusp(30.0), cusp(60.0), cusp(120.0), cusp(150.0))

_QUADRANT_ENGINES: Dict[str, Callable[[float, float, float, float, float], List[float]]] = {
    "placidus": _placidus,
    "koch": _koch,
    "regiomontanus": _regiomontanus,
    "campanus": _campanus,
}

def compute_cusps(system: str, *, phi: float, ramc: float, eps: float, asc: float, mc: float) -> List[float]:
    """Twelve tropical cusps for a house system; ValueError on domain failure."""
    if system == "whole_sign":
        return _whole_sign(asc)
    if system == "equal":
        return _equal(asc)
    if system == "porphyry":
        return _porphyry(asc, mc)
    if system == "sripati":
        return _sripati(asc, mc)
    try:
        engine = _QUADRANT_ENGINES[system]
    except KeyError:
        raise ValueError(f"unknown house system '{system}' (allowed: {', '.join(HOUSE_SYSTEMS)})") from None
    return engine(phi, ramc, eps, asc, mc)
