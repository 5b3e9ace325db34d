# jyotish/core/varga.py
# -----------------------------------------------------------------------------
# Divisional signs (Parashari vargas) and sign dignity of the grahas
#
#   D2  hora        odd sign: Leo then Cancer; even sign: Cancer then Leo
#   D3  drekkana    sign, 5th, 9th
#   D7  saptamsa    odd sign from itself, even sign from the 7th
#   D9  navamsa     movable from itself, fixed from the 9th, dual from the 5th
#   D10 dasamsa     odd sign from itself, even sign from the 9th
#   D12 dvadasamsa  from the sign itself
#   D30 trimsamsa   unequal 5/5/8/7/5° parts ruled by Mars..Venus
#
# Sign indices are 0..11 from Aries; "odd" signs are Aries, Gemini, ... (even index).
# -----------------------------------------------------------------------------
from __future__ import annotations

import math
from typing import Dict, Mapping, Optional, Tuple

from jyotish.core.constants import SIGN_NAMES, SIGN_SPAN_DEG, wrap_deg

__all__ = [
    "VARGAS",
    "SIGN_LORDS",
    "EXALTATION_SIGN",
    "OWN_SIGNS",
    "varga_sign",
    "navamsa_of",
    "dignity_of",
    "varga_table",
]

VARGAS: Tuple[int, ...] = (1, 2, 3, 7, 9, 10, 12, 30)

SIGN_LORDS: Tuple[str, ...] = (
    "Mars", "Venus", "Mercury", "Moon", "Sun", "Mercury",
    "Venus", "Mars", "Jupiter", "Saturn", "Saturn", "Jupiter",
)
EXALTATION_SIGN: Dict[str, int] = {
    "Sun": 0, "Moon": 1, "Mars": 9, "Mercury": 5, "Jupiter": 3, "Venus": 11, "Saturn": 6,
}
OWN_SIGNS: Dict[str, Tuple[int, ...]] = {
    "Sun": (4,), "Moon": (3,), "Mars": (0, 7), "Mercury": (2, 5),
    "Jupiter": (8, 11), "Venus": (1, 6), "Saturn": (9, 10),
}
# Naisargika (natural) friendships; anything not listed is neutral
_FRIENDS: Dict[str, Tuple[str, ...]] = {
    "Sun": ("Moon", "Mars", "Jupiter"),
    "Moon": ("Sun", "Mercury"),
    "Mars": ("Sun", "Moon", "Jupiter"),
    "Mercury": ("Sun", "Venus"),
    "Jupiter": ("Sun", "Moon", "Mars"),
    "Venus": ("Mercury", "Saturn"),
    "Saturn": ("Mercury", "Venus"),
}
_ENEMIES: Dict[str, Tuple[str, ...]] = {
    "Sun": ("Venus", "Saturn"),
    "Moon": (),
    "Mars": ("Mercury",),
    "Mercury": ("Moon",),
    "Jupiter": ("Mercury", "Venus"),
    "Venus": ("Sun", "Moon"),
    "Saturn": ("Sun", "Moon", "Mars"),
}

# (upper bound in sign, ruling sign) for D30
_TRIMSAMSA_ODD = ((5.0, 0), (10.0, 10), (18.0, 8), (25.0, 2), (30.0, 6))
_TRIMSAMSA_EVEN = ((5.0, 1), (12.0, 5), (20.0, 11), (25.0, 9), (30.0, 7))


def _split(lon: float) -> Tuple[int, float]:
    if not math.isfinite(lon):
        raise ValueError(f"varga: non-finite longitude {lon!r}")
    x = wrap_deg(lon)
    s = min(11, int(x // SIGN_SPAN_DEG))
    return s, x - s * SIGN_SPAN_DEG


def _part(deg_in_sign: float, n: int) -> int:
    return min(n - 1, int(deg_in_sign // (SIGN_SPAN_DEG / n)))


def varga_sign(lon: float, division: int) -> int:
    """Sign index 0..11 of a sidereal longitude in the D<division> chart."""
    s, d = _split(lon)
    odd = s % 2 == 0
    if division == 1:
        return s
    if division == 2:
        first_half = d < 15.0
        return (4 if first_half else 3) if odd else (3 if first_half else 4)
    if division == 3:
        return (s + 4 * _part(d, 3)) % 12
    if division == 7:
        return ((s if odd else s + 6) + _part(d, 7)) % 12
    if division == 9:
        return (s * 9 + _part(d, 9)) % 12
    if division == 10:
        return ((s if odd else s + 8) + _part(d, 10)) % 12
    if division == 12:
        return (s + _part(d, 12)) % 12
    if division == 30:
        for upper, sign in (_TRIMSAMSA_ODD if odd else _TRIMSAMSA_EVEN):
            if d < upper:
                return sign
        return (_TRIMSAMSA_ODD if odd else _TRIMSAMSA_EVEN)[-1][1]
    raise ValueError(f"unsupported varga D{division} (allowed: {', '.join(f'D{v}' for v in VARGAS)})")


def navamsa_of(lon: float) -> Tuple[int, float]:
    """(D9 sign index, degrees within that sign scaled to 0..30)."""
    _, d = _split(lon)
    part = _part(d, 9)
    return varga_sign(lon, 9), (d - part * SIGN_SPAN_DEG / 9.0) * 9.0


def dignity_of(planet: str, sign: int) -> Optional[str]:
    """
    exalted | debilitated | own | friendly | neutral | enemy, judged by the
    planet's natural relation to the sign lord. None for Rahu and Ketu.
    """
    if planet not in EXALTATION_SIGN:
        return None
    s = int(sign) % 12
    if EXALTATION_SIGN[planet] == s:
        return "exalted"
    if (EXALTATION_SIGN[planet] + 6) % 12 == s:
        return "debilitated"
    if s in OWN_SIGNS[planet]:
        return "own"
    lord = SIGN_LORDS[s]
    if lord in _FRIENDS[planet]:
        return "friendly"
    if lord in _ENEMIES[planet]:
        return "enemy"
    return "neutral"


def varga_table(longitudes: Mapping[str, float], divisions: Tuple[int, ...] = VARGAS) -> Dict[str, Dict[str, str]]:
    """{"D9": {"Sun": "Leo", ...}, ...} for the given sidereal longitudes."""
    return {
        f"D{n}": {name: SIGN_NAMES[varga_sign(lon, n)] for name, lon in longitudes.items()}
        for n in divisions
    }
