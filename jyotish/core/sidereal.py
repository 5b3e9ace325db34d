# jyotish/core/sidereal.py
"""
Tropical → sidereal conversion of the graha positions.

sidereal_positions() is the single entry point the chart, panchang and transit
layers use: it asks the ephemeris adapter for tropical rows at JD(TT),
subtracts the ayanāṁśa evaluated at the same instant and annotates each row
with sign, nakshatra, navamsa sign and dignity. House numbers are attached
later by the houses layer.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jyotish.core.ayanamsa import ayanamsa_deg
from jyotish.core.constants import GRAHAS, SIGN_NAMES, sign_index, wrap_deg
from jyotish.core.ephemeris_adapter import EphemerisAdapter
from jyotish.core.nakshatra import nakshatra_of
from jyotish.core.varga import dignity_of, varga_sign

__all__ = ["PlanetPosition", "to_sidereal", "sidereal_positions"]


@dataclass(frozen=True)
class PlanetPosition:
    name: str
    longitude: float                # sidereal, [0, 360)
    latitude: float
    speed: Optional[float]          # deg/day
    retrograde: bool
    sign_index: int
    sign: str
    nakshatra_index: int
    nakshatra: str
    nakshatra_lord: str
    pada: int
    source: str
    navamsa_sign: str
    dignity: Optional[str]          # None for the nodes
    house: Optional[int] = None     # 1..12, set once houses are known

    def with_house(self, house: int) -> "PlanetPosition":
        return replace(self, house=int(house))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_sidereal(tropical_deg: float, ayanamsa: float) -> float:
    return wrap_deg(tropical_deg - ayanamsa)


def sidereal_positions(
    jd_tt: float,
    adapter: EphemerisAdapter,
    *,
    ayanamsa_model: str = "lahiri",
    ayanamsa_tweak_deg: float = 0.0,
    names: Optional[Sequence[str]] = None,
    with_speed: bool = True,
) -> Tuple[List[PlanetPosition], List[str]]:
    """Sidereal PlanetPositions (default: all nine grahas) plus adapter warnings."""
    ay = ayanamsa_deg(jd_tt, ayanamsa_model, ayanamsa_tweak_deg)
    rows, warnings = adapter.positions(jd_tt, list(names or GRAHAS), with_speed=with_speed)

    rahu_sid = next((to_sidereal(r.longitude, ay) for r in rows if r.name == "Rahu"), None)

    out: List[PlanetPosition] = []
    for r in rows:
        lon = to_sidereal(r.longitude, ay)
        if r.name == "Ketu" and rahu_sid is not None:
            lon = wrap_deg(rahu_sid + 180.0)
        nk = nakshatra_of(lon)
        si = sign_index(lon)
        out.append(PlanetPosition(
            name=r.name,
            longitude=lon,
            latitude=r.latitude,
            speed=r.speed,
            retrograde=r.retrograde,
            sign_index=si,
            sign=SIGN_NAMES[si],
            nakshatra_index=nk.index,
            nakshatra=nk.name,
            nakshatra_lord=nk.lord,
            pada=nk.pada,
            source=r.source,
            navamsa_sign=SIGN_NAMES[varga_sign(lon, 9)],
            dignity=dignity_of(r.name, si),
        ))
    return out, warnings
