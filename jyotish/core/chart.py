# jyotish/core/chart.py
"""
Natal chart assembly.

compute_chart() runs the whole pipeline for one birth: instant, sidereal
positions, houses, and the Vimshottari ladder. A dasha failure is recorded in
`errors` and the rest of the chart is still returned; time and house-geometry
failures propagate to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple
import logging

from jyotish.core.ayanamsa import ayanamsa_deg
from jyotish.core.dasha import DashaNode, build_ladder
from jyotish.core.ephemeris_adapter import Config, EphemerisAdapter
from jyotish.core.errors import InvalidNakshatraIndex
from jyotish.core.houses import HousePlacement, compute_houses
from jyotish.core.sidereal import PlanetPosition, sidereal_positions
from jyotish.core.timescales import Instant, build_instant
from jyotish.core.validate import BirthInput
from jyotish.core.varga import varga_table
from jyotish.utils.config import EngineConfig

log = logging.getLogger(__name__)

__all__ = ["Chart", "adapter_for", "compute_chart", "natal_points"]


@lru_cache(maxsize=8)
def _adapter(provider: str, node_model: str, allow_fallback: bool, kernel: Optional[str]) -> EphemerisAdapter:
    return EphemerisAdapter(Config(
        provider=provider,
        node_model=node_model,
        allow_fallback=allow_fallback,
        kernel_path=kernel,
    ))


def adapter_for(cfg: EngineConfig) -> EphemerisAdapter:
    """Shared adapter per (provider, node model, fallback, kernel) combination."""
    return _adapter(cfg.ephemeris_provider, cfg.node_model, bool(cfg.allow_fallback), cfg.ephemeris_kernel)


@dataclass(frozen=True)
class Chart:
    birth: BirthInput
    instant: Instant
    ayanamsa_model: str
    ayanamsa: float
    planets: Tuple[PlanetPosition, ...]
    houses: HousePlacement
    dasha: Optional[Tuple[DashaNode, ...]]
    warnings: Tuple[str, ...] = ()
    errors: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    def planet(self, name: str) -> PlanetPosition:
        for p in self.planets:
            if p.name == name:
                return p
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "birth": self.birth.to_dict(),
            "instant": self.instant.to_dict(),
            "ayanamsa": {"model": self.ayanamsa_model, "degrees": self.ayanamsa},
            "ascendant": {
                "siderealLongitude": self.houses.ascendant,
                "signIndex": self.houses.ascendant_sign_index,
                "sign": self.houses.ascendant_sign,
            },
            "planets": [
                {
                    "name": p.name,
                    "siderealLongitude": p.longitude,
                    "latitude": p.latitude,
                    "speed": p.speed,
                    "retrograde": p.retrograde,
                    "signIndex": p.sign_index,
                    "sign": p.sign,
                    "nakshatraIndex": p.nakshatra_index,
                    "nakshatra": p.nakshatra,
                    "nakshatraLord": p.nakshatra_lord,
                    "pada": p.pada,
                    "navamsaSign": p.navamsa_sign,
                    "dignity": p.dignity,
                    "house": p.house,
                    "source": p.source,
                }
                for p in self.planets
            ],
            "houses": {
                "system": self.houses.system,
                "requestedSystem": self.houses.requested_system,
                "anglesModel": self.houses.angles_model,
                "mc": self.houses.mc,
                "cusps": list(self.houses.cusps),
            },
            "vargas": varga_table({**{p.name: p.longitude for p in self.planets}, "Ascendant": self.houses.ascendant}),
            "dasha": [md.to_dict(nested=True) for md in self.dasha] if self.dasha is not None else None,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }


def natal_points(chart: Chart) -> Dict[str, float]:
    """Sidereal longitudes of the grahas plus the Ascendant, for transit scans."""
    pts = {p.name: p.longitude for p in chart.planets}
    pts["Ascendant"] = chart.houses.ascendant
    return pts


def compute_chart(birth: BirthInput, cfg: EngineConfig, *, adapter: Optional[EphemerisAdapter] = None) -> Chart:
    inst = build_instant(birth.date.isoformat(), birth.time, birth.tz_name)
    adapter = adapter or adapter_for(cfg)
    warnings: List[str] = list(inst.warnings)

    planets, pos_warnings = sidereal_positions(
        inst.jd_tt, adapter,
        ayanamsa_model=cfg.ayanamsa, ayanamsa_tweak_deg=cfg.ayanamsa_tweak_deg,
    )
    warnings.extend(w for w in pos_warnings if w not in warnings)

    ay = ayanamsa_deg(inst.jd_tt, cfg.ayanamsa, cfg.ayanamsa_tweak_deg)
    houses = compute_houses(
        jd_ut=inst.jd_ut,
        jd_tt=inst.jd_tt,
        lat=birth.lat,
        lon=birth.lon,
        ayanamsa=ay,
        planets={p.name: p.longitude for p in planets},
        system=cfg.house_system,
        angles_model=cfg.angles_model,
    )
    warnings.extend(houses.warnings)
    planets = [p.with_house(houses.houses[p.name]) for p in planets]

    errors: List[Dict[str, Any]] = []
    ladder: Optional[Tuple[DashaNode, ...]] = None
    moon = next(p for p in planets if p.name == "Moon")
    try:
        ladder = tuple(build_ladder(
            inst.utc, moon.longitude,
            depth=cfg.dasha_depth, horizon_years=cfg.dasha_horizon_years,
        ))
    except InvalidNakshatraIndex as e:
        log.warning("dasha omitted for %s %s: %s", birth.date, birth.time, e)
        errors.append({"subsystem": e.subsystem, "message": e.message})

    return Chart(
        birth=birth,
        instant=inst,
        ayanamsa_model=cfg.ayanamsa,
        ayanamsa=ay,
        planets=tuple(planets),
        houses=houses,
        dasha=ladder,
        warnings=tuple(warnings),
        errors=tuple(errors),
    )
