# jyotish/core/nakshatra.py
"""
Nakshatra segmentation of a sidereal longitude.

27 equal lunar mansions of 13°20′, each split into 4 padas of 3°20′.
The ruling lord cycles through the Vimshottari order, so nakshatra i is ruled
by DASHA_LORDS[i % 9] (Ashwini → Ketu, Bharani → Venus, …, Revati → Mercury).
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict
import math

from jyotish.core.constants import (
    DASHA_LORDS,
    NAKSHATRA_NAMES,
    NAKSHATRA_SPAN_DEG,
    PADA_SPAN_DEG,
    wrap_deg,
)

__all__ = ["NakshatraPoint", "nakshatra_of", "nakshatra_index", "nakshatra_lord"]


@dataclass(frozen=True)
class NakshatraPoint:
    index: int          # 0..26
    name: str
    lord: str
    pada: int           # 1..4
    degrees_in: float   # [0, 13°20′)
    fraction: float     # elapsed fraction of the nakshatra, [0, 1)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def nakshatra_index(sidereal_lon: float) -> int:
    return min(26, int(wrap_deg(sidereal_lon) // NAKSHATRA_SPAN_DEG))


def nakshatra_lord(index: int) -> str:
    return DASHA_LORDS[int(index) % 9]


def nakshatra_of(sidereal_lon: float) -> NakshatraPoint:
    """Locate a sidereal longitude; total over finite input, ValueError otherwise."""
    lon = float(sidereal_lon)
    if not math.isfinite(lon):
        raise ValueError(f"nakshatra: non-finite longitude {sidereal_lon!r}")
    lon = wrap_deg(lon)
    idx = nakshatra_index(lon)
    into = lon - idx * NAKSHATRA_SPAN_DEG
    # float residue at a boundary can land a hair below zero or at the span
    into = min(max(into, 0.0), math.nextafter(NAKSHATRA_SPAN_DEG, 0.0))
    pada = min(4, int(into // PADA_SPAN_DEG) + 1)
    return NakshatraPoint(
        index=idx,
        name=NAKSHATRA_NAMES[idx],
        lord=nakshatra_lord(idx),
        pada=pada,
        degrees_in=into,
        fraction=into / NAKSHATRA_SPAN_DEG,
    )
