# jyotish/core/dasha.py
"""
Vimshottari dasha engine.

The starting lord is the lord of the Moon's nakshatra at birth; the first
mahadasha runs from birth for the unelapsed share of that lord's years,
balance = (1 − fraction elapsed) × years(lord). Later mahadashas follow the
fixed 9-lord cycle with full lengths until the horizon is passed.

Every node subdivides into 9 children starting from its own lord; a child
lasts parent_span × years(child)/120. Children are laid out with a running
cursor and the last child's end is pinned to the parent's end, so children
are contiguous and tile the parent exactly.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
import math

from jyotish.core.constants import (
    DASHA_LORDS,
    DASHA_TOTAL_YEARS,
    DASHA_YEAR_DAYS,
    DASHA_YEARS,
)
from jyotish.core.errors import InvalidNakshatraIndex
from jyotish.core.nakshatra import NakshatraPoint, nakshatra_of

__all__ = [
    "LEVELS",
    "DashaNode",
    "DashaStart",
    "lord_cycle",
    "dasha_start",
    "subdivide",
    "build_mahadashas",
    "build_ladder",
    "current_nodes",
    "ladder_rows",
]

LEVELS: Tuple[str, ...] = ("mahadasha", "antardasha", "pratyantardasha")
_DAY = timedelta(days=1)


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class DashaNode:
    lord: str
    start: datetime
    end: datetime
    level: str
    children: Tuple["DashaNode", ...] = field(default_factory=tuple)

    @property
    def span_days(self) -> float:
        return (self.end - self.start) / _DAY

    @property
    def years(self) -> float:
        return self.span_days / DASHA_YEAR_DAYS

    def contains(self, at: datetime) -> bool:
        return self.start <= at < self.end

    def to_dict(self, nested: bool = True) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "lord": self.lord,
            "level": self.level,
            "startISO": _iso(self.start),
            "endISO": _iso(self.end),
            "years": round(self.years, 6),
        }
        if nested and self.children:
            d["children"] = [c.to_dict(nested=True) for c in self.children]
        return d


@dataclass(frozen=True)
class DashaStart:
    lord: str
    balance_years: float
    nakshatra: NakshatraPoint


def lord_cycle(start_lord: str) -> List[str]:
    """The 9 lords in Vimshottari order, beginning at start_lord."""
    i = DASHA_LORDS.index(start_lord)
    return [DASHA_LORDS[(i + k) % 9] for k in range(9)]


def dasha_start(moon_sidereal_lon: float) -> DashaStart:
    lon = float(moon_sidereal_lon)
    if not math.isfinite(lon):
        raise InvalidNakshatraIndex("nakshatra", "Moon longitude is not a finite number", moon_longitude=repr(moon_sidereal_lon))
    nk = nakshatra_of(lon)
    return DashaStart(
        lord=nk.lord,
        balance_years=(1.0 - nk.fraction) * DASHA_YEARS[nk.lord],
        nakshatra=nk,
    )


def subdivide(node: DashaNode) -> Tuple[DashaNode, ...]:
    """Nine children of a node, starting from its own lord."""
    idx = LEVELS.index(node.level)
    if idx + 1 >= len(LEVELS):
        raise ValueError(f"dasha: cannot subdivide below {node.level}")
    level = LEVELS[idx + 1]
    parent_days = node.span_days

    children: List[DashaNode] = []
    cursor = node.start
    lords = lord_cycle(node.lord)
    for k, lord in enumerate(lords):
        if k == len(lords) - 1:
            end = node.end
        else:
            end = cursor + timedelta(days=parent_days * DASHA_YEARS[lord] / DASHA_TOTAL_YEARS)
        children.append(DashaNode(lord, cursor, end, level))
        cursor = end
    return tuple(children)


def _expand(node: DashaNode, depth: int) -> DashaNode:
    if depth <= 1:
        return node
    kids = tuple(_expand(c, depth - 1) for c in subdivide(node))
    return DashaNode(node.lord, node.start, node.end, node.level, kids)


def build_mahadashas(birth_utc: datetime, moon_sidereal_lon: float, horizon_years: float = 120.0) -> List[DashaNode]:
    """Mahadashas from birth until the period covering birth + horizon_years."""
    if birth_utc.tzinfo is None:
        birth_utc = birth_utc.replace(tzinfo=timezone.utc)
    st = dasha_start(moon_sidereal_lon)
    horizon_end = birth_utc + timedelta(days=float(horizon_years) * DASHA_YEAR_DAYS)

    out: List[DashaNode] = []
    cursor = birth_utc
    lords = lord_cycle(st.lord)
    k = 0
    while cursor < horizon_end:
        lord = lords[k % 9]
        years = st.balance_years if k == 0 else DASHA_YEARS[lord]
        end = cursor + timedelta(days=years * DASHA_YEAR_DAYS)
        # Moon exactly at a nakshatra end leaves a zero-length first period
        if end > cursor:
            out.append(DashaNode(lord, cursor, end, "mahadasha"))
        cursor = end
        k += 1
    return out


def build_ladder(
    birth_utc: datetime,
    moon_sidereal_lon: float,
    *,
    depth: int = 2,
    horizon_years: float = 120.0,
) -> List[DashaNode]:
    """Mahadashas with children expanded to `depth` levels (1 = MD only, 3 = MD/AD/PD)."""
    if not 1 <= int(depth) <= len(LEVELS):
        raise ValueError(f"dasha depth must be between 1 and {len(LEVELS)}")
    return [_expand(md, int(depth)) for md in build_mahadashas(birth_utc, moon_sidereal_lon, horizon_years)]


def current_nodes(ladder: Sequence[DashaNode], at: datetime, depth: int = 3) -> List[DashaNode]:
    """Path of running periods at an instant: [MD, AD, PD] down to `depth`."""
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    path: List[DashaNode] = []
    level_nodes: Sequence[DashaNode] = ladder
    while level_nodes and len(path) < depth:
        hit: Optional[DashaNode] = next((n for n in level_nodes if n.contains(at)), None)
        if hit is None:
            break
        path.append(hit)
        level_nodes = hit.children or (subdivide(hit) if len(path) < depth and hit.level != LEVELS[-1] else ())
    return path


def ladder_rows(ladder: Sequence[DashaNode]) -> List[Dict[str, Any]]:
    """Flat, chronologically ordered rows (parents before their children)."""
    rows: List[Dict[str, Any]] = []

    def walk(n: DashaNode) -> None:
        rows.append(n.to_dict(nested=False))
        for c in n.children:
            walk(c)

    for md in ladder:
        walk(md)
    return rows
