# jyotish/core/transits.py
# -----------------------------------------------------------------------------
# Transit windows against a natal chart
#
# Pipeline
#   1. sample: one sidereal position set per UTC day (00:00) for the moving
#      planets; days fan out over a thread pool, each day is independent and
#      memoised in a process-wide LRU cache
#   2. detect: best aspect per (transiting, natal) pair within the orb table
#   3. merge: single-threaded over hits sorted by (date, planet, natal);
#      accumulators keyed by (category, planet) absorb hits at most 5 days
#      after their current end
#   4. render: strongest hit names the target; category templates give the
#      title and description
# -----------------------------------------------------------------------------
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from jyotish.core.constants import ASPECT_ANGLES_DEG, ASPECT_ORBS_DEG, ASPECT_WEIGHTS, abs_sep_deg, wrap_deg
from jyotish.core.ephemeris_adapter import EphemerisAdapter
from jyotish.core.nakshatra import nakshatra_of
from jyotish.core.sidereal import sidereal_positions
from jyotish.core.timescales import instant_from_utc
from jyotish.utils.cache import LRUCache

log = logging.getLogger(__name__)

__all__ = [
    "TRANSITING_PLANETS",
    "NATAL_TARGETS",
    "AspectHit",
    "RawHit",
    "TransitWindow",
    "MoonSample",
    "clamp_horizon",
    "detect_aspect",
    "classify_category",
    "collect_hits",
    "merge_windows",
    "scan_transits",
    "daily_moon",
]

TRANSITING_PLANETS: Tuple[str, ...] = ("Sun", "Mercury", "Venus", "Mars", "Jupiter", "Saturn")
NATAL_TARGETS: Tuple[str, ...] = (
    "Sun", "Moon", "Mercury", "Venus", "Mars", "Jupiter", "Saturn", "Rahu", "Ketu", "Ascendant",
)

HORIZON_MIN_DAYS = 7
HORIZON_MAX_DAYS = 730
MAX_GAP_DAYS = 5

# detection order; ties keep the earlier aspect
_ASPECT_ORDER: Tuple[str, ...] = tuple(ASPECT_WEIGHTS)

_DAY_CACHE = LRUCache(capacity=4096)

# ───────────────────────────── Rows ─────────────────────────────

@dataclass(frozen=True)
class AspectHit:
    aspect: str
    delta: float        # degrees off exact
    strength: float


@dataclass(frozen=True)
class RawHit:
    day: date
    planet: str         # transiting
    natal: str
    aspect: str
    category: str
    strength: float


@dataclass(frozen=True)
class TransitWindow:
    id: str
    start: date
    end: date
    planet: str
    target: str
    category: str
    strength: float
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startISO": self.start.isoformat(),
            "endISO": self.end.isoformat(),
            "planet": self.planet,
            "aspectTarget": self.target,
            "category": self.category,
            "strength": round(self.strength, 4),
            "title": self.title,
            "description": self.description,
        }


@dataclass(frozen=True)
class MoonSample:
    day: date
    longitude: float
    nakshatra: str
    house_from_moon: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dateISO": self.day.isoformat(),
            "lon": round(self.longitude, 6),
            "nakshatra": self.nakshatra,
            "houseFromMoon": self.house_from_moon,
        }


@dataclass
class _Accumulator:
    category: str
    planet: str
    start: date
    end: date
    max_strength: float
    hits: List[RawHit] = field(default_factory=list)

# ───────────────────────────── Geometry & classification ─────────────────────────────

def clamp_horizon(days: int) -> int:
    return max(HORIZON_MIN_DAYS, min(int(days), HORIZON_MAX_DAYS))


def detect_aspect(transit_lon: float, natal_lon: float) -> Optional[AspectHit]:
    """Strongest aspect within orb, or None."""
    sep = abs_sep_deg(transit_lon, natal_lon)
    best: Optional[AspectHit] = None
    for name in _ASPECT_ORDER:
        orb = ASPECT_ORBS_DEG[name]
        delta = abs(sep - ASPECT_ANGLES_DEG[name])
        if delta > orb:
            continue
        proximity = 1.0 - delta / orb
        strength = max(0.1, ASPECT_WEIGHTS[name] * (0.6 + 0.4 * proximity))
        if best is None or strength > best.strength:
            best = AspectHit(name, delta, strength)
    return best


def classify_category(transit: str, natal: str) -> str:
    t, n = transit.lower(), natal.lower()
    if t == "jupiter" or (t == "sun" and n != "moon"):
        return "career"
    if t == "saturn":
        return "health" if n in ("moon", "sun") else "inner"
    if t == "venus" or n in ("venus", "moon"):
        return "relationships"
    if t == "mars":
        return "health" if n in ("moon", "ascendant") else "career"
    return "general"

# ───────────────────────────── Sampling ─────────────────────────────

def _day_positions(
    day: date,
    adapter: EphemerisAdapter,
    ayanamsa_model: str,
    ayanamsa_tweak_deg: float,
) -> Dict[str, float]:
    key = (day.toordinal(), adapter.provider.name, adapter.cfg.node_model, ayanamsa_model, float(ayanamsa_tweak_deg))
    cached = _DAY_CACHE.get(key)
    if cached is not None:
        return cached
    inst = instant_from_utc(datetime.combine(day, time(0, 0), tzinfo=timezone.utc))
    rows, warnings = sidereal_positions(
        inst.jd_tt, adapter,
        ayanamsa_model=ayanamsa_model, ayanamsa_tweak_deg=ayanamsa_tweak_deg,
        names=TRANSITING_PLANETS + ("Moon",), with_speed=False,
    )
    if warnings:
        log.debug("transit sample %s degraded: %s", day.isoformat(), ",".join(warnings))
    out = {r.name: r.longitude for r in rows}
    _DAY_CACHE.set(key, out)
    return out


def _sample_days(
    days: Sequence[date],
    adapter: EphemerisAdapter,
    ayanamsa_model: str,
    ayanamsa_tweak_deg: float,
    workers: int,
) -> List[Tuple[date, Dict[str, float]]]:
    def one(d: date) -> Tuple[date, Dict[str, float]]:
        return d, _day_positions(d, adapter, ayanamsa_model, ayanamsa_tweak_deg)

    if workers <= 1 or len(days) <= 1:
        return [one(d) for d in days]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="transit") as pool:
        return list(pool.map(one, days))


def _horizon_days(start: Optional[date], horizon_days: int) -> List[date]:
    first = start or datetime.now(timezone.utc).date()
    return [first + timedelta(days=i) for i in range(clamp_horizon(horizon_days))]


def collect_hits(
    natal: Mapping[str, float],
    samples: Sequence[Tuple[date, Mapping[str, float]]],
) -> List[RawHit]:
    """Every in-orb (day, transiting, natal) triple, sorted by (date, planet, natal)."""
    hits: List[RawHit] = []
    for day, pos in samples:
        for planet in TRANSITING_PLANETS:
            t_lon = pos.get(planet)
            if t_lon is None:
                continue
            for target in NATAL_TARGETS:
                n_lon = natal.get(target)
                if n_lon is None:
                    continue
                asp = detect_aspect(t_lon, n_lon)
                if asp is None:
                    continue
                hits.append(RawHit(day, planet, target, asp.aspect, classify_category(planet, target), asp.strength))
    hits.sort(key=lambda h: (h.day, h.planet, h.natal))
    return hits

# ───────────────────────────── Merge & templates ─────────────────────────────

_TITLES = {
    "career": "{p} boost for career & direction",
    "relationships": "{p} focus on relationships & harmony",
    "health": "{p} tests for health & routines",
    "inner": "{p} phase of inner work & reflection",
    "general": "{p} general life activation",
}

_ASPECT_WORDS = {
    "conjunction": "aligns with",
    "opposition": "faces",
    "trine": "flows with",
    "square": "challenges",
    "sextile": "supports",
}

_CATEGORY_LINES = {
    "career": (
        "This window can bring shifts in work, responsibilities, visibility or long-term direction.",
        "Use it for steady effort, learning, networking and conscious choices about your path.",
    ),
    "relationships": (
        "Relationships, partnerships or key one-to-one dynamics may feel more highlighted now.",
        "Communicate with patience and openness; this is a good time to strengthen or rebalance bonds.",
    ),
    "health": (
        "Energy levels, routines and stress management are important themes in this phase.",
        "Prioritise rest, boundaries and simple, sustainable habits to support your body.",
    ),
    "inner": (
        "Inner processing, questions of meaning and emotional or spiritual growth come into focus.",
        "Gentle reflection, journaling or contemplative practices can help you integrate this period.",
    ),
    "general": (
        "Multiple life areas may be gently activated; stay observant and make mindful adjustments where needed.",
    ),
}


def window_title(category: str, planet: str) -> str:
    return _TITLES.get(category, _TITLES["general"]).format(p=planet)


def window_description(category: str, planet: str, natal: str, aspect: str, start: date, end: date) -> str:
    rng = start.isoformat() if start == end else f"{start.isoformat()} → {end.isoformat()}"
    word = _ASPECT_WORDS.get(aspect, "supports")
    core = f"{planet} {word} your natal {natal}, activating this area from {rng}."
    return " ".join((core,) + _CATEGORY_LINES.get(category, _CATEGORY_LINES["general"]))


def merge_windows(hits: Sequence[RawHit]) -> List[TransitWindow]:
    """Fold sorted daily hits into windows; output ordered by start date."""
    accs: List[_Accumulator] = []
    for h in sorted(hits, key=lambda x: (x.day, x.planet, x.natal)):
        for w in accs:
            if w.category != h.category or w.planet != h.planet:
                continue
            gap = (h.day - w.end).days
            if 0 <= gap <= MAX_GAP_DAYS:
                if h.day > w.end:
                    w.end = h.day
                w.max_strength = max(w.max_strength, h.strength)
                w.hits.append(h)
                break
        else:
            accs.append(_Accumulator(h.category, h.planet, h.day, h.day, h.strength, [h]))

    out: List[TransitWindow] = []
    for idx, w in enumerate(accs):
        strongest = w.hits[0]
        for cur in w.hits[1:]:
            if cur.strength > strongest.strength:
                strongest = cur
        out.append(TransitWindow(
            id=f"win-{idx}-{w.planet.lower()}-{w.category}",
            start=w.start,
            end=w.end,
            planet=w.planet,
            target=f"{strongest.aspect} natal {strongest.natal}",
            category=w.category,
            strength=min(1.0, w.max_strength),
            title=window_title(w.category, w.planet),
            description=window_description(w.category, w.planet, strongest.natal, strongest.aspect, w.start, w.end),
        ))
    out.sort(key=lambda x: x.start)
    return out

# ───────────────────────────── Public API ─────────────────────────────

def scan_transits(
    natal: Mapping[str, float],
    adapter: EphemerisAdapter,
    *,
    start: Optional[date] = None,
    horizon_days: int = 90,
    ayanamsa_model: str = "lahiri",
    ayanamsa_tweak_deg: float = 0.0,
    workers: int = 4,
) -> List[TransitWindow]:
    """
    Transit windows over [start, start + horizon) for natal sidereal
    longitudes keyed by graha name (plus "Ascendant").
    """
    days = _horizon_days(start, horizon_days)
    samples = _sample_days(days, adapter, ayanamsa_model, ayanamsa_tweak_deg, int(workers))
    windows = merge_windows(collect_hits(natal, samples))
    log.debug("transits: %d days, %d windows", len(days), len(windows))
    return windows


def daily_moon(
    natal_moon: Optional[float],
    adapter: EphemerisAdapter,
    *,
    start: Optional[date] = None,
    horizon_days: int = 90,
    ayanamsa_model: str = "lahiri",
    ayanamsa_tweak_deg: float = 0.0,
    workers: int = 4,
) -> List[MoonSample]:
    """Moon's sidereal longitude, nakshatra and house counted from the natal Moon, per day."""
    days = _horizon_days(start, horizon_days)
    out: List[MoonSample] = []
    for day, pos in _sample_days(days, adapter, ayanamsa_model, ayanamsa_tweak_deg, int(workers)):
        lon = pos["Moon"]
        house = None
        if natal_moon is not None:
            house = int(wrap_deg(lon - natal_moon) // 30.0) + 1
        out.append(MoonSample(day, lon, nakshatra_of(lon).name, house))
    return out
