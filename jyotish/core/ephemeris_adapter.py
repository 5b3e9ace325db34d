# jyotish/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Ephemeris Adapter (pluggable PositionProvider: analytic default, Skyfield)
#
# Highlights
# • Deterministic Config + Adapter class (module API delegates to a default)
# • Strategy interface: AnalyticProvider (Keplerian elements + Meeus lunar
#   series, no data files) and SkyfieldProvider (DE421, ecliptic-of-date)
# • Provider chosen by configuration, never by runtime probing
# • Per-body recovery: EphemerisUnavailable → analytic formula for that body,
#   logged as degraded precision; the chart is never aborted
# • Lunar node via its own mean/true formula; Ketu = Rahu + 180° exactly
# • Thread-safe lazy kernel bootstrap
# -----------------------------------------------------------------------------
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple
import logging
import math
import os
import threading

from jyotish.core.constants import GRAHAS, PHYSICAL_BODIES, wrap_deg, delta_deg
from jyotish.core.errors import EphemerisUnavailable

log = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Constants / environment (bounded; converted into Config defaults)
# ─────────────────────────────────────────────────────────────────────────────
EPHEMERIS_NAME_DEFAULT = "de421"

DE421_JD_MIN = float(os.getenv("JYOTISH_DE421_JD_MIN", "2414992.5"))  # 1899-12-31
DE421_JD_MAX = float(os.getenv("JYOTISH_DE421_JD_MAX", "2469807.5"))  # 2053-10-09

_PROVIDER_ENV = os.getenv("JYOTISH_EPHEMERIS", "analytic").strip().lower()      # {"analytic","skyfield"}
_NODE_MODEL_ENV = os.getenv("JYOTISH_NODE_MODEL", "mean").strip().lower()      # {"mean","true"}
_ALLOW_FALLBACK_ENV = os.getenv("JYOTISH_ALLOW_FALLBACK", "1").lower() in ("1", "true", "yes", "on")
_KERNEL_PATH_ENV = os.getenv("JYOTISH_EPHEMERIS_KERNEL") or None

# Velocity steps (days) for central differences
_SPEED_STEP_MAP = {
    "Moon": 0.05,     # ±1.2 h
    "Mercury": 0.25,  # ±6 h
    "Venus": 0.33,    # ±8 h
    "Rahu": 0.5,
}
_SPEED_STEP_DEFAULT = float(os.getenv("JYOTISH_SPEED_STEP_DEFAULT", "0.5"))  # ±12 h

PROVIDERS = ("analytic", "skyfield")
NODE_MODELS = ("mean", "true")

# ─────────────────────────────────────────────────────────────────────────────
# Adapter configuration
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Config:
    provider: str = _PROVIDER_ENV           # "analytic" | "skyfield"
    node_model: str = _NODE_MODEL_ENV       # "mean" | "true"
    allow_fallback: bool = _ALLOW_FALLBACK_ENV
    kernel_path: Optional[str] = _KERNEL_PATH_ENV
    jd_min: float = DE421_JD_MIN
    jd_max: float = DE421_JD_MAX

    def __post_init__(self) -> None:
        if self.provider not in PROVIDERS:
            raise ValueError(f"unknown ephemeris provider '{self.provider}' (allowed: {', '.join(PROVIDERS)})")
        if self.node_model not in NODE_MODELS:
            raise ValueError(f"unknown node model '{self.node_model}' (allowed: {', '.join(NODE_MODELS)})")

# ─────────────────────────────────────────────────────────────────────────────
# Rows
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BodyPosition:
    name: str
    longitude: float            # tropical, ecliptic of date, [0,360)
    latitude: float
    speed: Optional[float]      # deg/day (None when not requested)
    source: str                 # provider name, or "analytic-fallback"

    @property
    def retrograde(self) -> bool:
        return self.speed is not None and self.speed < 0.0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["retrograde"] = self.retrograde
        return d

# ─────────────────────────────────────────────────────────────────────────────
# Math helpers
# ─────────────────────────────────────────────────────────────────────────────
def _centuries_tt(jd_tt: float) -> float:
    return (float(jd_tt) - 2451545.0) / 36525.0

def _speed_step_for(name: str) -> float:
    return _SPEED_STEP_MAP.get(name, _SPEED_STEP_DEFAULT)

def _sind(a: float) -> float: return math.sin(math.radians(a))
def _cosd(a: float) -> float: return math.cos(math.radians(a))

def _general_precession_deg(T: float) -> float:
    """Accumulated general precession in longitude, J2000 → date (degrees)."""
    return (5028.796195 * T + 1.1054348 * T * T) / 3600.0

# ─────────────────────────────────────────────────────────────────────────────
# Lunar nodes (geocentric)
# ─────────────────────────────────────────────────────────────────────────────
def mean_node(jd_tt: float) -> float:
    # Meeus polynomial for the mean longitude of the ascending node
    T = _centuries_tt(jd_tt)
    Omega = 125.04452 - 1934.136261 * T + 0.0020708 * (T**2) + (T**3) / 450000.0
    return wrap_deg(Omega)

def _lunar_arguments(T: float) -> Tuple[float, float, float, float, float]:
    """(L', D, M, M', F) in degrees, Meeus ch. 47."""
    Lp = 218.3164477 + 481267.88123421 * T - 0.0015786 * T**2 + T**3 / 538841.0 - T**4 / 65194000.0
    D = 297.8501921 + 445267.1114034 * T - 0.0018819 * T**2 + T**3 / 545868.0 - T**4 / 113065000.0
    M = 357.5291092 + 35999.0502909 * T - 0.0001536 * T**2 + T**3 / 24490000.0
    Mp = 134.9633964 + 477198.8675055 * T + 0.0087414 * T**2 + T**3 / 69699.0 - T**4 / 14712000.0
    F = 93.2720950 + 483202.0175233 * T - 0.0036539 * T**2 - T**3 / 3526000.0 + T**4 / 863310000.0
    return Lp, D, M, Mp, F

def true_node_analytic(jd_tt: float) -> float:
    """Mean node plus the five largest periodic terms of the true node."""
    T = _centuries_tt(jd_tt)
    _Lp, D, M, Mp, F = _lunar_arguments(T)
    corr = (
        -1.4979 * _sind(2.0 * (D - F))
        - 0.1500 * _sind(M)
        - 0.1226 * _sind(2.0 * D)
        + 0.1176 * _sind(2.0 * F)
        - 0.0801 * _sind(2.0 * (Mp - F))
    )
    return wrap_deg(mean_node(jd_tt) + corr)

# ─────────────────────────────────────────────────────────────────────────────
# Provider interface
# ─────────────────────────────────────────────────────────────────────────────
class PositionProvider(ABC):
    """Tropical geocentric ecliptic-of-date coordinates for the physical bodies."""

    name = "abstract"

    @abstractmethod
    def lon_lat(self, body: str, jd_tt: float) -> Tuple[float, float]:
        """(longitude, latitude) in degrees; raise EphemerisUnavailable on failure."""

    def node_longitude(self, jd_tt: float, model: str) -> float:
        if model == "true":
            return true_node_analytic(jd_tt)
        return mean_node(jd_tt)

    def describe(self) -> Dict[str, Any]:
        return {"provider": self.name}

# ─────────────────────────────────────────────────────────────────────────────
# Analytic provider
# ─────────────────────────────────────────────────────────────────────────────
# Keplerian elements, J2000 ecliptic/equinox, valid 1800–2050 (Standish, JPL).
# (a [AU], e, I, L, long.peri, long.node) and their rates per Julian century.
_KEPLER_ELEMENTS: Dict[str, Tuple[Tuple[float, ...], Tuple[float, ...]]] = {
    "Mercury": ((0.38709927, 0.20563593, 7.00497902, 252.25032350, 77.45779628, 48.33076593),
                (0.00000037, 0.00001906, -0.00594749, 149472.67411175, 0.16047689, -0.12534081)),
    "Venus":   ((0.72333566, 0.00677672, 3.39467605, 181.97909950, 131.60246718, 76.67984255),
                (0.00000390, -0.00004107, -0.00078890, 58517.81538729, 0.00268329, -0.27769418)),
    "EMB":     ((1.00000261, 0.01671123, -0.00001531, 100.46457166, 102.93768193, 0.0),
                (0.00000562, -0.00004392, -0.01294668, 35999.37244981, 0.32327364, 0.0)),
    "Mars":    ((1.52371034, 0.09339410, 1.84969142, -4.55343205, -23.94362959, 49.55953891),
                (0.00001847, 0.00007882, -0.00813131, 19140.30268499, 0.44441088, -0.29257343)),
    "Jupiter": ((5.20288700, 0.04838624, 1.30439695, 34.39644051, 14.72847983, 100.47390909),
                (-0.00011607, -0.00013253, -0.00183714, 3034.74612775, 0.21252668, 0.20469106)),
    "Saturn":  ((9.53667594, 0.05386179, 2.48599187, 49.95424423, 92.59887831, 113.66242448),
                (-0.00125060, -0.00050991, 0.00193609, 1222.49362201, -0.41897216, -0.28867794)),
}

# Meeus table 47.A (D, M, M', F, Σl coefficient in 1e-6°)
_MOON_LON_TERMS: Tuple[Tuple[int, int, int, int, int], ...] = (
    (0, 0, 1, 0, 6288774), (2, 0, -1, 0, 1274027), (2, 0, 0, 0, 658314),
    (0, 0, 2, 0, 213618), (0, 1, 0, 0, -185116), (0, 0, 0, 2, -114332),
    (2, 0, -2, 0, 58793), (2, -1, -1, 0, 57066), (2, 0, 1, 0, 53322),
    (2, -1, 0, 0, 45758), (0, 1, -1, 0, -40923), (1, 0, 0, 0, -34720),
    (0, 1, 1, 0, -30383), (2, 0, 0, -2, 15327), (0, 0, 1, 2, -12528),
    (0, 0, 1, -2, 10980), (4, 0, -1, 0, 10675), (0, 0, 3, 0, 10034),
    (4, 0, -2, 0, 8548), (2, 1, -1, 0, -7888), (2, 1, 0, 0, -6766),
    (1, 0, -1, 0, -5163), (1, 1, 0, 0, 4987), (2, -1, 1, 0, 4036),
    (2, 0, 2, 0, 3994), (4, 0, 0, 0, 3861), (2, 0, -3, 0, 3665),
    (0, 1, -2, 0, -2689), (2, 0, -1, 2, -2602), (2, -1, -2, 0, 2390),
    (1, 0, 1, 0, -2348), (2, -2, 0, 0, 2236),
)
# Meeus table 47.B (D, M, M', F, Σb coefficient in 1e-6°)
_MOON_LAT_TERMS: Tuple[Tuple[int, int, int, int, int], ...] = (
    (0, 0, 0, 1, 5128122), (0, 0, 1, 1, 280602), (0, 0, 1, -1, 277693),
    (2, 0, 0, -1, 173237), (2, 0, -1, 1, 55413), (2, 0, -1, -1, 46271),
    (2, 0, 0, 1, 32573), (0, 0, 2, 1, 17198), (2, 0, 1, -1, 9266),
    (0, 0, 2, -1, 8822), (2, -1, 0, -1, 8216), (2, 0, -2, -1, 4324),
    (2, 0, 1, 1, 4200),
)

def _solve_kepler(M_deg: float, e: float) -> float:
    """Eccentric anomaly E (radians) via Newton iteration."""
    M = math.radians(((M_deg + 180.0) % 360.0) - 180.0)
    E = M + e * math.sin(M)
    for _ in range(30):
        dE = (E - e * math.sin(E) - M) / (1.0 - e * math.cos(E))
        E -= dE
        if abs(dE) < 1e-12:
            break
    return E

def _heliocentric_j2000(body: str, T: float) -> Tuple[float, float, float]:
    base, rate = _KEPLER_ELEMENTS[body]
    a, e, inc, L, peri, node = (b + r * T for b, r in zip(base, rate))
    w = peri - node
    E = _solve_kepler(L - peri, e)
    xp = a * (math.cos(E) - e)
    yp = a * math.sqrt(1.0 - e * e) * math.sin(E)
    cw, sw = _cosd(w), _sind(w)
    cO, sO = _cosd(node), _sind(node)
    cI, sI = _cosd(inc), _sind(inc)
    x = (cw * cO - sw * sO * cI) * xp + (-sw * cO - cw * sO * cI) * yp
    y = (cw * sO + sw * cO * cI) * xp + (-sw * sO + cw * cO * cI) * yp
    z = (sw * sI) * xp + (cw * sI) * yp
    return x, y, z

def _moon_lon_lat(T: float) -> Tuple[float, float]:
    Lp, D, M, Mp, F = _lunar_arguments(T)
    E = 1.0 - 0.002516 * T - 0.0000074 * T * T
    A1 = 119.75 + 131.849 * T
    A2 = 53.09 + 479264.290 * T
    A3 = 313.45 + 481266.484 * T

    sl = 0.0
    for d, m, mp, f, c in _MOON_LON_TERMS:
        sl += c * (E ** abs(m)) * _sind(d * D + m * M + mp * Mp + f * F)
    sl += 3958.0 * _sind(A1) + 1962.0 * _sind(Lp - F) + 318.0 * _sind(A2)

    sb = 0.0
    for d, m, mp, f, c in _MOON_LAT_TERMS:
        sb += c * (E ** abs(m)) * _sind(d * D + m * M + mp * Mp + f * F)
    sb += (-2235.0 * _sind(Lp) + 382.0 * _sind(A3) + 175.0 * _sind(A1 - F)
           + 175.0 * _sind(A1 + F) + 127.0 * _sind(Lp - Mp) - 115.0 * _sind(Lp + Mp))

    return wrap_deg(Lp + sl / 1e6), sb / 1e6

class AnalyticProvider(PositionProvider):
    """
    Closed-form positions, no data files.

    Sun, Mercury..Saturn: JPL Keplerian elements (heliocentric J2000), made
    geocentric against the Earth–Moon barycentre and precessed to the equinox
    of date; accuracy is a few arcminutes for 1800–2050. Moon: Meeus main
    terms, already referred to the mean equinox of date (~10″).
    """

    name = "analytic"

    def lon_lat(self, body: str, jd_tt: float) -> Tuple[float, float]:
        jd_tt = float(jd_tt)
        if not math.isfinite(jd_tt):
            raise EphemerisUnavailable("validation", "non-finite Julian Day", body=body)
        T = _centuries_tt(jd_tt)
        if body == "Moon":
            return _moon_lon_lat(T)
        if body != "Sun" and body not in _KEPLER_ELEMENTS:
            raise EphemerisUnavailable("resolve", f"no analytic formula for '{body}'", body=body)

        ex, ey, ez = _heliocentric_j2000("EMB", T)
        if body == "Sun":
            x, y, z = -ex, -ey, -ez
        else:
            px, py, pz = _heliocentric_j2000(body, T)
            x, y, z = px - ex, py - ey, pz - ez
        lon = math.degrees(math.atan2(y, x)) + _general_precession_deg(T)
        lat = math.degrees(math.atan2(z, math.hypot(x, y)))
        return wrap_deg(lon), lat

_ANALYTIC = AnalyticProvider()

# ─────────────────────────────────────────────────────────────────────────────
# Skyfield provider
# ─────────────────────────────────────────────────────────────────────────────
_SKYFIELD_KEYS: Dict[str, str] = {
    "Sun": "sun",
    "Moon": "moon",
    "Mercury": "mercury",
    "Venus": "venus",
    "Mars": "mars",
    "Jupiter": "jupiter barycenter",
    "Saturn": "saturn barycenter",
}

_TS = None                 # Skyfield timescale
_MAIN = None               # main kernel
_KERNEL_PATHS: List[str] = []
_LOCK_KERNEL = threading.Lock()

def _resolve_kernel_path(explicit: Optional[str]) -> Optional[str]:
    if explicit and os.path.isfile(explicit):
        return explicit
    fallback = os.path.join(os.getcwd(), "data", "de421.bsp")
    return fallback if os.path.isfile(fallback) else None

def _looks_like_lfs_pointer(path: str) -> bool:
    try:
        if os.path.getsize(path) <= 512:
            with open(path, "rb") as f:
                head = f.read(128)
            return head.startswith(b"version https://git-lfs.github.com/spec/v1")
    except OSError:
        return False
    return False

def _get_kernel(kernel_path: Optional[str]):
    """Thread-safe lazy load of the timescale and main kernel."""
    global _TS, _MAIN
    if _MAIN is not None and _TS is not None:
        return _TS, _MAIN

    with _LOCK_KERNEL:
        if _MAIN is not None and _TS is not None:
            return _TS, _MAIN

        from skyfield.api import load

        path = _resolve_kernel_path(kernel_path)
        if not path:
            raise EphemerisUnavailable("kernel", "No local DE421 found (set JYOTISH_EPHEMERIS_KERNEL or place data/de421.bsp)")
        if _looks_like_lfs_pointer(path):
            raise EphemerisUnavailable("kernel", f"Kernel looks like a Git LFS pointer: {path}")
        try:
            main = load(path)
            ts = load.timescale(builtin=True)
        except Exception as e:
            raise EphemerisUnavailable("kernel", f"Skyfield failed to load kernel: {path}", error=str(e)) from e
        _MAIN, _TS = main, ts
        _KERNEL_PATHS.append(path)
    return _TS, _MAIN

def current_kernel_name() -> str:
    if _KERNEL_PATHS:
        return ", ".join(os.path.basename(p) for p in _KERNEL_PATHS)
    return EPHEMERIS_NAME_DEFAULT

class SkyfieldProvider(PositionProvider):
    """DE421 through Skyfield: apparent geocentric positions, ecliptic of date."""

    name = "skyfield"

    def __init__(self, kernel_path: Optional[str] = None, jd_min: float = DE421_JD_MIN, jd_max: float = DE421_JD_MAX):
        self.kernel_path = kernel_path
        self.jd_min = jd_min
        self.jd_max = jd_max

    def _check_range(self, jd_tt: float, body: str) -> None:
        if not (self.jd_min <= float(jd_tt) <= self.jd_max):
            raise EphemerisUnavailable("range", "Julian date outside DE421 nominal span", body=body, jd_tt=float(jd_tt))

    def lon_lat(self, body: str, jd_tt: float) -> Tuple[float, float]:
        key = _SKYFIELD_KEYS.get(body)
        if key is None:
            raise EphemerisUnavailable("resolve", f"body '{body}' not in kernel catalog", body=body)
        self._check_range(jd_tt, body)
        ts, main = _get_kernel(self.kernel_path)
        from skyfield.framelib import ecliptic_frame
        try:
            t = ts.tt_jd(float(jd_tt))
            geo = main["earth"].at(t).observe(main[key]).apparent()
            lat, lon, _dist = geo.frame_latlon(ecliptic_frame)
            lon_deg, lat_deg = float(lon.degrees), float(lat.degrees)
        except Exception as e:
            raise EphemerisUnavailable("compute", f"Skyfield compute failed for {body}", body=body, error=type(e).__name__) from e
        if not (math.isfinite(lon_deg) and math.isfinite(lat_deg)):
            raise EphemerisUnavailable("compute", f"non-finite coordinates for {body}", body=body)
        return wrap_deg(lon_deg), lat_deg

    def node_longitude(self, jd_tt: float, model: str) -> float:
        if model != "true":
            return mean_node(jd_tt)
        self._check_range(jd_tt, "Rahu")
        lon = _true_node_from_momentum(float(jd_tt), self.kernel_path)
        if not math.isfinite(lon):
            raise EphemerisUnavailable("node", "true_node_failed", jd_tt=float(jd_tt))
        return lon

    def describe(self) -> Dict[str, Any]:
        return {"provider": self.name, "kernel": current_kernel_name(), "jd_guard": [self.jd_min, self.jd_max]}

@lru_cache(maxsize=8192)
def _true_node_from_momentum(jd_tt: float, kernel_path: Optional[str]) -> float:
    """True node from the lunar angular-momentum vector in the ecliptic-of-date frame."""
    from skyfield.framelib import ecliptic_frame

    ts, main = _get_kernel(kernel_path)
    step = _speed_step_for("Moon")
    earth, moon = main["earth"], main["moon"]

    def _xyz(jd: float) -> Tuple[float, float, float]:
        v = earth.at(ts.tt_jd(jd)).observe(moon).apparent().frame_xyz(ecliptic_frame).au
        return float(v[0]), float(v[1]), float(v[2])

    r0 = _xyz(jd_tt)
    rp = _xyz(jd_tt + step)
    rm = _xyz(jd_tt - step)
    v = tuple((rp[i] - rm[i]) / (2.0 * step) for i in range(3))
    # h = r × v ; ascending node direction n = ẑ × h
    hx = r0[1] * v[2] - r0[2] * v[1]
    hy = r0[2] * v[0] - r0[0] * v[2]
    nx, ny = -hy, hx
    if math.hypot(nx, ny) < 1e-18:
        return float("nan")
    return wrap_deg(math.degrees(math.atan2(ny, nx)))

# ─────────────────────────────────────────────────────────────────────────────
# Adapter class
# ─────────────────────────────────────────────────────────────────────────────
def make_provider(cfg: Config) -> PositionProvider:
    if cfg.provider == "skyfield":
        return SkyfieldProvider(cfg.kernel_path, cfg.jd_min, cfg.jd_max)
    return _ANALYTIC

class EphemerisAdapter:
    def __init__(self, cfg: Optional[Config] = None, provider: Optional[PositionProvider] = None):
        self.cfg = cfg or Config()
        self.provider = provider or make_provider(self.cfg)

    # ---- single-body primitives ----------------------------------------------
    def _lon_lat(self, body: str, jd_tt: float, warnings: List[str]) -> Tuple[float, float, str]:
        try:
            lon, lat = self.provider.lon_lat(body, jd_tt)
            return lon, lat, self.provider.name
        except EphemerisUnavailable as e:
            if not self.cfg.allow_fallback or self.provider is _ANALYTIC:
                raise
            log.warning("ephemeris degraded for %s (%s: %s); using analytic formula", body, e.stage, e.message)
            _note(warnings, f"degraded:{body}:{e.stage}")
            lon, lat = _ANALYTIC.lon_lat(body, jd_tt)
            return lon, lat, "analytic-fallback"

    def _node(self, jd_tt: float, warnings: List[str]) -> Tuple[float, str]:
        try:
            return self.provider.node_longitude(jd_tt, self.cfg.node_model), self.provider.name
        except EphemerisUnavailable as e:
            if not self.cfg.allow_fallback or self.provider is _ANALYTIC:
                raise
            log.warning("ephemeris degraded for Rahu (%s: %s); using analytic node", e.stage, e.message)
            _note(warnings, f"degraded:Rahu:{e.stage}")
            return _ANALYTIC.node_longitude(jd_tt, self.cfg.node_model), "analytic-fallback"

    def _speed(self, body: str, jd_tt: float, warnings: List[str]) -> float:
        h = _speed_step_for(body)
        if body == "Rahu":
            lm, _ = self._node(jd_tt - h, warnings)
            lp, _ = self._node(jd_tt + h, warnings)
        else:
            lm = self._lon_lat(body, jd_tt - h, warnings)[0]
            lp = self._lon_lat(body, jd_tt + h, warnings)[0]
        return delta_deg(lm, lp) / (2.0 * h)

    # ---- public computations ------------------------------------------------
    def positions(
        self,
        jd_tt: float,
        names: Optional[List[str]] = None,
        *,
        with_speed: bool = True,
    ) -> Tuple[List[BodyPosition], List[str]]:
        """
        Tropical positions for the requested grahas, in request order.

        Ketu is emitted as the exact opposite of Rahu. Returns (rows, warnings).
        """
        warnings: List[str] = []
        wanted = list(names) if names else list(GRAHAS)
        unknown = [n for n in wanted if n not in GRAHAS]
        if unknown:
            raise ValueError(f"unsupported bodies: {', '.join(unknown)} (allowed: {', '.join(GRAHAS)})")

        rahu: Optional[BodyPosition] = None
        if "Rahu" in wanted or "Ketu" in wanted:
            lon, src = self._node(jd_tt, warnings)
            spd = self._speed("Rahu", jd_tt, warnings) if with_speed else None
            rahu = BodyPosition("Rahu", lon, 0.0, spd, src)

        rows: List[BodyPosition] = []
        for name in wanted:
            if name in PHYSICAL_BODIES:
                lon, lat, src = self._lon_lat(name, jd_tt, warnings)
                spd = self._speed(name, jd_tt, warnings) if with_speed else None
                rows.append(BodyPosition(name, lon, lat, spd, src))
            elif name == "Rahu":
                rows.append(rahu)  # type: ignore[arg-type]
            else:
                assert rahu is not None
                rows.append(BodyPosition("Ketu", wrap_deg(rahu.longitude + 180.0), 0.0, rahu.speed, rahu.source))
        return rows, warnings

    def ephemeris_diagnostics(self) -> Dict[str, Any]:
        return {
            **self.provider.describe(),
            "node_model": self.cfg.node_model,
            "allow_fallback": self.cfg.allow_fallback,
            "bodies": list(GRAHAS),
        }

def _note(warnings: List[str], w: str) -> None:
    if w not in warnings:
        warnings.append(w)

__all__ = [
    "Config",
    "BodyPosition",
    "PositionProvider",
    "AnalyticProvider",
    "SkyfieldProvider",
    "EphemerisAdapter",
    "make_provider",
    "mean_node",
    "true_node_analytic",
    "current_kernel_name",
]
