# jyotish/core/timescales.py
# -----------------------------------------------------------------------------
# Civil birth time → UTC instant → Julian Day (UT / TT)
#
# Public API:
#   build_instant(date_str, time_str, tz_name) -> Instant
#   julian_day_ut(dt_utc)                      -> float
#   datetime_from_jd(jd_ut)                    -> aware UTC datetime
#
# Guarantees:
#   • Two-pass zone offset resolution: the offset found at a first-guess UTC
#     instant is re-resolved at the corrected instant (DST-safe).
#   • DST ambiguity (fold) and spring-forward gaps are flagged, not rejected.
#   • JD(UT) = erfa.cal2jd(UTC calendar) + day fraction (math.fsum); no POSIX
#     timestamp math feeds a JD, so results are bit-reproducible.
#   • JD(TT) = JD(UT) + ΔT; ΔT from ΔAT (erfa ufunc dat, status-checked) + 32.184 s for UTC ≥ 1960,
#     Espenak–Meeus polynomial before that and past the leap-second table.
#   • Every parse/range/zone failure raises InvalidTimeInput (subsystem "time").
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Tuple, List, Dict, Any
from datetime import datetime, timezone, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import math
import re

import erfa  # pyERFA
from erfa import ufunc as erfa_ufunc

from jyotish.core.errors import InvalidTimeInput

__all__ = [
    "Instant",
    "build_instant",
    "instant_from_utc",
    "julian_day_ut",
    "datetime_from_jd",
    "delta_t_seconds",
    "resolve_zone",
]

# ───────────────────────────── Dataclass ─────────────────────────────

@dataclass(frozen=True)
class Instant:
    utc: datetime               # aware, tzinfo=UTC
    jd_ut: float
    jd_tt: float
    delta_t: float              # TT − UT [s]
    timezone: str
    tz_offset_seconds: int
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def utc_iso(self) -> str:
        return self.utc.isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["utc"] = self.utc_iso
        d["warnings"] = list(self.warnings)
        return d

# ───────────────────────────── Parsing helpers ─────────────────────────────

_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})\s*$")
_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2})(?:\.(?P<f>\d+))?)?\s*$")

def _parse_date_str(date_str: str) -> Tuple[int, int, int]:
    """Parse YYYY-MM-DD and return (iy, im, id); calendar existence is checked."""
    m = _DATE_RE.match(date_str or "")
    if not m:
        raise InvalidTimeInput("parse_date", f"Invalid date '{date_str}': expected YYYY-MM-DD")
    iy, im, iday = int(m.group(1)), int(m.group(2)), int(m.group(3))
    try:
        datetime(iy, im, iday)
    except ValueError as e:
        raise InvalidTimeInput("parse_date", f"Date out of calendar range: {date_str}") from e
    return iy, im, iday

def _parse_time(time_str: str) -> Tuple[int, int, int, int]:
    """
    Parse HH:MM[:SS[.frac]] and return (hh, mm, ss, microsecond).
    Fractions beyond µs are truncated.
    """
    m = _TIME_RE.match(time_str or "")
    if not m:
        raise InvalidTimeInput("parse_time", f"Invalid time '{time_str}': expected HH:MM or HH:MM:SS[.frac]")
    hh = int(m.group("h")); mm = int(m.group("m")); ss = int(m.group("s") or 0)
    if not (0 <= hh <= 23 and 0 <= mm <= 59 and 0 <= ss <= 59):
        raise InvalidTimeInput("parse_time", f"Invalid time fields: hh={hh}, mm={mm}, ss={ss}")
    frac = (m.group("f") or "")[:6].ljust(6, "0")
    return hh, mm, ss, int(frac)

def resolve_zone(tz_name: str) -> ZoneInfo:
    if not isinstance(tz_name, str) or not tz_name.strip():
        raise InvalidTimeInput("timezone", "Timezone identifier is required")
    try:
        return ZoneInfo(tz_name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimeInput("timezone", f"Unknown IANA time zone '{tz_name}'") from e

# ───────────────────────────── Time zone / UTC helpers ─────────────────────────────

def _offset_at_utc(z: ZoneInfo, utc_naive: datetime) -> timedelta:
    off = utc_naive.replace(tzinfo=timezone.utc).astimezone(z).utcoffset()
    if off is None:
        raise InvalidTimeInput("timezone", "Timezone returned None utcoffset()")
    return off

def _two_pass_utc(z: ZoneInfo, local_naive: datetime) -> Tuple[datetime, int, List[str]]:
    """
    Resolve local wall-clock time to UTC in two passes.

    Pass 1 reads the wall clock as if it were UTC and takes the zone offset
    there; pass 2 re-resolves the offset at the corrected instant. Returns
    (utc_naive, offset_seconds, warnings).
    """
    warnings: List[str] = []

    off1 = _offset_at_utc(z, local_naive)
    guess = local_naive - off1
    off2 = _offset_at_utc(z, guess)
    utc_naive = local_naive - off2

    # fold=0/fold=1 disagreement marks a repeated wall-clock hour
    a0 = local_naive.replace(tzinfo=z, fold=0).utcoffset()
    a1 = local_naive.replace(tzinfo=z, fold=1).utcoffset()
    if a0 is not None and a1 is not None and a0 != a1:
        round_trip = (utc_naive.replace(tzinfo=timezone.utc).astimezone(z)).replace(tzinfo=None)
        if round_trip == local_naive:
            warnings.append("dst_ambiguous")
        else:
            warnings.append("dst_gap")

    return utc_naive, int(off2.total_seconds()), warnings

# ───────────────────────────── Julian Day helpers ─────────────────────────────

def _day_fraction(dt: datetime) -> float:
    seconds = dt.hour * 3600 + dt.minute * 60 + dt.second + dt.microsecond / 1e6
    return seconds / 86400.0

def julian_day_ut(dt_utc: datetime) -> float:
    """JD(UT) for an aware (any zone) or naive-UTC datetime."""
    if dt_utc.tzinfo is not None:
        dt_utc = dt_utc.astimezone(timezone.utc).replace(tzinfo=None)
    djm0, djm = erfa.cal2jd(dt_utc.year, dt_utc.month, dt_utc.day)
    return math.fsum((float(djm0), float(djm), _day_fraction(dt_utc)))

def datetime_from_jd(jd_ut: float) -> datetime:
    """Aware UTC datetime for a JD(UT), rounded to the microsecond."""
    d1 = math.floor(jd_ut)
    d2 = jd_ut - d1
    iy, im, iday, fd = erfa.jd2cal(d1, d2)
    base = datetime(int(iy), int(im), int(iday), tzinfo=timezone.utc)
    return base + timedelta(microseconds=round(float(fd) * 86400e6))

def _delta_t_polynomial(year: float) -> float:
    """Espenak–Meeus ΔT [s] for years outside the ΔAT table."""
    if year < 1900:
        t = (year - 1820.0) / 100.0
        return -20.0 + 32.0 * t * t
    if year < 1920:
        t = year - 1900.0
        return -2.79 + 1.494119 * t - 0.0598939 * t**2 + 0.0061966 * t**3 - 0.000197 * t**4
    if year < 1941:
        t = year - 1920.0
        return 21.20 + 0.84493 * t - 0.076100 * t**2 + 0.0020936 * t**3
    if year < 1961:
        t = year - 1950.0
        return 29.07 + 0.407 * t - t**2 / 233.0 + t**3 / 2547.0
    # beyond the ERFA leap-second table: 2005–2050 branch, then parabola
    if year < 2050:
        t = year - 2000.0
        return 62.92 + 0.32217 * t + 0.005589 * t**2
    u = (year - 1820.0) / 100.0
    return -20.0 + 32.0 * u * u - 0.5628 * (2150.0 - year)

def delta_t_seconds(dt_utc: datetime) -> Tuple[float, List[str]]:
    """ΔT = TT − UT [s] for a UTC instant, with provenance warnings."""
    if dt_utc.tzinfo is not None:
        dt_utc = dt_utc.astimezone(timezone.utc).replace(tzinfo=None)
    year_frac = dt_utc.year + (dt_utc.timetuple().tm_yday - 0.5) / 365.25
    if dt_utc.year < 1960:
        return _delta_t_polynomial(year_frac), ["delta_t_polynomial"]
    # status-returning ufunc; the process warning filters stay untouched
    dat, status = erfa_ufunc.dat(dt_utc.year, dt_utc.month, dt_utc.day, _day_fraction(dt_utc))
    status = int(status)
    if status < 0:
        raise InvalidTimeInput("delta_t", f"ERFA dat rejected {dt_utc.isoformat()} (status {status})")
    if status == 1:
        # past the leap-second table ERFA calls the year "dubious"
        return _delta_t_polynomial(year_frac), ["delta_t_polynomial"]
    dat = float(dat)
    # UT1 ≈ UTC at this precision (|DUT1| < 0.9 s)
    return dat + 32.184, []

# ───────────────────────────── Public API ─────────────────────────────

def instant_from_utc(dt_utc: datetime, *, tz_name: str = "UTC", tz_offset_seconds: int = 0,
                     warnings: Tuple[str, ...] = ()) -> Instant:
    """Build an Instant from an already-resolved UTC datetime."""
    if dt_utc.tzinfo is None:
        dt_utc = dt_utc.replace(tzinfo=timezone.utc)
    dt_utc = dt_utc.astimezone(timezone.utc)
    jd_ut = julian_day_ut(dt_utc)
    dt_s, wdt = delta_t_seconds(dt_utc)
    return Instant(
        utc=dt_utc,
        jd_ut=float(jd_ut),
        jd_tt=float(jd_ut + dt_s / 86400.0),
        delta_t=float(dt_s),
        timezone=str(tz_name),
        tz_offset_seconds=int(tz_offset_seconds),
        warnings=tuple(warnings) + tuple(wdt),
    )

def build_instant(date_str: str, time_str: str, tz_name: str) -> Instant:
    """Convert a local civil date/time in an IANA zone into a UTC Instant."""
    iy, im, iday = _parse_date_str(date_str)
    hh, mm, ss, us = _parse_time(time_str)
    z = resolve_zone(tz_name)

    local_naive = datetime(iy, im, iday, hh, mm, ss, us)
    try:
        utc_naive, off_s, wz = _two_pass_utc(z, local_naive)
    except OverflowError as e:
        raise InvalidTimeInput("utc", f"Instant out of supported range: {date_str} {time_str}") from e

    return instant_from_utc(
        utc_naive.replace(tzinfo=timezone.utc),
        tz_name=tz_name.strip(),
        tz_offset_seconds=off_s,
        warnings=tuple(wz),
    )
