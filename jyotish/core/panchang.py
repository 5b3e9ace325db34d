# jyotish/core/panchang.py
# -----------------------------------------------------------------------------
# Panchang: the five limbs of the Hindu almanac plus the day's time windows
#
#   tithi   floor(norm(Moon − Sun) / 12°)         0..29 (Shukla 0..14)
#   yoga    floor(norm(Moon + Sun) / 13°20′)       0..26
#   karana  floor(norm(Moon − Sun) / 6°)           0..59 (4 fixed, 56 movable)
#   vara    local weekday of the requested date
#   nakshatra of the Moon
#
# Day windows come from NOAA fractional-year sunrise/sunset (zenith 90.833°):
# daylight split in 8 parts for Rahu Kaal / Gulika / Yamaganda, in 15
# muhurtas for Abhijit (the 8th). Polar day/night carry flags and no times.
# Moonrise/moonset: altitude scan of the analytic Moon over the local day.
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo
import math

from jyotish.core.constants import (
    FIXED_KARANAS,
    MOVABLE_KARANAS,
    NAKSHATRA_SPAN_DEG,
    TITHI_NAMES,
    WEEKDAY_NAMES,
    YOGA_NAMES,
    wrap_deg,
)
from jyotish.core.ephemeris_adapter import AnalyticProvider
from jyotish.core.houses import gmst_mean_deg, mean_obliquity_deg
from jyotish.core.nakshatra import nakshatra_of
from jyotish.core.timescales import delta_t_seconds, julian_day_ut, resolve_zone

__all__ = [
    "TimeWindow",
    "SunTimes",
    "PanchangFacts",
    "tithi_of",
    "yoga_of",
    "karana_of",
    "sun_times",
    "day_windows",
    "moon_rise_set",
    "compute_panchang",
]

# 1-based daytime eighth, indexed Sunday..Saturday
RAHU_KAAL_SEGMENT = (8, 2, 7, 5, 6, 4, 3)
GULIKA_KAAL_SEGMENT = (7, 6, 5, 4, 3, 2, 1)
YAMAGANDA_SEGMENT = (5, 4, 3, 2, 1, 7, 6)

SUN_ZENITH_DEG = 90.833         # refraction + solar semi-diameter
MOON_H0_DEG = 0.125             # geocentric altitude of the rising Moon (parallax − refraction − SD)
MOON_SCAN_STEP_MIN = 10

_ANALYTIC = AnalyticProvider()

# ───────────────────────────── Rows ─────────────────────────────

@dataclass(frozen=True)
class TimeWindow:
    start: datetime             # aware UTC
    end: datetime
    tz: str

    def to_dict(self) -> Dict[str, Any]:
        z = ZoneInfo(self.tz)
        return {
            "startISO": _iso(self.start),
            "endISO": _iso(self.end),
            "startLocal": self.start.astimezone(z).strftime("%H:%M"),
            "endLocal": self.end.astimezone(z).strftime("%H:%M"),
        }


@dataclass(frozen=True)
class SunTimes:
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    solar_noon: datetime
    polar_day: bool = False
    polar_night: bool = False


@dataclass(frozen=True)
class PanchangFacts:
    date: str
    timezone: str
    weekday: str
    tithi_index: int            # 1..30
    tithi_name: str
    paksha: str
    yoga_index: int             # 1..27
    yoga_name: str
    karana_index: int           # 1..60
    karana_name: str
    moon_nakshatra: str
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    moonrise: Optional[datetime]
    moonset: Optional[datetime]
    rahu_kaal: Optional[TimeWindow]
    gulika_kaal: Optional[TimeWindow]
    yamaganda: Optional[TimeWindow]
    abhijit: Optional[TimeWindow]
    polar_day: bool = False
    polar_night: bool = False

    def to_dict(self) -> Dict[str, Any]:
        z = ZoneInfo(self.timezone)

        def when(dt: Optional[datetime]) -> Tuple[Optional[str], Optional[str]]:
            if dt is None:
                return None, None
            return _iso(dt), dt.astimezone(z).strftime("%H:%M")

        out: Dict[str, Any] = {
            "date": self.date,
            "timezone": self.timezone,
            "weekday": self.weekday,
            "tithiIndex": self.tithi_index,
            "tithiName": self.tithi_name,
            "paksha": self.paksha,
            "yogaIndex": self.yoga_index,
            "yogaName": self.yoga_name,
            "karanaIndex": self.karana_index,
            "karanaName": self.karana_name,
            "moonNakshatra": self.moon_nakshatra,
            "polarDay": self.polar_day,
            "polarNight": self.polar_night,
        }
        for key, dt in (("sunrise", self.sunrise), ("sunset", self.sunset),
                        ("moonrise", self.moonrise), ("moonset", self.moonset)):
            out[f"{key}ISO"], out[f"{key}Local"] = when(dt)
        for key, w in (("rahuKaal", self.rahu_kaal), ("gulikaKaal", self.gulika_kaal),
                       ("yamaganda", self.yamaganda), ("abhijit", self.abhijit)):
            out[key] = w.to_dict() if w else None
        return out


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")

# ───────────────────────────── Limbs ─────────────────────────────

def tithi_of(sun_lon: float, moon_lon: float) -> Tuple[int, str, str]:
    """(index 0..29, name, paksha) from sidereal (or tropical) Sun/Moon longitudes."""
    idx = min(29, int(wrap_deg(moon_lon - sun_lon) // 12.0))
    if idx < 15:
        return idx, TITHI_NAMES[idx], "Shukla"
    name = "Amavasya" if idx == 29 else TITHI_NAMES[idx - 15]
    return idx, name, "Krishna"


def yoga_of(sun_lon: float, moon_lon: float) -> Tuple[int, str]:
    idx = min(26, int(wrap_deg(moon_lon + sun_lon) // NAKSHATRA_SPAN_DEG))
    return idx, YOGA_NAMES[idx]


def karana_of(sun_lon: float, moon_lon: float) -> Tuple[int, str]:
    k = min(59, int(wrap_deg(moon_lon - sun_lon) // 6.0))
    if k in FIXED_KARANAS:
        return k, FIXED_KARANAS[k]
    return k, MOVABLE_KARANAS[(k - 1) % 7]

# ───────────────────────────── Sun ─────────────────────────────

def sun_times(day: date, lat: float, lon: float, tz: Optional[str] = None) -> SunTimes:
    """
    NOAA fractional-year sunrise/sunset (UTC) for a calendar date at a place.

    With a timezone the date is the local one: the solar noon returned is the
    one nearest local clock noon of that date. Without one the date is UTC.
    """
    N = day.timetuple().tm_yday
    g = 2.0 * math.pi / 365.0 * (N - 1)

    eq_time = 229.18 * (
        0.000075 + 0.001868 * math.cos(g) - 0.032077 * math.sin(g)
        - 0.014615 * math.cos(2 * g) - 0.040849 * math.sin(2 * g)
    )
    decl = (
        0.006918 - 0.399912 * math.cos(g) + 0.070257 * math.sin(g)
        - 0.006758 * math.cos(2 * g) + 0.000907 * math.sin(2 * g)
        - 0.002697 * math.cos(3 * g) + 0.00148 * math.sin(3 * g)
    )

    midnight = datetime.combine(day, time(0, 0), tzinfo=timezone.utc)
    noon_min = 720.0 - 4.0 * lon - eq_time
    if tz is not None:
        local_noon = datetime.combine(day, time(12, 0), tzinfo=resolve_zone(tz)).astimezone(timezone.utc)
        shift = round((local_noon - (midnight + timedelta(minutes=noon_min))) / timedelta(days=1))
        midnight += timedelta(days=shift)
    solar_noon = midnight + timedelta(minutes=noon_min)

    phi = math.radians(lat)
    denom = math.cos(phi) * math.cos(decl)
    if abs(denom) < 1e-12:
        # at the pole the sun's altitude is ±declination all day
        up = (decl > 0) == (lat > 0)
        return SunTimes(None, None, solar_noon, polar_day=up, polar_night=not up)
    cos_h = (math.cos(math.radians(SUN_ZENITH_DEG)) - math.sin(phi) * math.sin(decl)) / denom
    if cos_h <= -1.0:
        return SunTimes(None, None, solar_noon, polar_day=True)
    if cos_h >= 1.0:
        return SunTimes(None, None, solar_noon, polar_night=True)

    h_deg = math.degrees(math.acos(cos_h))
    return SunTimes(
        sunrise=midnight + timedelta(minutes=noon_min - 4.0 * h_deg),
        sunset=midnight + timedelta(minutes=noon_min + 4.0 * h_deg),
        solar_noon=solar_noon,
    )


def _segment(sunrise: datetime, part: timedelta, n: int, tz: str) -> TimeWindow:
    start = sunrise + part * (n - 1)
    return TimeWindow(start, start + part, tz)


def day_windows(sunrise: datetime, sunset: datetime, weekday: int, tz: str) -> Dict[str, TimeWindow]:
    """Rahu Kaal, Gulika Kaal, Yamaganda and Abhijit; weekday is Python's (Monday=0)."""
    sun_idx = (weekday + 1) % 7
    eighth = (sunset - sunrise) / 8
    muhurta = (sunset - sunrise) / 15
    return {
        "rahu_kaal": _segment(sunrise, eighth, RAHU_KAAL_SEGMENT[sun_idx], tz),
        "gulika_kaal": _segment(sunrise, eighth, GULIKA_KAAL_SEGMENT[sun_idx], tz),
        "yamaganda": _segment(sunrise, eighth, YAMAGANDA_SEGMENT[sun_idx], tz),
        "abhijit": _segment(sunrise, muhurta, 8, tz),
    }

# ───────────────────────────── Moon ─────────────────────────────

def _moon_altitude_deg(when: datetime, lat: float, lon: float, dt_days: float) -> float:
    jd_ut = julian_day_ut(when)
    jd_tt = jd_ut + dt_days
    lam, beta = _ANALYTIC.lon_lat("Moon", jd_tt)
    eps = math.radians(mean_obliquity_deg(jd_tt))
    lam_r, beta_r = math.radians(lam), math.radians(beta)

    sin_dec = math.sin(beta_r) * math.cos(eps) + math.cos(beta_r) * math.sin(eps) * math.sin(lam_r)
    dec = math.asin(max(-1.0, min(1.0, sin_dec)))
    ra = math.atan2(math.sin(lam_r) * math.cos(eps) - math.tan(beta_r) * math.sin(eps), math.cos(lam_r))

    ha = math.radians(gmst_mean_deg(jd_ut) + lon) - ra
    phi = math.radians(lat)
    sin_alt = math.sin(phi) * math.sin(dec) + math.cos(phi) * math.cos(dec) * math.cos(ha)
    return math.degrees(math.asin(max(-1.0, min(1.0, sin_alt))))


def _refine_crossing(a: datetime, b: datetime, f) -> datetime:
    fa = f(a)
    while (b - a) > timedelta(seconds=30):
        mid = a + (b - a) / 2
        fm = f(mid)
        if (fa < 0.0) == (fm < 0.0):
            a, fa = mid, fm
        else:
            b = mid
    return a + (b - a) / 2


def moon_rise_set(day: date, tz: str, lat: float, lon: float) -> Tuple[Optional[datetime], Optional[datetime]]:
    """First moonrise and moonset within the local calendar day (None when absent)."""
    z = resolve_zone(tz)
    start = datetime.combine(day, time(0, 0), tzinfo=z).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=z).astimezone(timezone.utc)
    dt_days = delta_t_seconds(start)[0] / 86400.0

    def f(t: datetime) -> float:
        return _moon_altitude_deg(t, lat, lon, dt_days) - MOON_H0_DEG

    rise: Optional[datetime] = None
    sett: Optional[datetime] = None
    step = timedelta(minutes=MOON_SCAN_STEP_MIN)
    t0, f0 = start, f(start)
    while t0 < end and (rise is None or sett is None):
        t1 = min(t0 + step, end)
        f1 = f(t1)
        if f0 < 0.0 <= f1 and rise is None:
            rise = _refine_crossing(t0, t1, f)
        elif f0 >= 0.0 > f1 and sett is None:
            sett = _refine_crossing(t0, t1, f)
        t0, f0 = t1, f1
    return rise, sett

# ───────────────────────────── Assembly ─────────────────────────────

def compute_panchang(
    day: date,
    tz: str,
    lat: float,
    lon: float,
    sun_sidereal: float,
    moon_sidereal: float,
    *,
    with_moon_times: bool = True,
) -> PanchangFacts:
    """
    Panchang for a local date at a place, with limbs taken from the given
    sidereal Sun/Moon longitudes (usually the positions at the requested instant).
    """
    ti, tname, paksha = tithi_of(sun_sidereal, moon_sidereal)
    yi, yname = yoga_of(sun_sidereal, moon_sidereal)
    ki, kname = karana_of(sun_sidereal, moon_sidereal)
    st = sun_times(day, lat, lon, tz)

    windows: Dict[str, TimeWindow] = {}
    if st.sunrise is not None and st.sunset is not None:
        windows = day_windows(st.sunrise, st.sunset, day.weekday(), tz)

    moonrise = moonset = None
    if with_moon_times:
        moonrise, moonset = moon_rise_set(day, tz, lat, lon)

    return PanchangFacts(
        date=day.isoformat(),
        timezone=tz,
        weekday=WEEKDAY_NAMES[day.weekday()],
        tithi_index=ti + 1,
        tithi_name=tname,
        paksha=paksha,
        yoga_index=yi + 1,
        yoga_name=yname,
        karana_index=ki + 1,
        karana_name=kname,
        moon_nakshatra=nakshatra_of(moon_sidereal).name,
        sunrise=st.sunrise,
        sunset=st.sunset,
        moonrise=moonrise,
        moonset=moonset,
        rahu_kaal=windows.get("rahu_kaal"),
        gulika_kaal=windows.get("gulika_kaal"),
        yamaganda=windows.get("yamaganda"),
        abhijit=windows.get("abhijit"),
        polar_day=st.polar_day,
        polar_night=st.polar_night,
    )
