# jyotish/core/constants.py
# -*- coding: utf-8 -*-
"""
Jyotish core constants & small helpers

Purpose
-------
Single source of truth for:
- graha sets & names (Vedic nine, Ketu derived)
- zodiac sign names
- nakshatra names and their Vimshottari lords
- Vimshottari year weights
- Panchang name tables (tithi, yoga, karana, weekday)
- transit aspect table (angles, orbs, base weights)
- tiny angle helpers (wrap/Δ/separation)

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
- Functions are pure; constants are immutable by convention.
"""

from __future__ import annotations
from typing import Dict, Tuple
import math

__all__ = [
    # bodies
    "GRAHAS", "PHYSICAL_BODIES", "NODE_BODIES",
    # zodiac
    "SIGN_NAMES", "SIGN_SPAN_DEG",
    # nakshatras & dasha
    "NAKSHATRA_NAMES", "NAKSHATRA_SPAN_DEG", "PADA_SPAN_DEG",
    "DASHA_LORDS", "DASHA_YEARS", "DASHA_TOTAL_YEARS", "DASHA_YEAR_DAYS",
    # panchang
    "TITHI_NAMES", "YOGA_NAMES", "MOVABLE_KARANAS", "FIXED_KARANAS", "WEEKDAY_NAMES",
    # aspects
    "ASPECT_ANGLES_DEG", "ASPECT_ORBS_DEG", "ASPECT_WEIGHTS",
    # time constants
    "J2000_JD", "JULIAN_CENTURY_D",
    # helpers
    "wrap_deg", "delta_deg", "abs_sep_deg", "sign_index",
]

# ── canonical bodies ─────────────────────────────────────────────────────────
# Ketu is always derived from Rahu (exact opposition), never computed on its own.
PHYSICAL_BODIES: Tuple[str, ...] = (
    "Sun", "Moon", "Mercury", "Venus", "Mars", "Jupiter", "Saturn",
)
NODE_BODIES: Tuple[str, ...] = ("Rahu", "Ketu")
GRAHAS: Tuple[str, ...] = PHYSICAL_BODIES + NODE_BODIES

# ── zodiac ───────────────────────────────────────────────────────────────────
SIGN_SPAN_DEG: float = 30.0
SIGN_NAMES: Tuple[str, ...] = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)

# ── nakshatras ───────────────────────────────────────────────────────────────
NAKSHATRA_SPAN_DEG: float = 360.0 / 27.0   # 13°20′
PADA_SPAN_DEG: float = 360.0 / 108.0       # 3°20′
NAKSHATRA_NAMES: Tuple[str, ...] = (
    "Ashwini", "Bharani", "Krittika", "Rohini", "Mrigashira", "Ardra",
    "Punarvasu", "Pushya", "Ashlesha", "Magha", "Purva Phalguni", "Uttara Phalguni",
    "Hasta", "Chitra", "Swati", "Vishakha", "Anuradha", "Jyeshtha",
    "Mula", "Purva Ashadha", "Uttara Ashadha", "Shravana", "Dhanishta", "Shatabhisha",
    "Purva Bhadrapada", "Uttara Bhadrapada", "Revati",
)

# ── Vimshottari ──────────────────────────────────────────────────────────────
# Cyclic lord order; nakshatra i is ruled by DASHA_LORDS[i % 9].
DASHA_LORDS: Tuple[str, ...] = (
    "Ketu", "Venus", "Sun", "Moon", "Mars", "Rahu", "Jupiter", "Saturn", "Mercury",
)
DASHA_YEARS: Dict[str, float] = {
    "Ketu": 7.0, "Venus": 20.0, "Sun": 6.0, "Moon": 10.0, "Mars": 7.0,
    "Rahu": 18.0, "Jupiter": 16.0, "Saturn": 19.0, "Mercury": 17.0,
}
DASHA_TOTAL_YEARS: float = 120.0
DASHA_YEAR_DAYS: float = 365.25

# ── Panchang name tables ─────────────────────────────────────────────────────
# 15 per paksha; index 14 is Purnima (Shukla) / Amavasya (Krishna).
TITHI_NAMES: Tuple[str, ...] = (
    "Pratipada", "Dwitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dwadashi", "Trayodashi", "Chaturdashi", "Purnima",
)
YOGA_NAMES: Tuple[str, ...] = (
    "Vishkambha", "Priti", "Ayushman", "Saubhagya", "Shobhana", "Atiganda",
    "Sukarma", "Dhriti", "Shula", "Ganda", "Vriddhi", "Dhruva",
    "Vyaghata", "Harshana", "Vajra", "Siddhi", "Vyatipata", "Variyana",
    "Parigha", "Shiva", "Siddha", "Sadhya", "Shubha", "Shukla",
    "Brahma", "Indra", "Vaidhriti",
)
MOVABLE_KARANAS: Tuple[str, ...] = (
    "Bava", "Balava", "Kaulava", "Taitila", "Gara", "Vanija", "Vishti",
)
# Half-tithi index → fixed karana name (the other 56 slots cycle the movables).
FIXED_KARANAS: Dict[int, str] = {
    0: "Kimstughna",
    57: "Shakuni",
    58: "Chatushpada",
    59: "Naga",
}
# Python weekday(): Monday == 0
WEEKDAY_NAMES: Tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

# ── transit aspect geometry ──────────────────────────────────────────────────
ASPECT_ANGLES_DEG: Dict[str, float] = {
    "conjunction": 0.0,
    "sextile": 60.0,
    "square": 90.0,
    "trine": 120.0,
    "opposition": 180.0,
}
ASPECT_ORBS_DEG: Dict[str, float] = {
    "conjunction": 6.0,
    "sextile": 4.0,
    "square": 5.0,
    "trine": 5.0,
    "opposition": 6.0,
}
# Base strength of an exact hit, before proximity scaling.
ASPECT_WEIGHTS: Dict[str, float] = {
    "conjunction": 1.0,
    "opposition": 0.9,
    "trine": 0.85,
    "square": 0.8,
    "sextile": 0.7,
}

# ── time constants ────────────────────────────────────────────────────────────
J2000_JD: float = 2451545.0
JULIAN_CENTURY_D: float = 36525.0

# ── tiny angle helpers (no external imports) ──────────────────────────────────
def wrap_deg(x: float) -> float:
    """
    Wrap any angle to [0, 360).
    """
    x = math.fmod(float(x), 360.0)
    if x < 0.0:
        x += 360.0
    # fmod of a tiny negative can round up to exactly 360.0
    return 0.0 if x >= 360.0 else x

def delta_deg(a: float, b: float) -> float:
    """
    Shortest signed difference b - a in degrees, range (-180, 180].
    """
    d = wrap_deg(b) - wrap_deg(a)
    if d > 180.0:
        d -= 360.0
    elif d <= -180.0:
        d += 360.0
    return d

def abs_sep_deg(a: float, b: float) -> float:
    """
    Absolute smallest separation between angles a and b (deg, 0..180].
    """
    return abs(delta_deg(a, b))

def sign_index(lon_deg: float) -> int:
    """Zodiac sign index 0..11 for a longitude."""
    return min(11, int(wrap_deg(lon_deg) // SIGN_SPAN_DEG))
