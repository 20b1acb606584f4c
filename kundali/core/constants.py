# kundali/core/constants.py
# -*- coding: utf-8 -*-
"""
Kundali core constants & small helpers

Purpose
-------
Single source of truth for:
- zodiac signs, nakshatras, weekdays
- tracked bodies and their ordering in the chart document
- Vimshottari lords and period lengths
- dignity table (own/exaltation signs) for the great-person yogas
- Ashtakavarga contributor rules
- panchanga name tables (tithi, nitya yoga, karana)
- tiny angle / sign / house helpers

Design
------
- Tables are declared once and exposed read-only (tuples, MappingProxyType).
- Functions are pure; safe to import from any core module.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

__all__ = [
    # zodiac
    "SIGNS", "NAKSHATRAS", "WEEKDAYS",
    "NAKSHATRA_SPAN_DEG", "PADA_SPAN_DEG", "SIGN_SPAN_DEG",
    # bodies
    "PLANETS", "NODES", "ASCENDANT", "CHART_BODIES", "EPHEMERIS_BODIES",
    # dasha
    "DASHA_LORDS", "DASHA_YEARS", "DASHA_YEAR_DAYS",
    # yogas
    "DIGNITIES", "MAHAPURUSHA_YOGAS", "KENDRA_HOUSES", "MOON_SUPPORT_BODIES",
    "KAAL_SARPA_BODIES",
    # ashtakavarga
    "AV_RULES", "AV_SCORED_BODIES", "AV_STRONG_SIGN_BINDUS",
    # panchanga
    "TITHI_NAMES", "NITYA_YOGAS", "KARANA_MOVABLE", "KARANA_FIXED",
    # time
    "J2000_JD", "J2000_MEAN_OBLIQUITY_DEG",
    # helpers
    "wrap_deg", "sign_index", "house_from", "is_kendra", "format_dms",
]

# ── zodiac ────────────────────────────────────────────────────────────────────
SIGNS: Tuple[str, ...] = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)

NAKSHATRAS: Tuple[str, ...] = (
    "Ashwini", "Bharani", "Krittika", "Rohini", "Mrigashira", "Ardra",
    "Punarvasu", "Pushya", "Ashlesha", "Magha", "Purva Phalguni", "Uttara Phalguni",
    "Hasta", "Chitra", "Swati", "Vishakha", "Anuradha", "Jyeshtha",
    "Mula", "Purva Ashadha", "Uttara Ashadha", "Shravana", "Dhanishta", "Shatabhisha",
    "Purva Bhadrapada", "Uttara Bhadrapada", "Revati",
)

# Indexed like datetime.isoweekday() % 7 (Sunday = 0).
WEEKDAYS: Tuple[str, ...] = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)

SIGN_SPAN_DEG: float = 30.0
NAKSHATRA_SPAN_DEG: float = 360.0 / 27.0   # 13°20'
PADA_SPAN_DEG: float = NAKSHATRA_SPAN_DEG / 4.0

# ── bodies ───────────────────────────────────────────────────────────────────
PLANETS: Tuple[str, ...] = ("Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn")
NODES: Tuple[str, ...] = ("Rahu", "Ketu")
ASCENDANT: str = "Ascendant"

# Output order of the position list.
CHART_BODIES: Tuple[str, ...] = PLANETS + NODES + (ASCENDANT,)

# Bodies requested from the ephemeris port (nodes and ascendant are synthetic).
EPHEMERIS_BODIES: Tuple[str, ...] = PLANETS

# ── Vimshottari ──────────────────────────────────────────────────────────────
DASHA_LORDS: Tuple[str, ...] = (
    "Ketu", "Venus", "Sun", "Moon", "Mars", "Rahu", "Jupiter", "Saturn", "Mercury",
)
DASHA_YEARS: Mapping[str, int] = MappingProxyType({
    "Ketu": 7, "Venus": 20, "Sun": 6, "Moon": 10, "Mars": 7,
    "Rahu": 18, "Jupiter": 16, "Saturn": 19, "Mercury": 17,
})
DASHA_YEAR_DAYS: float = 365.2425

# ── dignities & yogas ────────────────────────────────────────────────────────
# own: sign indices ruled; exalted: exaltation sign index.
DIGNITIES: Mapping[str, Mapping[str, object]] = MappingProxyType({
    "Mars":    MappingProxyType({"own": (0, 7), "exalted": 9}),
    "Mercury": MappingProxyType({"own": (2, 5), "exalted": 5}),
    "Jupiter": MappingProxyType({"own": (8, 11), "exalted": 3}),
    "Venus":   MappingProxyType({"own": (1, 6), "exalted": 11}),
    "Saturn":  MappingProxyType({"own": (9, 10), "exalted": 6}),
})

# Evaluation order matters: records are emitted in this order.
MAHAPURUSHA_YOGAS: Tuple[Tuple[str, str], ...] = (
    ("Mars", "Ruchaka Yoga"),
    ("Mercury", "Bhadra Yoga"),
    ("Jupiter", "Hamsa Yoga"),
    ("Venus", "Malavya Yoga"),
    ("Saturn", "Shasha Yoga"),
)

KENDRA_HOUSES: frozenset = frozenset({1, 4, 7, 10})
MOON_SUPPORT_BODIES: Tuple[str, ...] = ("Mars", "Mercury", "Jupiter", "Venus", "Saturn")
KAAL_SARPA_BODIES: Tuple[str, ...] = MOON_SUPPORT_BODIES + ("Sun", "Moon")

# ── Ashtakavarga ─────────────────────────────────────────────────────────────
# scored body -> contributor -> houses (1..12) counted from the contributor's sign
def _rules(**contributors: Tuple[int, ...]) -> Mapping[str, Tuple[int, ...]]:
    return MappingProxyType(dict(contributors))

AV_RULES: Mapping[str, Mapping[str, Tuple[int, ...]]] = MappingProxyType({
    "Sun": _rules(
        Sun=(1, 2, 4, 7, 8, 9, 10, 11), Moon=(3, 6, 10, 11), Mars=(1, 2, 4, 7, 8, 9, 10, 11),
        Mercury=(3, 5, 6, 9, 10, 11, 12), Jupiter=(5, 6, 9, 11), Venus=(6, 7, 12),
        Saturn=(1, 2, 4, 7, 8, 9, 10, 11), Ascendant=(3, 4, 6, 10, 11, 12),
    ),
    "Moon": _rules(
        Sun=(3, 6, 7, 8, 10, 11), Moon=(1, 3, 6, 7, 10, 11), Mars=(2, 3, 5, 6, 9, 10, 11),
        Mercury=(1, 3, 4, 5, 7, 8, 10, 11), Jupiter=(1, 4, 7, 8, 10, 11, 12),
        Venus=(3, 4, 5, 7, 9, 10, 11), Saturn=(3, 5, 6, 11), Ascendant=(3, 6, 10, 11),
    ),
    "Mars": _rules(
        Sun=(3, 5, 6, 10, 11, 12), Moon=(3, 6, 11), Mars=(1, 2, 4, 7, 8, 9, 10, 11),
        Mercury=(3, 5, 6, 11), Jupiter=(6, 10, 11, 12), Venus=(6, 8, 11, 12),
        Saturn=(1, 4, 7, 8, 9, 10, 11), Ascendant=(1, 3, 6, 10, 11),
    ),
    "Mercury": _rules(
        Sun=(5, 6, 9, 11, 12), Moon=(2, 4, 6, 8, 10, 11), Mars=(1, 2, 4, 7, 8, 9, 10, 11),
        Mercury=(1, 3, 5, 6, 9, 10, 11, 12), Jupiter=(6, 8, 11, 12),
        Venus=(1, 2, 3, 4, 5, 8, 9, 11), Saturn=(1, 2, 4, 7, 8, 9, 10, 11),
        Ascendant=(1, 2, 4, 6, 8, 10, 11),
    ),
    "Jupiter": _rules(
        Sun=(1, 2, 3, 4, 7, 8, 9, 10, 11), Moon=(2, 5, 7, 9, 11), Mars=(1, 2, 4, 7, 8, 10, 11),
        Mercury=(1, 2, 4, 7, 8, 10, 11, 12), Jupiter=(1, 2, 3, 4, 7, 8, 10, 11),
        Venus=(2, 5, 6, 9, 10, 11), Saturn=(3, 5, 6, 12), Ascendant=(1, 2, 4, 5, 6, 7, 9, 10, 11),
    ),
    "Venus": _rules(
        Sun=(8, 11, 12), Moon=(1, 2, 3, 4, 5, 8, 9, 11, 12), Mars=(3, 5, 6, 9, 11, 12),
        Mercury=(3, 5, 6, 9, 11), Jupiter=(5, 8, 9, 10, 11), Venus=(1, 2, 3, 4, 5, 8, 9, 10, 11),
        Saturn=(3, 4, 5, 8, 9, 10, 11), Ascendant=(1, 2, 3, 4, 5, 8, 9, 11),
    ),
    "Saturn": _rules(
        Sun=(1, 2, 4, 7, 8, 10, 11), Moon=(3, 6, 11), Mars=(3, 5, 6, 10, 11, 12),
        Mercury=(6, 8, 9, 10, 11, 12), Jupiter=(5, 6, 11, 12), Venus=(6, 11, 12),
        Saturn=(3, 5, 6, 11), Ascendant=(1, 3, 4, 6, 10, 11),
    ),
})
AV_SCORED_BODIES: Tuple[str, ...] = tuple(AV_RULES.keys())

# Sarva total at or above which a sign counts as strong (28 is the average)
AV_STRONG_SIGN_BINDUS = 30

# ── panchanga names ──────────────────────────────────────────────────────────
_TITHI_BASE = (
    "Pratipada", "Dwitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dwadashi", "Trayodashi", "Chaturdashi",
)
# 1..30; index 0 unused so tithi numbers index directly.
TITHI_NAMES: Tuple[str, ...] = ("",) + _TITHI_BASE + ("Purnima",) + _TITHI_BASE + ("Amavasya",)

NITYA_YOGAS: Tuple[str, ...] = (
    "Vishkumbha", "Priti", "Ayushman", "Saubhagya", "Shobhana", "Atiganda",
    "Sukarma", "Dhriti", "Shula", "Ganda", "Vriddhi", "Dhruva",
    "Vyaghata", "Harshana", "Vajra", "Siddhi", "Vyatipata", "Variyana",
    "Parigha", "Shiva", "Siddha", "Sadhya", "Shubha", "Shukla",
    "Brahma", "Indra", "Vaidhriti",
)

KARANA_MOVABLE: Tuple[str, ...] = ("Bava", "Balava", "Kaulava", "Taitila", "Gara", "Vanija", "Vishti")
# karana number -> name for the four fixed half-tithis
KARANA_FIXED: Mapping[int, str] = MappingProxyType({
    1: "Kimstughna", 58: "Shakuni", 59: "Chatushpada", 60: "Naga",
})

# ── time ──────────────────────────────────────────────────────────────────────
J2000_JD: float = 2451545.0
J2000_MEAN_OBLIQUITY_DEG: float = 23.439291111

# ── tiny angle helpers (no external imports) ──────────────────────────────────
def wrap_deg(x: float) -> float:
    """
    Wrap any finite angle to [0, 360).
    """
    x = math.fmod(float(x), 360.0)
    if x < 0.0:
        x += 360.0
    # -tiny + 360 rounds up to exactly 360.0
    return 0.0 if x >= 360.0 else x

def sign_index(lon_deg: float) -> int:
    """Zodiac sign index 0..11 of a longitude."""
    return int(wrap_deg(lon_deg) // SIGN_SPAN_DEG) % 12

def house_from(target_sign: int, reference_sign: int) -> int:
    """
    House number (1..12) of `target_sign` counted from `reference_sign`,
    the reference itself being house 1.
    """
    h = (int(target_sign) - int(reference_sign)) + 1
    if h <= 0:
        h += 12
    return h

def is_kendra(house: int) -> bool:
    return house in KENDRA_HOUSES

def format_dms(deg: float, below: Optional[float] = None) -> str:
    """
    Render a non-negative angle as D° M' S" with whole seconds.
    Rounding carries upward so the seconds field never reads 60. With `below`,
    the result is held under that bound (29° 59' 59" inside a 30° sign).
    """
    total = int(round(float(deg) * 3600.0))
    if below is not None:
        total = min(total, int(round(float(below) * 3600.0)) - 1)
    d, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{d}° {m}' {s}\""
