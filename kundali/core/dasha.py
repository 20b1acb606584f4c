# kundali/core/dasha.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Tuple

from kundali.core.constants import (
    DASHA_LORDS,
    DASHA_YEAR_DAYS,
    DASHA_YEARS,
    wrap_deg,
)

__all__ = ["DashaPeriod", "moon_nakshatra", "initial_dasha_balance", "generate_dasha_timeline"]

PERIOD_COUNT = 9
_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class DashaPeriod:
    lord: str
    start: datetime
    end: datetime
    duration_years: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lord": self.lord,
            "startDate": self.start.date().isoformat(),
            "endDate": self.end.date().isoformat(),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "durationYears": self.duration_years,
        }


def moon_nakshatra(moon_lon_sidereal: float) -> Tuple[int, float]:
    """(nakshatra index 0..26, fraction of it already traversed)."""
    lon = wrap_deg(moon_lon_sidereal)
    scaled = lon * 27.0 / 360.0
    idx = min(int(scaled), 26)
    within = scaled - idx
    return idx, min(max(within, 0.0), 1.0)


def initial_dasha_balance(moon_lon_sidereal: float) -> Tuple[int, float]:
    """(index into DASHA_LORDS of the ruling lord, balance in years owed at birth)."""
    idx, within = moon_nakshatra(moon_lon_sidereal)
    lord_idx = idx % 9
    return lord_idx, DASHA_YEARS[DASHA_LORDS[lord_idx]] * (1.0 - within)


def _years(years: float) -> timedelta:
    return timedelta(days=years * DASHA_YEAR_DAYS)


def generate_dasha_timeline(moon_longitude: float, birth_instant: datetime) -> Tuple[DashaPeriod, ...]:
    """
    Nine contiguous Vimshottari mahadashas starting at birth.

    The first period carries only the balance still owed to the Moon's
    nakshatra lord; the rest are full periods in cyclic lord order. A balance
    shorter than the datetime resolution still spans one microsecond so the
    timeline stays strictly increasing.
    """
    lord_idx, balance = initial_dasha_balance(moon_longitude)

    periods: List[DashaPeriod] = []
    cursor = birth_instant
    years = balance
    while len(periods) < PERIOD_COUNT:
        lord = DASHA_LORDS[lord_idx]
        end = cursor + max(_years(years), _TICK)
        periods.append(DashaPeriod(lord=lord, start=cursor, end=end, duration_years=float(years)))
        cursor = end
        lord_idx = (lord_idx + 1) % 9
        years = float(DASHA_YEARS[DASHA_LORDS[lord_idx]])
    return tuple(periods)
