# kundali/core/panchanga.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from kundali.core.constants import (
    KARANA_FIXED,
    KARANA_MOVABLE,
    NITYA_YOGAS,
    TITHI_NAMES,
    WEEKDAYS,
    wrap_deg,
)

__all__ = ["Panchanga", "karana_name", "compute_panchanga"]


@dataclass(frozen=True)
class Panchanga:
    tithi: int      # 1..30
    yoga: int       # 1..27
    karana: int     # 1..60
    vara: str

    @property
    def paksha(self) -> str:
        return "Shukla" if self.tithi <= 15 else "Krishna"

    @property
    def tithi_name(self) -> str:
        return TITHI_NAMES[self.tithi]

    @property
    def yoga_name(self) -> str:
        return NITYA_YOGAS[self.yoga - 1]

    @property
    def karana_name(self) -> str:
        return karana_name(self.karana)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tithi": self.tithi,
            "tithiName": self.tithi_name,
            "paksha": self.paksha,
            "yoga": self.yoga,
            "yogaName": self.yoga_name,
            "karana": self.karana,
            "karanaName": self.karana_name,
            "vara": self.vara,
        }


def karana_name(karana: int) -> str:
    if karana in KARANA_FIXED:
        return KARANA_FIXED[karana]
    if not 2 <= karana <= 57:
        raise ValueError(f"karana must be in 1..60, got {karana}")
    return KARANA_MOVABLE[(karana - 2) % 7]


def compute_panchanga(sun_lon: float, moon_lon: float, instant: datetime) -> Panchanga:
    """
    Tithi, nitya yoga and karana from the sidereal Sun/Moon; vara is the
    weekday of the instant as given (UTC in the chart), not sunrise-based.
    """
    diff = wrap_deg(moon_lon - sun_lon)
    total = wrap_deg(moon_lon + sun_lon)
    return Panchanga(
        tithi=min(int(diff // 12.0) + 1, 30),
        yoga=min(int(total * 27.0 // 360.0) + 1, 27),
        karana=min(int(diff // 6.0) + 1, 60),
        vara=WEEKDAYS[instant.isoweekday() % 7],
    )
