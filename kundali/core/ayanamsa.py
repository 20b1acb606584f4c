# kundali/core/ayanamsa.py
"""
Ayanamsa strategies (tropical → sidereal correction).

Exactly one strategy is active per deployment. Each strategy also fixes the
ecliptic frame in which body longitudes are extracted, so that the offset it
reports and the longitudes it is subtracted from always agree:

``fixed``           Longitudes in the J2000 ecliptic minus a constant
                    (23.853055°). The fixed-star frame does not precess, so
                    no per-date term is needed for J2000-frame quantities.
                    Quantities that only exist "of date" (ascendant, lunar
                    node) use the linear Lahiri rate on top of the constant.

``reference_star``  Observe a reference star (Spica by default) through the
                    ephemeris port, rotate to the true ecliptic of date and
                    define ayanamsa = λ_star − λ_sidereal(star), i.e. −180°
                    for Spica at 0° Libra.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict

from kundali.core.constants import J2000_JD, wrap_deg
from kundali.core.ephemeris_adapter import EphemerisPort, as_vector
from kundali.core.frames import (
    FRAME_J2000,
    FRAME_OF_DATE,
    ecliptic_longitude,
    rotate_to_ecliptic,
)
from kundali.core.timescales import TimeScales

log = logging.getLogger(__name__)

__all__ = [
    "AyanamsaReading",
    "AyanamsaStrategy",
    "FixedOffsetAyanamsa",
    "ReferenceStarAyanamsa",
    "ayanamsa_from_settings",
    "compute_ayanamsa",
]

_DAYS_PER_YEAR = 365.2422


@dataclass(frozen=True)
class AyanamsaReading:
    strategy: str
    frame: str              # frame in which body longitudes are extracted
    degrees: float          # offset for longitudes in `frame`
    of_date_degrees: float  # offset for quantities defined on the ecliptic of date

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AyanamsaStrategy(ABC):
    name: str = ""
    frame: str = FRAME_OF_DATE

    @abstractmethod
    def read(self, ephemeris: EphemerisPort, ts: TimeScales) -> AyanamsaReading:
        raise NotImplementedError


class FixedOffsetAyanamsa(AyanamsaStrategy):
    name = "fixed"
    frame = FRAME_J2000

    def __init__(self, offset_deg: float = 23.853055, rate_arcsec_per_year: float = 50.2388475):
        self.offset_deg = float(offset_deg)
        self.rate_deg_per_year = float(rate_arcsec_per_year) / 3600.0

    def of_date(self, jd_utc: float) -> float:
        years = (float(jd_utc) - J2000_JD) / _DAYS_PER_YEAR
        return wrap_deg(self.offset_deg + self.rate_deg_per_year * years)

    def read(self, ephemeris: EphemerisPort, ts: TimeScales) -> AyanamsaReading:
        return AyanamsaReading(
            strategy=self.name,
            frame=self.frame,
            degrees=wrap_deg(self.offset_deg),
            of_date_degrees=self.of_date(ts.jd_utc),
        )


class ReferenceStarAyanamsa(AyanamsaStrategy):
    name = "reference_star"
    frame = FRAME_OF_DATE

    def __init__(self, ra_hours: float, dec_degrees: float, *,
                 parallax_mas: float = 0.0, star_longitude_deg: float = 180.0,
                 star_name: str = "Spica"):
        self.ra_hours = float(ra_hours)
        self.dec_degrees = float(dec_degrees)
        self.parallax_mas = float(parallax_mas)
        self.star_longitude_deg = float(star_longitude_deg)
        self.star_name = star_name

    def star_tropical_longitude(self, ephemeris: EphemerisPort, jd_tt: float) -> float:
        v = as_vector(ephemeris.star_vector(self.ra_hours, self.dec_degrees, jd_tt, self.parallax_mas),
                      "star vector")
        return ecliptic_longitude(rotate_to_ecliptic(FRAME_OF_DATE, jd_tt, v))

    def read(self, ephemeris: EphemerisPort, ts: TimeScales) -> AyanamsaReading:
        lam = self.star_tropical_longitude(ephemeris, ts.jd_tt)
        aya = wrap_deg(lam - self.star_longitude_deg)
        log.debug("%s tropical longitude %.6f° -> ayanamsa %.6f°", self.star_name, lam, aya)
        return AyanamsaReading(strategy=self.name, frame=self.frame, degrees=aya, of_date_degrees=aya)


def ayanamsa_from_settings(settings: Any) -> AyanamsaStrategy:
    if settings.ayanamsa_strategy == "fixed":
        return FixedOffsetAyanamsa(settings.fixed_offset_deg, settings.precession_arcsec_per_year)
    if settings.ayanamsa_strategy == "reference_star":
        return ReferenceStarAyanamsa(
            settings.star_ra_hours,
            settings.star_dec_degrees,
            parallax_mas=settings.star_parallax_mas,
            star_longitude_deg=settings.star_longitude_deg,
            star_name=settings.star_name,
        )
    raise ValueError(f"unsupported ayanamsa strategy {settings.ayanamsa_strategy!r}")


def compute_ayanamsa(ephemeris: EphemerisPort, ts: TimeScales, strategy: AyanamsaStrategy) -> float:
    """Ayanamsa in degrees [0, 360) for the instant, in the strategy's own frame."""
    return strategy.read(ephemeris, ts).degrees
