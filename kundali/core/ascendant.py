# kundali/core/ascendant.py
from __future__ import annotations

import logging
import math

from kundali.core.ayanamsa import AyanamsaReading
from kundali.core.constants import SIGN_SPAN_DEG, sign_index, wrap_deg
from kundali.core.ephemeris_adapter import EphemerisError, EphemerisPort
from kundali.core.errors import NumericDegeneracyError
from kundali.core.frames import true_obliquity_deg
from kundali.core.timescales import TimeScales

log = logging.getLogger(__name__)

__all__ = [
    "POLAR_HARD_LIMIT_DEG",
    "local_sidereal_angle",
    "tropical_ascendant",
    "resolve_ascendant",
    "house_cusp",
]

POLAR_HARD_LIMIT_DEG = 89.9


def local_sidereal_angle(sidereal_time_hours: float, longitude_deg: float) -> float:
    return wrap_deg(float(sidereal_time_hours) * 15.0 + float(longitude_deg))


def tropical_ascendant(lst_deg: float, latitude_deg: float, obliquity_deg: float,
                       *, polar_limit_deg: float = POLAR_HARD_LIMIT_DEG) -> float:
    """
    Tropical rising degree from the local sidereal angle:

        y = cos(LST)
        x = −sin(LST)·cos ε + tan φ·sin ε
        asc = atan2(y, x)

    |φ| at or beyond `polar_limit_deg` is rejected.
    """
    if not all(math.isfinite(v) for v in (lst_deg, latitude_deg, obliquity_deg)):
        raise NumericDegeneracyError("non-finite input to ascendant")
    if abs(latitude_deg) >= polar_limit_deg:
        raise NumericDegeneracyError(
            f"latitude {latitude_deg:.4f}° is at or beyond the polar limit ±{polar_limit_deg}°; "
            "the ascendant is undefined there"
        )
    lst = math.radians(lst_deg)
    eps = math.radians(obliquity_deg)
    phi = math.radians(latitude_deg)

    y = math.cos(lst)
    x = -math.sin(lst) * math.cos(eps) + math.tan(phi) * math.sin(eps)
    if not (math.isfinite(x) and math.isfinite(y)) or (x == 0.0 and y == 0.0):
        raise NumericDegeneracyError("ascendant is undefined for this sidereal angle and latitude")
    return wrap_deg(math.degrees(math.atan2(y, x)))


def resolve_ascendant(
    ephemeris: EphemerisPort,
    ts: TimeScales,
    latitude_deg: float,
    longitude_deg: float,
    reading: AyanamsaReading,
    *,
    polar_limit_deg: float = POLAR_HARD_LIMIT_DEG,
) -> float:
    """Sidereal ascendant [0, 360) for the instant and place."""
    gst_h = ephemeris.sidereal_time(ts.jd_ut1)
    if gst_h is None or not math.isfinite(gst_h):
        raise EphemerisError("sidereal_time", "provider returned a non-finite sidereal time", value=repr(gst_h))
    lst = local_sidereal_angle(gst_h, longitude_deg)
    eps = true_obliquity_deg(ts.jd_tt)
    asc = tropical_ascendant(lst, latitude_deg, eps, polar_limit_deg=polar_limit_deg)
    log.debug("ascendant: gst=%.6fh lst=%.6f° eps=%.6f° tropical=%.6f°", gst_h, lst, eps, asc)
    return wrap_deg(asc - reading.of_date_degrees)


def house_cusp(ascendant_deg: float, house: int) -> float:
    """Whole-sign cusp: 0° of the `house`-th sign counted from the rising sign."""
    if not 1 <= int(house) <= 12:
        raise ValueError("house must be in 1..12")
    return wrap_deg((sign_index(ascendant_deg) + int(house) - 1) * SIGN_SPAN_DEG)
