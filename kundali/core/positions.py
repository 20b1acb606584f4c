# kundali/core/positions.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict

from kundali.core.ayanamsa import AyanamsaReading
from kundali.core.constants import (
    EPHEMERIS_BODIES,
    J2000_JD,
    NAKSHATRAS,
    SIGN_SPAN_DEG,
    SIGNS,
    format_dms,
    sign_index,
    wrap_deg,
)
from kundali.core.ephemeris_adapter import EphemerisError, EphemerisPort, as_vector
from kundali.core.frames import FRAME_OF_DATE, ecliptic_longitude, rotate_to_ecliptic
from kundali.core.timescales import TimeScales

log = logging.getLogger(__name__)

__all__ = [
    "BodyPosition",
    "mean_node_longitude",
    "true_node_longitude",
    "resolve_positions",
]

MEAN_NODE_EPOCH_DEG = 125.04452
MEAN_NODE_RATE_DEG_PER_DAY = 0.0529538083

# ±1.2 h central difference for the Moon's velocity
_TRUE_NODE_STEP_D = 0.05


# ───────────────────────── records ─────────────────────────

@dataclass(frozen=True)
class BodyPosition:
    name: str
    longitude: float
    sign_index: int
    degrees_in_sign: float
    nakshatra_index: int
    pada: int

    @classmethod
    def from_longitude(cls, name: str, longitude: float) -> "BodyPosition":
        lon = wrap_deg(longitude)
        quarter = min(int(lon * 108.0 // 360.0), 107)   # 27 nakshatras x 4 padas
        nak, pada = divmod(quarter, 4)
        pada += 1
        return cls(
            name=name,
            longitude=lon,
            sign_index=sign_index(lon),
            degrees_in_sign=math.fmod(lon, SIGN_SPAN_DEG),
            nakshatra_index=nak,
            pada=pada,
        )

    @property
    def sign(self) -> str:
        return SIGNS[self.sign_index]

    @property
    def nakshatra(self) -> str:
        return NAKSHATRAS[self.nakshatra_index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "longitude": self.longitude,
            "sign": self.sign,
            "signIndex": self.sign_index,
            "degreesInSign": self.degrees_in_sign,
            "dms": format_dms(self.degrees_in_sign, below=SIGN_SPAN_DEG),
            "nakshatra": self.nakshatra,
            "pada": self.pada,
        }


# ───────────────────────── lunar nodes ─────────────────────────

def mean_node_longitude(jd_utc: float) -> float:
    """Tropical mean ascending node (degrees of date), fixed linear rate."""
    days = float(jd_utc) - J2000_JD
    return wrap_deg(MEAN_NODE_EPOCH_DEG - MEAN_NODE_RATE_DEG_PER_DAY * days)


def _cross(a, b):
    ax, ay, az = a; bx, by, bz = b
    return (ay*bz - az*by, az*bx - ax*bz, ax*by - ay*bx)


def true_node_longitude(ephemeris: EphemerisPort, jd_tt: float, step: float = _TRUE_NODE_STEP_D) -> float:
    """
    Osculating ascending node (tropical, ecliptic of date) from the Moon's
    orbital angular momentum h = r × v; the node direction is ẑ × h.
    """
    def _ecl(t: float):
        return rotate_to_ecliptic(FRAME_OF_DATE, jd_tt, as_vector(ephemeris.geo_vector("Moon", t), "Moon vector"))

    r0 = _ecl(jd_tt)
    rp = _ecl(jd_tt + step)
    rm = _ecl(jd_tt - step)
    v = tuple((rp[i] - rm[i]) / (2.0 * step) for i in range(3))

    h = _cross(r0, v)
    n = _cross((0.0, 0.0, 1.0), h)
    if not math.isfinite(math.hypot(n[0], n[1])) or math.hypot(n[0], n[1]) < 1e-18:
        raise EphemerisError("node", "degenerate lunar angular momentum", jd_tt=float(jd_tt))
    return ecliptic_longitude(n)


# ───────────────────────── resolver ─────────────────────────

def resolve_positions(
    ephemeris: EphemerisPort,
    ts: TimeScales,
    reading: AyanamsaReading,
    *,
    node_model: str = "mean",
) -> Dict[str, float]:
    """
    Sidereal longitudes [0, 360) for the seven planets plus Rahu and Ketu,
    in chart order. Any provider failure propagates.
    """
    out: Dict[str, float] = {}
    for body in EPHEMERIS_BODIES:
        v = as_vector(ephemeris.geo_vector(body, ts.jd_tt), f"{body} vector")
        lam = ecliptic_longitude(rotate_to_ecliptic(reading.frame, ts.jd_tt, v))
        out[body] = wrap_deg(lam - reading.degrees)

    if node_model == "true":
        node = true_node_longitude(ephemeris, ts.jd_tt)
    elif node_model == "mean":
        node = mean_node_longitude(ts.jd_utc)
    else:
        raise ValueError(f"unknown node model {node_model!r}")

    rahu = wrap_deg(node - reading.of_date_degrees)
    out["Rahu"] = rahu
    out["Ketu"] = wrap_deg(rahu + 180.0)
    log.debug("positions resolved (frame=%s, node_model=%s): %s", reading.frame, node_model, out)
    return out

