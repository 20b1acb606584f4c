# kundali/core/frames.py
"""
Equatorial → ecliptic frame rotations (pyERFA).

Two target frames are supported:

* ``ecliptic-of-date``: GCRS vector → true equator/equinox of date via the
  IAU 2006/2000A bias-precession-nutation matrix (``erfa.pnm06a``), then a
  rotation about x by the true obliquity (``obl06`` + ``nut06a``).
* ``ecliptic-j2000``: GCRS axes taken as the J2000 mean equator and rotated
  by the mean obliquity at J2000.
"""
from __future__ import annotations

import math
from typing import Sequence, Tuple

import erfa  # pyERFA

from kundali.core.constants import J2000_MEAN_OBLIQUITY_DEG, wrap_deg
from kundali.core.timescales import split_jd

__all__ = [
    "FRAME_OF_DATE",
    "FRAME_J2000",
    "true_obliquity_deg",
    "rotate_to_ecliptic",
    "ecliptic_longitude",
]

FRAME_OF_DATE = "ecliptic-of-date"
FRAME_J2000 = "ecliptic-j2000"

Vector = Tuple[float, float, float]


def true_obliquity_deg(jd_tt: float) -> float:
    d1, d2 = split_jd(jd_tt)
    eps0 = erfa.obl06(d1, d2)
    _dpsi, deps = erfa.nut06a(d1, d2)
    return math.degrees(float(eps0 + deps))


def _about_x(v: Sequence[float], eps_deg: float) -> Vector:
    ce, se = math.cos(math.radians(eps_deg)), math.sin(math.radians(eps_deg))
    x, y, z = float(v[0]), float(v[1]), float(v[2])
    return x, y * ce + z * se, -y * se + z * ce


def rotate_to_ecliptic(frame: str, jd_tt: float, v: Sequence[float]) -> Vector:
    """Rotate a GCRS vector into the requested ecliptic frame."""
    if frame == FRAME_J2000:
        return _about_x(v, J2000_MEAN_OBLIQUITY_DEG)
    if frame != FRAME_OF_DATE:
        raise ValueError(f"unknown frame {frame!r}")
    d1, d2 = split_jd(jd_tt)
    rnpb = erfa.pnm06a(d1, d2)
    eq = erfa.rxp(rnpb, [float(c) for c in v])
    return _about_x(eq, true_obliquity_deg(jd_tt))


def ecliptic_longitude(v: Sequence[float]) -> float:
    """Longitude in degrees [0, 360) of an ecliptic-frame vector."""
    return wrap_deg(math.degrees(math.atan2(float(v[1]), float(v[0]))))
