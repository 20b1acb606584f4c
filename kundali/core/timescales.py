# kundali/core/timescales.py
# -----------------------------------------------------------------------------
# Birth-instant timescale builder (ERFA aligned)
#
# Public API:
#   build_timescales(date_str, time_str, utc_offset_hours, dut1_seconds) -> TimeScales
#
# Guarantees:
#   • Civil input is a wall-clock time plus a fixed decimal-hour offset;
#     UTC = local − offset (no zone database, no DST resolution).
#   • ERFA chain:
#       UTC (calendar → JD) → TAI → TT      (erfa.dtf2d → utctai → taitt)
#       UT1 = UTC + DUT1/86400              (erfa.utcut1)
#   • ΔAT (TAI−UTC) via erfa.dat.
#   • DUT1 must be within ±0.9 s (IERS).
#   • Pre-1960 instants (before UTC existed) are accepted with a warning;
#     ERFA's "dubious year" status is expected there and not surfaced.
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
import re
import warnings as _warnings
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import erfa  # pyERFA

__all__ = ["TimeScales", "build_timescales", "parse_clock", "split_jd", "MIN_YEAR", "MAX_YEAR"]

MIN_YEAR = 1800
MAX_YEAR = 2200

# ───────────────────────────── Dataclass ─────────────────────────────

@dataclass(frozen=True)
class TimeScales:
    utc: datetime              # aware, tz=UTC
    jd_utc: float
    jd_tt: float
    jd_ut1: float
    delta_t: float             # TT − UT1 [s]
    dat: float                 # TAI − UTC [s]
    dut1: float                # UT1 − UTC [s]
    utc_offset_hours: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utc": self.utc.isoformat().replace("+00:00", "Z"),
            "jd_utc": self.jd_utc,
            "jd_tt": self.jd_tt,
            "jd_ut1": self.jd_ut1,
            "delta_t": self.delta_t,
            "dat": self.dat,
            "dut1": self.dut1,
            "utc_offset_hours": self.utc_offset_hours,
            "warnings": list(self.warnings),
        }

# ───────────────────────────── Parsing helpers ─────────────────────────────

_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})\s*$")
_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2}))?\s*$")

def _parse_date_str(date_str: str) -> Tuple[int, int, int]:
    m = _DATE_RE.match(date_str or "")
    if not m:
        raise ValueError(f"Invalid date_str '{date_str}': expected YYYY-MM-DD")
    iy, im, iday = int(m.group(1)), int(m.group(2)), int(m.group(3))
    datetime(iy, im, iday)  # existence check
    return iy, im, iday

def parse_clock(time_str: str) -> Tuple[int, int, int]:
    """Split a wall-clock "HH:MM[:SS]" string into (hour, minute, second)."""
    m = _TIME_RE.match(time_str or "")
    if not m:
        raise ValueError(f"Invalid time_str '{time_str}': expected HH:MM[:SS]")
    ih = int(m.group("h")); im = int(m.group("m")); isec = int(m.group("s") or 0)
    if not (0 <= ih <= 23 and 0 <= im <= 59 and 0 <= isec <= 59):
        raise ValueError(f"Invalid time fields: hh={ih}, mm={im}, ss={isec}")
    return ih, im, isec

def split_jd(jd: float) -> Tuple[float, float]:
    d1 = math.floor(jd)
    d2 = jd - d1
    return float(d1), float(d2)

# ───────────────────────────── ERFA wrappers ─────────────────────────────

def _utc_to_jd(utc: datetime) -> Tuple[float, float]:
    sec = utc.second + utc.microsecond / 1e6
    try:
        return erfa.dtf2d("UTC", utc.year, utc.month, utc.day, utc.hour, utc.minute, sec)
    except erfa.ErfaError as e:
        raise ValueError(f"ERFA dtf2d failed: {e}") from e

def _dat_seconds(utc: datetime) -> float:
    fd = (utc.hour * 3600 + utc.minute * 60 + utc.second + utc.microsecond / 1e6) / 86400.0
    return float(erfa.dat(utc.year, utc.month, utc.day, fd))

# ───────────────────────────── Public API ─────────────────────────────

def build_timescales(
    date_str: str,
    time_str: str,
    utc_offset_hours: float,
    dut1_seconds: float = 0.0,
) -> TimeScales:
    """Compute the UTC instant and its TT/UT1 Julian dates for a local civil time."""
    notes = []

    if not isinstance(dut1_seconds, (int, float)):
        raise TypeError("dut1_seconds must be a number (float seconds).")
    if abs(dut1_seconds) > 0.9 + 1e-12:
        raise ValueError(f"dut1_seconds out of range (|DUT1| ≤ 0.9 s): {dut1_seconds}")
    if not isinstance(utc_offset_hours, (int, float)) or not math.isfinite(utc_offset_hours):
        raise ValueError("utc_offset_hours must be a finite number")
    if abs(utc_offset_hours) > 14.0:
        raise ValueError(f"utc_offset_hours out of range (|tz| ≤ 14 h): {utc_offset_hours}")

    iy, im, iday = _parse_date_str(date_str)
    ih, imin, isec = parse_clock(time_str)

    local = datetime(iy, im, iday, ih, imin, isec)
    offset = timedelta(seconds=round(float(utc_offset_hours) * 3600.0))
    utc = (local - offset).replace(tzinfo=timezone.utc)

    if not (MIN_YEAR <= utc.year <= MAX_YEAR):
        raise ValueError(f"UTC year {utc.year} outside supported range {MIN_YEAR}..{MAX_YEAR}")
    if utc.year < 1960:
        notes.append("pre_1960_utc_uses_zero_leap_seconds")

    with _warnings.catch_warnings():
        _warnings.simplefilter("ignore", erfa.ErfaWarning)

        utc1, utc2 = _utc_to_jd(utc)
        jd_utc = math.fsum((utc1, utc2))

        # UTC → TAI → TT
        tai1, tai2 = erfa.utctai(utc1, utc2)
        tt1, tt2 = erfa.taitt(tai1, tai2)
        jd_tt = math.fsum((tt1, tt2))

        # UTC + DUT1 → UT1
        ut11, ut12 = erfa.utcut1(utc1, utc2, float(dut1_seconds))
        jd_ut1 = math.fsum((ut11, ut12))

        dat = _dat_seconds(utc)

    # two-part difference before collapsing
    delta_t = ((tt1 - ut11) + (tt2 - ut12)) * 86400.0

    return TimeScales(
        utc=utc,
        jd_utc=float(jd_utc),
        jd_tt=float(jd_tt),
        jd_ut1=float(jd_ut1),
        delta_t=float(delta_t),
        dat=float(dat),
        dut1=float(dut1_seconds),
        utc_offset_hours=float(utc_offset_hours),
        warnings=tuple(notes),
    )
