# kundali/core/validators.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from kundali.core.errors import KundaliError
from kundali.core.timescales import TimeScales, build_timescales, parse_clock

__all__ = [
    "ValidationError",
    "BirthContext",
    "parse_date",
    "parse_time_str",
    "parse_utc_offset",
    "parse_latlon",
    "parse_birth_payload",
]

# ───────────────────────── errors ─────────────────────────

class ValidationError(KundaliError):
    """Structured validator error compatible with routes.py (has .errors())."""
    code = "validation_error"

    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
        elif isinstance(details, dict):
            self._details = [details]
        else:
            self._details = list(details)
        msg = self._details[0]["msg"] if self._details else "validation_error"
        super().__init__(msg)

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


# ───────────────────────── helpers ─────────────────────────

def _err(loc: List[str] | str, msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}

def _as_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None

def _first(body: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in body and body[k] is not None:
            return body[k]
    return None


# ───────────────────────── atomic parsers ─────────────────────────

def parse_date(s: Any) -> date:
    if not isinstance(s, str):
        raise ValidationError(_err("dob", "dob must be a 'YYYY-MM-DD' string", "type_error.str"))
    try:
        return datetime.strptime(s.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(_err("dob", "dob must be a real calendar date 'YYYY-MM-DD'", "value_error.date"))

def parse_time_str(s: Any) -> str:
    """Accept 'HH:MM' or 'HH:MM:SS'; return canonical 'HH:MM:SS'."""
    if not isinstance(s, str):
        raise ValidationError(_err("tob", "tob must be 'HH:MM' or 'HH:MM:SS'", "type_error.str"))
    try:
        hh, mm, ss = parse_clock(s)
    except ValueError:
        raise ValidationError(_err("tob", "tob must be a valid 'HH:MM' or 'HH:MM:SS' time", "value_error.time"))
    return f"{hh:02d}:{mm:02d}:{ss:02d}"

def parse_utc_offset(v: Any) -> float:
    x = _as_float(v)
    if x is None:
        raise ValidationError(_err("tz", "tz must be a finite number of hours (e.g. 5.5)", "type_error.float"))
    if not (-14.0 <= x <= 14.0):
        raise ValidationError(_err("tz", "tz must be between -14 and 14 hours"))
    return x

def parse_latlon(lat: Any, lon: Any, lat_key="lat", lon_key="lng") -> Tuple[float, float]:
    lat_f = _as_float(lat); lon_f = _as_float(lon)
    if lat_f is None or lon_f is None:
        raise ValidationError(_err([lat_key, lon_key], "latitude/longitude must be finite numbers", "type_error.float"))
    if not (-90.0 <= lat_f <= 90.0):
        raise ValidationError(_err(lat_key, "latitude must be between -90 and 90"))
    if not (-180.0 <= lon_f <= 180.0):
        raise ValidationError(_err(lon_key, "longitude must be between -180 and 180"))
    return float(lat_f), float(lon_f)


# ───────────────────────── birth context ─────────────────────────

@dataclass(frozen=True)
class BirthContext:
    full_name: str
    gender: str
    date_local: str             # YYYY-MM-DD
    time_local: str             # HH:MM:SS
    utc_offset_hours: float
    latitude_deg: float
    longitude_deg: float
    timescales: TimeScales

    @property
    def utc_instant(self) -> datetime:
        return self.timescales.utc


def parse_birth_payload(body: Any, *, dut1_seconds: float = 0.0) -> BirthContext:
    """
    Validate a chart request and derive the UTC instant.

    Accepts {fullName, gender, dob, tob, tz, lat, lng}; snake_case aliases
    (full_name, latitude, longitude) are honoured. All field errors are
    collected before raising.
    """
    if not isinstance(body, dict):
        raise ValidationError(_err([], "request body must be a JSON object", "type_error.dict"))

    errors: List[Dict[str, Any]] = []

    def _collect(fn, *args):
        try:
            return fn(*args)
        except ValidationError as e:
            errors.extend(e.errors())
            return None

    for key in ("dob", "tob", "tz"):
        if body.get(key) is None:
            errors.append(_err(key, "field required", "value_error.missing"))
    lat_raw = _first(body, "lat", "latitude")
    lng_raw = _first(body, "lng", "lon", "longitude")
    if lat_raw is None:
        errors.append(_err("lat", "field required", "value_error.missing"))
    if lng_raw is None:
        errors.append(_err("lng", "field required", "value_error.missing"))
    if errors:
        raise ValidationError(errors)

    d = _collect(parse_date, body["dob"])
    t = _collect(parse_time_str, body["tob"])
    tz = _collect(parse_utc_offset, body["tz"])
    latlon = _collect(parse_latlon, lat_raw, lng_raw)
    if errors:
        raise ValidationError(errors)

    date_s = d.isoformat()
    try:
        ts = build_timescales(date_s, t, tz, dut1_seconds)
    except ValueError as e:
        raise ValidationError(_err("dob", str(e), "value_error.range"))

    full_name = _first(body, "fullName", "full_name", "name")
    gender = _first(body, "gender")
    return BirthContext(
        full_name=str(full_name).strip() if full_name is not None else "",
        gender=str(gender).strip() if gender is not None else "",
        date_local=date_s,
        time_local=t,
        utc_offset_hours=tz,
        latitude_deg=latlon[0],
        longitude_deg=latlon[1],
        timescales=ts,
    )
