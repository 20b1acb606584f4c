# tests/test_ascendant.py
from __future__ import annotations

import math
import pytest
from hypothesis import given, strategies as st

from kundali.core.ascendant import (
    house_cusp,
    local_sidereal_angle,
    resolve_ascendant,
    tropical_ascendant,
)
from kundali.core.ayanamsa import FixedOffsetAyanamsa
from kundali.core.ephemeris_adapter import EphemerisError
from kundali.core.errors import NumericDegeneracyError
from kundali.core.timescales import build_timescales

EPS = 23.4392911


def test_equator_at_zero_sidereal_angle_rises_at_cancer() -> None:
    assert tropical_ascendant(0.0, 0.0, EPS) == pytest.approx(90.0)

def test_equator_at_ninety() -> None:
    assert tropical_ascendant(90.0, 0.0, EPS) == pytest.approx(180.0)

def test_mid_latitude_formula() -> None:
    expected = math.degrees(math.atan2(1.0, math.tan(math.radians(45.0)) * math.sin(math.radians(EPS))))
    assert tropical_ascendant(0.0, 45.0, EPS) == pytest.approx(expected)

@pytest.mark.parametrize("lat", [89.9, -89.9, 89.95, 90.0, -90.0])
def test_polar_latitudes_rejected(lat) -> None:
    with pytest.raises(NumericDegeneracyError) as ei:
        tropical_ascendant(10.0, lat, EPS)
    assert ei.value.code == "numeric_degeneracy"

def test_polar_limit_is_configurable() -> None:
    assert 0.0 <= tropical_ascendant(10.0, 70.0, EPS) < 360.0
    with pytest.raises(NumericDegeneracyError):
        tropical_ascendant(10.0, 70.0, EPS, polar_limit_deg=66.5)

def test_non_finite_rejected() -> None:
    with pytest.raises(NumericDegeneracyError):
        tropical_ascendant(float("nan"), 10.0, EPS)

@given(
    st.floats(min_value=0.0, max_value=360.0, allow_nan=False),
    st.floats(min_value=-89.89, max_value=89.89, allow_nan=False),
)
def test_ascendant_range(lst: float, lat: float) -> None:
    assert 0.0 <= tropical_ascendant(lst, lat, EPS) < 360.0

def test_local_sidereal_angle() -> None:
    assert local_sidereal_angle(0.0, 77.2) == pytest.approx(77.2)
    assert local_sidereal_angle(23.0, 15.0) == 0.0
    assert local_sidereal_angle(1.0, -30.0) == pytest.approx(345.0)

def test_resolve_applies_of_date_ayanamsa(make_ephemeris) -> None:
    eph = make_ephemeris(gast_hours=0.0)
    ts = build_timescales("2000-01-01", "12:00", 0.0)
    reading = FixedOffsetAyanamsa().read(eph, ts)
    asc = resolve_ascendant(eph, ts, 0.0, 0.0, reading)
    assert asc == pytest.approx(90.0 - reading.of_date_degrees)
    assert eph.calls["gast"] == 1

def test_resolve_rejects_non_finite_sidereal_time(make_ephemeris) -> None:
    eph = make_ephemeris(gast_hours=float("nan"))
    ts = build_timescales("2000-01-01", "12:00", 0.0)
    reading = FixedOffsetAyanamsa().read(eph, ts)
    with pytest.raises(EphemerisError) as ei:
        resolve_ascendant(eph, ts, 28.6, 77.2, reading)
    assert ei.value.stage == "sidereal_time"

def test_house_cusps_whole_sign() -> None:
    assert house_cusp(45.0, 1) == 30.0
    assert house_cusp(45.0, 4) == 120.0
    assert house_cusp(45.0, 12) == 0.0
    with pytest.raises(ValueError):
        house_cusp(45.0, 13)
