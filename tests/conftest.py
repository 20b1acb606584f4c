# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the Kundali suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (charts take explicit decimal offsets).
- Provides a deterministic in-memory ephemeris implementing the port, so no
  test needs a JPL kernel or network access.
"""

import math
import os
from typing import Dict, Iterable, Optional, Tuple

import pytest
from hypothesis import settings, HealthCheck

from kundali.core.constants import J2000_JD, J2000_MEAN_OBLIQUITY_DEG
from kundali.core.ephemeris_adapter import EphemerisError
from kundali.utils.config import Settings


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,           # avoid flaky timeouts on slower runners
        max_examples=60,         # fast local runs
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=120,        # a bit more coverage in CI
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Fake ephemeris
# ──────────────────────────────────────────────────────────────────────────────
# J2000 ecliptic longitude at the epoch (deg) and mean motion (deg/day)
BASE_LON: Dict[str, float] = {
    "Sun": 280.46, "Moon": 218.32, "Mars": 355.43, "Mercury": 252.25,
    "Jupiter": 34.40, "Venus": 181.98, "Saturn": 50.08,
}
RATE: Dict[str, float] = {
    "Sun": 0.9856, "Moon": 13.1764, "Mars": 0.5240, "Mercury": 4.0923,
    "Jupiter": 0.0831, "Venus": 1.6021, "Saturn": 0.0335,
}
MOON_NODE_DEG = 125.04452
MOON_INCLINATION_DEG = 5.145
SPICA_J2000_LON = 203.853055


def ecliptic_to_gcrs(lon_deg: float, lat_deg: float = 0.0) -> Tuple[float, float, float]:
    """Unit vector for a J2000 ecliptic direction, expressed on equatorial axes."""
    l, b = math.radians(lon_deg), math.radians(lat_deg)
    x, y, z = math.cos(b) * math.cos(l), math.cos(b) * math.sin(l), math.sin(b)
    eps = math.radians(J2000_MEAN_OBLIQUITY_DEG)
    return x, y * math.cos(eps) - z * math.sin(eps), y * math.sin(eps) + z * math.cos(eps)


class FakeEphemeris:
    """
    Deterministic port implementation: planets on circular ecliptic paths,
    the Moon on an orbit inclined about a fixed node, Spica fixed in J2000.
    """
    source = "fake:linear"

    def __init__(self, *, missing: Iterable[str] = (), overrides: Optional[Dict[str, float]] = None,
                 gast_hours: Optional[float] = None, raw: Optional[Dict[str, object]] = None):
        self.missing = set(missing)
        self.overrides = dict(overrides or {})
        self.gast_hours = gast_hours
        self.raw = dict(raw or {})     # body (or "star") -> value handed back untouched
        self.calls: Dict[str, int] = {}

    def _count(self, key: str) -> None:
        self.calls[key] = self.calls.get(key, 0) + 1

    def geo_vector(self, body: str, jd_tt: float):
        self._count(body)
        if body in self.missing:
            raise EphemerisError("body", f"kernel has no segment for {body!r}")
        if body in self.raw:
            return self.raw[body]
        dt = jd_tt - J2000_JD
        if body in self.overrides:
            return ecliptic_to_gcrs(self.overrides[body])
        if body == "Moon":
            u = math.radians(BASE_LON["Moon"] - MOON_NODE_DEG + RATE["Moon"] * dt)
            om, inc = math.radians(MOON_NODE_DEG), math.radians(MOON_INCLINATION_DEG)
            x = math.cos(om) * math.cos(u) - math.sin(om) * math.sin(u) * math.cos(inc)
            y = math.sin(om) * math.cos(u) + math.cos(om) * math.sin(u) * math.cos(inc)
            z = math.sin(u) * math.sin(inc)
            lon = math.degrees(math.atan2(y, x))
            lat = math.degrees(math.asin(z))
            return ecliptic_to_gcrs(lon, lat)
        return ecliptic_to_gcrs(BASE_LON[body] + RATE[body] * dt)

    def sidereal_time(self, jd_ut1: float) -> float:
        self._count("gast")
        if self.gast_hours is not None:
            return self.gast_hours
        return (18.697374558 + 24.06570982441908 * (jd_ut1 - J2000_JD)) % 24.0

    def star_vector(self, ra_hours: float, dec_degrees: float, jd_tt: float, parallax_mas: float = 0.0):
        self._count("star")
        if "star" in self.raw:
            return self.raw["star"]
        return ecliptic_to_gcrs(SPICA_J2000_LON, -2.05)


# ──────────────────────────────────────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture
def fake_ephemeris() -> FakeEphemeris:
    return FakeEphemeris()


@pytest.fixture
def make_ephemeris():
    return FakeEphemeris


@pytest.fixture
def fixed_settings() -> Settings:
    return Settings(ayanamsa_strategy="fixed")


@pytest.fixture
def star_settings() -> Settings:
    return Settings(ayanamsa_strategy="reference_star")


@pytest.fixture
def new_delhi() -> dict:
    return {
        "fullName": "Test Native",
        "gender": "female",
        "dob": "2000-01-01",
        "tob": "12:00",
        "tz": 5.5,
        "lat": 28.6139,
        "lng": 77.2090,
    }


@pytest.fixture
def client(fake_ephemeris, fixed_settings):
    from kundali.main import create_app
    app = create_app(ephemeris=fake_ephemeris, settings=fixed_settings)
    app.testing = True
    return app.test_client()
