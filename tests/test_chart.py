# tests/test_chart.py
from __future__ import annotations

import os
from types import SimpleNamespace
import pytest

from kundali.core.chart import build_chart, generate_kundali
from kundali.core.constants import CHART_BODIES, wrap_deg
from kundali.core import ephemeris_adapter as ea
from kundali.core.ephemeris_adapter import Config, EphemerisError, SkyfieldEphemeris, as_vector
from kundali.core.errors import NumericDegeneracyError
from kundali.core.validators import ValidationError, parse_birth_payload
from kundali.core.varga import SCHEMES
from kundali.utils.config import Settings

KERNEL = os.path.join(os.path.dirname(__file__), "..", "data", "de421.bsp")


def _planet(doc, name):
    return next(p for p in doc["planets"] if p["name"] == name)


def test_document_shape(new_delhi, fake_ephemeris, fixed_settings) -> None:
    doc = generate_kundali(new_delhi, fake_ephemeris, fixed_settings)
    assert list(doc) == ["meta", "planets", "vargas", "dashas", "ashtakavarga", "panchanga", "yogas"]

    meta = doc["meta"]
    assert meta["utcDate"] == "2000-01-01T06:30:00Z"
    assert meta["fullName"] == "Test Native"
    assert meta["ayanamsa"]["strategy"] == "fixed"
    assert meta["ephemeris"] == "fake:linear"
    assert meta["nodeModel"] == "mean"
    assert meta["warnings"] == []

    assert [p["name"] for p in doc["planets"]] == list(CHART_BODIES)
    for p in doc["planets"]:
        assert 0.0 <= p["longitude"] < 360.0
        assert 1 <= p["pada"] <= 4

    assert list(doc["vargas"]) == list(SCHEMES)
    for chart in doc["vargas"].values():
        assert set(chart) == set(CHART_BODIES)

    assert len(doc["dashas"]) == 9
    assert sum(doc["ashtakavarga"]["sarva"]) == sum(
        sum(row) for row in doc["ashtakavarga"]["bhinna"].values()
    )
    assert doc["panchanga"]["vara"] == "Saturday"

def test_ketu_opposite_rahu(new_delhi, fake_ephemeris, fixed_settings) -> None:
    doc = generate_kundali(new_delhi, fake_ephemeris, fixed_settings)
    rahu, ketu = _planet(doc, "Rahu")["longitude"], _planet(doc, "Ketu")["longitude"]
    assert wrap_deg(ketu - rahu) == pytest.approx(180.0, abs=1e-9)

def test_deterministic(new_delhi, make_ephemeris, fixed_settings) -> None:
    a = generate_kundali(new_delhi, make_ephemeris(), fixed_settings)
    b = generate_kundali(dict(new_delhi), make_ephemeris(), fixed_settings)
    assert a == b

def test_first_dasha_starts_at_birth(new_delhi, fake_ephemeris, fixed_settings) -> None:
    chart = build_chart(parse_birth_payload(new_delhi), fake_ephemeris, fixed_settings)
    assert chart.dashas[0].start == chart.birth.utc_instant
    for a, b in zip(chart.dashas, chart.dashas[1:]):
        assert a.end == b.start

def test_chart_accessors(new_delhi, fake_ephemeris, fixed_settings) -> None:
    chart = build_chart(parse_birth_payload(new_delhi), fake_ephemeris, fixed_settings)
    assert chart.position("Moon").longitude == chart.longitudes["Moon"]
    assert chart.vargas["D1"].signs["Sun"] == chart.position("Sun").sign_index
    with pytest.raises(KeyError):
        chart.position("Pluto")

@pytest.mark.parametrize("strategy,model", [
    ("reference_star", "mean"),
    ("reference_star", "true"),
    ("fixed", "true"),
])
def test_other_configurations(new_delhi, fake_ephemeris, strategy, model) -> None:
    doc = generate_kundali(new_delhi, fake_ephemeris, Settings(ayanamsa_strategy=strategy, node_model=model))
    assert doc["meta"]["ayanamsa"]["strategy"] == strategy
    assert doc["meta"]["nodeModel"] == model
    assert doc["meta"]["ayanamsa"]["degrees"] == pytest.approx(23.85, abs=0.05)
    assert all(0.0 <= p["longitude"] < 360.0 for p in doc["planets"])

def test_fixed_and_star_strategies_agree_near_epoch(new_delhi, make_ephemeris) -> None:
    fixed = generate_kundali(new_delhi, make_ephemeris(), Settings(ayanamsa_strategy="fixed"))
    star = generate_kundali(new_delhi, make_ephemeris(), Settings(ayanamsa_strategy="reference_star"))
    for name in ("Sun", "Moon", "Saturn", "Ascendant"):
        assert _planet(fixed, name)["longitude"] == pytest.approx(_planet(star, name)["longitude"], abs=0.05)

@pytest.mark.parametrize("lat", [89.95, -90.0])
def test_polar_latitude_aborts_chart(new_delhi, fake_ephemeris, fixed_settings, lat) -> None:
    with pytest.raises(NumericDegeneracyError):
        generate_kundali(dict(new_delhi, lat=lat), fake_ephemeris, fixed_settings)

def test_provider_failure_aborts_chart(new_delhi, make_ephemeris, fixed_settings) -> None:
    with pytest.raises(EphemerisError) as ei:
        generate_kundali(new_delhi, make_ephemeris(missing={"Jupiter"}), fixed_settings)
    assert ei.value.code == "ephemeris_unavailable"

@pytest.mark.parametrize("raw", [
    (float("nan"), 0.0, 0.0),
    (0.0, 0.0, float("inf")),
    (0.0, 0.0, 0.0),
    (1.0, 0.0),
    None,
    "xyz",
])
def test_unusable_body_vector_aborts_chart(new_delhi, make_ephemeris, fixed_settings, raw) -> None:
    with pytest.raises(EphemerisError) as ei:
        generate_kundali(new_delhi, make_ephemeris(raw={"Mars": raw}), fixed_settings)
    assert ei.value.stage == "vector"
    assert ei.value.code == "ephemeris_unavailable"

def test_zero_star_vector_aborts_chart(new_delhi, make_ephemeris, star_settings) -> None:
    with pytest.raises(EphemerisError) as ei:
        generate_kundali(new_delhi, make_ephemeris(raw={"star": (0.0, 0.0, 0.0)}), star_settings)
    assert ei.value.stage == "vector"
    assert "star vector" in ei.value.message

def test_as_vector_accepts_sequences() -> None:
    assert as_vector([1, 2, 3]) == (1.0, 2.0, 3.0)
    assert as_vector((0.0, -1e-12, 0.0)) == (0.0, -1e-12, 0.0)

def test_invalid_payload_never_reaches_ephemeris(fake_ephemeris) -> None:
    with pytest.raises(ValidationError):
        generate_kundali({"dob": "2000-01-01"}, fake_ephemeris)
    assert fake_ephemeris.calls == {}

def test_pre_1960_warning_in_meta(new_delhi, fake_ephemeris, fixed_settings) -> None:
    doc = generate_kundali(dict(new_delhi, dob="1950-08-15"), fake_ephemeris, fixed_settings)
    assert doc["meta"]["warnings"] == ["pre_1960_utc_uses_zero_leap_seconds"]


# ─────────────────────────────────────────────────────────────────────────────
# Skyfield adapter (kernel-free checks, plus one real-kernel run when present)
# ─────────────────────────────────────────────────────────────────────────────

def test_adapter_guard_runs_before_kernel_load(tmp_path) -> None:
    eph = SkyfieldEphemeris(Config(data_dir=str(tmp_path)))
    with pytest.raises(EphemerisError) as ei:
        eph.geo_vector("Sun", 2400000.5)
    assert ei.value.stage == "validation"
    diag = eph.diagnostics()
    assert diag["loaded"] is False
    assert diag["kernel_present"] is False
    assert diag["kernel_coverage_jd"] is None
    assert eph.source == "skyfield:de421.bsp"

class _OpenSPK:
    def __init__(self, segments):
        self.segments = segments

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

def test_adapter_reports_kernel_coverage(tmp_path, monkeypatch) -> None:
    (tmp_path / "de421.bsp").write_bytes(b"")
    segments = [
        SimpleNamespace(start_jd=2414864.5, end_jd=2471184.5),
        SimpleNamespace(start_jd=2414992.5, end_jd=2469807.5),
    ]
    monkeypatch.setattr(ea, "SPK", SimpleNamespace(open=lambda path: _OpenSPK(segments)))
    eph = SkyfieldEphemeris(Config(data_dir=str(tmp_path)))
    assert eph.kernel_coverage_jd() == (2414864.5, 2471184.5)
    diag = eph.diagnostics()
    assert diag["kernel_coverage_jd"] == [2414864.5, 2471184.5]
    assert diag["loaded"] is False

def test_adapter_unreadable_kernel_has_no_coverage(tmp_path) -> None:
    (tmp_path / "de421.bsp").write_bytes(b"not an spk".ljust(1024, b" "))
    eph = SkyfieldEphemeris(Config(data_dir=str(tmp_path)))
    assert eph.kernel_coverage_jd() is None
    assert eph.diagnostics()["kernel_present"] is True

@pytest.mark.slow
@pytest.mark.skipif(not os.path.isfile(KERNEL), reason="de421.bsp not present in ./data")
def test_real_kernel_new_delhi(new_delhi) -> None:
    eph = SkyfieldEphemeris(Config(kernel=KERNEL))
    doc = generate_kundali(new_delhi, eph, Settings())
    # tropical Sun ≈ 280.2° at 2000-01-01 06:30 UTC, Lahiri-like ayanamsa ≈ 23.85°
    assert _planet(doc, "Sun")["longitude"] == pytest.approx(256.3, abs=0.5)
    assert _planet(doc, "Sun")["sign"] == "Sagittarius"
    assert doc["meta"]["ayanamsa"]["degrees"] == pytest.approx(23.85, abs=0.1)
    lo, hi = eph.kernel_coverage_jd()
    assert lo <= 2451545.0 <= hi
