# tests/test_endpoints.py
from __future__ import annotations

import pytest

from prometheus_client import REGISTRY

from kundali.main import create_app


def test_root_and_health(client):
    for path in ("/", "/health", "/healthz"):
        rv = client.get(path)
        assert rv.status_code == 200
        assert rv.get_json()["ok"] is True

def test_api_health(client):
    rv = client.get("/api/health")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["status"] == "up"
    assert "version" in data

def test_config_reports_settings_and_source(client):
    rv = client.get("/api/config")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["settings"]["ayanamsa_strategy"] == "fixed"
    assert data["ephemeris"]["source"] == "fake:linear"

def test_kundali_ok(client, new_delhi):
    rv = client.post("/api/kundali", json=new_delhi)
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["ok"] is True
    chart = data["chart"]
    assert chart["meta"]["utcDate"] == "2000-01-01T06:30:00Z"
    assert len(chart["planets"]) == 10
    assert len(chart["dashas"]) == 9

def test_kundali_keeps_document_order(client, new_delhi):
    rv = client.post("/api/kundali", json=new_delhi)
    assert list(rv.get_json()["chart"]) == [
        "meta", "planets", "vargas", "dashas", "ashtakavarga", "panchanga", "yogas",
    ]

def test_kundali_validation_error(client):
    rv = client.post("/api/kundali", json={"dob": "2000-01-01", "tob": "99:00"})
    assert rv.status_code == 422
    data = rv.get_json()
    assert data["ok"] is False
    assert data["error"] == "validation_error"
    locs = {tuple(d["loc"]) for d in data["details"]}
    assert {("tz",), ("lat",), ("lng",)} <= locs

def test_kundali_non_json_body(client):
    rv = client.post("/api/kundali", data="not json", content_type="text/plain")
    assert rv.status_code == 422
    assert rv.get_json()["error"] == "validation_error"

def test_kundali_polar_latitude(client, new_delhi):
    rv = client.post("/api/kundali", json=dict(new_delhi, lat=89.95))
    assert rv.status_code == 422
    assert rv.get_json()["error"] == "numeric_degeneracy"

def test_kundali_ephemeris_unavailable(make_ephemeris, fixed_settings, new_delhi):
    app = create_app(ephemeris=make_ephemeris(missing={"Moon"}), settings=fixed_settings)
    app.testing = True
    rv = app.test_client().post("/api/kundali", json=new_delhi)
    assert rv.status_code == 503
    data = rv.get_json()
    assert data["error"] == "ephemeris_unavailable"
    assert data["details"]["stage"] == "body"

def test_kundali_bad_vector_is_unavailable(make_ephemeris, fixed_settings, new_delhi):
    app = create_app(ephemeris=make_ephemeris(raw={"Mars": (float("nan"), 0.0, 0.0)}), settings=fixed_settings)
    app.testing = True
    rv = app.test_client().post("/api/kundali", json=new_delhi)
    assert rv.status_code == 503
    assert rv.get_json()["details"]["stage"] == "vector"

def test_kundali_unexpected_failure_is_counted(make_ephemeris, fixed_settings, new_delhi):
    class StoppedClock(make_ephemeris):
        def sidereal_time(self, jd_ut1):
            raise RuntimeError("clock stopped")

    app = create_app(ephemeris=StoppedClock(), settings=fixed_settings)
    app.testing = True
    labels = {"outcome": "internal_error"}
    before = REGISTRY.get_sample_value("kundali_charts_total", labels) or 0.0
    rv = app.test_client().post("/api/kundali", json=new_delhi)
    assert rv.status_code == 500
    data = rv.get_json()
    assert data["error"] == "internal_error"
    assert data["type"] == "RuntimeError"
    assert REGISTRY.get_sample_value("kundali_charts_total", labels) == before + 1

def test_narrative(client, new_delhi):
    rv = client.post("/api/kundali/narrative", json=new_delhi)
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["narrative"].startswith("I. Panchanga")
    assert data["chart"]["meta"]["fullName"] == "Test Native"

def test_unknown_route_is_json(client):
    rv = client.get("/api/nope")
    assert rv.status_code == 404
    data = rv.get_json()
    assert data["ok"] is False and data["error"] == "http_error"

def test_metrics_exposed(client, new_delhi):
    client.post("/api/kundali", json=new_delhi)
    rv = client.get("/metrics")
    assert rv.status_code == 200
    body = rv.get_data(as_text=True)
    assert "kundali_charts_total" in body
    assert 'kundali_api_requests_total{route="/api/kundali"}' in body

def test_metrics_basic_auth(client, monkeypatch):
    monkeypatch.setenv("METRICS_USER", "ops")
    monkeypatch.setenv("METRICS_PASS", "s3cret")
    assert client.get("/metrics").status_code == 401
    rv = client.get("/metrics", headers={"Authorization": "Basic b3BzOnMzY3JldA=="})
    assert rv.status_code == 200
