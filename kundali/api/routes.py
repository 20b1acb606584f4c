# kundali/api/routes.py
"""
Kundali API routes
- POST /api/kundali            chart document
- POST /api/kundali/narrative  chart document + plain-text narrative
- GET  /api/health, /api/config

The ephemeris port and settings live on the app (`app.extensions["kundali"]`),
created once in the factory and shared read-only by every request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, current_app, jsonify, request

from kundali.core.chart import Chart, build_chart
from kundali.core.ephemeris_adapter import EphemerisError
from kundali.core.errors import KundaliError, NumericDegeneracyError
from kundali.core.narrator import render_narrative
from kundali.core.validators import ValidationError, parse_birth_payload
from kundali.utils.metrics import MET_CHARTS, timed_chart
from kundali.version import VERSION

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)


def _json_error(code: str, details: Any = None, http: int = 400, message: str | None = None):
    out: Dict[str, Any] = {"ok": False, "error": code}
    if message:
        out["message"] = message
    if details is not None:
        out["details"] = details
    return jsonify(out), http


def _state() -> Dict[str, Any]:
    return current_app.extensions["kundali"]


@timed_chart
def _compute(body: Any) -> Chart:
    st = _state()
    settings = st["settings"]
    birth = parse_birth_payload(body, dut1_seconds=settings.dut1_seconds)
    return build_chart(birth, st["ephemeris"], settings)


def _chart_or_error(body: Any) -> Tuple[Chart | None, Any]:
    """Map the error taxonomy to HTTP; exactly one of the pair is set."""
    try:
        chart = _compute(body)
    except ValidationError as e:
        MET_CHARTS.labels(outcome="validation_error").inc()
        return None, _json_error("validation_error", e.errors(), 422, message=e.message)
    except NumericDegeneracyError as e:
        MET_CHARTS.labels(outcome="numeric_degeneracy").inc()
        return None, _json_error(e.code, None, 422, message=e.message)
    except EphemerisError as e:
        MET_CHARTS.labels(outcome="ephemeris_unavailable").inc()
        log.error("ephemeris failure (%s): %s %s", e.stage, e.message, e.context)
        return None, _json_error(e.code, {"stage": e.stage}, 503, message=e.message)
    except KundaliError as e:
        MET_CHARTS.labels(outcome="internal_error").inc()
        log.exception("chart failed: %s", e)
        return None, _json_error(e.code, None, 500, message=e.message)
    except Exception:
        # counted here, rendered by the app-level handler
        MET_CHARTS.labels(outcome="internal_error").inc()
        raise
    MET_CHARTS.labels(outcome="ok").inc()
    return chart, None


@api.get("/api/health")
def health():
    return jsonify({"ok": True, "status": "up", "version": VERSION}), 200


@api.get("/api/config")
def config_info():
    st = _state()
    eph = st["ephemeris"]
    diag = eph.diagnostics() if hasattr(eph, "diagnostics") else {}
    return jsonify({
        "ok": True,
        "version": VERSION,
        "settings": st["settings"].to_dict(),
        "ephemeris": {"source": getattr(eph, "source", type(eph).__name__), **diag},
    }), 200


@api.post("/api/kundali")
def kundali():
    body = request.get_json(silent=True)
    chart, err = _chart_or_error(body)
    if err is not None:
        return err
    return jsonify({"ok": True, "chart": chart.to_dict()}), 200


@api.post("/api/kundali/narrative")
def kundali_narrative():
    body = request.get_json(silent=True)
    chart, err = _chart_or_error(body)
    if err is not None:
        return err
    doc = chart.to_dict()
    return jsonify({"ok": True, "narrative": render_narrative(doc), "chart": doc}), 200
