# kundali/main.py
from __future__ import annotations

import logging
import os
import traceback
from time import perf_counter
from typing import Any, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from kundali.api.routes import api as api_bp
from kundali.core.ephemeris_adapter import Config as EphemerisConfig, SkyfieldEphemeris
from kundali.utils.config import Settings, load_config, settings_from_config
from kundali.utils.metrics import GAUGE_APP_UP, MET_REQUESTS, REQ_LATENCY, seed_metrics
from kundali.version import VERSION

_TRACKED = ("/", "/health", "/healthz", "/metrics")

# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gerr = logging.getLogger("gunicorn.error")
    if gerr.handlers:
        app.logger.handlers = gerr.handlers
        app.logger.setLevel(gerr.level)
        logging.getLogger("kundali").setLevel(gerr.level)
    else:
        logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

def _register_errors(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        app.logger.warning("HTTP %s at %s %s: %s", e.code, request.method, request.path, e.description)
        return jsonify(
            ok=False,
            error="http_error",
            code=e.code,
            name=e.name,
            message=e.description,
            path=request.path,
        ), e.code

    @app.errorhandler(Exception)
    def _any(e: Exception):
        tb = traceback.format_exc()
        app.logger.error("UNHANDLED %s at %s %s\n%s", type(e).__name__, request.method, request.path, tb)
        return jsonify(
            ok=False,
            error="internal_error",
            type=type(e).__name__,
            message=str(e),
            path=request.path,
        ), 500

# ───────────────────────── health & metrics ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(ok=True, service="kundali-backend", version=VERSION, health="/health"), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok"), 200

def _metrics_auth_ok() -> bool:
    user = os.getenv("METRICS_USER", "")
    pw = os.getenv("METRICS_PASS", "")
    if not (user and pw):
        # open endpoint unless credentials are configured
        return True
    auth = request.authorization
    return bool(auth and auth.type == "basic" and auth.username == user and auth.password == pw)

def _register_metrics(app: Flask) -> None:
    @app.before_request
    def _before():
        p = request.path or ""
        if p.startswith("/api/") or p in _TRACKED:
            MET_REQUESTS.labels(route=p).inc()
            request.environ["kundali.t0"] = perf_counter()

    @app.after_request
    def _after(resp):
        t0 = request.environ.get("kundali.t0")
        if t0 is not None:
            REQ_LATENCY.labels(route=request.path).observe(perf_counter() - t0)
        return resp

    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)

# ───────────────────────── app factory ─────────────────────────
def create_app(ephemeris: Optional[Any] = None, settings: Optional[Settings] = None) -> Flask:
    """
    Build the WSGI app. `ephemeris` defaults to a Skyfield adapter configured
    from `settings`; tests inject a deterministic fake instead.
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    if settings is None:
        settings = settings_from_config(load_config(os.environ.get("KUNDALI_CONFIG")))
    if ephemeris is None:
        ephemeris = SkyfieldEphemeris(EphemerisConfig.from_settings(settings))
    app.extensions["kundali"] = {"settings": settings, "ephemeris": ephemeris}

    seed_metrics(_TRACKED + ("/api/kundali", "/api/kundali/narrative"))

    _register_health(app)
    _register_errors(app)
    _register_metrics(app)
    app.register_blueprint(api_bp)

    # CORS for browser UIs
    CORS(
        app,
        resources={r"/*": {"origins": os.environ.get("CORS_ALLOW_ORIGIN") or "*"}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=600,
    )

    app.logger.info(
        "App initialized; version=%s ayanamsa=%s nodes=%s ephemeris=%s",
        VERSION, settings.ayanamsa_strategy, settings.node_model, type(ephemeris).__name__,
    )
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
