# kundali/utils/metrics.py
from __future__ import annotations

import time
from functools import wraps
from typing import Callable, Final

from prometheus_client import Counter, Gauge, Histogram

# Keep names stable: dashboards key on them.
MET_REQUESTS: Final = Counter("kundali_api_requests_total", "API requests", ["route"])
REQ_LATENCY: Final = Histogram("kundali_request_seconds", "API request latency", ["route"])
MET_CHARTS: Final = Counter("kundali_charts_total", "Chart computations by outcome", ["outcome"])
CHART_LATENCY: Final = Histogram("kundali_chart_seconds", "Chart computation latency")
GAUGE_APP_UP: Final = Gauge("kundali_app_up", "1 if app is running")

CHART_OUTCOMES = ("ok", "validation_error", "numeric_degeneracy", "ephemeris_unavailable", "internal_error")


def timed_chart(fn: Callable) -> Callable:
    """Observe chart latency; the caller records the outcome."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        try:
            return fn(*args, **kwargs)
        finally:
            CHART_LATENCY.observe(time.perf_counter() - t0)
    return wrapper


def seed_metrics(routes) -> None:
    for route in routes:
        MET_REQUESTS.labels(route=route).inc(0)
    for outcome in CHART_OUTCOMES:
        MET_CHARTS.labels(outcome=outcome).inc(0)
    GAUGE_APP_UP.set(1.0)
