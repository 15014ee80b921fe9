"""
Prometheus metrics blueprint.

Exposes /metrics with HTTP request metrics and checkout counters.
This endpoint should be restricted to internal network or monitoring systems only.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share metrics through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
else:
    registry = REGISTRY

_metric_registry = registry if not MULTIPROCESS_MODE else None

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'http_status'],
    registry=_metric_registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    registry=_metric_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

http_requests_in_flight = Gauge(
    'http_requests_in_flight',
    'Number of HTTP requests currently being processed',
    registry=_metric_registry
)

pos_checkouts_total = Counter(
    'pos_checkouts_total',
    'Checkout attempts by outcome',
    ['outcome'],
    registry=_metric_registry
)

pos_sales_amount_rupiah_total = Counter(
    'pos_sales_amount_rupiah_total',
    'Revenue recorded through checkout, in Rupiah',
    registry=_metric_registry
)


def record_checkout(outcome: str, total: int = 0) -> None:
    """Count a checkout attempt; outcome is 'success' or an error code."""
    pos_checkouts_total.labels(outcome=outcome).inc()
    if outcome == 'success' and total:
        pos_sales_amount_rupiah_total.inc(total)


def setup_metrics_instrumentation(app):
    """Register before/after request hooks that time every request."""

    @app.before_request
    def before_request_metrics():
        g._prometheus_metrics_start_time = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def after_request_metrics(response):
        start = g.pop('_prometheus_metrics_start_time', None)
        if start is None:
            return response

        endpoint = request.endpoint or 'unknown'
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(time.time() - start)
        http_requests_total.labels(method=request.method, endpoint=endpoint, http_status=response.status_code).inc()
        http_requests_in_flight.dec()
        return response


@metrics_bp.route('/metrics')
def metrics():
    """
    Prometheus metrics endpoint.

    Not authenticated; restrict by network rules in production.
    """
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
