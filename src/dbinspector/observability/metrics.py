# -*- coding: utf-8 -*-
"""
Prometheus Metrics Integration

- inspector_request_total / inspector_request_latency_seconds (HTTP requests)
- inspector_db_query_total / inspector_db_query_latency_seconds (database queries)
- inspector_db_query_rows (rows returned)
- inspector_active_connections (connections currently held)
- inspector_query_validation_total (validator outcomes)
- inspector_plan_analysis_total (plan summaries, degraded or not)
- inspector_errors_total
"""

import time
from contextlib import contextmanager
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, REGISTRY, generate_latest


def _get_or_create_counter(name: str, description: str, labelnames: list):
    """Return the registered Counter, creating it on first use"""
    if name in REGISTRY._names_to_collectors:
        return REGISTRY._names_to_collectors[name]
    return Counter(name, description, labelnames=labelnames)


def _get_or_create_histogram(name: str, description: str, labelnames: list, buckets: tuple):
    """Return the registered Histogram, creating it on first use"""
    if name in REGISTRY._names_to_collectors:
        return REGISTRY._names_to_collectors[name]
    return Histogram(name, description, labelnames=labelnames, buckets=buckets)


def _get_or_create_gauge(name: str, description: str, labelnames: list):
    """Return the registered Gauge, creating it on first use"""
    if name in REGISTRY._names_to_collectors:
        return REGISTRY._names_to_collectors[name]
    return Gauge(name, description, labelnames=labelnames)


# ============================================
# HTTP request metrics
# ============================================
REQUEST_COUNT = _get_or_create_counter(
    "inspector_request_total",
    "HTTP request count",
    labelnames=["method", "path", "status"],
)

REQUEST_LATENCY = _get_or_create_histogram(
    "inspector_request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=["method", "path", "status"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)

# ============================================
# Database query metrics
# ============================================
DB_QUERY_COUNT = _get_or_create_counter(
    "inspector_db_query_total",
    "Database query count",
    labelnames=["db_type", "status"],
)

DB_QUERY_LATENCY = _get_or_create_histogram(
    "inspector_db_query_latency_seconds",
    "Database query latency in seconds",
    labelnames=["db_type", "status"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
)

DB_QUERY_ROWS = _get_or_create_histogram(
    "inspector_db_query_rows",
    "Number of rows returned by queries",
    labelnames=["db_type"],
    buckets=(1, 10, 50, 100, 500, 1000, 5000, 10000),
)

ACTIVE_CONNECTIONS = _get_or_create_gauge(
    "inspector_active_connections",
    "Number of database connections currently held",
    labelnames=["db_type"],
)

# ============================================
# Validation and plan metrics
# ============================================
QUERY_VALIDATION_COUNT = _get_or_create_counter(
    "inspector_query_validation_total",
    "Query validation count",
    labelnames=["status"],
)

PLAN_ANALYSIS_COUNT = _get_or_create_counter(
    "inspector_plan_analysis_total",
    "Execution plan analysis count",
    labelnames=["db_type", "status"],  # status: parsed/degraded
)

ERRORS_COUNT = _get_or_create_counter(
    "inspector_errors_total",
    "Total error count",
    labelnames=["error_type"],
)


def _normalized_path(path: str) -> str:
    """Normalize path to reduce cardinality (basic static path only)."""
    return path or "/"


# ============================================
# Recording helpers
# ============================================

@contextmanager
def track_db_query(db_type: str):
    """Time one database statement"""
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        ERRORS_COUNT.labels(error_type="db_error").inc()
        raise
    finally:
        duration = time.perf_counter() - start
        DB_QUERY_COUNT.labels(db_type=db_type, status=status).inc()
        DB_QUERY_LATENCY.labels(db_type=db_type, status=status).observe(duration)


@contextmanager
def track_connection(db_type: str):
    """Count a connection for as long as it is held"""
    ACTIVE_CONNECTIONS.labels(db_type=db_type).inc()
    try:
        yield
    finally:
        ACTIVE_CONNECTIONS.labels(db_type=db_type).dec()


def record_db_query_rows(db_type: str, row_count: int):
    DB_QUERY_ROWS.labels(db_type=db_type).observe(row_count)


def record_query_validation(valid: bool):
    QUERY_VALIDATION_COUNT.labels(status="valid" if valid else "invalid").inc()


def record_plan_analysis(db_type: str, degraded: bool):
    PLAN_ANALYSIS_COUNT.labels(db_type=db_type, status="degraded" if degraded else "parsed").inc()


def record_error(error_type: str):
    ERRORS_COUNT.labels(error_type=error_type).inc()


def setup_metrics(app: FastAPI) -> None:
    """Attach metrics middleware and /metrics endpoint to the app."""

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        path = _normalized_path(request.url.path)
        method = request.method.upper()
        status = response.status_code

        REQUEST_COUNT.labels(method=method, path=path, status=status).inc()
        REQUEST_LATENCY.labels(method=method, path=path, status=status).observe(duration)

        return response

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "setup_metrics",
    # HTTP
    "REQUEST_COUNT", "REQUEST_LATENCY",
    # DB
    "DB_QUERY_COUNT", "DB_QUERY_LATENCY", "DB_QUERY_ROWS", "ACTIVE_CONNECTIONS",
    # Validation / plans / errors
    "QUERY_VALIDATION_COUNT", "PLAN_ANALYSIS_COUNT", "ERRORS_COUNT",
    # Helpers
    "track_db_query", "track_connection",
    "record_db_query_rows", "record_query_validation", "record_plan_analysis", "record_error",
]
