# invoice_bridge/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: production)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger.json import JsonFormatter

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", os.getenv("NODE_ENV", "production"))


# --- Logger setup
def setup_logger(name: str = "invoice-bridge", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            fmt = JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
            handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "invoice_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

ACTION_COUNTER = Counter(
    "invoice_actions_total",
    "Invoice actions handled",
    ["action", "outcome"],
)

UPSTREAM_CALLS = Counter(
    "invoice_upstream_calls_total",
    "Calls made to Apps Script and Airtable",
    ["service", "outcome"],
)

FAILURES = Counter(
    "invoice_failures_total",
    "Failed invoice requests by error kind",
    ["kind"],
)

REQUEST_LATENCY = Histogram(
    "invoice_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

UPSTREAM_LATENCY = Histogram(
    "invoice_upstream_latency_seconds",
    "Upstream call latency in seconds",
    ["service"],
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        logger.debug("Failed to record request metric", exc_info=True)


def observe_upstream(start_ts: float, service: str, outcome: str):
    try:
        UPSTREAM_LATENCY.labels(service=service).observe(time.time() - start_ts)
        UPSTREAM_CALLS.labels(service=service, outcome=outcome).inc()
    except Exception:
        logger.debug("Failed to record upstream metric", exc_info=True)


def inc_action(action: str, outcome: str):
    try:
        ACTION_COUNTER.labels(action=action, outcome=outcome).inc()
    except Exception:
        logger.debug("Failed to record action metric", exc_info=True)


def inc_failure(kind: str):
    try:
        FAILURES.labels(kind=kind).inc()
    except Exception:
        logger.debug("Failed to record failure metric", exc_info=True)


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        logger.debug("Failed to render metrics", exc_info=True)
        return b"", CONTENT_TYPE_LATEST
