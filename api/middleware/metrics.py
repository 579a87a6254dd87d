"""
Prometheus metrics middleware for the Reobote lead agent API.

Exposes /metrics endpoint with request counters, latency histograms,
and conversation metrics.
"""

import logging
import time

from fastapi import Request, Response
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Request metrics
REQUEST_COUNT = Counter(
    "reobote_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "reobote_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
ACTIVE_REQUESTS = Gauge(
    "reobote_http_active_requests",
    "Currently active HTTP requests",
)

# Conversation metrics
TURN_COUNT = Counter(
    "reobote_conversation_turns_total",
    "Conversation turns processed",
    ["outcome"],
)
CLASSIFICATION_SCORE = Histogram(
    "reobote_classification_score",
    "Lead classification score distribution",
    ["priority"],
    buckets=[1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
)
LLM_LATENCY = Histogram(
    "reobote_llm_duration_seconds",
    "LLM generation latency",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)


def record_turn(outcome: str):
    """Record a processed turn (greeting, continue, finished, fallback)."""
    TURN_COUNT.labels(outcome=outcome).inc()


def record_classification(score: float, priority: str):
    """Record a final lead classification."""
    CLASSIFICATION_SCORE.labels(priority=priority).observe(score)


def record_llm_latency(seconds: float):
    """Record LLM generation latency."""
    LLM_LATENCY.observe(seconds)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware that records HTTP request metrics."""

    async def dispatch(self, request: Request, call_next):
        ACTIVE_REQUESTS.inc()
        start = time.time()

        try:
            response = await call_next(request)
        except Exception:
            ACTIVE_REQUESTS.dec()
            raise

        duration = time.time() - start
        endpoint = request.url.path

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)
        ACTIVE_REQUESTS.dec()

        return response


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
