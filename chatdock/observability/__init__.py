"""Logging and Prometheus metrics for the API."""

from __future__ import annotations

from chatdock.observability.logging import configure_logging
from chatdock.observability.metrics import (
    CSRF_REJECTIONS,
    MetricsMiddleware,
    metrics_response,
)

__all__ = [
    "CSRF_REJECTIONS",
    "MetricsMiddleware",
    "configure_logging",
    "metrics_response",
]
