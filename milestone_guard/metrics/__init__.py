"""Live metrics collaborators."""

from milestone_guard.metrics.fetch import fetch_live_metrics
from milestone_guard.metrics.provider import (
    HttpMetricsProvider,
    MetricsProvider,
    StaticMetricsProvider,
)

__all__ = [
    "MetricsProvider",
    "StaticMetricsProvider",
    "HttpMetricsProvider",
    "fetch_live_metrics",
]
