"""Observability layer - logging and metrics."""

from sitesearch.observability.logging import setup_logging
from sitesearch.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
