"""
Prometheus metrics for monitoring the sync pipeline.

Defines and exposes metrics for:
- Documents written to the store (added, updated, deleted, evicted)
- Fetch and store errors
- Per-source sync latency
- Access-control decisions

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging
import time

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from sitesearch.config.settings import get_settings
from sitesearch.documents.schemas import SITE_SOURCE_PREFIX

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


def source_kind(source: str) -> str:
    """Collapse a source tag to a low-cardinality label ("site:<url>" -> "site")."""
    if source.startswith(SITE_SOURCE_PREFIX):
        return "site"
    return source


class MetricsCollector:
    """
    Prometheus metrics collector for the sync pipeline.

    Usage:
        metrics = get_metrics()
        metrics.start_server()
        metrics.record_writes("quicklink", added=3, updated=1, deleted=0)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.documents_written = Counter(
            "sitesearch_documents_written_total",
            "Total store writes performed by reconciliation",
            ["source_kind", "action"],  # action: added, updated, deleted, evicted
        )

        self.documents_dropped = Counter(
            "sitesearch_documents_dropped_total",
            "Documents dropped during normalization",
            ["source_kind"],
        )

        self.sync_errors = Counter(
            "sitesearch_sync_errors_total",
            "Total errors raised while syncing a source",
            ["source_kind", "error_type"],
        )

        self.sync_latency = Histogram(
            "sitesearch_sync_latency_seconds",
            "Time to fetch and reconcile one source",
            ["source_kind"],
            buckets=LATENCY_BUCKETS,
        )

        self.sync_skipped = Counter(
            "sitesearch_sync_skipped_total",
            "Sources whose snapshot was skipped as unchanged",
            ["source_kind"],
        )

        self.last_run_timestamp = Gauge(
            "sitesearch_last_run_timestamp_seconds",
            "Unix time of the last completed sync run",
        )

        self.access_decisions = Counter(
            "sitesearch_access_decisions_total",
            "Access-control decisions made at query time",
            ["source_kind", "decision"],
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_writes(
        self,
        source: str,
        added: int = 0,
        updated: int = 0,
        deleted: int = 0,
        evicted: int = 0,
    ) -> None:
        """Record store writes for one reconciliation pass."""
        kind = source_kind(source)
        for action, count in (
            ("added", added),
            ("updated", updated),
            ("deleted", deleted),
            ("evicted", evicted),
        ):
            if count:
                self.documents_written.labels(source_kind=kind, action=action).inc(count)

    def record_dropped(self, source: str, count: int) -> None:
        if count:
            self.documents_dropped.labels(source_kind=source_kind(source)).inc(count)

    def record_error(self, source: str, error_type: str) -> None:
        """Record a sync error for a source."""
        self.sync_errors.labels(
            source_kind=source_kind(source),
            error_type=error_type,
        ).inc()

    def record_latency(self, source: str, latency: float) -> None:
        self.sync_latency.labels(source_kind=source_kind(source)).observe(latency)

    def record_skipped(self, source: str) -> None:
        self.sync_skipped.labels(source_kind=source_kind(source)).inc()

    def record_run_completed(self) -> None:
        self.last_run_timestamp.set(time.time())

    def record_access_decision(self, source: str, granted: bool) -> None:
        self.access_decisions.labels(
            source_kind=source_kind(source),
            decision="granted" if granted else "denied",
        ).inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
