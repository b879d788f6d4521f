"""
Sync service - one full reconciliation run across every source.

Builds an adapter per configured source, collects their snapshots
concurrently, then reconciles each snapshot in turn. A failing source is
logged, counted and reported; it never stops the others.
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone

import structlog

from sitesearch.config.settings import get_settings
from sitesearch.errors import FetchError, SyncError
from sitesearch.ingestion.base_adapter import BaseSourceAdapter, Snapshot
from sitesearch.ingestion.http_client import HTTPClient, RetryConfig
from sitesearch.ingestion.quicklinks_adapter import QuickLinksAdapter
from sitesearch.ingestion.site_adapter import ExternalSiteAdapter
from sitesearch.ingestion.user_adapter import DatabaseUserDirectory, UserDirectoryAdapter
from sitesearch.observability.logging import bind_context, clear_context
from sitesearch.observability.metrics import get_metrics
from sitesearch.storage.database import Database
from sitesearch.storage.repository import DocumentRepository
from sitesearch.sync.config import SyncConfig
from sitesearch.sync.engine import DocumentStore, ReconciliationEngine
from sitesearch.sync.schemas import RunReport, SyncResult

logger = structlog.get_logger(__name__)


class SyncService:
    """
    Orchestrates a sync run.

    Usage:
        async with Database() as db:
            service = SyncService(db)
            report = await service.run()
    """

    def __init__(
        self,
        database: Database,
        config: SyncConfig | None = None,
        repository: DocumentStore | None = None,
        adapters: list[BaseSourceAdapter] | None = None,
    ):
        """
        Initialize the sync service.

        Args:
            database: Connected database (documents and user directory)
            config: Sync configuration (or load from environment)
            repository: Document store override
            adapters: Adapters to run instead of the configured ones
        """
        self._db = database
        self._config = config or SyncConfig()
        self._repository = repository or DocumentRepository(database)
        self._engine = ReconciliationEngine(self._repository)
        self._adapters = adapters
        self._metrics = get_metrics()

    def _http_client(self) -> HTTPClient:
        settings = get_settings()
        return HTTPClient(
            retry_config=RetryConfig(
                max_retries=settings.max_http_retries,
                max_backoff_seconds=settings.max_backoff_seconds,
            ),
            timeout=self._config.fetch_timeout_seconds,
        )

    def _create_adapters(self, client: HTTPClient) -> list[BaseSourceAdapter]:
        """Create adapters for every configured source."""
        adapters: list[BaseSourceAdapter] = []

        endpoints = self._config.site_endpoints
        if endpoints and not self._config.secret:
            logger.warning("No shared secret configured for external sites")
        for endpoint in endpoints:
            adapters.append(ExternalSiteAdapter(
                endpoint,
                self._config.secret,
                client,
                excerpt_length=self._config.excerpt_length,
            ))

        if self._config.quicklinks_path:
            adapters.append(QuickLinksAdapter(self._config.quicklinks_path, self._repository))
        else:
            logger.info("Quick links not configured")

        if self._config.users_enabled:
            adapters.append(UserDirectoryAdapter(
                DatabaseUserDirectory(self._db, self._config.user_table),
                profile_url=self._config.user_profile_url,
            ))

        return adapters

    async def _collect(
        self,
        adapter: BaseSourceAdapter,
        semaphore: asyncio.Semaphore,
    ) -> Snapshot | SyncResult:
        """Fetch one source's snapshot, or a failed result when it cannot be had."""
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    adapter.snapshot(),
                    timeout=self._config.fetch_deadline_seconds,
                )
            except asyncio.TimeoutError:
                error: Exception = FetchError(
                    f"Snapshot not complete within {self._config.fetch_deadline_seconds}s",
                    source=adapter.source,
                )
            except SyncError as e:
                error = e
            except Exception as e:
                logger.exception("Unexpected adapter failure", source=adapter.source)
                error = e

        logger.error(
            "Source skipped",
            source=adapter.source,
            error_type=type(error).__name__,
            error=str(error),
        )
        self._metrics.record_error(adapter.source, type(error).__name__)
        return SyncResult(source=adapter.source, error=f"{type(error).__name__}: {error}")

    async def run(self) -> RunReport:
        """
        Run one full sync across all sources.

        Returns:
            RunReport with per-source counts and failures
        """
        report = RunReport()
        bind_context(run_id=uuid.uuid4().hex[:12])

        try:
            async with self._http_client() as client:
                adapters = self._adapters if self._adapters is not None else self._create_adapters(client)
                logger.info("Sync run started", sources=[a.source for a in adapters])

                semaphore = asyncio.Semaphore(self._config.fetch_concurrency)
                start_times = {a.source: time.monotonic() for a in adapters}
                outcomes = await asyncio.gather(
                    *(self._collect(adapter, semaphore) for adapter in adapters)
                )

            for outcome in outcomes:
                if isinstance(outcome, SyncResult):
                    report.results.append(outcome)
                    continue

                result = await self._engine.reconcile(outcome)
                report.results.append(result)
                self._record(result, time.monotonic() - start_times[result.source])

            report.finished_at = datetime.now(timezone.utc)
            self._metrics.record_run_completed()
            logger.info("Sync run finished", **report.totals)
            return report
        finally:
            clear_context()

    def _record(self, result: SyncResult, elapsed: float) -> None:
        self._metrics.record_latency(result.source, elapsed)
        self._metrics.record_dropped(result.source, result.dropped)
        self._metrics.record_writes(
            result.source,
            added=result.added,
            updated=result.updated,
            deleted=result.deleted,
            evicted=result.evicted,
        )
        if result.skipped:
            self._metrics.record_skipped(result.source)
        if result.failed:
            self._metrics.record_error(result.source, "StoreError")
