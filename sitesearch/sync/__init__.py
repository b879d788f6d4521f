"""Reconciliation of source snapshots into the documents table."""

from sitesearch.sync.config import SyncConfig
from sitesearch.sync.engine import ReconciliationEngine
from sitesearch.sync.schemas import RunReport, SyncResult
from sitesearch.sync.service import SyncService

__all__ = [
    "ReconciliationEngine",
    "RunReport",
    "SyncConfig",
    "SyncResult",
    "SyncService",
]
