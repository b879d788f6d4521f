"""Source adapters - external sites, quick links and the user directory."""

from sitesearch.ingestion.base_adapter import BaseSourceAdapter, Snapshot
from sitesearch.ingestion.quicklinks_adapter import QuickLinksAdapter
from sitesearch.ingestion.site_adapter import ExternalSiteAdapter
from sitesearch.ingestion.user_adapter import DatabaseUserDirectory, UserDirectoryAdapter

__all__ = [
    "BaseSourceAdapter",
    "DatabaseUserDirectory",
    "ExternalSiteAdapter",
    "QuickLinksAdapter",
    "Snapshot",
    "UserDirectoryAdapter",
]
