"""Read-side query service for the search indexer."""

from sitesearch.search.service import IndexDocument, SearchAreaService

__all__ = ["IndexDocument", "SearchAreaService"]
