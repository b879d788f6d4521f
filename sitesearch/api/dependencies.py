"""
Dependency injection for FastAPI endpoints.
"""

from sitesearch.search.service import SearchAreaService
from sitesearch.storage.database import Database
from sitesearch.storage.repository import DocumentRepository

# Global instances (initialized on first request)
_database: Database | None = None
_search_service: SearchAreaService | None = None


async def get_database() -> Database:
    """Get the shared, connected database."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def get_search_service() -> SearchAreaService:
    """Get search-area service instance."""
    global _search_service

    if _search_service is None:
        database = await get_database()
        _search_service = SearchAreaService(DocumentRepository(database))

    return _search_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _search_service

    _search_service = None

    if _database is not None:
        await _database.close()
        _database = None
