"""Storage layer for the documents table."""

from sitesearch.storage.database import Database
from sitesearch.storage.repository import DocumentRepository

__all__ = ["Database", "DocumentRepository"]
