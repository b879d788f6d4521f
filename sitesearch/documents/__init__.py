"""Canonical document model shared by every source."""

from sitesearch.documents.schemas import (
    QUICKLINK_SOURCE,
    SITE_SOURCE_PREFIX,
    USER_SOURCE,
    Document,
    build_document,
    normalize_audiences,
    site_source,
)

__all__ = [
    "Document",
    "QUICKLINK_SOURCE",
    "SITE_SOURCE_PREFIX",
    "USER_SOURCE",
    "build_document",
    "normalize_audiences",
    "site_source",
]
