"""HTTP API over synced documents."""

from sitesearch.api.app import create_app

__all__ = ["create_app"]
