"""Application configuration."""

from sitesearch.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
