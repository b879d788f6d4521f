"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from sitesearch.api.app import create_app
from sitesearch.api.auth import verify_api_key
from sitesearch.api.dependencies import get_database, get_search_service
from sitesearch.search.service import SearchAreaService


@pytest.fixture
def search_service(store):
    """SearchAreaService over the in-memory store."""
    return SearchAreaService(store)


@pytest.fixture
def mock_database():
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def client(search_service, mock_database):
    """Test client with auth bypassed and dependencies overridden."""
    app = create_app()
    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    app.dependency_overrides[get_search_service] = lambda: search_service
    app.dependency_overrides[get_database] = lambda: mock_database
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
