"""Tests for X-API-KEY authentication."""

import pytest
from fastapi.testclient import TestClient

from sitesearch.api.app import create_app
from sitesearch.api.dependencies import get_search_service
from sitesearch.config.settings import get_settings


@pytest.fixture
def keyed_client(monkeypatch, search_service):
    monkeypatch.setenv("API_KEYS", "key-one, key-two")
    get_settings.cache_clear()
    app = create_app()
    app.dependency_overrides[get_search_service] = lambda: search_service
    yield TestClient(app)
    get_settings.cache_clear()


def test_missing_key_rejected(keyed_client):
    response = keyed_client.get("/documents")

    assert response.status_code == 401
    assert "Missing API key" in response.json()["detail"]


def test_invalid_key_rejected(keyed_client):
    response = keyed_client.get("/documents", headers={"X-API-KEY": "nope"})

    assert response.status_code == 401


def test_valid_key_accepted(keyed_client):
    response = keyed_client.get("/documents", headers={"X-API-KEY": "key-two"})

    assert response.status_code == 200


def test_dev_mode_without_keys(monkeypatch, search_service):
    monkeypatch.delenv("API_KEYS", raising=False)
    get_settings.cache_clear()
    app = create_app()
    app.dependency_overrides[get_search_service] = lambda: search_service

    response = TestClient(app).get("/documents")

    assert response.status_code == 200
    get_settings.cache_clear()
