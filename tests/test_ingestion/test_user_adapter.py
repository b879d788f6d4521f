"""Tests for the user directory adapter."""

from unittest.mock import AsyncMock

import pytest

from sitesearch.errors import FetchError
from sitesearch.ingestion.base_adapter import identity_hash
from sitesearch.ingestion.user_adapter import DatabaseUserDirectory, UserDirectoryAdapter


class FakeDirectory:
    def __init__(self, active=None, suspended=None):
        self.active = active or []
        self.suspended = suspended or []

    async def list_active_users(self):
        return self.active

    async def list_suspended_user_ids(self):
        return self.suspended


def _user(user_id, first="Ada", last="Lovelace", username=None, **fields):
    user = {
        "id": user_id,
        "firstname": first,
        "lastname": last,
        "username": username or f"{first.lower()}{user_id}",
        "timecreated": 1600000000,
        "timemodified": 1600000100,
    }
    user.update(fields)
    return user


class TestUserDirectoryAdapter:
    @pytest.mark.asyncio
    async def test_one_document_per_active_user(self):
        directory = FakeDirectory(active=[_user(1), _user(2, "Grace", "Hopper")])

        snapshot = await UserDirectoryAdapter(directory).snapshot()

        assert snapshot.source == "user"
        assert [d.extid for d in snapshot.documents] == ["1", "2"]
        assert snapshot.documents[1].title == "Grace Hopper"

    @pytest.mark.asyncio
    async def test_document_fields(self):
        snapshot = await UserDirectoryAdapter(FakeDirectory(active=[_user(7)])).snapshot()

        doc = snapshot.documents[0]
        assert doc.url == "/user/profile.php?id=7"
        assert doc.audiences == ["staff"]
        assert doc.author == ""
        assert doc.excerpt == ""
        assert doc.timecreated == 1600000000

    @pytest.mark.asyncio
    async def test_content_is_identity_hash(self):
        snapshot = await UserDirectoryAdapter(FakeDirectory(active=[_user(7)])).snapshot()

        doc = snapshot.documents[0]
        assert doc.content == identity_hash(7, "Ada", "Lovelace", "ada7", "/user/profile.php?id=7")
        assert "Lovelace" not in doc.content

    @pytest.mark.asyncio
    async def test_rename_changes_identity_hash(self):
        before = await UserDirectoryAdapter(FakeDirectory(active=[_user(7)])).snapshot()
        after = await UserDirectoryAdapter(
            FakeDirectory(active=[_user(7, last="King", username="ada7")])
        ).snapshot()

        assert before.documents[0].change_key != after.documents[0].change_key

    @pytest.mark.asyncio
    async def test_custom_profile_url(self):
        adapter = UserDirectoryAdapter(
            FakeDirectory(active=[_user(3)]),
            profile_url="https://intranet.example.com/people/{id}",
        )

        snapshot = await adapter.snapshot()

        assert snapshot.documents[0].url == "https://intranet.example.com/people/3"

    @pytest.mark.asyncio
    async def test_suspended_users_reported_as_evictions(self):
        directory = FakeDirectory(active=[_user(1)], suspended=["4", "5"])

        snapshot = await UserDirectoryAdapter(directory).snapshot()

        assert snapshot.evictions == ["4", "5"]

    @pytest.mark.asyncio
    async def test_user_without_id_dropped(self):
        directory = FakeDirectory(active=[_user(None), _user(2)])

        snapshot = await UserDirectoryAdapter(directory).snapshot()

        assert [d.extid for d in snapshot.documents] == ["2"]
        assert snapshot.dropped == 1


class TestDatabaseUserDirectory:
    @pytest.mark.asyncio
    async def test_active_users_as_dicts(self):
        db = AsyncMock()
        db.fetch = AsyncMock(return_value=[_user(1)])

        users = await DatabaseUserDirectory(db, table="mdl_user").list_active_users()

        assert users[0]["firstname"] == "Ada"
        sql = db.fetch.call_args[0][0]
        assert "FROM mdl_user" in sql
        assert "suspended" in sql and "deleted" in sql

    @pytest.mark.asyncio
    async def test_suspended_ids_are_strings(self):
        db = AsyncMock()
        db.fetch = AsyncMock(return_value=[{"id": 4}, {"id": 5}])

        assert await DatabaseUserDirectory(db).list_suspended_user_ids() == ["4", "5"]

    @pytest.mark.asyncio
    async def test_database_failure_is_fetch_error(self):
        db = AsyncMock()
        db.fetch = AsyncMock(side_effect=OSError("connection refused"))

        with pytest.raises(FetchError) as exc_info:
            await DatabaseUserDirectory(db).list_active_users()

        assert exc_info.value.source == "user"
