"""
User directory adapter.

Publishes one document per active user so staff can find people through
site search. Only the display name and profile URL are stored; change
detection runs on a one-way hash of the identity fields.

Suspended users are reported as evictions and removed from the user source
on every run, independently of the snapshot diff.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import asyncpg

from sitesearch.documents.schemas import USER_SOURCE, Document, build_document
from sitesearch.errors import FetchError
from sitesearch.ingestion.base_adapter import BaseSourceAdapter, identity_hash
from sitesearch.storage.database import Database

logger = logging.getLogger(__name__)

USER_AUDIENCES = ["staff"]

DEFAULT_PROFILE_URL = "/user/profile.php?id={id}"


class UserDirectory(Protocol):
    """Read access to the user roster."""

    async def list_active_users(self) -> list[dict[str, Any]]:
        """Users that are neither suspended nor deleted."""
        ...

    async def list_suspended_user_ids(self) -> list[str]:
        """Ids of suspended (not deleted) users."""
        ...


class DatabaseUserDirectory:
    """
    UserDirectory backed by a user table in PostgreSQL.

    Expects columns: id, firstname, lastname, username, suspended, deleted,
    timecreated, timemodified. `suspended` and `deleted` may be boolean or
    0/1 integers.
    """

    def __init__(self, database: Database, table: str = "users") -> None:
        self._db = database
        self._table = table

    async def list_active_users(self) -> list[dict[str, Any]]:
        try:
            rows = await self._db.fetch(
                f"""
                SELECT id, firstname, lastname, username, timecreated, timemodified
                FROM {self._table}
                WHERE COALESCE(suspended::int, 0) = 0
                  AND COALESCE(deleted::int, 0) = 0
                ORDER BY id
                """
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise FetchError(f"Cannot read users from {self._table}: {e}", source=USER_SOURCE) from e
        return [dict(r) for r in rows]

    async def list_suspended_user_ids(self) -> list[str]:
        try:
            rows = await self._db.fetch(
                f"""
                SELECT id FROM {self._table}
                WHERE COALESCE(suspended::int, 0) <> 0
                  AND COALESCE(deleted::int, 0) = 0
                """
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise FetchError(f"Cannot read suspended users from {self._table}: {e}", source=USER_SOURCE) from e
        return [str(r["id"]) for r in rows]


class UserDirectoryAdapter(BaseSourceAdapter):
    """Adapter turning the active user roster into user-source documents."""

    def __init__(
        self,
        directory: UserDirectory,
        profile_url: str = DEFAULT_PROFILE_URL,
    ):
        super().__init__()
        self._directory = directory
        self._profile_url = profile_url

    @property
    def source(self) -> str:
        return USER_SOURCE

    async def _fetch_raw(self) -> AsyncIterator[dict[str, Any]]:
        for user in await self._directory.list_active_users():
            yield user

    def _transform(self, raw: dict[str, Any]) -> Document:
        user_id = raw.get("id")
        url = self._profile_url.format(id=user_id) if user_id is not None else ""
        firstname = (raw.get("firstname") or "").strip()
        lastname = (raw.get("lastname") or "").strip()

        return build_document(
            source=USER_SOURCE,
            extid=user_id,
            author="",
            title=f"{firstname} {lastname}".strip(),
            url=url,
            audiences=USER_AUDIENCES,
            content=identity_hash(user_id, firstname, lastname, raw.get("username"), url),
            excerpt="",
            timecreated=raw.get("timecreated"),
            timemodified=raw.get("timemodified"),
        )

    async def _evictions(self) -> list[str]:
        suspended = await self._directory.list_suspended_user_ids()
        if suspended:
            logger.info(f"Found {len(suspended)} suspended users to evict")
        return suspended
