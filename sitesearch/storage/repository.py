"""Database repository for the documents table."""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import asyncpg

from sitesearch.documents.schemas import Document
from sitesearch.errors import StoreError
from sitesearch.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    id           BIGSERIAL PRIMARY KEY,
    source       TEXT NOT NULL,
    extid        TEXT NOT NULL,
    author       TEXT NOT NULL DEFAULT '',
    title        TEXT NOT NULL DEFAULT '',
    url          TEXT NOT NULL DEFAULT '',
    audiences    TEXT NOT NULL DEFAULT '',
    keywords     TEXT NOT NULL DEFAULT '',
    content      TEXT NOT NULL DEFAULT '',
    excerpt      TEXT NOT NULL DEFAULT '',
    timecreated  BIGINT NOT NULL DEFAULT 0,
    timemodified BIGINT NOT NULL DEFAULT 0,
    CONSTRAINT uq_documents_source_extid UNIQUE (source, extid)
);

CREATE INDEX IF NOT EXISTS idx_documents_timemodified
    ON documents(timemodified);
CREATE INDEX IF NOT EXISTS idx_documents_source
    ON documents(source);
"""

_INSERT_SQL = """
INSERT INTO documents (
    source, extid, author, title, url, audiences,
    keywords, content, excerpt, timecreated, timemodified
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
RETURNING id
"""

# source and extid are never updated
_UPDATE_SQL = """
UPDATE documents SET
    author = $2,
    title = $3,
    url = $4,
    audiences = $5,
    keywords = $6,
    content = $7,
    excerpt = $8,
    timecreated = $9,
    timemodified = $10
WHERE id = $1
"""


def _record_to_document(record) -> Document:
    """Convert an asyncpg Record to a Document."""
    return Document(
        id=record["id"],
        source=record["source"],
        extid=record["extid"],
        author=record["author"],
        title=record["title"],
        url=record["url"],
        audiences=record["audiences"],
        keywords=record["keywords"],
        content=record["content"],
        excerpt=record["excerpt"],
        timecreated=record["timecreated"],
        timemodified=record["timemodified"],
    )


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg status string ("DELETE 3" -> 3)."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into StoreError."""
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        raise StoreError(f"{operation} failed: {e}") from e


class DocumentRepository:
    """CRUD operations for the documents table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_tables(self) -> None:
        """Create the documents table and indexes (idempotent)."""
        with _store_errors("create_tables"):
            await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Documents table ensured")

    async def get_by_source(self, source: str) -> list[Document]:
        """Fetch every stored document for a source."""
        with _store_errors("get_by_source"):
            rows = await self._db.fetch(
                "SELECT * FROM documents WHERE source = $1 ORDER BY id",
                source,
            )
        return [_record_to_document(r) for r in rows]

    async def get_by_key(self, source: str, extid: str) -> Document | None:
        """Fetch a single document by source and external id."""
        with _store_errors("get_by_key"):
            row = await self._db.fetchrow(
                "SELECT * FROM documents WHERE source = $1 AND extid = $2",
                source, extid,
            )
        return _record_to_document(row) if row else None

    async def get_by_id(self, doc_id: int) -> Document | None:
        """Fetch a single document by storage id."""
        with _store_errors("get_by_id"):
            row = await self._db.fetchrow(
                "SELECT * FROM documents WHERE id = $1",
                doc_id,
            )
        return _record_to_document(row) if row else None

    async def insert(self, doc: Document) -> int:
        """
        Insert a new document.

        Returns:
            The storage id assigned by the database
        """
        with _store_errors("insert"):
            return await self._db.fetchval(
                _INSERT_SQL,
                doc.source,
                doc.extid,
                doc.author,
                doc.title,
                doc.url,
                doc.audiences_str,
                doc.keywords,
                doc.content,
                doc.excerpt,
                doc.timecreated,
                doc.timemodified,
            )

    async def update(self, doc_id: int, doc: Document) -> bool:
        """Overwrite the mutable columns of an existing row. Returns True if a row changed."""
        with _store_errors("update"):
            result = await self._db.execute(
                _UPDATE_SQL,
                doc_id,
                doc.author,
                doc.title,
                doc.url,
                doc.audiences_str,
                doc.keywords,
                doc.content,
                doc.excerpt,
                doc.timecreated,
                doc.timemodified,
            )
        return _affected_rows(result) == 1

    async def delete_ids(self, doc_ids: Sequence[int]) -> int:
        """Delete rows by storage id. Returns the number of rows removed."""
        if not doc_ids:
            return 0
        with _store_errors("delete_ids"):
            result = await self._db.execute(
                "DELETE FROM documents WHERE id = ANY($1::bigint[])",
                list(doc_ids),
            )
        return _affected_rows(result)

    async def delete_by_extids(self, source: str, extids: Sequence[str]) -> int:
        """
        Delete rows of one source by external id.

        Always scoped by source: the same extid under another source is
        never touched.
        """
        if not extids:
            return 0
        with _store_errors("delete_by_extids"):
            result = await self._db.execute(
                "DELETE FROM documents WHERE source = $1 AND extid = ANY($2::text[])",
                source,
                list(extids),
            )
        return _affected_rows(result)

    async def list_modified_since(
        self,
        timestamp: int = 0,
        limit: int | None = None,
    ) -> list[Document]:
        """Documents modified at or after `timestamp`, oldest first."""
        sql = "SELECT * FROM documents WHERE timemodified >= $1 ORDER BY timemodified ASC, id ASC"
        params: list = [timestamp]
        if limit is not None:
            sql += " LIMIT $2"
            params.append(limit)

        with _store_errors("list_modified_since"):
            rows = await self._db.fetch(sql, *params)
        return [_record_to_document(r) for r in rows]

    async def count_by_source(self) -> dict[str, int]:
        """Row counts grouped by source."""
        with _store_errors("count_by_source"):
            rows = await self._db.fetch(
                "SELECT source, COUNT(*) AS count FROM documents GROUP BY source ORDER BY source"
            )
        return {r["source"]: r["count"] for r in rows}
