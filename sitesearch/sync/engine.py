"""
Reconciliation engine.

Brings the stored rows of one source in line with that source's snapshot
using the fewest writes:

1. Evictions requested by the adapter are deleted (scoped to the source).
2. An empty snapshot stops here: it usually means the fetch failed, so it
   is never read as "delete everything".
3. Stored rows whose extid is not in the snapshot are deleted.
4. New extids are inserted; existing ones are updated in place only when
   their change key differs.

Running the same snapshot twice performs no writes on the second pass.
"""

import asyncio
from typing import Protocol

import structlog

from sitesearch.documents.schemas import Document
from sitesearch.errors import StoreError
from sitesearch.ingestion.base_adapter import Snapshot
from sitesearch.sync.schemas import SyncResult

logger = structlog.get_logger(__name__)


class DocumentStore(Protocol):
    """The repository operations the engine relies on."""

    async def get_by_source(self, source: str) -> list[Document]: ...

    async def insert(self, doc: Document) -> int: ...

    async def update(self, doc_id: int, doc: Document) -> bool: ...

    async def delete_ids(self, doc_ids: list[int]) -> int: ...

    async def delete_by_extids(self, source: str, extids: list[str]) -> int: ...


class ReconciliationEngine:
    """
    Applies snapshots to the documents table.

    Passes over the same source are serialized with a per-source lock;
    different sources proceed independently and never touch each other's
    rows.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, source: str) -> asyncio.Lock:
        return self._locks.setdefault(source, asyncio.Lock())

    async def reconcile(self, snapshot: Snapshot) -> SyncResult:
        """
        Reconcile one snapshot.

        A StoreError aborts the remaining writes for this source; writes
        already made are kept and the error is reported in the result.
        """
        result = SyncResult(source=snapshot.source, dropped=snapshot.dropped)

        if snapshot.skipped:
            result.skipped = True
            logger.info("Source unchanged, nothing to reconcile", source=snapshot.source)
            return result

        async with self._lock_for(snapshot.source):
            try:
                await self._apply(snapshot, result)
            except StoreError as e:
                result.error = f"StoreError: {e}"
                logger.error(
                    "Store failure, remaining writes for source aborted",
                    source=snapshot.source,
                    added=result.added,
                    updated=result.updated,
                    deleted=result.deleted,
                    error=str(e),
                )
                return result

        logger.info(
            "Source reconciled",
            source=snapshot.source,
            added=result.added,
            updated=result.updated,
            deleted=result.deleted,
            evicted=result.evicted,
            unchanged=result.unchanged,
            dropped=result.dropped,
        )
        return result

    def _incoming(self, snapshot: Snapshot, result: SyncResult) -> dict[str, Document]:
        """Index the snapshot by extid, dropping foreign-source and duplicate documents."""
        incoming: dict[str, Document] = {}
        for doc in snapshot.documents:
            if doc.source != snapshot.source:
                result.dropped += 1
                logger.warning(
                    "Document source does not match snapshot, dropping",
                    source=snapshot.source,
                    document_source=doc.source,
                    extid=doc.extid,
                )
                continue
            if doc.extid in incoming:
                result.dropped += 1
                logger.warning("Duplicate extid in snapshot, keeping first", source=snapshot.source, extid=doc.extid)
                continue
            incoming[doc.extid] = doc
        return incoming

    async def _apply(self, snapshot: Snapshot, result: SyncResult) -> None:
        source = snapshot.source
        incoming = self._incoming(snapshot, result)

        if snapshot.evictions:
            result.evicted = await self._store.delete_by_extids(source, list(snapshot.evictions))
            if result.evicted:
                logger.info("Evicted documents", source=source, count=result.evicted)

        if not incoming:
            logger.warning("Empty snapshot, stored documents left untouched", source=source)
            return

        stored = {doc.extid: doc for doc in await self._store.get_by_source(source)}

        stale_ids = [doc.id for extid, doc in stored.items() if extid not in incoming]
        if stale_ids:
            logger.info("Deleting missing documents", source=source, ids=stale_ids)
            result.deleted = await self._store.delete_ids(stale_ids)

        for extid, doc in incoming.items():
            existing = stored.get(extid)
            if existing is None:
                logger.debug("Adding new document", source=source, extid=extid)
                await self._store.insert(doc)
                result.added += 1
            elif existing.change_key != doc.change_key:
                logger.debug("Updating document", source=source, extid=extid, id=existing.id)
                await self._store.update(existing.id, doc)
                result.updated += 1
            else:
                result.unchanged += 1
