"""
Search-area service.

The read side consumed by the site's search indexer: documents modified
since a timestamp, single-document lookup, conversion to index records
and per-document access checks.
"""

import logging

from pydantic import BaseModel

from sitesearch.access.evaluator import AccessDecision, AccessEvaluator, Requester
from sitesearch.documents.schemas import Document
from sitesearch.ingestion.base_adapter import html_to_text
from sitesearch.observability.metrics import get_metrics
from sitesearch.storage.repository import DocumentRepository

logger = logging.getLogger(__name__)


class IndexDocument(BaseModel):
    """Record handed to the search indexer for one stored document."""

    id: int
    source: str
    title: str
    content: str
    url: str
    modified: int
    is_new: bool = False


class SearchAreaService:
    """
    Query interface over the documents table.

    Usage:
        service = SearchAreaService(DocumentRepository(db))
        for doc in await service.list_modified_since(last_run):
            record = service.to_index_document(doc, last_run)
    """

    def __init__(
        self,
        repository: DocumentRepository,
        evaluator: AccessEvaluator | None = None,
    ) -> None:
        self._repo = repository
        self._evaluator = evaluator or AccessEvaluator()

    async def list_modified_since(self, timestamp: int = 0, limit: int | None = None) -> list[Document]:
        return await self._repo.list_modified_since(timestamp, limit=limit)

    async def get_by_id(self, doc_id: int) -> Document | None:
        return await self._repo.get_by_id(doc_id)

    async def check_access(self, doc_id: int, requester: Requester) -> AccessDecision:
        """
        Decide access to a stored document.

        A document that no longer exists is denied, never an error.
        """
        document = await self._repo.get_by_id(doc_id)
        if document is None:
            logger.debug(f"Access check for missing document {doc_id}")
            return AccessDecision.DENIED

        decision = self._evaluator.decide(document, requester)
        get_metrics().record_access_decision(document.source, decision == AccessDecision.GRANTED)
        return decision

    @staticmethod
    def to_index_document(doc: Document, last_indexed_time: int | None = None) -> IndexDocument:
        """
        Convert a stored document to its index record.

        The title is indexed as plain text and the excerpt stands in for the
        content. A document created after the last index time is new.
        """
        if doc.id is None:
            raise ValueError("Only stored documents can be indexed")

        return IndexDocument(
            id=doc.id,
            source=doc.source,
            title=html_to_text(doc.title),
            content=doc.excerpt,
            url=doc.url,
            modified=doc.timemodified,
            is_new=last_indexed_time is not None and last_indexed_time < doc.timecreated,
        )
