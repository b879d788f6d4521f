"""
Base adapter interface and shared functionality for source adapters.

Each source adapter produces a Snapshot: the full current set of documents
for its source. The base class provides:
- Per-item validation (malformed items are dropped, siblings continue)
- Parse-failure handling (payload errors yield an empty snapshot)
- Statistics and logging
- Common text utilities (HTML stripping, excerpts, identity hashing)

Adapters only read. All writes go through the reconciliation engine.
"""

import hashlib
import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup

from sitesearch.documents.schemas import Document
from sitesearch.errors import ParseError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """
    Everything an adapter reports for its source in one run.

    Attributes:
        source: Source tag the documents belong to
        documents: Validated documents (the full current set)
        evictions: extids to remove from this source regardless of the diff
        dropped: Raw items rejected during normalization
        skipped: Source unchanged since last run; reconciliation is a no-op
    """

    source: str
    documents: list[Document] = field(default_factory=list)
    evictions: list[str] = field(default_factory=list)
    dropped: int = 0
    skipped: bool = False


@dataclass
class AdapterStats:
    """Statistics for an adapter run."""

    documents_fetched: int = 0
    documents_dropped: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.monotonic)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.start_time


class BaseSourceAdapter(ABC):
    """
    Abstract base class for source adapters.

    Subclasses must implement:
        - source: Source tag for produced documents
        - _fetch_raw(): Async generator yielding raw records
        - _transform(): Convert one raw record to a Document

    Optional hooks:
        - _should_skip(): Return True to report an unchanged source
        - _evictions(): extids to remove proactively
    """

    def __init__(self) -> None:
        self._stats = AdapterStats()

    @property
    @abstractmethod
    def source(self) -> str:
        """Source tag of the documents this adapter produces."""
        ...

    @property
    def name(self) -> str:
        """Human-readable adapter name."""
        return f"{type(self).__name__}({self.source})"

    @abstractmethod
    def _fetch_raw(self) -> AsyncIterator[dict[str, Any]]:
        """
        Fetch raw records from the source.

        Raises:
            FetchError: the source could not be reached; nothing is reconciled
            ParseError: the payload is unusable; the snapshot becomes empty
        """
        ...

    @abstractmethod
    def _transform(self, raw: dict[str, Any]) -> Document:
        """
        Transform one raw record to a Document.

        Raises:
            ValidationError: the record is malformed and must be dropped
        """
        ...

    async def _should_skip(self) -> bool:
        return False

    async def _evictions(self) -> list[str]:
        return []

    async def snapshot(self) -> Snapshot:
        """
        Build the current snapshot for this adapter's source.

        This is the main entry point called by the sync service.

        Raises:
            FetchError: propagated so the caller can skip the source
        """
        self._stats = AdapterStats()

        documents: list[Document] = []
        try:
            if await self._should_skip():
                logger.info(f"{self.name} unchanged since last run, skipping")
                return Snapshot(source=self.source, skipped=True)

            async for raw in self._fetch_raw():
                try:
                    documents.append(self._transform(raw))
                    self._stats.documents_fetched += 1
                except ValidationError as e:
                    self._stats.documents_dropped += 1
                    logger.warning(f"Dropping malformed document in {self.name}: {e}")
                except Exception as e:
                    self._stats.documents_dropped += 1
                    self._stats.errors += 1
                    logger.error(
                        f"Error transforming document in {self.name}: {e}",
                        exc_info=True,
                    )

        except ParseError as e:
            self._stats.errors += 1
            logger.warning(f"Unusable payload in {self.name}, treating as empty: {e}")
            documents = []

        except Exception as e:
            self._stats.errors += 1
            logger.error(f"Error in {self.name} fetch: {e}")
            raise

        finally:
            logger.info(
                f"{self.name} completed: "
                f"fetched={self._stats.documents_fetched}, "
                f"dropped={self._stats.documents_dropped}, "
                f"errors={self._stats.errors}, "
                f"elapsed={self._stats.elapsed_seconds:.2f}s"
            )

        if not documents:
            logger.warning(f"{self.name} returned no documents")

        return Snapshot(
            source=self.source,
            documents=documents,
            evictions=await self._evictions(),
            dropped=self._stats.documents_dropped,
        )


# Common text utilities used across adapters

def clean_text(text: str) -> str:
    """
    Collapse whitespace and strip control characters.

    Args:
        text: Raw text content

    Returns:
        Cleaned text
    """
    text = " ".join(text.split())
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)
    return text.strip()


def html_to_text(html: str | None) -> str:
    """Strip markup and return whitespace-normalized plain text."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return clean_text(soup.get_text(" "))


def shorten_text(text: str, limit: int, ending: str = "...") -> str:
    """
    Truncate text to at most `limit` characters, ending included.

    Cuts on the last word boundary when there is one and appends `ending`
    only when the text was actually truncated.
    """
    if len(text) <= limit:
        return text

    cut = text[: max(limit - len(ending), 0)]
    if " " in cut:
        cut = cut[: cut.rindex(" ")]
    return cut.rstrip() + ending


def identity_hash(*fields: Any) -> str:
    """
    One-way SHA-256 digest of identity fields.

    Deterministic across processes; used for change detection so the raw
    values never have to be stored.
    """
    joined = "\x1f".join("" if f is None else str(f) for f in fields)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()
