"""
Quick-links adapter.

Reads the quick-links configuration (a JSON file exported from the site's
links block) and produces one document per link. Two layouts are accepted:

Parallel sequences, one list per field and link group:
    {"iconlinklabel": [...], "iconlinkurl": [...], "iconlinkid": [...],
     "iconlinkcampusroles": [...], "iconlinkyear": [...],
     "textlinklabel": [...], ...}

One row per link:
    {"links": [{"id": ..., "label": ..., "url": ..., "roles": ..., "year": ...}]}

Either layout may be wrapped as {"configdata": "<base64 JSON>", "timecreated":
..., "timemodified": ...}. The blob is decoded here and never passed on.
"""

import base64
import binascii
import json
import logging
import re
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sitesearch.documents.schemas import QUICKLINK_SOURCE, Document, build_document
from sitesearch.errors import FetchError, ParseError, ValidationError
from sitesearch.ingestion.base_adapter import BaseSourceAdapter
from sitesearch.storage.repository import DocumentRepository

logger = logging.getLogger(__name__)

# Site-section names that appear in role descriptors but are not roles.
NOISE_WORDS = frozenset({
    "senior",
    "school",
    "early",
    "learning",
    "centre",
    "southside",
    "northside",
    "junior",
    "primary",
    "whole",
    "future",
})

WILDCARD = "*"
KNOWN_ROLES = ("staff", "students", "parents", "admin")

_SEPARATORS = re.compile(r"\.\*|[,:]")

_LINK_GROUPS = ("iconlink", "textlink")


def format_audience(roles: str, years: str = "") -> list[str]:
    """
    Normalize a link's role and year descriptors into audience tokens.

    Separators (`,` `:` `.*`) become whitespace, noise words are removed,
    repeats are dropped and a bare `*` is kept and expanded to every known
    role.

    Example:
        format_audience("Senior School:Staff, *", "") ->
            ["staff", "*", "students", "parents", "admin"]
    """
    text = _SEPARATORS.sub(" ", f"{roles or ''} {years or ''}".lower())

    tokens: list[str] = []
    for token in text.split():
        if token in NOISE_WORDS:
            continue
        expanded = [WILDCARD, *KNOWN_ROLES] if token == WILDCARD else [token]
        for t in expanded:
            if t not in tokens:
                tokens.append(t)
    return tokens


class QuickLink(BaseModel):
    """A single configured link."""

    id: str = ""
    label: str = ""
    url: str = ""
    roles: str = ""
    year: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return ",".join(str(i) for i in v)
        return str(v)


class QuickLinksConfig(BaseModel):
    """Decoded quick-links configuration."""

    links: list[QuickLink] = Field(default_factory=list)
    timecreated: int = 0
    timemodified: int = 0


def _at(values: Any, index: int) -> Any:
    if isinstance(values, dict):
        return values.get(str(index), values.get(index))
    if isinstance(values, list) and index < len(values):
        return values[index]
    return None


def _decode_blob(blob: Any) -> dict[str, Any]:
    if not isinstance(blob, str):
        raise ParseError("Quick-links configdata is not a string")
    try:
        decoded = json.loads(base64.b64decode(blob, validate=True))
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"Undecodable quick-links configdata: {e}") from e
    if not isinstance(decoded, dict):
        raise ParseError("Quick-links configdata is not an object")
    return decoded


def decode_quicklinks(raw: dict[str, Any]) -> QuickLinksConfig:
    """
    Decode either layout (optionally base64 wrapped) into a QuickLinksConfig.

    Raises:
        ParseError: the configuration is not in a recognised shape
    """
    if not isinstance(raw, dict):
        raise ParseError("Quick-links configuration is not an object")

    data = _decode_blob(raw["configdata"]) if "configdata" in raw else raw

    links: list[QuickLink] = []
    try:
        for group in _LINK_GROUPS:
            labels = data.get(f"{group}label") or []
            indexes = labels.keys() if isinstance(labels, dict) else range(len(labels))
            for index in indexes:
                index = int(index)
                links.append(QuickLink(
                    id=_at(data.get(f"{group}id"), index),
                    label=_at(labels, index),
                    url=_at(data.get(f"{group}url"), index),
                    roles=_at(data.get(f"{group}campusroles"), index),
                    year=_at(data.get(f"{group}year"), index),
                ))

        for row in data.get("links") or []:
            links.append(QuickLink(**row))

        return QuickLinksConfig(
            links=links,
            timecreated=raw.get("timecreated", data.get("timecreated", 0)) or 0,
            timemodified=raw.get("timemodified", data.get("timemodified", 0)) or 0,
        )
    except (PydanticValidationError, TypeError, ValueError) as e:
        raise ParseError(f"Malformed quick-links configuration: {e}") from e


def _raw_link(link: QuickLink, config: QuickLinksConfig) -> dict[str, Any]:
    return {
        "link": link,
        "timecreated": config.timecreated,
        "timemodified": config.timemodified,
    }


def load_quicklinks(path: Path) -> QuickLinksConfig:
    """
    Read and decode the quick-links configuration file.

    Raises:
        FetchError: the file cannot be read
        ParseError: the file is not valid JSON or not a known layout
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise FetchError(f"Cannot read quick-links file {path}: {e}", source=QUICKLINK_SOURCE) from e
    except ValueError as e:
        raise ParseError(f"Quick-links file {path} is not valid JSON: {e}", source=QUICKLINK_SOURCE) from e
    return decode_quicklinks(raw)


class QuickLinksAdapter(BaseSourceAdapter):
    """
    Adapter for the quick-links configuration.

    Skips the whole source when every stored quick-link row carries the
    configuration's timemodified and the stored extids are exactly the
    configuration's links; otherwise the engine upserts per link.
    """

    def __init__(self, path: Path, repository: DocumentRepository):
        super().__init__()
        self._path = Path(path)
        self._repository = repository
        self._config: QuickLinksConfig | None = None

    @property
    def source(self) -> str:
        return QUICKLINK_SOURCE

    async def _should_skip(self) -> bool:
        config = self._config = load_quicklinks(self._path)

        stored = await self._repository.get_by_source(QUICKLINK_SOURCE)
        if not stored or any(doc.timemodified != config.timemodified for doc in stored):
            return False
        # A pass cut short by a store failure leaves links missing or stale.
        return {doc.extid for doc in stored} == self._expected_extids(config)

    def _expected_extids(self, config: QuickLinksConfig) -> set[str]:
        extids: set[str] = set()
        for link in config.links:
            try:
                extids.add(self._transform(_raw_link(link, config)).extid)
            except ValidationError:
                continue
        return extids

    async def _fetch_raw(self) -> AsyncIterator[dict[str, Any]]:
        config = self._config or load_quicklinks(self._path)
        for link in config.links:
            yield _raw_link(link, config)

    def _transform(self, raw: dict[str, Any]) -> Document:
        link: QuickLink = raw["link"]
        return build_document(
            source=QUICKLINK_SOURCE,
            extid=link.id,
            author="",
            title=link.label,
            url=link.url,
            audiences=format_audience(link.roles, link.year),
            content="",
            excerpt="",
            timecreated=raw["timecreated"],
            timemodified=raw["timemodified"],
        )
