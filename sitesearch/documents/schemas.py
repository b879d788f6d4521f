"""
Canonical document schema for the search table.

Every source adapter produces this exact structure and the reconciliation
engine persists it column for column into the `documents` table. Field names
match the table columns; do not rename one without the other.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sitesearch.errors import ValidationError

QUICKLINK_SOURCE = "quicklink"
USER_SOURCE = "user"
SITE_SOURCE_PREFIX = "site:"


def site_source(endpoint: str) -> str:
    """Source tag for documents fetched from an external endpoint."""
    return f"{SITE_SOURCE_PREFIX}{endpoint.strip()}"


def normalize_audiences(value: str | Iterable[str] | None) -> list[str]:
    """
    Normalize an audience descriptor into an ordered set of tokens.

    Accepts a comma-separated string or an iterable of tokens. Tokens are
    stripped and lower-cased; empty tokens and repeats are dropped, keeping
    first-seen order.
    """
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.split(",")
    else:
        raw = [str(v) for v in value]

    tokens: list[str] = []
    for token in raw:
        token = token.strip().lower()
        if token and token not in tokens:
            tokens.append(token)
    return tokens


class Document(BaseModel):
    """A single indexable unit, keyed by (source, extid)."""

    # Storage identity, assigned by the store on insert
    id: int | None = Field(default=None, description="Storage id; never changes once set")

    # Source identity
    source: str = Field(..., description="Producing source tag (site:<endpoint>, quicklink, user)")
    extid: str = Field(..., description="Identifier unique within the source")

    # Display
    author: str = Field(default="", description="Always empty; external authors are not stored")
    title: str = ""
    url: str = ""

    # Access control and search metadata
    audiences: list[str] = Field(default_factory=list)
    keywords: str = ""

    # Content: never the raw body. Identity hash for users, otherwise empty.
    content: str = ""
    excerpt: str = ""

    # Timestamps from the originating system (Unix seconds)
    timecreated: int = Field(default=0, ge=0)
    timemodified: int = Field(default=0, ge=0)

    @field_validator("source", "extid", mode="before")
    @classmethod
    def _require_identity(cls, v: Any) -> str:
        if v is None:
            raise ValueError("must not be empty")
        v = str(v).strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("audiences", mode="before")
    @classmethod
    def _normalize_audiences(cls, v: Any) -> list[str]:
        return normalize_audiences(v)

    @field_validator("title", "url", "keywords", "excerpt", "content", "author", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("timecreated", "timemodified", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        return int(v)

    @property
    def key(self) -> tuple[str, str]:
        """Store-wide unique key."""
        return (self.source, self.extid)

    @property
    def audiences_str(self) -> str:
        """Audiences in their persisted comma-joined form."""
        return ",".join(self.audiences)

    @property
    def change_key(self) -> tuple:
        """
        Value compared against the stored row to decide update vs no-op.

        Users compare on their identity hash, quick links on modification
        time or URL, everything else on modification time.
        """
        if self.source == USER_SOURCE:
            return (self.content,)
        if self.source == QUICKLINK_SOURCE:
            return (self.timemodified, self.url)
        return (self.timemodified,)


def build_document(**fields: Any) -> Document:
    """
    Build a Document, converting model validation failures to ValidationError.

    Raises:
        ValidationError: if source or extid is empty or a field cannot be coerced
    """
    try:
        return Document(**fields)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(
            f"Invalid document ({problems})",
            source=fields.get("source"),
        ) from e
