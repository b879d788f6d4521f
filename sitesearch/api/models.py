"""
Request and response models for the document API.
"""

from pydantic import BaseModel, Field

from sitesearch.documents.schemas import Document
from sitesearch.search.service import IndexDocument


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(..., description="Error message")
    error_type: str = Field(default="error", description="Error type")


class ComponentHealth(BaseModel):
    """Health of one infrastructure component."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = None
    details: dict = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Overall status: healthy or unhealthy")
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    version: str = "0.1.0"


class DocumentResponse(BaseModel):
    """A stored document together with its index record."""

    document: Document
    index: IndexDocument


class DocumentListResponse(BaseModel):
    """Index records of documents modified since a timestamp."""

    documents: list[IndexDocument]
    total: int
    modified_since: int
    latency_ms: float


class AccessRequest(BaseModel):
    """Requester attributes for an access check."""

    roles: list[str] | str = Field(
        default_factory=list,
        description="Campus roles (list or comma-separated)",
    )
    years: list[str] | str = Field(
        default_factory=list,
        description="Year levels (list or comma-separated)",
    )
    is_site_admin: bool = False


class AccessResponse(BaseModel):
    document_id: int
    decision: str
    granted: bool
