"""
Document endpoints consumed by the search indexer.
"""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from sitesearch.access.evaluator import AccessDecision, Requester
from sitesearch.api.auth import verify_api_key
from sitesearch.api.dependencies import get_search_service
from sitesearch.api.models import (
    AccessRequest,
    AccessResponse,
    DocumentListResponse,
    DocumentResponse,
    ErrorResponse,
)
from sitesearch.search.service import SearchAreaService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        422: {"model": ErrorResponse, "description": "Validation error"},
    },
    summary="List documents modified since a timestamp",
    description="Index records ordered by modification time, oldest first.",
)
async def list_documents(
    modified_since: int = Query(default=0, ge=0, description="Unix timestamp (inclusive)"),
    last_indexed: int | None = Query(default=None, ge=0, description="Last index time, for is_new"),
    limit: int | None = Query(default=None, ge=1, le=5000, description="Maximum rows"),
    api_key: str = Depends(verify_api_key),
    service: SearchAreaService = Depends(get_search_service),
) -> DocumentListResponse:
    start = time.perf_counter()
    docs = await service.list_modified_since(modified_since, limit=limit)
    records = [service.to_index_document(d, last_indexed) for d in docs]
    latency = (time.perf_counter() - start) * 1000

    logger.info("document_list", modified_since=modified_since, total=len(records), latency_ms=round(latency, 2))

    return DocumentListResponse(
        documents=records,
        total=len(records),
        modified_since=modified_since,
        latency_ms=round(latency, 2),
    )


@router.get(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid API key"},
        404: {"model": ErrorResponse, "description": "Document not found"},
    },
    summary="Get document",
)
async def get_document(
    document_id: int,
    api_key: str = Depends(verify_api_key),
    service: SearchAreaService = Depends(get_search_service),
) -> DocumentResponse:
    doc = await service.get_by_id(document_id)
    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document '{document_id}' not found",
        )
    return DocumentResponse(document=doc, index=service.to_index_document(doc))


@router.post(
    "/documents/{document_id}/access",
    response_model=AccessResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid API key"}},
    summary="Check access to a document",
    description="Missing documents are denied rather than reported as 404.",
)
async def check_access(
    document_id: int,
    body: AccessRequest,
    api_key: str = Depends(verify_api_key),
    service: SearchAreaService = Depends(get_search_service),
) -> AccessResponse:
    requester = Requester(roles=body.roles, years=body.years, is_site_admin=body.is_site_admin)
    decision = await service.check_access(document_id, requester)

    logger.info("access_check", document_id=document_id, decision=decision.value)

    return AccessResponse(
        document_id=document_id,
        decision=decision.value,
        granted=decision == AccessDecision.GRANTED,
    )
