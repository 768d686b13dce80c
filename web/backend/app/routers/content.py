"""Content router -- submission, listing, search, and redelivery."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from contentguard.errors import ContentGuardError
from contentguard.models import ContentItem, ContentSubmission
from contentguard.service import ModerationService
from web.backend.app.deps import get_service, http_error
from web.backend.app.models.api import (
    ContentItemResponse,
    RetryResponse,
    SubmitContentRequest,
)

router = APIRouter(prefix="/api", tags=["content"])


def _item_response(item: ContentItem) -> ContentItemResponse:
    return ContentItemResponse(**item.to_dict())


@router.post(
    "/content",
    response_model=ContentItemResponse,
    summary="Submit content for moderation",
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_content(
    body: SubmitContentRequest,
    service: ModerationService = Depends(get_service),
):
    """Store the content and queue it for classification.

    Returns as soon as the item is stored; the analysis arrives later over
    the WebSocket channel and in GET /api/content-analysis.
    """
    try:
        item = await service.submit(ContentSubmission(**body.model_dump()))
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return _item_response(item)


@router.get(
    "/content",
    response_model=list[ContentItemResponse],
    summary="List content, newest first",
)
async def list_content(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: ModerationService = Depends(get_service),
):
    return [_item_response(i) for i in await service.list_contents(limit, offset)]


@router.get(
    "/content/search",
    response_model=list[ContentItemResponse],
    summary="Case-insensitive substring search over content bodies",
)
async def search_content(
    q: str = Query(default=""),
    service: ModerationService = Depends(get_service),
):
    if not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    try:
        items = await service.search_contents(q)
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return [_item_response(i) for i in items]


@router.post(
    "/content/retry",
    response_model=RetryResponse,
    summary="Republish stored content whose analysis publish failed",
)
async def retry_undelivered(service: ModerationService = Depends(get_service)):
    republished = await service.retry_undelivered()
    return RetryResponse(
        republished=republished,
        remaining=len(service.ingestion.undelivered),
    )


@router.get(
    "/content/{content_id}",
    response_model=ContentItemResponse,
    summary="Get one content item",
)
async def get_content(content_id: int, service: ModerationService = Depends(get_service)):
    try:
        item = await service.get_content(content_id)
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return _item_response(item)
