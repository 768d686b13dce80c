"""Content analysis router -- review queue and moderator overrides."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from contentguard.errors import ContentGuardError
from contentguard.service import ModerationService
from contentguard.storage.queries import enrich_analysis
from web.backend.app.deps import get_service, http_error
from web.backend.app.models.api import AnalysisResponse, StatusUpdateRequest

router = APIRouter(prefix="/api", tags=["analysis"])


@router.get(
    "/content-analysis",
    response_model=list[AnalysisResponse],
    summary="List analyses with their content, newest first",
)
async def list_analyses(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    status: Optional[str] = Query(default=None, description="Filter by moderation status"),
    service: ModerationService = Depends(get_service),
):
    try:
        analyses = await service.list_analyses(limit, offset, status)
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return [AnalysisResponse(**a) for a in analyses]


@router.patch(
    "/content-analysis/{analysis_id}/status",
    response_model=AnalysisResponse,
    summary="Set the moderation status of an analysis",
)
async def update_status(
    analysis_id: int,
    body: StatusUpdateRequest,
    service: ModerationService = Depends(get_service),
):
    """Moderator override; connected clients receive a content_status_update."""
    try:
        updated = await service.update_status(analysis_id, body.status)
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return AnalysisResponse(**await enrich_analysis(service.storage, updated))
