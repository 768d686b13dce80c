"""Stats router -- the latest aggregate counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from contentguard.errors import ContentGuardError
from contentguard.service import ModerationService
from web.backend.app.deps import get_service, http_error
from web.backend.app.models.api import StatsResponse

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats", response_model=StatsResponse, summary="Latest aggregate stats")
async def latest_stats(service: ModerationService = Depends(get_service)):
    try:
        stats = await service.latest_stats()
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return StatsResponse(**stats.to_dict())
