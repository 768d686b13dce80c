"""News router -- trigger a headline ingestion pass."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from contentguard.service import ModerationService
from web.backend.app.deps import get_service
from web.backend.app.models.api import FetchNewsResponse

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["news"])


async def _run_fetch(service: ModerationService) -> None:
    if not await service.fetch_news():
        log.warning("Background news fetch did not complete")


@router.post(
    "/fetch-news",
    response_model=FetchNewsResponse,
    summary="Fetch headline articles and queue them for moderation",
    status_code=status.HTTP_202_ACCEPTED,
)
async def fetch_news(
    background: BackgroundTasks,
    service: ModerationService = Depends(get_service),
):
    background.add_task(_run_fetch, service)
    return FetchNewsResponse(message="News fetching process started")
