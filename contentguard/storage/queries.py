"""Read helpers shared by the HTTP layer and the notification fan-out."""

from __future__ import annotations

from typing import Any

from contentguard.models import AnalysisResult, ContentStatus
from contentguard.storage.base import Storage


async def enrich_analysis(storage: Storage, analysis: AnalysisResult) -> dict[str, Any]:
    """Return the analysis as a dict with its ContentItem under ``content``."""
    content = await storage.get_content(analysis.content_id)
    data = analysis.to_dict()
    data["content"] = content.to_dict() if content else None
    return data


async def enriched_analyses(
    storage: Storage,
    limit: int = 10,
    offset: int = 0,
    status: ContentStatus | None = None,
) -> list[dict[str, Any]]:
    analyses = await storage.list_analyses(limit, offset, status)
    return [await enrich_analysis(storage, a) for a in analyses]


async def pending_page(storage: Storage, limit: int = 5) -> list[dict[str, Any]]:
    """Most recent analyses awaiting review, enriched with their content."""
    return await enriched_analyses(storage, limit, 0, ContentStatus.pending)
