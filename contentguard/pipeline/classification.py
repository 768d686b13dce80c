"""Classification stage: classify persisted content and record the outcome."""

from __future__ import annotations

import logging
import time
from typing import Optional

from contentguard.bus.broker import MessageBus
from contentguard.bus.topics import NOTIFICATIONS_TOPIC
from contentguard.classifier.adapter import ClassifierAdapter
from contentguard.models import (
    AggregateStats,
    AnalysisResult,
    ContentItem,
    ContentType,
)
from contentguard.pipeline.stats import StatsTracker
from contentguard.rules.engine import RuleEngine
from contentguard.storage.base import Storage
from contentguard.storage.queries import pending_page

log = logging.getLogger(__name__)

SUPPORTED_TYPES = frozenset({ContentType.text, ContentType.news})


def build_text(item: ContentItem) -> str:
    """Join the title (if any) and body into one blob for the classifier."""
    parts = [item.title.strip(), (item.content or "").strip()]
    return "\n".join(p for p in parts if p)


class ClassificationStage:
    """Consumer of the analysis topic.

    Never raises to the bus: classifier problems degrade to the keyword
    fallback inside the adapter, and persistence problems are logged with
    the item left unclassified (no automatic retry).
    """

    def __init__(
        self,
        storage: Storage,
        classifier: ClassifierAdapter,
        engine: RuleEngine,
        stats: StatsTracker,
        bus: MessageBus,
        pending_page_size: int = 5,
    ) -> None:
        self._storage = storage
        self._classifier = classifier
        self._engine = engine
        self._stats = stats
        self._bus = bus
        self._pending_page_size = pending_page_size

    async def handle(self, item: ContentItem) -> Optional[AnalysisResult]:
        if item.type not in SUPPORTED_TYPES:
            log.info("Skipping unsupported content type %s for #%d", item.type.value, item.id)
            return None

        text = build_text(item)
        start = time.monotonic()
        result = await self._classifier.classify(text)
        latency_ms = int((time.monotonic() - start) * 1000)

        decision = self._engine.decide(result.category, result.confidence, result.flagged_hint)
        draft = AnalysisResult(
            content_id=item.id,
            category=result.category,
            confidence=result.confidence,
            flagged=decision.flagged,
            status=decision.status,
            ai_data={**result.rationale, "decision": decision.reason},
        )
        try:
            analysis = await self._storage.create_analysis(draft)
        except Exception:
            log.exception("Analysis for content #%d not stored; item left unclassified", item.id)
            return None

        log.info(
            "Content #%d classified %s (%d) -> %s",
            item.id, analysis.category.value, analysis.confidence, analysis.status.value,
        )
        stats = await self._stats.record_analysis(
            analysis.confidence, analysis.flagged, latency_ms
        )
        await self._notify(analysis, stats)
        return analysis

    async def _notify(self, analysis: AnalysisResult, stats: Optional[AggregateStats]) -> None:
        try:
            if stats is not None:
                await self._bus.publish(
                    NOTIFICATIONS_TOPIC, {"type": "stats_update", "data": stats.to_dict()}
                )
            if analysis.flagged:
                page = await pending_page(self._storage, self._pending_page_size)
                await self._bus.publish(
                    NOTIFICATIONS_TOPIC, {"type": "flagged_content_update", "data": page}
                )
        except Exception:
            log.warning("Notification for analysis #%d not published", analysis.id, exc_info=True)
