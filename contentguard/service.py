"""Composition root for the moderation pipeline.

:class:`ModerationService` builds the bus, stages, rule engine, and
notification hub around an injected store and classifier, wires the bus
subscriptions, and exposes the operations the HTTP layer and CLI call.
Nothing here is a module-level singleton; tests build their own service.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from contentguard.bus.broker import MessageBus
from contentguard.bus.topics import (
    CONTENT_ANALYSIS_TOPIC,
    CONTENT_INGESTION_TOPIC,
    NOTIFICATIONS_TOPIC,
)
from contentguard.classifier.adapter import ClassifierAdapter
from contentguard.classifier.llm import AnthropicClassifier
from contentguard.config import Settings, get_settings
from contentguard.errors import NotFoundError, ValidationError
from contentguard.models import (
    MUTABLE_RULE_FIELDS,
    AggregateStats,
    AnalysisResult,
    ContentItem,
    ContentSubmission,
    ModerationRule,
    parse_status,
)
from contentguard.news.fetcher import NewsFetcher
from contentguard.notify.hub import (
    AI_RULE_CREATED,
    AI_RULE_UPDATED,
    CONTENT_STATUS_UPDATE,
    STATS_UPDATE,
    NotificationHub,
)
from contentguard.pipeline.classification import ClassificationStage
from contentguard.pipeline.ingestion import IngestionStage
from contentguard.pipeline.stats import StatsTracker
from contentguard.rules.defaults import default_rules
from contentguard.rules.engine import RuleEngine
from contentguard.rules.loader import load_rules
from contentguard.storage.base import Storage
from contentguard.storage.json_store import JsonFileStore
from contentguard.storage.memory import MemoryStore
from contentguard.storage.queries import enrich_analysis, enriched_analyses

log = logging.getLogger(__name__)


class ModerationService:
    """Owns one running instance of the moderation pipeline."""

    def __init__(
        self,
        storage: Storage,
        classifier: Optional[ClassifierAdapter] = None,
        settings: Optional[Settings] = None,
        seed_rules: Optional[list[ModerationRule]] = None,
        news_fetcher: Optional[NewsFetcher] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings

        self.storage = storage
        self.classifier = classifier or ClassifierAdapter()
        self.engine = RuleEngine(honor_flagged_hint=s.HONOR_FLAGGED_HINT)
        self.bus = MessageBus(
            handler_timeout=s.BUS_HANDLER_TIMEOUT,
            history_limit=s.BUS_HISTORY_LIMIT,
        )
        self.stats = StatsTracker(storage)
        self.hub = NotificationHub(
            storage,
            heartbeat_interval=s.HEARTBEAT_INTERVAL,
            max_missed=s.HEARTBEAT_MAX_MISSED,
            queue_size=s.CONNECTION_QUEUE_SIZE,
            pending_page_size=s.PENDING_PAGE_SIZE,
        )
        self.ingestion = IngestionStage(
            storage, self.bus, self.stats, max_undelivered=s.UNDELIVERED_LIMIT
        )
        self.classification = ClassificationStage(
            storage,
            self.classifier,
            self.engine,
            self.stats,
            self.bus,
            pending_page_size=s.PENDING_PAGE_SIZE,
        )
        self.news = news_fetcher or NewsFetcher(
            self.bus, feed_url=s.NEWS_FEED_URL, delay=s.NEWS_DELAY
        )
        self._seed_rules = seed_rules
        self._started = False

        self.bus.subscribe(CONTENT_INGESTION_TOPIC, self.ingestion.handle_raw, "ingestion")
        self.bus.subscribe(CONTENT_ANALYSIS_TOPIC, self.classification.handle, "classification")
        self.bus.subscribe(NOTIFICATIONS_TOPIC, self.hub.handle_bus_message, "notifications")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> ModerationService:
        """Build a service with the store and classifier the settings select."""
        s = settings or get_settings()
        storage: Storage = JsonFileStore(s.DATA_DIR) if s.DATA_DIR else MemoryStore()
        external = AnthropicClassifier(
            model=s.CLASSIFIER_MODEL,
            api_key=s.ANTHROPIC_API_KEY or None,
            timeout=s.CLASSIFIER_TIMEOUT,
        )
        seed = load_rules(s.RULES_FILE) if s.RULES_FILE else None
        return cls(storage, ClassifierAdapter(external), settings=s, seed_rules=seed)

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Seed an empty store, load rules into the engine, start the heartbeat."""
        if self._started:
            return
        rules = await self.storage.list_rules()
        if not rules:
            for rule in self._seed_rules if self._seed_rules is not None else default_rules():
                await self.storage.create_rule(rule)
            rules = await self.storage.list_rules()
        self.engine.replace_rules(rules)
        await self.stats.ensure_row()
        self.hub.start_heartbeat()
        self._started = True
        log.info(
            "Moderation service started (%d rules, external classifier: %s)",
            len(rules), self.classifier.uses_external,
        )

    async def stop(self, drain_timeout: float | None = 10.0) -> None:
        """Stop accepting publishes, let queued work finish, close clients."""
        await self.bus.close(drain=True, timeout=drain_timeout)
        await self.hub.stop()
        self._started = False
        log.info("Moderation service stopped")

    async def drain(self) -> None:
        """Wait until the bus has no queued or in-progress messages."""
        await self.bus.join()

    # -- content -------------------------------------------------------------

    async def submit(self, submission: ContentSubmission) -> ContentItem:
        return await self.ingestion.submit(submission)

    async def retry_undelivered(self) -> int:
        return await self.ingestion.retry_undelivered()

    async def get_content(self, content_id: int) -> ContentItem:
        item = await self.storage.get_content(content_id)
        if item is None:
            raise NotFoundError(f"Content #{content_id} not found")
        return item

    async def list_contents(self, limit: int = 10, offset: int = 0) -> list[ContentItem]:
        return await self.storage.list_contents(limit, offset)

    async def search_contents(self, query: str) -> list[ContentItem]:
        if not query or not query.strip():
            raise ValidationError("Search query is required")
        return await self.storage.search_contents(query)

    # -- analyses ------------------------------------------------------------

    async def list_analyses(
        self, limit: int = 10, offset: int = 0, status: Optional[str] = None
    ) -> list[dict[str, Any]]:
        return await enriched_analyses(
            self.storage, limit, offset, parse_status(status) if status else None
        )

    async def update_status(self, analysis_id: int, status: str) -> AnalysisResult:
        """Moderator override of an analysis status; broadcast to clients."""
        new_status = parse_status(status)
        updated = await self.storage.update_analysis_status(analysis_id, new_status)
        if updated is None:
            raise NotFoundError(f"Content analysis #{analysis_id} not found")
        log.info("Analysis #%d set to %s by moderator", analysis_id, new_status.value)
        await self.hub.broadcast(
            CONTENT_STATUS_UPDATE, await enrich_analysis(self.storage, updated)
        )
        return updated

    # -- rules ---------------------------------------------------------------

    async def list_rules(self) -> list[ModerationRule]:
        return await self.storage.list_rules()

    async def create_rule(self, rule: ModerationRule) -> ModerationRule:
        rule.validate()
        created = await self.storage.create_rule(rule)
        self.engine.upsert_rule(created)
        await self.hub.broadcast(AI_RULE_CREATED, created.to_dict())
        return created

    async def update_rule(self, rule_id: int, patch: dict[str, Any]) -> ModerationRule:
        unknown = set(patch) - MUTABLE_RULE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")
        existing = await self.storage.get_rule(rule_id)
        if existing is None:
            raise NotFoundError(f"Rule #{rule_id} not found")

        candidate = ModerationRule(**{**existing.to_dict(), **patch})
        candidate.validate()
        clean = {k: getattr(candidate, k) for k in patch}

        updated = await self.storage.update_rule(rule_id, clean)
        if updated is None:
            raise NotFoundError(f"Rule #{rule_id} not found")
        self.engine.upsert_rule(updated)
        await self.hub.broadcast(AI_RULE_UPDATED, updated.to_dict())
        return updated

    # -- stats / news --------------------------------------------------------

    async def latest_stats(self) -> AggregateStats:
        stats = await self.stats.current()
        if stats is None:
            raise NotFoundError("Stats not found")
        return stats

    async def fetch_news(self) -> bool:
        """Run one news ingestion pass, then push the current stats to clients."""
        try:
            count = await self.news.ingest()
        except Exception:
            log.exception("News ingestion failed")
            return False
        log.info("News ingestion completed: %d articles queued", count)
        try:
            await asyncio.wait_for(self.drain(), self.settings.NEWS_SETTLE_TIMEOUT)
        except asyncio.TimeoutError:
            log.warning(
                "Bus still busy after %.0fs; pushing stats before all articles are analyzed",
                self.settings.NEWS_SETTLE_TIMEOUT,
            )
        stats = await self.stats.current()
        if stats is not None:
            await self.hub.broadcast(STATS_UPDATE, stats.to_dict())
        return True
