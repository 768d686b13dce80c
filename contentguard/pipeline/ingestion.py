"""Ingestion stage: persist submitted content and hand it to classification."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from contentguard.bus.broker import MessageBus
from contentguard.bus.topics import CONTENT_ANALYSIS_TOPIC
from contentguard.errors import ContentGuardError, StorageError
from contentguard.models import ContentItem, ContentSubmission
from contentguard.pipeline.stats import StatsTracker
from contentguard.storage.base import Storage

log = logging.getLogger(__name__)


class IngestionStage:
    """Accepts submissions and publishes persisted items for analysis.

    ``submit`` returns as soon as the item is stored; classification runs
    later on the bus.  Items whose publish failed are remembered (by store
    id) until :meth:`retry_undelivered` republishes them.  At most
    *max_undelivered* ids are kept; the oldest is dropped when the list is
    full.
    """

    def __init__(
        self,
        storage: Storage,
        bus: MessageBus,
        stats: StatsTracker,
        analysis_topic: str = CONTENT_ANALYSIS_TOPIC,
        max_undelivered: int = 1000,
    ) -> None:
        self._storage = storage
        self._bus = bus
        self._stats = stats
        self._analysis_topic = analysis_topic
        self._max_undelivered = max_undelivered
        self._undelivered: deque[int] = deque()

    @property
    def undelivered(self) -> list[int]:
        """Store ids of content persisted but not yet published."""
        return list(self._undelivered)

    async def submit(self, submission: ContentSubmission) -> ContentItem:
        """Validate, persist, and publish one submission.

        Raises ``ValidationError`` for malformed input and ``StorageError``
        when the item could not be stored (nothing is published then).
        """
        submission.validate()
        try:
            item = await self._storage.create_content(submission)
        except ContentGuardError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to store content '{submission.content_id}': {exc}") from exc

        await self._stats.record_content()
        await self._publish(item)
        return item

    async def handle_raw(self, message: Any) -> None:
        """Bus consumer for raw submissions from bulk producers."""
        try:
            submission = (
                message if isinstance(message, ContentSubmission)
                else ContentSubmission.from_dict(message)
            )
            item = await self.submit(submission)
            log.info("Ingested content %s as #%d", item.content_id, item.id)
        except ContentGuardError:
            log.exception("Rejected raw submission from ingestion topic")

    async def retry_undelivered(self) -> int:
        """Republish items whose earlier publish failed. Returns the count sent."""
        sent = 0
        for _ in range(len(self._undelivered)):
            content_id = self._undelivered.popleft()
            item = await self._storage.get_content(content_id)
            if item is None:
                log.warning("Undelivered content #%d no longer exists; dropping", content_id)
                continue
            if await self._publish(item):
                sent += 1
        return sent

    async def _publish(self, item: ContentItem) -> bool:
        try:
            await self._bus.publish(self._analysis_topic, item)
            return True
        except Exception:
            if len(self._undelivered) >= self._max_undelivered:
                dropped = self._undelivered.popleft()
                log.error(
                    "Retry list full (%d); content #%d will not be republished",
                    self._max_undelivered, dropped,
                )
            self._undelivered.append(item.id)
            log.error(
                "Content #%d stored but not queued for analysis (%d awaiting retry)",
                item.id, len(self._undelivered), exc_info=True,
            )
            return False
