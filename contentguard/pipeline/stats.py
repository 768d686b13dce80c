"""Single-writer updates of the aggregate stats row.

All read-modify-write cycles on the latest stats row go through one
:class:`StatsTracker` and are serialized by its lock, so concurrent stage
handlers cannot interleave and lose increments.  Failures are logged and
leave the row untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from contentguard.models import AggregateStats, utcnow
from contentguard.rules.defaults import initial_stats
from contentguard.storage.base import Storage

log = logging.getLogger(__name__)


def smooth_latency(previous: int, latest: int) -> int:
    """Two-sample smoothing: halve the distance to the latest observation.

    Lossy by nature; it only guarantees the average moves toward recent
    values.
    """
    return round((previous + latest) / 2)


class StatsTracker:
    """Owns all writes to the latest :class:`AggregateStats` row."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._lock = asyncio.Lock()

    async def current(self) -> Optional[AggregateStats]:
        return await self._storage.get_latest_stats()

    async def ensure_row(self) -> AggregateStats:
        """Return the latest row, creating the initial one if none exists."""
        async with self._lock:
            return await self._latest_or_create()

    async def record_content(self) -> Optional[AggregateStats]:
        """Count one newly persisted content item."""
        return await self._apply(lambda s: {"total_content": s.total_content + 1})

    async def record_analysis(
        self, confidence: int, flagged: bool, latency_ms: int
    ) -> Optional[AggregateStats]:
        """Fold one analysis into the counters and moving averages."""

        def patch(s: AggregateStats) -> dict[str, Any]:
            analyzed = s.analyzed_content + 1
            confidence_sum = s.confidence_sum + confidence
            return {
                "flagged_content": s.flagged_content + (1 if flagged else 0),
                "analyzed_content": analyzed,
                "confidence_sum": confidence_sum,
                "ai_confidence": round(confidence_sum / analyzed),
                "response_time": smooth_latency(s.response_time, latency_ms),
            }

        return await self._apply(patch)

    # -- internals -----------------------------------------------------------

    async def _latest_or_create(self) -> AggregateStats:
        latest = await self._storage.get_latest_stats()
        if latest is None:
            latest = await self._storage.create_stats(initial_stats())
        return latest

    async def _apply(self, make_patch) -> Optional[AggregateStats]:
        async with self._lock:
            try:
                latest = await self._latest_or_create()
                patch = make_patch(latest)
                patch["date"] = utcnow()
                return await self._storage.update_stats(latest.id, patch)
            except Exception:
                log.exception("Stats update failed; counters left unchanged")
                return None
