"""In-memory record store.

Records are kept in dicts keyed by a per-collection integer id.  Returned
objects are copies, so callers cannot mutate stored state by accident.
Subclasses persist changes by overriding :meth:`MemoryStore._persist`.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Optional

from contentguard.models import (
    AggregateStats,
    AnalysisResult,
    ContentItem,
    ContentStatus,
    ContentSubmission,
    ModerationRule,
    utcnow,
)
from contentguard.storage.base import Storage


def _newest_first(records: list, key: str) -> list:
    return sorted(records, key=lambda r: (getattr(r, key), r.id), reverse=True)


class MemoryStore(Storage):
    """Dict-backed implementation of :class:`Storage`."""

    def __init__(self) -> None:
        self._contents: dict[int, ContentItem] = {}
        self._analyses: dict[int, AnalysisResult] = {}
        self._rules: dict[int, ModerationRule] = {}
        self._stats: dict[int, AggregateStats] = {}
        self._next_id: dict[str, int] = {
            "contents": 1, "analyses": 1, "rules": 1, "stats": 1,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _allocate(self, collection: str) -> int:
        new_id = self._next_id[collection]
        self._next_id[collection] = new_id + 1
        return new_id

    def _collection(self, name: str) -> dict[int, Any]:
        return {
            "contents": self._contents,
            "analyses": self._analyses,
            "rules": self._rules,
            "stats": self._stats,
        }[name]

    def _commit(self, collection: str, record: Any) -> None:
        """Store *record* and persist; on failure the previous state is restored."""
        records = self._collection(collection)
        previous = records.get(record.id)
        records[record.id] = record
        try:
            self._persist(collection)
        except Exception:
            if previous is not None:
                records[record.id] = previous
            else:
                del records[record.id]
                if self._next_id[collection] == record.id + 1:
                    self._next_id[collection] = record.id
            raise

    def _persist(self, collection: str) -> None:
        """Hook called after every write to *collection*."""

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def create_content(self, submission: ContentSubmission) -> ContentItem:
        metadata = dict(submission.metadata or {})
        if submission.source:
            metadata.setdefault("source", submission.source)
        item = ContentItem(
            id=self._allocate("contents"),
            content_id=submission.content_id,
            type=submission.type,
            content=submission.content,
            user_id=submission.user_id,
            metadata=metadata,
            created_at=utcnow(),
        )
        self._commit("contents", item)
        return item

    async def get_content(self, content_id: int) -> Optional[ContentItem]:
        return self._contents.get(content_id)

    async def list_contents(self, limit: int = 10, offset: int = 0) -> list[ContentItem]:
        items = _newest_first(list(self._contents.values()), "created_at")
        return items[offset:offset + limit]

    async def search_contents(self, query: str) -> list[ContentItem]:
        needle = query.lower()
        matches = [c for c in self._contents.values() if needle in c.content.lower()]
        return _newest_first(matches, "created_at")

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def create_analysis(self, analysis: AnalysisResult) -> AnalysisResult:
        stored = dataclasses.replace(
            analysis, id=self._allocate("analyses"), created_at=utcnow()
        )
        self._commit("analyses", stored)
        return dataclasses.replace(stored)

    async def get_analysis(self, analysis_id: int) -> Optional[AnalysisResult]:
        found = self._analyses.get(analysis_id)
        return dataclasses.replace(found) if found else None

    async def update_analysis_status(
        self, analysis_id: int, status: ContentStatus
    ) -> Optional[AnalysisResult]:
        found = self._analyses.get(analysis_id)
        if found is None:
            return None
        updated = dataclasses.replace(found, status=ContentStatus(status))
        self._commit("analyses", updated)
        return dataclasses.replace(updated)

    async def list_analyses(
        self, limit: int = 10, offset: int = 0, status: Optional[ContentStatus] = None
    ) -> list[AnalysisResult]:
        analyses = list(self._analyses.values())
        if status is not None:
            analyses = [a for a in analyses if a.status == status]
        page = _newest_first(analyses, "created_at")[offset:offset + limit]
        return [dataclasses.replace(a) for a in page]

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    async def list_rules(self) -> list[ModerationRule]:
        return [dataclasses.replace(r) for r in sorted(self._rules.values(), key=lambda r: r.id)]

    async def get_rule(self, rule_id: int) -> Optional[ModerationRule]:
        found = self._rules.get(rule_id)
        return dataclasses.replace(found) if found else None

    async def create_rule(self, rule: ModerationRule) -> ModerationRule:
        stored = dataclasses.replace(rule, id=self._allocate("rules"), created_at=utcnow())
        self._commit("rules", stored)
        return dataclasses.replace(stored)

    async def update_rule(
        self, rule_id: int, patch: dict[str, Any]
    ) -> Optional[ModerationRule]:
        found = self._rules.get(rule_id)
        if found is None:
            return None
        updated = dataclasses.replace(found, **patch)
        self._commit("rules", updated)
        return dataclasses.replace(updated)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def get_latest_stats(self) -> Optional[AggregateStats]:
        if not self._stats:
            return None
        latest = _newest_first(list(self._stats.values()), "date")[0]
        return dataclasses.replace(latest)

    async def create_stats(self, stats: AggregateStats) -> AggregateStats:
        stored = dataclasses.replace(stats, id=self._allocate("stats"))
        self._commit("stats", stored)
        return dataclasses.replace(stored)

    async def update_stats(
        self, stats_id: int, patch: dict[str, Any]
    ) -> Optional[AggregateStats]:
        found = self._stats.get(stats_id)
        if found is None:
            return None
        updated = dataclasses.replace(found, **patch)
        self._commit("stats", updated)
        return dataclasses.replace(updated)
