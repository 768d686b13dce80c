"""Storage contract consumed by the moderation core.

All operations are coroutines; implementations provide read-your-writes
consistency within one process.  Missing records are reported as ``None``
rather than raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from contentguard.models import (
    AggregateStats,
    AnalysisResult,
    ContentItem,
    ContentStatus,
    ContentSubmission,
    ModerationRule,
)


class Storage(ABC):
    """Abstract record store for content, analyses, rules, and stats."""

    # -- content -------------------------------------------------------------

    @abstractmethod
    async def create_content(self, submission: ContentSubmission) -> ContentItem: ...

    @abstractmethod
    async def get_content(self, content_id: int) -> Optional[ContentItem]: ...

    @abstractmethod
    async def list_contents(self, limit: int = 10, offset: int = 0) -> list[ContentItem]: ...

    @abstractmethod
    async def search_contents(self, query: str) -> list[ContentItem]: ...

    # -- analyses ------------------------------------------------------------

    @abstractmethod
    async def create_analysis(self, analysis: AnalysisResult) -> AnalysisResult: ...

    @abstractmethod
    async def get_analysis(self, analysis_id: int) -> Optional[AnalysisResult]: ...

    @abstractmethod
    async def update_analysis_status(
        self, analysis_id: int, status: ContentStatus
    ) -> Optional[AnalysisResult]: ...

    @abstractmethod
    async def list_analyses(
        self, limit: int = 10, offset: int = 0, status: Optional[ContentStatus] = None
    ) -> list[AnalysisResult]: ...

    # -- rules ---------------------------------------------------------------

    @abstractmethod
    async def list_rules(self) -> list[ModerationRule]: ...

    @abstractmethod
    async def get_rule(self, rule_id: int) -> Optional[ModerationRule]: ...

    @abstractmethod
    async def create_rule(self, rule: ModerationRule) -> ModerationRule: ...

    @abstractmethod
    async def update_rule(
        self, rule_id: int, patch: dict[str, Any]
    ) -> Optional[ModerationRule]: ...

    # -- stats ---------------------------------------------------------------

    @abstractmethod
    async def get_latest_stats(self) -> Optional[AggregateStats]: ...

    @abstractmethod
    async def create_stats(self, stats: AggregateStats) -> AggregateStats: ...

    @abstractmethod
    async def update_stats(
        self, stats_id: int, patch: dict[str, Any]
    ) -> Optional[AggregateStats]: ...
