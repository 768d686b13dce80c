"""Data models for classification results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from contentguard.models import ContentCategory


@dataclass(frozen=True)
class ClassificationResult:
    """What a classifier concluded about a piece of text."""

    category: ContentCategory
    confidence: int  # 0-100
    reasons: tuple[str, ...] = ()
    flagged_hint: bool = False  # classifier's own opinion, consulted only by policy
    source: str = "fallback"  # "external" | "fallback"
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def rationale(self) -> dict[str, Any]:
        """Payload stored with the analysis record."""
        data = dict(self.raw) if self.raw else {
            "category": self.category.value,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
            "flagged": self.flagged_hint,
        }
        data["source"] = self.source
        return data
