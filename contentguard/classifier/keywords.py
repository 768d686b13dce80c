"""Deterministic keyword classifier used when no external service is usable.

Lowercased text is scanned for small keyword sets in a fixed priority order
(hate speech > harassment > explicit > spam).  The first category with a hit
wins at a fixed confidence; otherwise the text is ``safe`` at confidence 0.
Identical input always yields an identical result.
"""

from __future__ import annotations

from dataclasses import dataclass

from contentguard.classifier.models import ClassificationResult
from contentguard.models import ContentCategory


@dataclass(frozen=True)
class KeywordRule:
    category: ContentCategory
    keywords: tuple[str, ...]
    confidence: int
    reason: str

    def matches(self, text: str) -> bool:
        return any(k in text for k in self.keywords)


# ---------------------------------------------------------------------------
# Keyword sets, highest priority first
# ---------------------------------------------------------------------------

KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ContentCategory.hate_speech,
        ("hate", "racist", "discrimination", "bigot"),
        75,
        "Contains keywords associated with hate speech",
    ),
    KeywordRule(
        ContentCategory.harassment,
        ("harass", "bully", "threat", "stalking"),
        70,
        "Contains keywords associated with harassment",
    ),
    KeywordRule(
        ContentCategory.explicit,
        ("porn", "sex", "nude", "explicit"),
        85,
        "Contains keywords associated with explicit content",
    ),
    KeywordRule(
        ContentCategory.spam,
        ("buy now", "click here", "free money", "discount", "limited time"),
        90,
        "Contains keywords associated with spam",
    ),
)


class KeywordClassifier:
    """Rule-based classifier; always available, never raises."""

    source = "fallback"

    def __init__(self, rules: tuple[KeywordRule, ...] = KEYWORD_RULES) -> None:
        self._rules = rules

    def classify(self, text: str) -> ClassificationResult:
        normalized = (text or "").lower()
        for rule in self._rules:
            if rule.matches(normalized):
                return ClassificationResult(
                    category=rule.category,
                    confidence=rule.confidence,
                    reasons=(rule.reason,),
                    source=self.source,
                )
        return ClassificationResult(
            category=ContentCategory.safe,
            confidence=0,
            source=self.source,
        )
