"""Classifier adapter: external strategy with a deterministic fallback."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from contentguard.classifier.keywords import KeywordClassifier
from contentguard.classifier.models import ClassificationResult

log = logging.getLogger(__name__)


class TextClassifier(Protocol):
    """Contract every external classifier satisfies."""

    @property
    def configured(self) -> bool: ...

    async def classify(self, text: str) -> ClassificationResult: ...


class ClassifierAdapter:
    """Run the external classifier once; degrade to keywords on any failure.

    ``classify`` never raises to its caller.
    """

    def __init__(
        self,
        external: Optional[TextClassifier] = None,
        fallback: Optional[KeywordClassifier] = None,
    ) -> None:
        self._external = external
        self._fallback = fallback or KeywordClassifier()
        self.fallback_count = 0

    @property
    def uses_external(self) -> bool:
        return self._external is not None and self._external.configured

    async def classify(self, text: str) -> ClassificationResult:
        if not self.uses_external:
            return self._fallback.classify(text)
        try:
            return await self._external.classify(text)
        except Exception:
            self.fallback_count += 1
            log.warning("External classifier failed; using keyword fallback", exc_info=True)
            return self._fallback.classify(text)
