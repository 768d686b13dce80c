"""External classifier backed by the Anthropic Messages API.

One request per classification with SDK retries disabled, bounded by the
client timeout.  Any transport failure or unusable response raises
:class:`ClassifierError`; :class:`ClassifierAdapter` turns that into the
keyword fallback.
"""

from __future__ import annotations

import json
import os
import re
import time
from typing import Any

import anthropic

from contentguard.classifier.models import ClassificationResult
from contentguard.classifier.prompts import CLASSIFIER_SYSTEM_PROMPT, CLASSIFIER_USER_PROMPT
from contentguard.errors import ClassifierError
from contentguard.models import ContentCategory

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def _extract_json(text: str) -> dict[str, Any]:
    """Pull the first JSON object out of a model reply."""
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise ClassifierError("Classifier reply contained no JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ClassifierError(f"Classifier reply was not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ClassifierError("Classifier reply was not a JSON object")
    return data


def parse_classification(data: dict[str, Any]) -> ClassificationResult:
    """Validate a decoded reply against the classifier contract."""
    try:
        category = ContentCategory(str(data.get("category", "")).strip().lower())
    except ValueError:
        raise ClassifierError(f"Unknown category {data.get('category')!r}") from None

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ClassifierError(f"Confidence must be numeric, got {confidence!r}")
    confidence = int(round(confidence))
    if not 0 <= confidence <= 100:
        raise ClassifierError(f"Confidence {confidence} outside 0-100")

    reasons = data.get("reasons") or []
    if not isinstance(reasons, list):
        raise ClassifierError("reasons must be a list")

    return ClassificationResult(
        category=category,
        confidence=confidence,
        reasons=tuple(str(r) for r in reasons),
        flagged_hint=bool(data.get("flagged", False)),
        source=AnthropicClassifier.source,
        raw={
            "category": category.value,
            "confidence": confidence,
            "reasons": [str(r) for r in reasons],
            "flagged": bool(data.get("flagged", False)),
        },
    )


class AnthropicClassifier:
    """Thin moderation wrapper around the Anthropic async SDK.

    Parameters
    ----------
    model : str
        Model identifier to use for classification.
    api_key : str | None
        Anthropic API key.  Falls back to the ``ANTHROPIC_API_KEY``
        environment variable when *None*.
    timeout : float
        Seconds allowed for the single request.
    """

    source = "external"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = 20.0,
        max_tokens: int = 512,
    ) -> None:
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self.max_tokens = max_tokens
        self.last_latency_ms = 0
        self._configured = bool(self.api_key)

        if self._configured:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key, timeout=timeout, max_retries=0
            )
        else:
            self._client = None  # type: ignore[assignment]

    @property
    def configured(self) -> bool:
        """Return *True* if an API key is available."""
        return self._configured

    async def classify(self, text: str) -> ClassificationResult:
        if not self._configured:
            raise ClassifierError("External classifier not configured. Set ANTHROPIC_API_KEY.")

        start = time.monotonic()
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0,
                system=CLASSIFIER_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": CLASSIFIER_USER_PROMPT.format(text=text)}],
            )
        except anthropic.APIError as exc:
            raise ClassifierError(f"Classifier request failed: {exc}") from exc
        finally:
            self.last_latency_ms = int((time.monotonic() - start) * 1000)

        content = "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )
        if not content.strip():
            raise ClassifierError("Classifier returned empty content")
        return parse_classification(_extract_json(content))
