"""Content classification: pluggable external strategy plus keyword fallback."""

from contentguard.classifier.adapter import ClassifierAdapter, TextClassifier
from contentguard.classifier.keywords import KEYWORD_RULES, KeywordClassifier
from contentguard.classifier.llm import AnthropicClassifier
from contentguard.classifier.models import ClassificationResult

__all__ = [
    "AnthropicClassifier",
    "ClassificationResult",
    "ClassifierAdapter",
    "KEYWORD_RULES",
    "KeywordClassifier",
    "TextClassifier",
]
