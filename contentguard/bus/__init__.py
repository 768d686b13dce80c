"""In-process publish/subscribe message bus."""

from contentguard.bus.broker import MessageBus
from contentguard.bus.topics import (
    CONTENT_ANALYSIS_TOPIC,
    CONTENT_INGESTION_TOPIC,
    NOTIFICATIONS_TOPIC,
)

__all__ = [
    "MessageBus",
    "CONTENT_ANALYSIS_TOPIC",
    "CONTENT_INGESTION_TOPIC",
    "NOTIFICATIONS_TOPIC",
]
