"""Record stores for content, analyses, rules, and stats."""

from contentguard.storage.base import Storage
from contentguard.storage.json_store import JsonFileStore
from contentguard.storage.memory import MemoryStore
from contentguard.storage.queries import enrich_analysis, enriched_analyses, pending_page

__all__ = [
    "JsonFileStore",
    "MemoryStore",
    "Storage",
    "enrich_analysis",
    "enriched_analyses",
    "pending_page",
]
