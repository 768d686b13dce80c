"""File-based JSON storage for moderation records.

Storage path (default ``~/.contentguard/data/``) with one file per
collection:

- ``contents.json`` -- list of content item dicts
- ``analyses.json`` -- list of analysis dicts
- ``rules.json`` -- list of rule dicts
- ``stats.json`` -- list of stats rows
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from contentguard.errors import StorageError
from contentguard.models import AggregateStats, AnalysisResult, ContentItem, ModerationRule
from contentguard.storage.memory import MemoryStore

log = logging.getLogger(__name__)


class JsonFileStore(MemoryStore):
    """:class:`MemoryStore` that mirrors every write to JSON files."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        super().__init__()
        if base_dir is None:
            self._base = Path.home() / ".contentguard" / "data"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._load()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self._base / f"{collection}.json"

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            log.warning("Ignoring unreadable store file %s", path, exc_info=True)
            return []

    def _write_json(self, path: Path, data: list[dict]) -> None:
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc

    def _load(self) -> None:
        loaders: dict[str, Callable[..., Any]] = {
            "contents": ContentItem,
            "analyses": AnalysisResult,
            "rules": ModerationRule,
            "stats": AggregateStats,
        }
        for name, factory in loaders.items():
            records = self._collection(name)
            for raw in self._read_json(self._path(name)):
                fields = {k: v for k, v in raw.items() if k in factory.__dataclass_fields__}
                record = factory(**fields)
                records[record.id] = record
            if records:
                self._next_id[name] = max(records) + 1

    def _persist(self, collection: str) -> None:
        records = self._collection(collection)
        self._write_json(
            self._path(collection),
            [records[k].to_dict() for k in sorted(records)],
        )
