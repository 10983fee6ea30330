"""JSON-file backed cache store.

The whole cache lives in one JSON object mapping key -> entry. It is meant
for a single process (e.g. a CLI or a small site build); there is no file
locking.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from github_contents_cache.cache.entries import FoundEntry, NotFoundEntry, cache_entry_adapter
from github_contents_cache.errors import StoreError

logger = logging.getLogger(__name__)


class JsonFileCacheStore:
    """Cache entries persisted to a JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _load_raw(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read cache file {self._path}") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise StoreError(f"Cache file {self._path} has unexpected shape")
        return raw

    def _save_raw(self, raw: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(raw, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
            tmp.replace(self._path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Could not write cache file {self._path}") from e

    async def get(self, key: str) -> FoundEntry | NotFoundEntry | None:
        item = self._load_raw().get(key)
        if item is None:
            return None
        try:
            return cache_entry_adapter.validate_python(item)
        except ValidationError as e:
            raise StoreError(f"Cache entry for {key!r} is malformed") from e

    async def set(self, key: str, entry: FoundEntry | NotFoundEntry) -> None:
        raw = self._load_raw()
        try:
            raw[key] = entry.model_dump(mode="json")
        except (TypeError, ValueError) as e:
            raise StoreError(f"Cache entry for {key!r} is not JSON serializable") from e
        self._save_raw(raw)
        logger.debug("Cache entry written", extra={"key": key, "entry_type": entry.type})

    async def remove(self, key: str) -> None:
        raw = self._load_raw()
        if raw.pop(key, None) is not None:
            self._save_raw(raw)
            logger.debug("Cache entry removed", extra={"key": key})
