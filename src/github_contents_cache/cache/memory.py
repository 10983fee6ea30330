from __future__ import annotations

from github_contents_cache.cache.entries import FoundEntry, NotFoundEntry


class InMemoryCacheStore:
    """Process-local cache store backed by a dict."""

    def __init__(self, entries: dict[str, FoundEntry | NotFoundEntry] | None = None) -> None:
        self._entries: dict[str, FoundEntry | NotFoundEntry] = dict(entries or {})

    async def get(self, key: str) -> FoundEntry | NotFoundEntry | None:
        return self._entries.get(key)

    async def set(self, key: str, entry: FoundEntry | NotFoundEntry) -> None:
        self._entries[key] = entry

    async def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
