from __future__ import annotations

from github_contents_cache.cache.entries import CacheStore, FoundEntry, NotFoundEntry


class NamespacedCacheStore:
    """Prefix every key before handing it to ``store``.

    Retrieval keys entries by file path only, so callers that share one store
    across repositories wrap it once per repository.
    """

    def __init__(self, store: CacheStore, namespace: str) -> None:
        if not namespace:
            raise ValueError("namespace must not be empty")
        self._store = store
        self._prefix = namespace.rstrip("/") + "/"

    @classmethod
    def for_repository(cls, store: CacheStore, *, owner: str, repo: str) -> NamespacedCacheStore:
        return cls(store, f"{owner}/{repo}")

    def key(self, key: str) -> str:
        return self._prefix + key.lstrip("/")

    async def get(self, key: str) -> FoundEntry | NotFoundEntry | None:
        return await self._store.get(self.key(key))

    async def set(self, key: str, entry: FoundEntry | NotFoundEntry) -> None:
        await self._store.set(self.key(key), entry)

    async def remove(self, key: str) -> None:
        await self._store.remove(self.key(key))
