"""Test configuration and fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from github_contents_cache.cache.entries import FoundEntry, NotFoundEntry
from github_contents_cache.cache.memory import InMemoryCacheStore
from github_contents_cache.github.client import RemoteResult

NOW = 1_700_000_000.0
ETAG = '"abcdefghijklmnop"'
CONTENT = "This is a Test"
CONTENT_UPDATED = "This is Updated Content"
PATH = "test-file.mdx"


@dataclass
class FakeFetcher:
    """Returns a canned remote result (or raises) and records every call."""

    result: RemoteResult | None = None
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def fetch(self, **kwargs: Any) -> RemoteResult:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


class RecordingCache(InMemoryCacheStore):
    """In-memory store that records writes and removals."""

    def __init__(self, entries: dict[str, FoundEntry | NotFoundEntry] | None = None) -> None:
        super().__init__(entries)
        self.sets: list[tuple[str, FoundEntry | NotFoundEntry]] = []
        self.removed: list[str] = []

    async def set(self, key: str, entry: FoundEntry | NotFoundEntry) -> None:
        self.sets.append((key, entry))
        await super().set(key, entry)

    async def remove(self, key: str) -> None:
        self.removed.append(key)
        await super().remove(key)


def clock() -> float:
    return NOW


@pytest.fixture
def empty_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def found_cache() -> RecordingCache:
    """A cache holding a copy of the file confirmed 5 seconds ago."""
    return RecordingCache({PATH: FoundEntry(time=NOW - 5, content=CONTENT, etag=ETAG)})


@pytest.fixture
def not_found_cache() -> RecordingCache:
    """A cache holding a 'not found' answer recorded 5 seconds ago."""
    return RecordingCache({PATH: NotFoundEntry(time=NOW - 5)})
