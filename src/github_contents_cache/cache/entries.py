"""Typed cache entries.

``time`` is the epoch second of the last confirmation from GitHub (a fresh
fetch or a 304 validation), never the time the entry was read locally.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Protocol

from pydantic import BaseModel, Field, TypeAdapter


class FoundEntry(BaseModel):
    type: Literal["found"] = "found"
    time: float
    content: Any
    etag: str = Field(default="")


class NotFoundEntry(BaseModel):
    type: Literal["notFound"] = "notFound"
    time: float


CacheEntry = Annotated[FoundEntry | NotFoundEntry, Field(discriminator="type")]

cache_entry_adapter: TypeAdapter[FoundEntry | NotFoundEntry] = TypeAdapter(CacheEntry)


class CacheStore(Protocol):
    """Async keyed storage for cache entries.

    ``get`` returns ``None`` when nothing is stored for the key. Any method may
    raise; the retrieval protocol decides which failures are fatal.
    """

    async def get(self, key: str) -> FoundEntry | NotFoundEntry | None: ...

    async def set(self, key: str, entry: FoundEntry | NotFoundEntry) -> None: ...

    async def remove(self, key: str) -> None: ...
