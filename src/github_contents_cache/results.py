"""Caller-facing retrieval results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True, slots=True)
class Found:
    content: Any
    etag: str
    cache_hit: bool
    status: Literal["found"] = field(default="found", init=False)

    def to_json(self) -> dict[str, object]:
        return {
            "status": self.status,
            "content": self.content,
            "etag": self.etag,
            "cacheHit": self.cache_hit,
        }


@dataclass(frozen=True, slots=True)
class NotFound:
    cache_hit: bool
    content: Literal[""] = field(default="", init=False)
    status: Literal["notFound"] = field(default="notFound", init=False)

    def to_json(self) -> dict[str, object]:
        return {"status": self.status, "content": self.content, "cacheHit": self.cache_hit}


@dataclass(frozen=True, slots=True)
class RateLimitExceeded:
    """GitHub refused the request because the rate limit is used up.

    When a cached copy exists it is returned alongside the limit details with
    ``cache_hit`` set, so callers can keep serving while they back off until
    ``reset_at`` (epoch seconds).
    """

    limit: int
    remaining: int
    reset_at: int
    content: Any = ""
    etag: str = ""
    cache_hit: bool = False
    status: Literal["rateLimitExceeded"] = field(default="rateLimitExceeded", init=False)

    def to_json(self) -> dict[str, object]:
        return {
            "status": self.status,
            "limit": self.limit,
            "remaining": self.remaining,
            "timestampTillNextResetInSeconds": self.reset_at,
            "content": self.content,
            "etag": self.etag,
            "cacheHit": self.cache_hit,
        }


@dataclass(frozen=True, slots=True)
class Error:
    message: str
    error: BaseException | None
    status: Literal["error"] = field(default="error", init=False)

    def to_json(self) -> dict[str, object]:
        return {
            "status": self.status,
            "message": self.message,
            "error": str(self.error) if self.error is not None else None,
        }


ContentResult = Found | NotFound | RateLimitExceeded | Error
