"""Cached retrieval of GitHub file contents.

The retrieval is a small workflow run by ``workflow.engine``. ``lookInCache``
either answers from the cache (``found``/``notFound``) or hands over to
``lookInGithub``, which ends in ``found``, ``notFound``, ``rateLimitExceeded``
or ``error``. Expired "not found" entries are dropped by ``clearCacheEntry``
before GitHub is asked again. ``ignore_cache`` starts the run at
``clearCacheEntry``. Cache writes are best effort; cache reads and removals
are not. When GitHub fails in a way we cannot act on, a stale cached copy is
returned instead of an error.
"""

from __future__ import annotations

import functools
import inspect
import logging
import math
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

from github_contents_cache.cache.entries import (
    CacheStore,
    FoundEntry,
    NotFoundEntry,
    cache_entry_adapter,
)
from github_contents_cache.errors import (
    ConfigurationError,
    GitHubFetchError,
    StoreError,
    WorkflowDefinitionError,
)
from github_contents_cache.github.client import (
    ContentFetcher,
    FetchFatal,
    FetchNotFound,
    FetchNotModified,
    FetchOk,
    FetchRateLimited,
    GitHubContentsFetcher,
    RemoteResult,
)
from github_contents_cache.results import (
    ContentResult,
    Error,
    Found,
    NotFound,
    RateLimitExceeded,
)
from github_contents_cache.workflow.engine import (
    ON_ERROR,
    Step,
    StepResult,
    WorkflowResult,
    run_workflow,
)

logger = logging.getLogger(__name__)

Serializer = Callable[[str], Any]
Duration = float | int | timedelta

MISSING_ARGUMENTS_MESSAGE = (
    "Please provide all of the required arguments - "
    "{ token, owner, repo, path, userAgent, cache }"
)


class RetrievalStep(str, Enum):
    CLEAR_CACHE_ENTRY = "clearCacheEntry"
    LOOK_IN_CACHE = "lookInCache"
    LOOK_IN_GITHUB = "lookInGithub"
    FOUND = "found"
    NOT_FOUND = "notFound"
    RATE_LIMIT_EXCEEDED = "rateLimitExceeded"
    ERROR = "error"


ON_CACHE_CLEARED = "onCacheCleared"
ON_FOUND = "onFound"
ON_FOUND_IN_CACHE = "onFoundInCache"
ON_NOT_IN_CACHE = "onNotInCache"
ON_404_CACHE_EXPIRED = "on404CacheExpired"
ON_404_IN_CACHE = "on404InCache"
ON_404_FROM_GITHUB = "on404FromGithub"
ON_RATE_LIMIT_EXCEEDED = "onRateLimitExceeded"


@dataclass(slots=True)
class RetrievalContext:
    """Per-call state shared by the retrieval steps. Never reused across calls."""

    owner: str
    repo: str
    path: str
    token: str
    user_agent: str
    cache: CacheStore
    fetcher: ContentFetcher
    serialize: Serializer
    max_age: float | None
    max_404_age: float
    clock: Callable[[], float]
    max_age_expired: bool = False
    cached_results: FoundEntry | None = None


def _identity(content: str) -> str:
    return content


def _seconds(value: Duration | None) -> float | None:
    if value is None:
        return None
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _coerce_entry(raw: object) -> FoundEntry | NotFoundEntry | None:
    if raw is None or isinstance(raw, FoundEntry | NotFoundEntry):
        return raw
    if isinstance(raw, Mapping):
        return cache_entry_adapter.validate_python(dict(raw))
    raise StoreError(f"Cache returned an unsupported entry type: {type(raw).__name__}")


def _found_payload(content: Any, etag: str, *, cache_hit: bool) -> dict[str, Any]:
    return {"content": content, "etag": etag, "cache_hit": cache_hit}


def _error(message: str, error: BaseException) -> StepResult:
    return StepResult(event=ON_ERROR, data={"message": message, "error": error})


async def _best_effort_set(ctx: RetrievalContext, entry: FoundEntry | NotFoundEntry) -> None:
    """Write ``entry`` to the cache, logging and discarding any failure.

    The cache is advisory; GitHub is the source of truth.
    """
    try:
        await ctx.cache.set(ctx.path, entry)
    except Exception:
        logger.warning(
            "Could not write entry to the cache",
            extra={"path": ctx.path, "entry_type": entry.type},
            exc_info=True,
        )


async def clear_cache_entry(ctx: RetrievalContext) -> StepResult:
    try:
        await ctx.cache.remove(ctx.path)
    except Exception as e:
        return _error(f"Error when trying to remove entry from the cache at path {ctx.path}", e)
    return StepResult(event=ON_CACHE_CLEARED)


async def look_in_cache(ctx: RetrievalContext) -> StepResult:
    try:
        entry = _coerce_entry(await ctx.cache.get(ctx.path))
    except Exception as e:
        return _error(f"Error when trying to get entry from the cache at path {ctx.path}", e)

    if entry is None:
        return StepResult(event=ON_NOT_IN_CACHE)

    age = ctx.clock() - entry.time

    if isinstance(entry, NotFoundEntry):
        if age > ctx.max_404_age:
            return StepResult(event=ON_404_CACHE_EXPIRED)
        return StepResult(event=ON_404_IN_CACHE, data={"cache_hit": True})

    if ctx.max_age:
        if age <= ctx.max_age:
            return StepResult(
                event=ON_FOUND, data=_found_payload(entry.content, entry.etag, cache_hit=True)
            )
        ctx.max_age_expired = True

    ctx.cached_results = entry
    return StepResult(event=ON_FOUND_IN_CACHE)


async def _serialize(ctx: RetrievalContext, content: str) -> Any:
    value = ctx.serialize(content)
    if inspect.isawaitable(value):
        value = await value
    return value


async def look_in_github(ctx: RetrievalContext) -> StepResult:
    cached = ctx.cached_results

    resp: RemoteResult
    try:
        resp = await ctx.fetcher.fetch(
            owner=ctx.owner,
            repo=ctx.repo,
            path=ctx.path,
            token=ctx.token,
            user_agent=ctx.user_agent,
            etag=cached.etag if cached is not None else None,
        )
    except Exception as e:
        resp = FetchFatal(e)

    if isinstance(resp, FetchNotModified) and cached is not None:
        # Restart the max-age window, otherwise every later call would revalidate.
        if ctx.max_age_expired:
            await _best_effort_set(
                ctx, FoundEntry(time=ctx.clock(), content=cached.content, etag=cached.etag)
            )
        return StepResult(
            event=ON_FOUND, data=_found_payload(cached.content, cached.etag, cache_hit=True)
        )

    if isinstance(resp, FetchNotFound):
        await _best_effort_set(ctx, NotFoundEntry(time=ctx.clock()))
        return StepResult(event=ON_404_FROM_GITHUB, data={"cache_hit": False})

    if isinstance(resp, FetchRateLimited):
        return StepResult(
            event=ON_RATE_LIMIT_EXCEEDED,
            data={
                "limit": resp.limit,
                "remaining": resp.remaining,
                "reset_at": resp.reset_at,
                "content": cached.content if cached is not None else "",
                "etag": cached.etag if cached is not None else "",
                "cache_hit": cached is not None,
            },
        )

    if isinstance(resp, FetchOk):
        try:
            content = await _serialize(ctx, resp.content)
        except Exception as e:
            return _error("Error occured when serializing the content", e)

        await _best_effort_set(
            ctx, FoundEntry(time=ctx.clock(), content=content, etag=resp.etag)
        )
        return StepResult(event=ON_FOUND, data=_found_payload(content, resp.etag, cache_hit=False))

    if isinstance(resp, FetchFatal):
        cause = resp.cause
    else:
        cause = GitHubFetchError(f"Received an unexpected result from GitHub: {resp!r}")
    if cached is not None:
        logger.warning(
            "Received an unexpected error, but returning the value from the cache",
            extra={"path": ctx.path, "error": str(cause)},
        )
        return StepResult(
            event=ON_FOUND, data=_found_payload(cached.content, cached.etag, cache_hit=True)
        )
    return _error(f"Unexpected error when looking for content on GitHub at path {ctx.path}", cause)


STEPS: dict[RetrievalStep, Step] = {
    RetrievalStep.CLEAR_CACHE_ENTRY: Step(
        action=clear_cache_entry,
        transitions={
            ON_CACHE_CLEARED: RetrievalStep.LOOK_IN_GITHUB,
            ON_ERROR: RetrievalStep.ERROR,
        },
    ),
    RetrievalStep.LOOK_IN_CACHE: Step(
        action=look_in_cache,
        transitions={
            ON_FOUND: RetrievalStep.FOUND,
            # Ask GitHub whether the cached copy is stale; 304s don't count against the limit.
            ON_FOUND_IN_CACHE: RetrievalStep.LOOK_IN_GITHUB,
            ON_NOT_IN_CACHE: RetrievalStep.LOOK_IN_GITHUB,
            ON_404_CACHE_EXPIRED: RetrievalStep.CLEAR_CACHE_ENTRY,
            ON_404_IN_CACHE: RetrievalStep.NOT_FOUND,
            ON_ERROR: RetrievalStep.ERROR,
        },
    ),
    RetrievalStep.LOOK_IN_GITHUB: Step(
        action=look_in_github,
        transitions={
            ON_FOUND: RetrievalStep.FOUND,
            ON_404_FROM_GITHUB: RetrievalStep.NOT_FOUND,
            ON_RATE_LIMIT_EXCEEDED: RetrievalStep.RATE_LIMIT_EXCEEDED,
            ON_ERROR: RetrievalStep.ERROR,
        },
    ),
    RetrievalStep.FOUND: Step(terminal=True),
    RetrievalStep.NOT_FOUND: Step(terminal=True),
    RetrievalStep.RATE_LIMIT_EXCEEDED: Step(terminal=True),
    RetrievalStep.ERROR: Step(terminal=True),
}


def to_content_result(result: WorkflowResult) -> ContentResult:
    """Translate the terminal step of a retrieval run into the caller-facing result."""

    data = result.data
    if result.step is RetrievalStep.FOUND:
        return Found(content=data["content"], etag=data["etag"], cache_hit=data["cache_hit"])
    if result.step is RetrievalStep.NOT_FOUND:
        return NotFound(cache_hit=data["cache_hit"])
    if result.step is RetrievalStep.RATE_LIMIT_EXCEEDED:
        return RateLimitExceeded(
            limit=data["limit"],
            remaining=data["remaining"],
            reset_at=data["reset_at"],
            content=data["content"],
            etag=data["etag"],
            cache_hit=data["cache_hit"],
        )
    if result.step is RetrievalStep.ERROR:
        # A step that raised instead of reporting its own failure.
        if isinstance(data, BaseException):
            return Error(message="Unexpected error while retrieving content", error=data)
        return Error(message=data["message"], error=data["error"])
    raise WorkflowDefinitionError(f"Retrieval ended in unexpected step {result.step!r}")


async def get_github_content(
    *,
    token: str,
    owner: str,
    repo: str,
    path: str,
    user_agent: str,
    cache: CacheStore,
    ignore_cache: bool = False,
    max_age: Duration | None = None,
    max_404_age: Duration | None = None,
    serialize: Serializer | None = None,
    fetcher: ContentFetcher | None = None,
    clock: Callable[[], float] = time.time,
    trace: bool = False,
) -> ContentResult:
    """Return the contents of ``path`` in ``owner/repo``, going to GitHub only when needed.

    Args:
        token: GitHub token passed through as the ``Authorization`` header.
        owner: Repository owner.
        repo: Repository name.
        path: File path inside the repository; also the cache key.
        user_agent: ``User-Agent`` sent to GitHub (required by the API).
        cache: Store used for positive and negative entries.
        ignore_cache: Drop any cached entry and always ask GitHub.
        max_age: Seconds (or ``timedelta``) a cached copy is trusted without
            revalidation. Unset or zero means always revalidate with an etag.
        max_404_age: How long a cached "not found" is trusted. Unbounded by default.
        serialize: Sync or async transform applied to freshly fetched content
            before it is cached and returned.
        fetcher: Remote fetcher; defaults to ``GitHubContentsFetcher`` on the public API.
        clock: Returns the current epoch time in seconds.
        trace: Log every workflow transition at DEBUG level.

    Raises:
        ConfigurationError: A required argument is missing. All other failures
            are reported through an ``Error`` result.
    """
    if not token or not owner or not repo or not path or not user_agent or cache is None:
        raise ConfigurationError(MISSING_ARGUMENTS_MESSAGE)

    owns_fetcher = fetcher is None
    active_fetcher: ContentFetcher = fetcher if fetcher is not None else GitHubContentsFetcher()

    max_404 = _seconds(max_404_age)
    ctx = RetrievalContext(
        owner=owner,
        repo=repo,
        path=path,
        token=token,
        user_agent=user_agent,
        cache=cache,
        fetcher=active_fetcher,
        serialize=serialize or _identity,
        max_age=_seconds(max_age),
        max_404_age=math.inf if max_404 is None else max_404,
        clock=clock,
    )

    try:
        result = await run_workflow(
            initial_step=(
                RetrievalStep.CLEAR_CACHE_ENTRY if ignore_cache else RetrievalStep.LOOK_IN_CACHE
            ),
            steps=STEPS,
            context=ctx,
            trace=trace,
        )
    finally:
        if owns_fetcher and isinstance(active_fetcher, GitHubContentsFetcher):
            active_fetcher.close()

    content_result = to_content_result(result)
    logger.debug(
        "Retrieved GitHub content",
        extra={
            "path": path,
            "status": content_result.status,
            "cache_hit": getattr(content_result, "cache_hit", None),
        },
    )
    return content_result


def get_github_content_factory(
    fetcher: ContentFetcher,
) -> Callable[..., Awaitable[ContentResult]]:
    """Bind ``get_github_content`` to a specific fetcher (e.g. one per HTTP transport)."""

    return functools.partial(get_github_content, fetcher=fetcher)
