"""GitHub contents API access."""

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

__all__ = [
    "ContentFetcher",
    "FetchFatal",
    "FetchNotFound",
    "FetchNotModified",
    "FetchOk",
    "FetchRateLimited",
    "GitHubContentsFetcher",
    "RemoteResult",
]
