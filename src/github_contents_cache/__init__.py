"""github-contents-cache.

Fetch files from the GitHub contents API through a caller-supplied cache,
revalidating with etags, caching "not found" answers, serving stale content
when GitHub errors and reporting rate limits as a first-class result.
"""

__version__ = "0.1.0"

from github_contents_cache.cache import (
    CacheStore,
    FoundEntry,
    InMemoryCacheStore,
    JsonFileCacheStore,
    NamespacedCacheStore,
    NotFoundEntry,
)
from github_contents_cache.errors import (
    ConfigurationError,
    ContentsCacheError,
    GitHubFetchError,
    StoreError,
    WorkflowDefinitionError,
)
from github_contents_cache.github import GitHubContentsFetcher
from github_contents_cache.results import ContentResult, Error, Found, NotFound, RateLimitExceeded
from github_contents_cache.retrieval import get_github_content, get_github_content_factory

__all__ = [
    "__version__",
    "CacheStore",
    "ConfigurationError",
    "ContentResult",
    "ContentsCacheError",
    "Error",
    "Found",
    "FoundEntry",
    "GitHubContentsFetcher",
    "GitHubFetchError",
    "InMemoryCacheStore",
    "JsonFileCacheStore",
    "NamespacedCacheStore",
    "NotFound",
    "NotFoundEntry",
    "RateLimitExceeded",
    "StoreError",
    "WorkflowDefinitionError",
    "get_github_content",
    "get_github_content_factory",
]
