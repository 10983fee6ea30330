"""Exception hierarchy for github-contents-cache."""

from __future__ import annotations


class ContentsCacheError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ContentsCacheError, ValueError):
    """Raised before any work starts when required call parameters are missing."""


class StoreError(ContentsCacheError):
    """Raised by cache stores on I/O or parse problems."""


class GitHubFetchError(ContentsCacheError):
    """A GitHub response (or lack of one) the retrieval protocol cannot act on."""


class WorkflowDefinitionError(ContentsCacheError):
    """The workflow tables are broken.

    This is a programming error in a workflow definition, never a data error,
    so it propagates instead of being routed through ``onError``.
    """
