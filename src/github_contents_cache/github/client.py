"""Conditional fetches against the GitHub contents API.

One call performs exactly one request. The outcome is reported as a
``RemoteResult`` value rather than raised, so the retrieval workflow can route
on it; anything that is not a status the workflow acts on becomes
``FetchFatal``.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import posixpath
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from github_contents_cache.errors import GitHubFetchError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"


@dataclass(frozen=True, slots=True)
class FetchOk:
    """HTTP 200: the decoded file content and its etag."""

    content: str
    etag: str


@dataclass(frozen=True, slots=True)
class FetchNotModified:
    """HTTP 304: the etag we sent is still current."""


@dataclass(frozen=True, slots=True)
class FetchNotFound:
    """HTTP 404."""


@dataclass(frozen=True, slots=True)
class FetchRateLimited:
    """HTTP 403 with the rate limit exhausted."""

    limit: int
    remaining: int
    reset_at: int


@dataclass(frozen=True, slots=True)
class FetchFatal:
    cause: Exception


RemoteResult = FetchOk | FetchNotModified | FetchNotFound | FetchRateLimited | FetchFatal


class ContentFetcher(Protocol):
    async def fetch(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        token: str,
        user_agent: str,
        etag: str | None = None,
    ) -> RemoteResult: ...


def _has_file_extension(path: str) -> bool:
    _, ext = posixpath.splitext(path.rstrip("/"))
    return bool(ext)


def _int_header(value: str | None) -> int:
    if value is None:
        return 0
    try:
        return int(float(value.strip()))
    except (ValueError, OverflowError):
        return 0


class GitHubContentsFetcher:
    """Fetch file contents from the GitHub REST API with ``requests``.

    The blocking request runs in a worker thread so concurrent retrievals on
    one event loop do not serialize behind each other.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def _contents_url(self, *, owner: str, repo: str, path: str) -> str:
        norm = path.lstrip("/")
        return f"{self._base_url}/repos/{owner}/{repo}/contents/{norm}"

    async def fetch(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        token: str,
        user_agent: str,
        etag: str | None = None,
    ) -> RemoteResult:
        return await asyncio.to_thread(
            self.fetch_sync,
            owner=owner,
            repo=repo,
            path=path,
            token=token,
            user_agent=user_agent,
            etag=etag,
        )

    def fetch_sync(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        token: str,
        user_agent: str,
        etag: str | None = None,
    ) -> RemoteResult:
        if not _has_file_extension(path):
            return FetchFatal(
                GitHubFetchError(
                    f"The path {path} is not a file with an extension, which is currently "
                    "not supported in the github-contents-cache library"
                )
            )

        headers = {
            "Accept": "application/vnd.github.v3+json",
            # https://docs.github.com/en/rest/overview/resources-in-the-rest-api#user-agent-required
            "User-Agent": user_agent,
            "Authorization": f"token {token}",
        }
        if etag:
            headers["If-None-Match"] = etag

        url = self._contents_url(owner=owner, repo=repo, path=path)
        logger.debug("Requesting GitHub contents", extra={"url": url, "conditional": bool(etag)})
        try:
            resp = self._session.get(url, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            error = GitHubFetchError("Could not complete request to the GitHub api")
            error.__cause__ = e
            return FetchFatal(error)

        return self._to_result(resp)

    def _to_result(self, resp: requests.Response) -> RemoteResult:
        status = resp.status_code

        if status == 200:
            try:
                data: dict[str, Any] = resp.json()
                raw = base64.b64decode(data["content"])
                content = raw.decode("utf-8")
            except (ValueError, KeyError, TypeError, binascii.Error) as e:
                error = GitHubFetchError(
                    "Received a 200 response from GitHub but could not parse the response body"
                )
                error.__cause__ = e
                return FetchFatal(error)
            return FetchOk(content=content, etag=resp.headers.get("etag", ""))

        if status == 304:
            # https://docs.github.com/en/rest/overview/resources-in-the-rest-api#conditional-requests
            return FetchNotModified()

        if status == 404:
            return FetchNotFound()

        remaining = resp.headers.get("x-ratelimit-remaining")
        if status == 403 and remaining is not None and remaining.strip() == "0":
            # https://docs.github.com/en/rest/overview/resources-in-the-rest-api#rate-limit-http-headers
            result = FetchRateLimited(
                limit=_int_header(resp.headers.get("x-ratelimit-limit")),
                remaining=0,
                reset_at=_int_header(resp.headers.get("x-ratelimit-reset")),
            )
            logger.warning(
                "GitHub rate limit exceeded",
                extra={"limit": result.limit, "reset_at": result.reset_at},
            )
            return result

        if status in {401, 403}:
            return FetchFatal(
                GitHubFetchError(
                    f"Received HTTP response status code {status} from GitHub. This means bad "
                    "credentials were provided or you do not have access to the resource"
                )
            )

        return FetchFatal(
            GitHubFetchError(
                f"Received HTTP response status code {status} from GitHub which is not an "
                "actionable code for the github-contents-cache library"
            )
        )

    def close(self) -> None:
        self._session.close()
