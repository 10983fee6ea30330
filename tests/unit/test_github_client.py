"""Unit tests for the GitHub contents fetcher (HTTP mocked at the session)."""

from __future__ import annotations

import base64
import json
from unittest.mock import Mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from github_contents_cache.errors import GitHubFetchError
from github_contents_cache.github.client import (
    FetchFatal,
    FetchNotFound,
    FetchNotModified,
    FetchOk,
    FetchRateLimited,
    GitHubContentsFetcher,
)

ETAG = '"abc"'


def _response(status: int, *, body: bytes = b"", headers: dict[str, str] | None = None):
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.encoding = "utf-8"
    return resp


def _contents_body(text: str) -> bytes:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return json.dumps({"content": encoded, "encoding": "base64"}).encode("utf-8")


def _fetcher(response: requests.Response | None = None, error: Exception | None = None):
    session = Mock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return GitHubContentsFetcher(session=session), session


def _fetch(fetcher: GitHubContentsFetcher, **kwargs: object):
    args: dict[str, object] = {
        "owner": "octo-org",
        "repo": "blog",
        "path": "posts/test-file.mdx",
        "token": "123",
        "user_agent": "octo-org blog",
    }
    args.update(kwargs)
    return fetcher.fetch_sync(**args)  # type: ignore[arg-type]


def test_200_decodes_base64_content_and_etag() -> None:
    fetcher, session = _fetcher(
        _response(200, body=_contents_body("This is a Test"), headers={"ETag": ETAG})
    )

    result = _fetch(fetcher)

    assert result == FetchOk(content="This is a Test", etag=ETAG)
    url = session.get.call_args.args[0]
    assert url == "https://api.github.com/repos/octo-org/blog/contents/posts/test-file.mdx"
    headers = session.get.call_args.kwargs["headers"]
    assert headers["Authorization"] == "token 123"
    assert headers["User-Agent"] == "octo-org blog"
    assert headers["Accept"] == "application/vnd.github.v3+json"
    assert "If-None-Match" not in headers


def test_200_with_line_wrapped_base64_is_decoded() -> None:
    encoded = base64.b64encode(b"line one\nline two\n").decode("ascii")
    wrapped = encoded[:8] + "\n" + encoded[8:]
    body = json.dumps({"content": wrapped}).encode("utf-8")
    fetcher, _ = _fetcher(_response(200, body=body, headers={"etag": ETAG}))

    assert _fetch(fetcher) == FetchOk(content="line one\nline two\n", etag=ETAG)


def test_etag_is_sent_as_validator() -> None:
    fetcher, session = _fetcher(_response(304))

    result = _fetch(fetcher, etag=ETAG)

    assert result == FetchNotModified()
    assert session.get.call_args.kwargs["headers"]["If-None-Match"] == ETAG


def test_404_is_not_found() -> None:
    fetcher, _ = _fetcher(_response(404))
    assert _fetch(fetcher) == FetchNotFound()


def test_403_with_exhausted_quota_is_rate_limited() -> None:
    fetcher, _ = _fetcher(
        _response(
            403,
            headers={
                "x-ratelimit-remaining": "0",
                "x-ratelimit-limit": "5000",
                "x-ratelimit-reset": "1700000005",
            },
        )
    )

    assert _fetch(fetcher) == FetchRateLimited(limit=5000, remaining=0, reset_at=1700000005)


@pytest.mark.parametrize("status", [401, 403])
def test_auth_failures_are_fatal(status: int) -> None:
    fetcher, _ = _fetcher(_response(status, headers={"x-ratelimit-remaining": "4999"}))

    result = _fetch(fetcher)

    assert isinstance(result, FetchFatal)
    assert isinstance(result.cause, GitHubFetchError)
    assert str(result.cause) == (
        f"Received HTTP response status code {status} from GitHub. This means bad "
        "credentials were provided or you do not have access to the resource"
    )


def test_unsupported_status_is_fatal() -> None:
    fetcher, _ = _fetcher(_response(500))

    result = _fetch(fetcher)

    assert isinstance(result, FetchFatal)
    assert "status code 500" in str(result.cause)
    assert "not an actionable code" in str(result.cause)


def test_malformed_json_body_is_fatal() -> None:
    fetcher, _ = _fetcher(
        _response(200, body=b"{this is a bad json response}", headers={"etag": ETAG})
    )

    result = _fetch(fetcher)

    assert isinstance(result, FetchFatal)
    assert str(result.cause) == (
        "Received a 200 response from GitHub but could not parse the response body"
    )


def test_directory_listing_is_fatal() -> None:
    body = json.dumps([{"name": "a.md", "type": "file"}]).encode("utf-8")
    fetcher, _ = _fetcher(_response(200, body=body, headers={"etag": ETAG}))

    assert isinstance(_fetch(fetcher, path="posts/drafts.v1"), FetchFatal)


def test_transport_error_is_fatal() -> None:
    fetcher, _ = _fetcher(error=requests.ConnectionError("Failed to connect"))

    result = _fetch(fetcher)

    assert isinstance(result, FetchFatal)
    assert str(result.cause) == "Could not complete request to the GitHub api"
    assert isinstance(result.cause.__cause__, requests.ConnectionError)


def test_path_without_extension_is_rejected_before_requesting() -> None:
    fetcher, session = _fetcher(_response(200))

    result = _fetch(fetcher, path="contentDir")

    assert isinstance(result, FetchFatal)
    assert str(result.cause).startswith("The path contentDir is not a file with an extension")
    session.get.assert_not_called()


def test_custom_base_url_is_used() -> None:
    session = Mock(spec=requests.Session)
    session.get.return_value = _response(404)
    fetcher = GitHubContentsFetcher(base_url="https://ghe.example.com/api/v3/", session=session)

    _fetch(fetcher, path="/README.md")

    assert session.get.call_args.args[0] == (
        "https://ghe.example.com/api/v3/repos/octo-org/blog/contents/README.md"
    )


@pytest.mark.asyncio
async def test_async_fetch_delegates_to_the_blocking_request() -> None:
    fetcher, session = _fetcher(_response(404))

    result = await fetcher.fetch(
        owner="octo-org", repo="blog", path="a.md", token="t", user_agent="ua", etag=ETAG
    )

    assert result == FetchNotFound()
    session.get.assert_called_once()


def test_unrepresentable_rate_limit_headers_fall_back_to_zero() -> None:
    fetcher, _ = _fetcher(
        _response(
            403,
            headers={
                "x-ratelimit-remaining": "0",
                "x-ratelimit-limit": "inf",
                "x-ratelimit-reset": "inf",
            },
        )
    )

    assert _fetch(fetcher) == FetchRateLimited(limit=0, remaining=0, reset_at=0)
