#!/usr/bin/env python3
"""Programmatic retrieval example.

This demonstrates using the library directly:

* load settings from `.env`
* fetch a Markdown file through a JSON-file cache
* render it with a caller-supplied serialize step before it is cached

Run it twice: the second run revalidates with the cached etag and reports a cache hit.
"""

from __future__ import annotations

import argparse
import asyncio
import html
from typing import Sequence

from github_contents_cache.cache.file_store import JsonFileCacheStore
from github_contents_cache.cache.namespaced import NamespacedCacheStore
from github_contents_cache.config import ContentsCacheSettings
from github_contents_cache.github.client import GitHubContentsFetcher
from github_contents_cache.logging import configure_logging
from github_contents_cache.retrieval import get_github_content


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch a file through the cache (example).")
    parser.add_argument("--owner", required=True, help="Repository owner")
    parser.add_argument("--repo", required=True, help="Repository name")
    parser.add_argument("--path", required=True, help="File path, e.g. posts/hello.md")
    return parser.parse_args(argv)


def render(markdown: str) -> dict[str, object]:
    lines = markdown.splitlines()
    title = lines[0].lstrip("# ").strip() if lines else ""
    return {"title": title, "html": "<pre>" + html.escape(markdown) + "</pre>"}


async def run(args: argparse.Namespace, settings: ContentsCacheSettings) -> int:
    fetcher = GitHubContentsFetcher(base_url=settings.github_base_url)
    try:
        result = await get_github_content(
            token=settings.github_token,
            owner=args.owner,
            repo=args.repo,
            path=args.path,
            user_agent=settings.user_agent,
            cache=NamespacedCacheStore.for_repository(
                JsonFileCacheStore(settings.cache_path), owner=args.owner, repo=args.repo
            ),
            max_age=settings.max_age_seconds,
            serialize=render,
            fetcher=fetcher,
        )
    finally:
        fetcher.close()

    print(result.to_json())
    return 0 if result.status in {"found", "notFound"} else 1


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = ContentsCacheSettings()
    configure_logging(settings.log_level)

    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
