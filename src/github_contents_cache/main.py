"""CLI entrypoint: fetch one file through a JSON-file cache and print the result."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from github_contents_cache import __version__
from github_contents_cache.cache.file_store import JsonFileCacheStore
from github_contents_cache.cache.namespaced import NamespacedCacheStore
from github_contents_cache.config import ContentsCacheSettings
from github_contents_cache.errors import ConfigurationError
from github_contents_cache.github.client import GitHubContentsFetcher
from github_contents_cache.logging import configure_logging
from github_contents_cache.results import ContentResult
from github_contents_cache.retrieval import get_github_content

logger = logging.getLogger(__name__)

EXIT_CODES: dict[str, int] = {
    "found": 0,
    "notFound": 0,
    "error": 1,
    "rateLimitExceeded": 3,
}


def _split_repository(value: str) -> tuple[str, str]:
    owner, sep, repo = value.strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise argparse.ArgumentTypeError(f"Expected 'owner/repo', got {value!r}")
    return owner, repo


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-contents-cache",
        description="Fetch files from the GitHub contents API through a local cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"github-contents-cache {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch", help="Fetch a file, using the cache when possible")
    fetch.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        type=_split_repository,
        required=True,
        help="Source repository in the form 'owner/repo'",
    )
    fetch.add_argument("--path", required=True, help="File path inside the repository")
    fetch.add_argument(
        "--ignore-cache",
        action="store_true",
        help="Drop any cached entry and always ask GitHub",
    )
    fetch.add_argument(
        "--max-age",
        type=float,
        default=None,
        help="Seconds a cached file is served without asking GitHub (overrides settings)",
    )
    fetch.add_argument(
        "--max-404-age",
        type=float,
        default=None,
        help="Seconds a cached 'not found' is trusted (overrides settings)",
    )
    fetch.add_argument(
        "--trace",
        action="store_true",
        help="Log every workflow transition at DEBUG level",
    )

    return parser


async def _fetch(args: argparse.Namespace, settings: ContentsCacheSettings) -> ContentResult:
    owner, repo = args.repository
    fetcher = GitHubContentsFetcher(base_url=settings.github_base_url)
    try:
        return await get_github_content(
            token=settings.github_token,
            owner=owner,
            repo=repo,
            path=args.path,
            user_agent=settings.user_agent,
            cache=NamespacedCacheStore.for_repository(
                JsonFileCacheStore(settings.cache_path), owner=owner, repo=repo
            ),
            ignore_cache=args.ignore_cache,
            max_age=args.max_age if args.max_age is not None else settings.max_age_seconds,
            max_404_age=(
                args.max_404_age if args.max_404_age is not None else settings.max_404_age_seconds
            ),
            fetcher=fetcher,
            trace=args.trace,
        )
    finally:
        fetcher.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ContentsCacheSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging("DEBUG" if args.trace else settings.log_level)

    if args.command == "fetch":
        try:
            result = asyncio.run(_fetch(args, settings))
        except ConfigurationError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2

        if result.status == "error":
            logger.error(
                "Could not retrieve content",
                extra={
                    "path": args.path,
                    "reason": result.message,
                    "error": str(result.error),
                },
            )
        print(json.dumps(result.to_json(), indent=2, ensure_ascii=False, default=str))
        return EXIT_CODES[result.status]

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
