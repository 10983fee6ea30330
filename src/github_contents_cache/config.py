"""Settings for the github-contents-cache command line.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The library entry point ``get_github_content`` takes everything as arguments
and never reads these settings itself.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContentsCacheSettings(BaseSettings):
    """Settings for the CLI.

    Environment variables:
    - GITHUB_CONTENTS_CACHE_TOKEN
    - GITHUB_BASE_URL                           (optional)
    - GITHUB_CONTENTS_CACHE_USER_AGENT          (optional)
    - LOG_LEVEL                                 (optional)
    - GITHUB_CONTENTS_CACHE_PATH                (optional)
    - GITHUB_CONTENTS_CACHE_MAX_AGE_SECONDS     (optional)
    - GITHUB_CONTENTS_CACHE_MAX_404_AGE_SECONDS (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `ContentsCacheSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="GITHUB_CONTENTS_CACHE_TOKEN",
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    user_agent: str = Field(
        default="github-contents-cache",
        validation_alias="GITHUB_CONTENTS_CACHE_USER_AGENT",
        description="User-Agent header sent to GitHub",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    cache_path: Path = Field(
        default=Path(".cache/github-contents.json"),
        validation_alias="GITHUB_CONTENTS_CACHE_PATH",
        description="JSON file used as the cache store",
    )
    max_age_seconds: float | None = Field(
        default=None,
        ge=0,
        validation_alias="GITHUB_CONTENTS_CACHE_MAX_AGE_SECONDS",
        description="Seconds a cached file is served without asking GitHub",
    )
    max_404_age_seconds: float | None = Field(
        default=None,
        ge=0,
        validation_alias="GITHUB_CONTENTS_CACHE_MAX_404_AGE_SECONDS",
        description="Seconds a cached 'not found' is trusted (unbounded when unset)",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_github_auth(self) -> ContentsCacheSettings:
        if not self.github_token.strip():
            raise ValueError("GITHUB_CONTENTS_CACHE_TOKEN is required")
        return self
