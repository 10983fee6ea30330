"""Structured logging configuration.

Uses standard library logging; each record becomes one JSON line carrying the
retrieval context passed through ``extra`` (path, step, status, ...).
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import IO, Any

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}

SERVICE_NAME = "github-contents-cache"


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the ``extra`` fields attached to ``record``."""

    return {
        name: value
        for name, value in vars(record).items()
        if name not in _STANDARD_ATTRS and not name.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``static_fields`` stamped on every line."""

    def __init__(self, static_fields: Mapping[str, object] | None = None) -> None:
        super().__init__()
        self._static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        created = datetime.fromtimestamp(record.created, tz=UTC)
        line: dict[str, Any] = {
            **self._static_fields,
            "ts": created.isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        context = record_context(record)
        if context:
            line["context"] = context
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        if record.stack_info:
            line["stack"] = self.formatStack(record.stack_info)

        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: str, *, stream: IO[str] | None = None) -> None:
    """Route root logging to ``stream`` (stderr by default) as JSON lines.

    Stdout is left for command output.
    """

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonFormatter({"service": SERVICE_NAME}))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    # urllib3 logs every connection at DEBUG.
    logging.getLogger("urllib3").setLevel(max(root.level, logging.INFO))
