"""Structured JSON logging for the relay."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Anything on a record beyond these came in through `extra=`.
_BUILTIN_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON line per record: time, level, logger, event name and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _BUILTIN_ATTRS
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def resolve_log_level(value: str | int | None, *, default: int = logging.INFO) -> int:
    """Accept a level name ("debug") or number ("10") and return the numeric level."""
    if isinstance(value, int):
        return value
    if not value or not value.strip():
        return default
    candidate = value.strip()
    if candidate.isdigit():
        return int(candidate)
    mapped = logging.getLevelNamesMapping().get(candidate.upper())
    return mapped if mapped is not None else default


def configure_logging(level: str | int | None = None) -> None:
    root = logging.getLogger()
    root.setLevel(resolve_log_level(level))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
