"""Structured JSON logging correlated with the active enrichment request."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import Path
import sys
from typing import Any

import orjson

from context_enrichment.observability.context import current_log_context


SENSITIVE_FIELDS = frozenset({"password", "token", "api_key", "secret", "authorization", "admin_token"})
MESSAGE_LIMIT = 2000
FIELD_LIMIT = 500

# Third-party loggers held at WARNING unless overridden
QUIET_LOGGERS = ("httpx", "httpcore", "redis")

_STANDARD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _fallback(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (Path, Exception)):
        return str(value)
    return repr(value)


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON line.

    Fields passed through ``extra=`` are appended after the fixed keys, with
    credentials masked and long strings clipped.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": _clip(record.getMessage(), MESSAGE_LIMIT),
            "logger": record.name,
        }
        entry.update(current_log_context().as_fields())
        if "." in record.name:
            entry["component"] = record.name.rsplit(".", 1)[1]
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _STANDARD_FIELDS or key.startswith("_"):
                continue
            if key.lower() in SENSITIVE_FIELDS:
                value = "[REDACTED]"
            elif isinstance(value, str):
                value = _clip(value, FIELD_LIMIT)
            entry[key] = value

        return orjson.dumps(entry, default=_fallback).decode()


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
    access_log: bool = False,
) -> None:
    """Replace the root handlers with a single stdout handler.

    ``logger_levels`` maps logger names to level names and wins over the
    defaults applied to noisy third-party loggers.
    """
    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)

    overrides = dict.fromkeys(QUIET_LOGGERS, "WARNING")
    if not access_log:
        overrides["uvicorn.access"] = "WARNING"
    overrides.update(logger_levels or {})
    for name, name_level in overrides.items():
        logging.getLogger(name).setLevel(getattr(logging, name_level.upper(), logging.INFO))
