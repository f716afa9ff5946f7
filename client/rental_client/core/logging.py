"""JSON log output for the client and request-id propagation to outbound calls."""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Final

from rental_client.core.config import settings

REQUEST_ID_CTX: Final[ContextVar[str | None]] = ContextVar("request_id", default=None)

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "request_id"}

_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "socketio", "engineio")

_LOGGING_CONFIGURED: bool = False


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message, request id and extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            entry[key] = value if isinstance(value, (str, int, float, bool)) else str(value)

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info).replace("\n", " | ")

        return json.dumps(entry, ensure_ascii=True, separators=(",", ":"))


def configure_logging(level_name: str | None = None) -> None:
    """Install the JSON formatter on the root logger once; LOG_LEVEL by default."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_resolve_level(level_name or settings.log_level))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def bind_request_id(request_id: str) -> Token[str | None]:
    return REQUEST_ID_CTX.set(request_id)


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def reset_request_id(token: Token[str | None]) -> None:
    REQUEST_ID_CTX.reset(token)


def current_or_new_request_id() -> str:
    """Return the bound request id or mint a fresh one for an outbound call."""
    return get_request_id() or uuid.uuid4().hex


__all__ = [
    "JsonLogFormatter",
    "bind_request_id",
    "configure_logging",
    "current_or_new_request_id",
    "get_request_id",
    "reset_request_id",
]
