"""Structured logging configuration with cycle ID tracking."""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlsplit


# Context variable for cycle/command correlation
cycle_id_var: ContextVar[Optional[str]] = ContextVar("cycle_id", default=None)

# Attributes present on every LogRecord; anything else came in via ``extra=``
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def __init__(self, include_location: bool = False):
        super().__init__()
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cycle_id = cycle_id_var.get()
        if cycle_id:
            log_data["cycle_id"] = cycle_id

        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_location:
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        cycle_id = cycle_id_var.get()
        cid = f"[{cycle_id[:8]}] " if cycle_id else ""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} {record.levelname:8} {cid}{record.name}: {record.getMessage()}"

        extras = _extra_fields(record)
        if extras:
            base += " " + " ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class SensitiveDataFilter(logging.Filter):
    """Filter sensitive data from logs."""

    SENSITIVE_KEYS = {
        "token",
        "secret",
        "authorization",
        "api_key",
        "apikey",
        "webhook",
    }

    # Apprise/webhook URLs carry credentials in the path
    _URL_PATTERN = re.compile(r"\b([a-z]+)://[^\s'\"]+", re.IGNORECASE)
    _OPENAI_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9_\-]{8,}")
    # https webhooks (Discord, Slack, Telegram bot API) embed the token in the path
    _HTTP_SECRET_PATTERN = re.compile(r"hook|token|/bot\d", re.IGNORECASE)
    _TOKEN_SEGMENT_PATTERN = re.compile(r"(?=[\w-]*\d)(?=[\w-]*[A-Za-z])[\w-]{24,}")

    def filter(self, record: logging.LogRecord) -> bool:
        # %-style records keep their msg so args still line up
        if record.args:
            return True
        message = str(record.msg)

        lowered = message.lower()
        for key in self.SENSITIVE_KEYS:
            if key in lowered:
                message = self._redact_value(message, key)

        message = self._OPENAI_KEY_PATTERN.sub("[REDACTED]", message)
        message = self._URL_PATTERN.sub(self._redact_url, message)
        record.msg = message
        return True

    @classmethod
    def _redact_url(cls, match: re.Match) -> str:
        scheme = match.group(1).lower()
        if scheme not in ("http", "https"):
            return f"{scheme}://[REDACTED]"
        url = match.group(0)
        try:
            parts = urlsplit(url)
        except ValueError:
            return f"{scheme}://[REDACTED]"
        if cls._HTTP_SECRET_PATTERN.search(url) or cls._TOKEN_SEGMENT_PATTERN.search(parts.path):
            return f"{scheme}://{parts.netloc}/[REDACTED]"
        return url

    def _redact_value(self, text: str, key: str) -> str:
        """Redact values after sensitive keys."""
        patterns = [
            rf"({key}\s*[=:]\s*)[^\s,}}\]]+",
            rf"('{key}'\s*:\s*)[^\s,}}\]]+",
            rf'("{key}"\s*:\s*)[^\s,}}\]]+',
        ]
        for pattern in patterns:
            text = re.sub(pattern, r"\1[REDACTED]", text, flags=re.IGNORECASE)
        return text


def setup_logging(level: str = "INFO", fmt: str = "text", debug: bool = False) -> None:
    """Configure application logging."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level))

    if fmt == "json":
        handler.setFormatter(StructuredFormatter(include_location=debug))
    else:
        handler.setFormatter(TextFormatter())

    handler.addFilter(SensitiveDataFilter())

    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the moverbot prefix."""
    return logging.getLogger(f"moverbot.{name}")
