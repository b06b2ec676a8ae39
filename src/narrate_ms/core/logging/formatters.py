"""
Log Formatters for JSON and Console Output.

    JsonlFormatter: one JSON object per line, for files and log shippers.
    ConsoleFormatter: `HH:MM:SS [ TAG ] (rid) message key=value 0.123s`,
        with ANSI colors when the terminal supports them.

Example JSONL line:
    {"ts":"2026-01-15T14:30:05+00:00","level":2,"tag":"INFO","message":"cache_hit","request_id":"abc123","extra":{"id":"5a2b9c01d3ef"}}
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict

RESET = "\033[0m"
DIM = "\033[2m"
_TAG_COLORS = {
    "SUCCESS": "\033[92m",
    "FAIL": "\033[91m",
    "ERROR": "\033[91m",
    "WARN": "\033[93m",
    "INFO": "\033[96m",
    "DEBUG": "\033[90m",
}


def supports_color() -> bool:
    """True when stdout is a TTY and NARRATE_MS_NO_COLOR / NO_COLOR are unset."""
    if os.getenv("NARRATE_MS_NO_COLOR") or os.getenv("NO_COLOR"):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


class JsonlFormatter(logging.Formatter):
    """Format log records as JSON Lines."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "logger": record.name,
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable single-line console format."""

    def __init__(self, use_colors: bool = False):
        super().__init__()
        self.use_colors = use_colors

    def _paint(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{RESET}"

    def format(self, record: logging.LogRecord) -> str:
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [
            self._paint(datetime.fromtimestamp(record.created).strftime("%H:%M:%S"), DIM),
            self._paint(f"[{tag:^7}]", _TAG_COLORS.get(tag, "")),
        ]
        if rid != "-":
            parts.append(self._paint(f"({rid})", DIM))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(f"event={event}")

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            parts.extend(f"{k}={v}" for k, v in extra_data.items())

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            parts.append(f"{seconds:.3f}s")

        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))

        return " ".join(parts)
