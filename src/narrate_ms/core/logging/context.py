"""
Request Context and Configuration State for Logging.

The request id lives in a ContextVar so concurrent requests handled on the
same event loop each log with their own id. Level and file settings are
process-wide module state.

Environment Variables:
    - NARRATE_MS_LOG_LEVEL: Override log level (1-4 or name)
    - NARRATE_MS_LOG_DIR: Directory for JSONL log files
    - NARRATE_MS_JSONL_FILE: JSONL filename
    - NARRATE_MS_LOG_ROTATE_BYTES: Max file size before rotation
    - NARRATE_MS_LOG_ROTATE_BACKUP: Number of rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LogLevel

# "-" outside of a request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Set the request id used by every log line in the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve logging configuration from the settings file and environment.

    Environment variables win over the `logging` section of settings.yaml.
    A broken or missing settings file leaves the defaults in place; the
    service reports configuration problems separately.
    """
    cfg: Dict[str, Any] = {}

    from narrate_ms.core.config import ConfigValidationError, load_settings
    try:
        settings = load_settings()
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, ValueError, ConfigValidationError, yaml.YAMLError):
        pass

    if os.getenv("NARRATE_MS_LOG_LEVEL"):
        cfg["level"] = os.environ["NARRATE_MS_LOG_LEVEL"]
    if os.getenv("NARRATE_MS_LOG_DIR"):
        cfg["log_dir"] = os.environ["NARRATE_MS_LOG_DIR"]
    if os.getenv("NARRATE_MS_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["NARRATE_MS_JSONL_FILE"]
    for var, key in (
        ("NARRATE_MS_LOG_ROTATE_BYTES", "rotate_max_bytes"),
        ("NARRATE_MS_LOG_ROTATE_BACKUP", "rotate_backup_count"),
    ):
        value = os.getenv(var)
        if value and value.isdigit():
            cfg[key] = int(value)

    return cfg
