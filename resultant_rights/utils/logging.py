"""Diagnostics for a resultant-rights run.

Each run appends JSON lines (identifiers, resolved ids, set counts, failure
kinds) to `resultant-rights.log` and mirrors them on stderr. Stdout carries
only the rights report, so `--requestor ... | jq` keeps working.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from resultant_rights.utils.errors import ConfigurationError

# Attributes present on every LogRecord; anything else arrived through ``extra``.
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Format log records as JSON documents.

    Fields passed through ``extra`` are copied into the payload so queries
    against the log file can filter on identifiers, sides or rule ids.
    """

    default_time_format = "%Y-%m-%dT%H:%M:%S"

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                self.default_time_format
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def stderr_rich_handler(**kwargs: Any) -> RichHandler:
    """Factory used by ``dictConfig`` to bind the Rich handler to stderr."""

    return RichHandler(console=Console(stderr=True), **kwargs)


def _build_handlers(log_dir: Path, enable_rich: bool) -> Dict[str, Dict[str, Any]]:
    handlers: Dict[str, Dict[str, Any]] = {
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filename": str(log_dir / "resultant-rights.log"),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
        }
    }
    if enable_rich:
        handlers["console"] = {
            "()": "resultant_rights.utils.logging.stderr_rich_handler",
            "formatter": "rich",
            "rich_tracebacks": True,
            "show_path": False,
        }
    else:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stderr",
        }
    return handlers


def configure_logging(*, level: str = "WARNING", log_dir: Optional[Path] = None) -> None:
    """Install the JSON file handler and the stderr handler on the root logger.

    ``log_dir`` defaults to ``$RIGHTS_LOG_DIR``, then ``~/.resultant-rights/logs``.
    An unusable directory or level name raises :class:`ConfigurationError`.
    """

    log_dir = log_dir or Path(os.environ.get("RIGHTS_LOG_DIR", Path.home() / ".resultant-rights" / "logs"))
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(f"Cannot create log directory {log_dir}: {exc.strerror or exc}") from exc

    enable_rich = os.environ.get("RIGHTS_RICH", "1") != "0"
    handlers = _build_handlers(log_dir, enable_rich)

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "resultant_rights.utils.logging.JsonFormatter",
            },
            "rich": {
                "format": "%(message)s",
                "datefmt": "%H:%M:%S",
            },
        },
        "handlers": handlers,
        "root": {
            "level": level.upper(),
            "handlers": list(handlers.keys()),
        },
    }

    try:
        logging.config.dictConfig(config)
    except ValueError as exc:
        raise ConfigurationError(f"Cannot configure logging: {exc}") from exc


def get_logger(name: str) -> logging.Logger:
    """Return a logger that shares the configuration applied above."""

    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter", "stderr_rich_handler"]
