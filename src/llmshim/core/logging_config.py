"""Logging setup for llmshim.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed by the application through :func:`configure_logging`.

Usage:
    from llmshim.core.logging_config import configure_logging, get_logger

    configure_logging(level="DEBUG", format="json")
    logger = get_logger(__name__)

Environment Variables:
    LLMSHIM_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    LLMSHIM_LOG_FORMAT: Output format ("text" or "json")
    LLMSHIM_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes present on every LogRecord; anything else came in via ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_configured = False


@dataclass
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Log level name.
        format: Output format ("text" or "json").
        file_path: Optional file to log to in addition to stderr.
    """

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    file_path: str | None = None

    @classmethod
    def from_env(cls) -> LogConfig:
        """Build a config from LLMSHIM_LOG_* variables."""
        fmt = os.environ.get("LLMSHIM_LOG_FORMAT", "text").lower()
        return cls(
            level=os.environ.get("LLMSHIM_LOG_LEVEL", "INFO").upper(),
            format="json" if fmt == "json" else "text",
            file_path=os.environ.get("LLMSHIM_LOG_FILE") or None,
        )


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Fields passed through ``extra=`` are grouped under an ``extra`` key, e.g.
    ``logger.warning("tool_args_invalid", extra={"tool_call_id": "toolu_1"})``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    force: bool = False,
) -> None:
    """Install handlers on the root logger.

    Explicit arguments win over LLMSHIM_LOG_* environment variables. Calls
    after the first are ignored unless ``force`` is set.

    Args:
        level: Log level name.
        format: "text" or "json".
        file_path: Optional log file.
        force: Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    env = LogConfig.from_env()
    config = LogConfig(
        level=(level or env.level).upper(),
        format=format or env.format,
        file_path=file_path or env.file_path,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level))
    root_logger.handlers.clear()

    if config.format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file_path:
        file_handler = logging.FileHandler(config.file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)


def set_level(level: str, logger_name: str | None = "llmshim") -> None:
    """Set the level of one logger; defaults to the package logger."""
    logging.getLogger(logger_name).setLevel(getattr(logging, level.upper()))
