"""Structured logging configuration for convoflow."""

import logging
import logging.config
from collections.abc import MutableMapping
from typing import Any

from pythonjsonlogger.json import JsonFormatter


def setup_logging(level: str = "INFO", json_file: str | None = None) -> None:
    """
    Configure structured logging for convoflow.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_file: When set, also write JSON lines to this rotating file
    """
    level = level.upper()
    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "level": level,
            },
        },
        "loggers": {
            "convoflow": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    }

    if json_file:
        config["formatters"]["json"] = {
            "()": JsonFormatter,
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        }
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": json_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "formatter": "json",
            "level": level,
        }
        config["loggers"]["convoflow"]["handlers"].append("file")

    logging.config.dictConfig(config)


class ContextAdapter(logging.LoggerAdapter):
    """Prefixes messages with ``[key=value ...]`` and passes the context as extra fields."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = dict(self.extra or {})
        kwargs["extra"] = {**context, **kwargs.get("extra", {})}
        prefix = " ".join(f"{key}={value}" for key, value in context.items())
        return (f"[{prefix}] {msg}" if prefix else msg), kwargs


class ContextLogger:
    """Logger with contextual information."""

    def __init__(self, name: str):
        """
        Initialize context logger.

        Args:
            name: Logger name (typically __name__)
        """
        self.logger = logging.getLogger(name)

    def with_context(self, **context: Any) -> logging.LoggerAdapter:
        """
        Add context to log messages.

        Args:
            **context: Context key-value pairs

        Returns:
            LoggerAdapter with context
        """
        return ContextAdapter(self.logger, context)
