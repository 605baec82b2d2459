"""Logging configuration setup."""

import logging
import logging.config
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "oh_my_skills"

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def stderr_rich_handler(**kwargs: Any) -> logging.Handler:
    return RichHandler(console=Console(stderr=True), **kwargs)


def build_log_config(level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "rich": {"format": "%(message)s", "datefmt": "[%X]"},
        },
        "handlers": {
            "rich": {
                "()": "oh_my_skills.logging_config.stderr_rich_handler",
                "level": level,
                "formatter": "rich",
                "show_path": False,
            },
        },
        "loggers": {
            PACKAGE_LOGGER: {
                "handlers": ["rich"],
                "level": level,
                "propagate": False,
            },
            "httpx": {
                "handlers": ["rich"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def setup_logging(level: str = "WARNING") -> str:
    """Route package logs through a rich handler on stderr."""
    normalized = level.upper()
    if normalized not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    logging.config.dictConfig(build_log_config(normalized))
    return normalized
