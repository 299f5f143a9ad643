"""
Logging configuration for pyparfait.

Library modules only create loggers with ``logging.getLogger(__name__)``;
applications call :func:`setup` to route the ``pyparfait`` loggers through a
rich console handler. Sampling batches run on worker threads, so every record
is tagged with the short name of the module and of the thread that emitted it.
"""

from __future__ import annotations

import logging
import logging.config
from logging import LogRecord
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class SourceFilter(logging.Filter):
    """
    Adds ``filenameStem`` and ``worker`` attributes to every record.

    ``worker`` is empty on the main thread and the thread name otherwise.
    """

    def filter(self, record: LogRecord) -> bool:
        record.filenameStem = Path(record.filename).stem
        record.worker = "" if record.threadName == "MainThread" else f"{record.threadName} "
        return True


def rich_handler_factory(width: int = 160) -> RichHandler:
    return RichHandler(
        console=Console(width=width, stderr=True),
        rich_tracebacks=True,
        tracebacks_suppress=[],
        markup=True,
    )


LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "source": {
            "()": SourceFilter,
        }
    },
    "formatters": {
        "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
        "pretty": {"format": "[[yellow]%(filenameStem)s[/]] [dim]%(worker)s[/]%(message)s"},
    },
    "handlers": {
        "default": {
            "formatter": "standard",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
        "rich": {
            "()": rich_handler_factory,
            "formatter": "pretty",
            "filters": ["source"],
        },
    },
    "loggers": {
        "": {
            "handlers": ["default"],
            "level": "WARNING",
            "propagate": False,
        },
        "pyparfait": {
            "handlers": ["rich"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def setup(level: int | str | None = None) -> None:
    """
    Initialize logging based on the configuration dictionary in this file.

    Args:
        level: optional override for the ``pyparfait`` logger level, e.g. ``"DEBUG"``
            to see every merged batch
    """
    logging.config.dictConfig(LOGGING_CONFIG)
    if level is not None:
        logging.getLogger("pyparfait").setLevel(level)


__all__ = ("SourceFilter", "setup")
