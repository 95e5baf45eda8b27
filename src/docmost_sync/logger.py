"""Logging configuration for the command line entry point."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"
FILE_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """Configure the root logger.

    Records go to stderr through a :class:`~rich.logging.RichHandler`. When
    ``log_file`` is given, a plain-text copy is appended to that file as well.

    Environment variables:
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR. Default: INFO.
                   ``debug=True`` overrides it with DEBUG.
    """

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            show_path=debug,
            rich_tracebacks=True,
            log_time_format=f"[{DATE_FORMAT}]",
        )
    ]
    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
