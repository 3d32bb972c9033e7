"""Logging configuration for Cortex.

Modules log through ``logging.getLogger(__name__)``; this module only wires
handlers for entry points (the CLI).
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from .settings import settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None, *, to_file: bool | None = None) -> None:
    """Install stderr (and optionally rotating file) handlers on the package logger.

    Args:
        level: Logging level name; defaults to settings.log_level.
        to_file: Also log to settings.log_path; defaults to settings.log_to_file.
    """
    level_name = (level or settings.log_level).upper()
    use_file = settings.log_to_file if to_file is None else to_file

    root = logging.getLogger("cortex")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(getattr(logging, level_name, logging.INFO))

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(stream)

    if use_file:
        settings.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(file_handler)

    root.propagate = False
