"""Logging configuration for the TransTerm service.

Modules log through ``logging.getLogger(__name__)``; this module only wires
handlers onto the ``transterm`` package logger once at startup.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .settings import settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | None = None, *, to_file: bool | None = None) -> None:
    """Attach console and rotating file handlers to the package logger.

    Safe to call more than once; only the first call installs handlers.

    Args:
        level: Log level name. Defaults to settings.log_level.
        to_file: Whether to also write to settings.log_path.
    """
    global _configured
    if _configured:
        return

    log_level = (level or settings.log_level).upper()
    write_file = settings.log_to_file if to_file is None else to_file

    package_logger = logging.getLogger("transterm")
    package_logger.setLevel(log_level)

    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    package_logger.addHandler(console)

    if write_file:
        settings.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    _configured = True
    package_logger.debug("Logging configured at %s (file=%s)", log_level, write_file)
