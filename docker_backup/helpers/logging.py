################################################################################
# DOCKER-BACKUP
#
# @file:        logging.py
# @module:      docker_backup.helpers.logging
# @description: Central logging setup with structured `extra` fields.
# @author:      Docker Backup Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Modules call get_logger(__name__) at import time
# - log_manager.configure() is called once from the CLI callback
# - StructuredFormatter renders extra={...} as key=value pairs
################################################################################

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

from .constants import DEFAULT_LOG_LEVEL, LOG_DATE_FORMAT, LOG_FORMAT

ROOT_LOGGER_NAME = "docker_backup"

# Attributes every LogRecord carries; anything else came in via extra={...}
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Formatter that appends `extra` context as ` [key=value ...]`."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{base} [{pairs}]"


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever sys.stderr is at emit time (test runners swap it)."""

    def __init__(self, level=logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


class LogManager:
    """Owns the handlers attached to the package root logger."""

    def __init__(self):
        self._configured = False
        self.level = DEFAULT_LOG_LEVEL
        self.log_file: Optional[Path] = None

    def configure(
        self,
        level: Union[str, int] = DEFAULT_LOG_LEVEL,
        log_file: Optional[Union[str, Path]] = None,
        max_size_mb: int = 10,
        backup_count: int = 3,
    ) -> logging.Logger:
        """
        (Re)configure package logging.

        Args:
            level: Level name or number, e.g. "DEBUG"
            log_file: Optional path for a rotating log file
            max_size_mb: Rotation threshold for the log file
            backup_count: Rotated files to keep

        Returns:
            The package root logger
        """
        if isinstance(level, str):
            numeric = logging.getLevelName(level.upper())
            if not isinstance(numeric, int):
                raise ValueError(f"Unknown log level: {level}")
            level = numeric

        root = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        formatter = StructuredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

        console = _StderrHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

        if log_file:
            path = Path(log_file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                path,
                maxBytes=max_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
            self.log_file = path

        root.setLevel(level)
        self.level = logging.getLevelName(level)
        self._configured = True
        return root

    @property
    def configured(self) -> bool:
        return self._configured


log_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package root (module names already are)."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
