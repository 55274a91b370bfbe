"""
Logging setup for the calendar manager.

Library modules only call logging.getLogger(__name__); the entry script
calls configure_logging() once to attach handlers.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_INITIALIZED = False


def configure_logging(level: str = "INFO", *, log_path: Optional[Path] = None) -> None:
    """Attach a console handler, plus a rotating file handler when log_path is given."""
    global _INITIALIZED
    if _INITIALIZED:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.addHandler(console_handler)

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(str(log_path), maxBytes=1_000_000, backupCount=5)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _INITIALIZED = True
    logging.getLogger(__name__).debug("Logging configured at %s (file: %s)", level, log_path)


__all__ = ["configure_logging"]
