"""Logging for the API server, the aggregation CLI and embedded engines.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where records go. Uvicorn's own loggers are re-pointed at the root
handlers so server, access and application lines share one format and file.
"""
from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
QUIET_LOGGERS = ("urllib3", "multipart", "httpx")


def _handlers(log_file: Optional[str], max_bytes: int, backup_count: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=str(log_path), maxBytes=max_bytes, backupCount=backup_count
            )
        )
    return handlers


# PUBLIC_INTERFACE
def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    access_log: bool = True,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """Install console (and optional rotating file) handlers on the root logger.

    Args:
        log_level: Minimum level for application records.
        log_file: Rotating log file path; None logs to the console only.
        access_log: When False, per-request ``uvicorn.access`` lines are dropped.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    # Re-init replaces handlers instead of stacking them
    root_logger.handlers.clear()
    for handler in _handlers(log_file, max_bytes, backup_count):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(logging.NOTSET)
    if not access_log:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_logging_from_settings(settings: Settings) -> None:
    """Configure logging from service settings."""
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        access_log=settings.access_log,
    )
