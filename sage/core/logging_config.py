"""
Logging setup for Sage processes.

Pipeline modules log through `logging.getLogger(__name__)` with a bracketed
component prefix (`[Router]`, `[Skinsort]`, `[Research]`). A process that
wants those records on disk calls `setup_logging()` once:

    from sage.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("[Router] resolving ...")

Records go to logs/sage/system.log (rotated) and stdout.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from sage.core.config import get_settings

LOG_DIR = Path("logs/sage")
LOG_FILE_NAME = "system.log"
MAX_LOG_SIZE = 10 * 1024 * 1024
BACKUP_COUNT = 5

FILE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-30s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-20s | %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"

# Transport libraries log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

_configured = False
_handlers: List[logging.Handler] = []


def _file_handler(log_dir: Path, level: int) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, CONSOLE_DATE_FORMAT))
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    service_name: str = "sage",
    log_dir: Optional[Path] = None,
) -> None:
    """
    Configure the root logger. Later calls are no-ops until reset_logging().

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to the LOG_LEVEL setting.
        log_to_console: Also log to stdout
        log_to_file: Log to <log_dir>/system.log
        service_name: Logger name used for the startup line
        log_dir: Directory for the rotating log file (default logs/sage)
    """
    global _configured

    if _configured:
        return

    level_name = (level or get_settings().log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    log_dir = log_dir or LOG_DIR

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in _handlers:
        root_logger.removeHandler(handler)
    _handlers.clear()

    if log_to_file:
        _handlers.append(_file_handler(log_dir, log_level))
    if log_to_console:
        _handlers.append(_console_handler(log_level))
    for handler in _handlers:
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    destination = f" -> {(log_dir / LOG_FILE_NAME).absolute()}" if log_to_file else ""
    logging.getLogger(service_name).info(f"[Logging] {service_name} at {level_name}{destination}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module. Pass __name__."""
    return logging.getLogger(name)


def reset_logging() -> None:
    """Detach and close the handlers added by setup_logging (tests)."""
    global _configured
    root_logger = logging.getLogger()
    for handler in _handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()
    _configured = False
