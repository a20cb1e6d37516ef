# =============================================================================
# scentbox_core/logging/config.py
# Logging Configuration for ScentBox
# =============================================================================

import logging
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


# Log format
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log directory
LOG_DIR = Path("logs")

# Root logger name for categorized records
ROOT_LOGGER = "scentbox"

# Categories used by record()
CATEGORIES = (
    "perfumes",
    "reviews",
    "user_status",
    "sync",
    "auth",
    "cache",
    "network",
)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (default: INFO), int or level name
        log_to_file: Whether to also log to a file
        log_filename: Custom log filename (default: scentbox_YYYY-MM-DD.log)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        LOG_DIR.mkdir(exist_ok=True)
        if log_filename is None:
            log_filename = f"scentbox_{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = logging.FileHandler(LOG_DIR / log_filename)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    # Reduce noise from the transport stack
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
    logging.getLogger("supabase").setLevel(logging.WARNING)
    logging.getLogger("postgrest").setLevel(logging.WARNING)

    logger = logging.getLogger("scentbox_core")
    logger.info("Logging initialized")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Configured logger instance

    Usage:
        from scentbox_core.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Catalog page cached")
    """
    return logging.getLogger(name)


def get_category_logger(category: str) -> logging.Logger:
    """Logger for one of the app categories, e.g. ``scentbox.sync``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{category}")


def record(category: str, level: Union[int, str], message: str) -> None:
    """
    Fire-and-forget categorized log record.

    Never raises: an unknown level name is logged at WARNING and an
    unknown category still gets its own child logger.

    Usage:
        record("sync", "info", "Upload phase finished")
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.WARNING
    elif not isinstance(level, int):
        level = logging.WARNING

    get_category_logger(category or "general").log(level, message)


class LogContext:
    """
    Context manager for logging operation timing and status.

    Usage:
        with LogContext(logger, "Caching catalog page"):
            cache_service.cache_page(items)
        # Logs: "Caching catalog page... started"
        # Logs: "Caching catalog page... completed (0.04s)"
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.info(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time

        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({elapsed:.2f}s)")
        else:
            self.logger.error(
                f"{self.operation}... failed ({elapsed:.2f}s): {exc_val}",
                exc_info=True
            )

        return False  # Don't suppress exceptions
