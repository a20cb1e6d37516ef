# =============================================================================
# scentbox_core/logging/__init__.py
# Centralized Logging Configuration
# =============================================================================

from .config import (
    setup_logging,
    get_logger,
    get_category_logger,
    record,
    LogContext,
    CATEGORIES,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_category_logger",
    "record",
    "LogContext",
    "CATEGORIES",
]
