# =============================================================================
# scentbox_core/errors/handlers.py
# Error Handling Utilities for ScentBox
# =============================================================================

from __future__ import annotations
import functools
import traceback
from dataclasses import dataclass, field
from typing import Optional, Callable, TypeVar, Any, Dict

from scentbox_core.logging import get_logger
from .exceptions import ScentBoxError, NetworkError

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ErrorReport:
    """What the presentation layer shows for a failed operation."""
    message: str
    code: str
    recoverable: bool = True
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)


def handle_error(
    error: Exception,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> ErrorReport:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        log_error: Whether to log the error
        user_message: Custom message to show user (uses error message if None)

    Returns:
        ErrorReport with the user-facing message and a retry hint
    """
    if isinstance(error, ScentBoxError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    # Network failures offer a manual retry
    retryable = isinstance(error, NetworkError) or not isinstance(error, ScentBoxError)

    if log_error:
        logger.error(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=error if not isinstance(error, NetworkError) else None,
        )

    return ErrorReport(
        message=message,
        code=code,
        recoverable=recoverable,
        retryable=retryable,
        details=details,
    )


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Execute a function with automatic error handling.

    Usage:
        facets = safe_execute(
            source.list_facet_values, "brand",
            default=[],
            error_message="Could not load brands"
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, user_message=error_message)
        if reraise:
            raise
        return default


def error_boundary(
    default_return: Any = None,
    log: bool = True,
):
    """
    Decorator to wrap callbacks with error handling.

    Usage:
        @error_boundary()
        def on_sync_finished(report):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.error(
                        f"Error in {func.__name__}: {e}",
                        exc_info=True,
                    )
                return default_return

        return wrapper

    return decorator
