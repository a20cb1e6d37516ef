# =============================================================================
# scentbox_core/data/retry.py
# Retry with exponential backoff for remote calls
# =============================================================================

from __future__ import annotations
import time
from typing import Callable, Optional, TypeVar

from scentbox_core.errors import NetworkError, classify_exception
from scentbox_core.logging import get_logger
from scentbox_core.utils.cancellation import CancellationToken, check

logger = get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
INITIAL_DELAY = 1.0     # Seconds before the second attempt
BACKOFF_BASE = 2        # Delay multiplier per attempt


def backoff_delay(attempt: int, initial_delay: float = INITIAL_DELAY) -> float:
    """Delay after the given (1-based) failed attempt: 1s, 2s, 4s..."""
    return initial_delay * (BACKOFF_BASE ** (attempt - 1))


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = MAX_ATTEMPTS,
    initial_delay: float = INITIAL_DELAY,
    sleep: Optional[Callable[[float], None]] = None,
    token: Optional[CancellationToken] = None,
    description: str = "remote call",
) -> T:
    """
    Run ``operation`` with exponential backoff.

    Only transient failures (timeouts, 5xx) are retried; everything else is
    raised on the first failure. The raised error is always the classified
    NetworkError, never the raw transport exception.

    Args:
        operation: Zero-argument callable doing the remote call
        max_attempts: Total attempts including the first
        initial_delay: Delay before the second attempt, doubled afterwards
        sleep: Sleep function (injectable for tests); defaults to the
            token's interruptible wait, or time.sleep
        token: Optional cancellation token, checked before every attempt
        description: Used in log messages

    Raises:
        NetworkError: classified failure after the last attempt
        OperationCancelled: if the token was cancelled
    """
    last_error: Optional[NetworkError] = None

    for attempt in range(1, max_attempts + 1):
        check(token)
        try:
            return operation()
        except Exception as e:
            last_error = classify_exception(e)

            if attempt < max_attempts and last_error.is_transient:
                delay = backoff_delay(attempt, initial_delay)
                logger.warning(
                    f"{description}: attempt {attempt}/{max_attempts} failed, "
                    f"retrying in {delay:.1f}s: {last_error.message}"
                )
                if sleep is not None:
                    sleep(delay)
                elif token is not None:
                    token.wait(delay)
                else:
                    time.sleep(delay)
            else:
                logger.error(
                    f"{description}: failed after {attempt} attempt(s): {last_error.message}"
                )
                raise last_error from e

    # max_attempts < 1
    raise last_error or NetworkError("No attempts were made", code="NET_000")
