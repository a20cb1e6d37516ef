# =============================================================================
# scentbox_core/services/base_service.py
# Base Service Class with Common Functionality
# =============================================================================

from __future__ import annotations
from abc import ABC
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from scentbox_core.auth import AuthContext
from scentbox_core.errors import UnauthenticatedError, handle_error
from scentbox_core.logging import LogContext, get_logger


@dataclass
class ServiceResult:
    """
    Standard result container for service operations.

    ``error`` is the user-facing message; ``retryable`` tells the screen
    whether to offer a retry button.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False
    metadata: Optional[Dict[str, Any]] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None, metadata: Dict[str, Any] = None) -> ServiceResult:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: str = "UNKNOWN",
        retryable: bool = False,
        metadata: Dict[str, Any] = None,
    ) -> ServiceResult:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            retryable=retryable,
            metadata=metadata,
        )

    @classmethod
    def from_exception(cls, e: Exception, user_message: Optional[str] = None) -> ServiceResult:
        """Log once through handle_error and wrap the report."""
        report = handle_error(e, user_message=user_message)
        return cls.fail(
            report.message,
            error_code=report.code,
            retryable=report.retryable,
            metadata=report.details,
        )


class BaseService(ABC):
    """
    Abstract base class for services used by the screens.

    Provides logging, the current user and result standardization.

    Usage:
        class MyService(BaseService):
            def do_something(self) -> ServiceResult:
                return self.safe_execute("Doing something", self._do_something)
    """

    def __init__(self, auth: Optional[AuthContext] = None):
        self.logger = get_logger(self.__class__.__name__)
        self.auth = auth

    def require_user(self) -> str:
        """
        Raises:
            UnauthenticatedError: no auth context or nobody signed in
        """
        if self.auth is None:
            raise UnauthenticatedError()
        return self.auth.current_user_id()

    def log_operation(self, operation: str) -> LogContext:
        """
        Create a logging context for an operation.

        Usage:
            with self.log_operation("Saving review"):
                source.insert_review(review)
        """
        return LogContext(self.logger, operation)

    def safe_execute(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        user_message: Optional[str] = None,
        **kwargs
    ) -> ServiceResult:
        """
        Execute a function with error handling and logging.

        Args:
            operation: Description of the operation
            func: Function to execute
            user_message: Message shown instead of the error's own
            *args, **kwargs: Arguments to pass to func

        Returns:
            ServiceResult with success/failure status
        """
        with self.log_operation(operation):
            try:
                return ServiceResult.ok(func(*args, **kwargs))
            except Exception as e:
                return ServiceResult.from_exception(e, user_message=user_message)
