# =============================================================================
# scentbox_core/errors/exceptions.py
# Custom Exception Hierarchy for ScentBox
# =============================================================================

from __future__ import annotations

import socket
from typing import Optional, Dict, Any

import httpx
from postgrest.exceptions import APIError


class ScentBoxError(Exception):
    """
    Base exception for all ScentBox errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "NET_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "SB_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# NETWORK EXCEPTIONS
# =============================================================================

class NetworkError(ScentBoxError):
    """
    Classified remote failure.

    Raw transport errors are converted once at the boundary with
    ``classify_exception``; retry decisions only look at ``is_transient``.
    """

    transient = False

    @property
    def is_transient(self) -> bool:
        return self.transient

    @classmethod
    def from_exception(cls, error: BaseException) -> "NetworkError":
        return classify_exception(error)


class NoConnectionError(NetworkError):
    """No network path to the remote service (fails fast, never retried)"""

    def __init__(self, message: str = "No internet connection. Check your network settings.", **kwargs):
        super().__init__(message=message, code="NET_001", **kwargs)


class RequestTimeoutError(NetworkError):
    """The request timed out (retryable)"""

    transient = True

    def __init__(self, message: str = "The request took too long. Please try again.", **kwargs):
        super().__init__(message=message, code="NET_002", **kwargs)


class ServerError(NetworkError):
    """HTTP error status from the remote; transient only for 5xx"""

    def __init__(self, status_code: int, message: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if message is None:
            if status_code >= 500:
                message = f"Server error ({status_code}). Please try again later."
            else:
                message = f"Request error ({status_code}). Please check your sign-in."
        super().__init__(message=message, code="NET_003", details=details, **kwargs)
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500


class NotSupportedError(NetworkError):
    """The remote endpoint does not support the requested operation"""

    def __init__(self, reason: str, **kwargs):
        super().__init__(message=reason, code="NET_004", recoverable=False, **kwargs)


class UnknownNetworkError(NetworkError):
    """Unclassified failure, wraps the original cause"""

    def __init__(self, cause: Optional[BaseException] = None, **kwargs):
        details = kwargs.pop("details", {})
        if cause is not None:
            details["cause"] = repr(cause)
        super().__init__(
            message="An unknown error occurred. Please try again.",
            code="NET_005",
            details=details,
            **kwargs,
        )
        self.cause = cause


def _status_from(error: BaseException) -> Optional[int]:
    """Pull an HTTP status code out of the common error shapes."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status

    if isinstance(error, APIError):
        code = str(error.code or "")
        if code.isdigit() and len(code) == 3:
            return int(code)

    return None


def classify_exception(error: BaseException) -> NetworkError:
    """
    Map any raised exception to the network taxonomy.

    Timeouts are checked before connection errors because
    ``socket.timeout`` is an ``OSError`` subclass.
    """
    if isinstance(error, NetworkError):
        return error

    if isinstance(error, (httpx.TimeoutException, socket.timeout, TimeoutError)):
        return RequestTimeoutError(details={"cause": repr(error)})

    if isinstance(error, (httpx.ConnectError, httpx.NetworkError, ConnectionError, socket.gaierror)):
        return NoConnectionError(details={"cause": repr(error)})

    status = _status_from(error)
    if status is not None and status >= 400:
        return ServerError(status)

    return UnknownNetworkError(cause=error)


# =============================================================================
# STORAGE / DATA EXCEPTIONS
# =============================================================================

class StorageError(ScentBoxError):
    """Raised when the local store cannot read or write"""

    def __init__(self, message: str, table: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        super().__init__(message=message, code="STORE_001", details=details, **kwargs)


class CorruptRecordError(StorageError):
    """Raised when a persisted value cannot be decoded"""

    def __init__(self, message: str, value: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if value is not None:
            details["value"] = value
        super().__init__(message=message, details=details, recoverable=False, **kwargs)
        self.code = "STORE_002"


class DataValidationError(ScentBoxError):
    """Raised when an entity fails validation checks"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if expected:
            details["expected"] = expected
        if actual:
            details["actual"] = actual

        super().__init__(
            message=message,
            code="DATA_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# SESSION / CONTROL FLOW EXCEPTIONS
# =============================================================================

class UnauthenticatedError(ScentBoxError):
    """Raised when an operation needs a signed-in user"""

    def __init__(self, message: str = "Please sign in to continue.", **kwargs):
        super().__init__(message=message, code="AUTH_001", **kwargs)


class OperationCancelled(ScentBoxError):
    """Raised at a suspension point when the operation's token was cancelled"""

    def __init__(self, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        super().__init__(message="Operation cancelled", code="CANCEL_001", details=details, **kwargs)


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ScentBoxError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
