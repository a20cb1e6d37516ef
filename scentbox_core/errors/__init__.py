# =============================================================================
# scentbox_core/errors/__init__.py
# Centralized Error Handling for ScentBox
# =============================================================================

from .exceptions import (
    ScentBoxError,
    NetworkError,
    NoConnectionError,
    RequestTimeoutError,
    ServerError,
    NotSupportedError,
    UnknownNetworkError,
    classify_exception,
    StorageError,
    CorruptRecordError,
    DataValidationError,
    UnauthenticatedError,
    OperationCancelled,
    ConfigurationError,
)

from .handlers import (
    ErrorReport,
    handle_error,
    safe_execute,
    error_boundary,
)

__all__ = [
    # Exceptions
    "ScentBoxError",
    "NetworkError",
    "NoConnectionError",
    "RequestTimeoutError",
    "ServerError",
    "NotSupportedError",
    "UnknownNetworkError",
    "classify_exception",
    "StorageError",
    "CorruptRecordError",
    "DataValidationError",
    "UnauthenticatedError",
    "OperationCancelled",
    "ConfigurationError",
    # Handlers
    "ErrorReport",
    "handle_error",
    "safe_execute",
    "error_boundary",
]
