"""
Shared error handling for the revenue dashboard client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorInfo(BaseModel):
    """Standard error description stored on cache entries and shown to views."""

    code: str
    message: str
    status: Optional[int] = None
    details: Dict[str, Any] = {}


class DashboardClientError(Exception):
    """Base exception for the dashboard client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorInfo:
        """Convert to error info."""
        return ErrorInfo(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ApiError(DashboardClientError):
    """Remote API failure: transport problem, error status, or unsuccessful envelope."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        data: Any = None,
        is_transport_error: bool = False,
    ):
        details: Dict[str, Any] = {"is_transport_error": is_transport_error}
        if status is not None:
            details["status"] = status
        super().__init__("API_ERROR", message, details)
        self.status = status
        self.data = data
        self.is_transport_error = is_transport_error

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_retryable(self) -> bool:
        """4xx responses are presumed permanent; everything else may be transient."""
        return not self.is_client_error

    def to_response(self) -> ErrorInfo:
        info = super().to_response()
        info.status = self.status
        return info


class AuthenticationError(DashboardClientError):
    """Authentication-related errors."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class InvalidCacheKeyError(DashboardClientError):
    """A cache key or key prefix is malformed."""

    def __init__(self, message: str = "Invalid cache key", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CACHE_KEY", message, details)


class InvalidTransitionError(DashboardClientError):
    """A cache entry was asked to make a state transition its table does not allow."""

    def __init__(self, state: str, event: str):
        super().__init__(
            "INVALID_TRANSITION",
            f"No transition from '{state}' on '{event}'",
            {"state": state, "event": event}
        )


class InvalidationMapError(DashboardClientError):
    """The mutation invalidation map is incomplete or references unknown keys."""

    def __init__(self, message: str = "Invalidation map is inconsistent", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALIDATION_MAP_ERROR", message, details)


class QueryCancelledError(DashboardClientError):
    """A query was dropped from the cache before its fetch settled."""

    def __init__(self, key: str):
        super().__init__("QUERY_CANCELLED", "Query was cancelled before it settled", {"key": key})


class CacheDisposedError(DashboardClientError):
    """The query cache was used after dispose()."""

    def __init__(self, message: str = "Query cache has been disposed"):
        super().__init__("CACHE_DISPOSED", message)


def is_retryable_error(error: BaseException) -> bool:
    """Classify an exception for the retry policy."""
    if isinstance(error, ApiError):
        return error.is_retryable
    if isinstance(error, DashboardClientError):
        return False
    return True
