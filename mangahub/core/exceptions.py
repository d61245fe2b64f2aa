"""
Core exception hierarchy for MangaHub.

Provides standardized exception types with categorization for retry logic.
Every error carries a stable ``kind`` and an HTTP-style ``status_code`` so the
route layer can translate it without inspecting messages.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class MangaHubError(Exception):
    """Base exception for all MangaHub errors."""

    kind: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serializable form used by the route layer's error envelope."""
        return {
            "error": type(self).__name__,
            "kind": self.kind,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }


class RetryableError(MangaHubError):
    """
    Transient errors that may succeed on a later attempt.

    Examples: upstream 503, timeouts, dropped connections.
    """

    pass


class PermanentError(MangaHubError):
    """
    Errors that won't be fixed by retrying.

    Examples: missing resource, invalid input, unparseable document.
    """

    pass


# =============================================================================
# Initialization Errors
# =============================================================================


class InitializationError(PermanentError):
    """Raised when a critical component fails to initialize."""

    kind = "configuration_error"

    def __init__(self, component: str, message: str, details: Optional[dict[str, Any]] = None):
        self.component = component
        super().__init__(f"[{component}] {message}", details)


# =============================================================================
# Source Errors
# =============================================================================


class SourceError(MangaHubError):
    """Base exception for errors raised while talking to an upstream source."""

    def __init__(
        self,
        source: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.source = source
        super().__init__(f"[{source}] {message}", details)


class SourceNotFoundError(SourceError, PermanentError):
    """Raised when the upstream site answers 404."""

    kind = "not_found"
    status_code = 404


class SourceUnavailableError(SourceError, RetryableError):
    """Raised when the upstream site answers 503."""

    kind = "service_unavailable"
    status_code = 503


class SourceTimeoutError(SourceError, RetryableError):
    """Raised when a request exceeds the client timeout."""

    kind = "timeout"
    status_code = 504


class FetchError(SourceError, RetryableError):
    """Raised for any other failed fetch (unexpected status, transport error)."""

    kind = "fetch_failed"
    status_code = 502

    def __init__(
        self,
        source: str,
        path: str,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.path = path
        self.upstream_status = status_code
        text = message or f"Failed to fetch {path}: {status_code}"
        super().__init__(source, text, {"path": path, "status_code": status_code})


class ScrapeError(SourceError, PermanentError):
    """Raised when a document was fetched but required fields could not be extracted."""

    kind = "scrape_failure"
    status_code = 503

    def __init__(
        self,
        source: str,
        operation: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.operation = operation
        merged = {"operation": operation, **(details or {})}
        super().__init__(source, f"{operation} failed: {message}", merged)


# =============================================================================
# Request Errors
# =============================================================================


class ParameterValidationError(PermanentError):
    """Raised when a caller-supplied parameter is missing or invalid."""

    kind = "validation_failure"
    status_code = 400

    def __init__(self, message: str, parameter: Optional[str] = None):
        self.parameter = parameter
        details = {"parameter": parameter} if parameter else None
        super().__init__(message, details)


class UnsupportedOperationError(PermanentError):
    """Raised when a source does not offer the requested optional capability."""

    kind = "unsupported_operation"
    status_code = 404

    def __init__(self, source: str, operation: str):
        self.source = source
        self.operation = operation
        super().__init__(
            f"Source '{source}' does not support '{operation}'",
            {"source": source, "operation": operation},
        )


class RateLimitedError(RetryableError):
    """Raised by the inbound throttling layer; never raised by the scraping core."""

    kind = "rate_limited"
    status_code = 429

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        super().__init__(
            f"Too many requests. Retry after {retry_after:.1f}s",
            {"retry_after": retry_after},
        )
