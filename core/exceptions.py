"""
Custom exceptions for the data import pipeline with structured error context.

Every failure the pipeline classifies itself derives from ``LoggableError``.
Besides the usual message/context/cause triple, a loggable error carries
``logger_options``: the rendering hints (for example ``markdown=True``) the
progress log applies when the error is shown to the user. Classification
lives here; presentation lives in ``ingestion.progress.ProgressLog``.

Exception Hierarchy:
    LoggableError (base)
    ├── InvalidInputTypeError
    └── FetchError
        ├── NetworkFailure
        ├── HttpStatusFailure
        ├── EmptyBodyFailure
        └── StreamReadFailure

Errors raised by the warehouse (DuckDB) or the ledger database are not
wrapped; they reach the caller unmodified.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


CORS_GUIDE_URL = "https://developer.mozilla.org/en-US/docs/Web/HTTP/Guides/CORS"


class LoggableError(Exception):
    """
    Base exception for all classified import errors.

    Attributes:
        kind: Stable tag identifying the error variant
        message: Human-readable error message shown to the user
        context: Additional context information (url, status code, etc.)
        original_exception: The original exception that was caught (if any)
        logger_options: Rendering options applied by the progress log
    """

    kind = "loggable"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
        logger_options: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.logger_options = logger_options or {}
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception is not None:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        """Format error message with context for operator logs."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception is not None:
            base_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: "
                f"{self.original_exception}"
            )

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Input Errors
# ============================================================================

class InvalidInputTypeError(LoggableError):
    """
    Raised when an import input is neither a local file nor a URL source.

    This is a caller bug, not a data problem: the import aborts before the
    warehouse is touched.
    """

    kind = "invalid_input_type"

    def __init__(self, value: Any, index: Optional[int] = None):
        context: Dict[str, Any] = {"input_type": type(value).__name__}
        if index is not None:
            context["index"] = index
        super().__init__("invalid input type", context=context)


# ============================================================================
# Fetch Errors
# ============================================================================

class FetchError(LoggableError):
    """Base exception for failures while downloading a remote source."""

    kind = "fetch_error"


class NetworkFailure(FetchError):
    """
    The request itself could not be completed.

    Context should include:
        - url: The URL that failed
    """

    kind = "network_failure"

    def __init__(self, url: str, original_exception: Optional[BaseException] = None):
        super().__init__(
            "Failed to fetch data from URL: This may be due to a network issue or the "
            f"server blocking [cross-origin requests (CORS)]({CORS_GUIDE_URL}). "
            "Check that the URL is valid and configured to allow access from this site.",
            context={"url": url},
            original_exception=original_exception,
            logger_options={"markdown": True}
        )


class HttpStatusFailure(FetchError):
    """
    A response was received but its status indicates failure.

    Context should include:
        - url: The URL that failed
        - status_code: HTTP status code
    """

    kind = "http_status_failure"

    def __init__(self, url: str, status_code: int, status_text: str):
        super().__init__(
            f"Failed to fetch data from URL: {status_text}. Please check if the URL is "
            "accessible and the server is responding correctly.",
            context={"url": url, "status_code": status_code}
        )
        self.status_code = status_code


class EmptyBodyFailure(FetchError):
    """The response has no body to read."""

    kind = "empty_body_failure"

    def __init__(self, url: str, status_code: Optional[int] = None):
        super().__init__(
            "Failed to fetch data from URL: Server response has no body content. This may "
            "indicate a server configuration issue or the resource may be empty.",
            context={"url": url, "status_code": status_code}
        )


class StreamReadFailure(FetchError):
    """Reading the response body failed part way through."""

    kind = "stream_read_failure"

    def __init__(
        self,
        url: str,
        bytes_loaded: int = 0,
        original_exception: Optional[BaseException] = None
    ):
        super().__init__(
            "Failed to fetch data from URL: Error while reading data.",
            context={"url": url, "bytes_loaded": bytes_loaded},
            original_exception=original_exception
        )


def error_kind(exc: BaseException) -> str:
    """Return the classification tag for any exception."""
    if isinstance(exc, LoggableError):
        return exc.kind
    return "unclassified"
