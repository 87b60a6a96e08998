"""Exception hierarchy for the plan vision pipeline.

All pipeline failures inherit from BaseError and carry a machine-usable error
code, an HTTP status and a details dict, so the API layer can render them
without knowing which stage failed.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    EXTERNAL_SERVICE = "external_service"


class BaseError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        http_status: HTTP status code to return
        details: Additional context (dict)
        retryable: Whether the caller may retry the request
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        http_status: int,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.http_status = http_status
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to the service error envelope fields.

        Returns:
            Dict with error kind, message and classification flags
        """
        return {
            "code": self.error_code,
            "details": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }


class ClientError(BaseError):
    """Base for errors caused by the request itself (4xx)."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.CLIENT_ERROR,
            http_status=kwargs.pop("http_status", 400),
            retryable=False,
            **kwargs,
        )


class ValidationError(ClientError):
    """Request fields are missing or malformed (422)."""

    def __init__(self, message: str, field: str, **kwargs):
        additional_details = kwargs.pop("details", {})
        additional_details["field"] = field
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            http_status=422,
            details=additional_details,
            **kwargs,
        )


class UnauthorizedError(ClientError):
    """Shared-secret header missing or wrong (401)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            http_status=401,
        )


class ServerError(BaseError):
    """Base for failures reported with the generic envelope (source, render, upstream)."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=kwargs.pop("category", ErrorCategory.SERVER_ERROR),
            http_status=kwargs.pop("http_status", 500),
            retryable=kwargs.pop("retryable", False),
            **kwargs,
        )


class TooLargeError(ServerError):
    """Source document exceeds the configured byte ceiling (413).

    Args:
        max_bytes: Configured ceiling
        observed_bytes: Bytes declared or read when the fetch was aborted
    """

    def __init__(self, max_bytes: int, observed_bytes: int):
        super().__init__(
            message=(
                f"Source too large: more than {max_bytes / (1024 * 1024):.2f}MB "
                f"({observed_bytes} bytes seen)"
            ),
            error_code="SOURCE_TOO_LARGE",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=413,
            details={"max_bytes": max_bytes, "observed_bytes": observed_bytes},
        )


class FetchError(ServerError):
    """Source document could not be downloaded (network or status failure)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="FETCH_ERROR",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=502,
            retryable=True,
            **kwargs,
        )


class OperationTimeoutError(ServerError):
    """A bounded operation (fetch, render, extract) ran out of time (504).

    Args:
        operation: Name of the operation that timed out
        timeout_seconds: Configured bound
    """

    def __init__(self, operation: str, timeout_seconds: float, **kwargs):
        additional_details = kwargs.pop("details", {})
        additional_details.update(
            {"operation": operation, "timeout_seconds": timeout_seconds}
        )
        super().__init__(
            message=f"{operation} timed out after {timeout_seconds:g}s",
            error_code="TIMEOUT",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=504,
            retryable=True,
            details=additional_details,
            **kwargs,
        )
        self.operation = operation


class RenderError(ServerError):
    """Document is unreadable or the rasterization backend failed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="RENDER_ERROR",
            http_status=422,
            **kwargs,
        )


class UpstreamError(ServerError):
    """Extraction backend failed (non-success status, auth, rate limit).

    Args:
        error_type: "auth", "rate_limit", "error", "unavailable" or
            "invalid_response"
    """

    def __init__(self, error_type: str, message: Optional[str] = None, **kwargs):
        additional_details = kwargs.pop("details", {})
        additional_details["error_type"] = error_type
        super().__init__(
            message=message or f"Extraction service {error_type}",
            error_code="UPSTREAM_ERROR",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=503 if error_type == "rate_limit" else 502,
            retryable=error_type in {"rate_limit", "unavailable"},
            details=additional_details,
            **kwargs,
        )
        self.error_type = error_type


class EmptyOutputError(ServerError):
    """Response envelope carries no textual payload."""

    def __init__(self, message: str = "Model returned no text output", **kwargs):
        super().__init__(
            message=message,
            error_code="EMPTY_OUTPUT",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=502,
            **kwargs,
        )


class MalformedJsonError(ServerError):
    """Model text is not parseable JSON or not shaped like the schema."""

    def __init__(self, message: str = "Could not parse JSON output.", **kwargs):
        super().__init__(
            message=message,
            error_code="MALFORMED_JSON",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=502,
            **kwargs,
        )
