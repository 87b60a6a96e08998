"""Unit tests for exception hierarchy."""

import pytest

from pipeline.core.exceptions import (
    BaseError,
    ClientError,
    EmptyOutputError,
    ErrorCategory,
    FetchError,
    MalformedJsonError,
    OperationTimeoutError,
    RenderError,
    ServerError,
    TooLargeError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)


class TestBaseError:
    """Tests for BaseError class."""

    def test_base_error_creation(self):
        """Test BaseError can be created with all parameters."""
        error = BaseError(
            message="Test error",
            error_code="TEST_ERROR",
            category=ErrorCategory.CLIENT_ERROR,
            http_status=400,
            details={"field": "test"},
            retryable=False,
        )

        assert str(error) == "Test error"
        assert error.error_code == "TEST_ERROR"
        assert error.category == ErrorCategory.CLIENT_ERROR
        assert error.http_status == 400
        assert error.details == {"field": "test"}
        assert error.retryable is False

    def test_base_error_to_dict(self):
        """Test BaseError converts to the error envelope fields."""
        error = BaseError(
            message="Test error",
            error_code="TEST_ERROR",
            category=ErrorCategory.SERVER_ERROR,
            http_status=500,
            retryable=True,
        )

        assert error.to_dict() == {
            "code": "TEST_ERROR",
            "details": "Test error",
            "category": "server_error",
            "retryable": True,
        }

    def test_base_error_default_details(self):
        error = BaseError("Test", "TEST", ErrorCategory.SERVER_ERROR, 500)

        assert error.details == {}
        assert error.retryable is False


class TestClientErrors:
    """Tests for ClientError and subclasses."""

    def test_client_error_defaults(self):
        error = ClientError(message="Client error", error_code="CLIENT_ERROR")

        assert error.http_status == 400
        assert error.category == ErrorCategory.CLIENT_ERROR
        assert error.retryable is False

    def test_validation_error_keeps_field(self):
        error = ValidationError("Missing file/image URL", field="resourceUrl")

        assert error.http_status == 422
        assert error.error_code == "VALIDATION_ERROR"
        assert error.details["field"] == "resourceUrl"

    def test_unauthorized(self):
        error = UnauthorizedError()

        assert error.http_status == 401
        assert error.message == "Unauthorized"


class TestServerErrors:
    """Tests for ServerError and subclasses."""

    def test_too_large_reports_sizes(self):
        error = TooLargeError(max_bytes=1024 * 1024, observed_bytes=2_000_000)

        assert error.http_status == 413
        assert error.error_code == "SOURCE_TOO_LARGE"
        assert error.details == {"max_bytes": 1048576, "observed_bytes": 2_000_000}
        assert "1.00MB" in error.message
        assert error.category == ErrorCategory.EXTERNAL_SERVICE
        assert isinstance(error, ServerError)

    def test_server_error_defaults(self):
        error = ServerError(message="boom", error_code="BOOM")

        assert error.http_status == 500
        assert error.category == ErrorCategory.SERVER_ERROR

    def test_fetch_error_is_retryable_external_failure(self):
        error = FetchError("Source fetch failed with HTTP 404")

        assert error.http_status == 502
        assert error.category == ErrorCategory.EXTERNAL_SERVICE
        assert error.retryable is True

    def test_timeout_names_operation(self):
        error = OperationTimeoutError("fetch", 30)

        assert error.http_status == 504
        assert error.operation == "fetch"
        assert error.message == "fetch timed out after 30s"
        assert error.details["timeout_seconds"] == 30

    def test_render_error(self):
        error = RenderError("Document has no pages")

        assert error.error_code == "RENDER_ERROR"
        assert error.http_status == 422

    @pytest.mark.parametrize(
        "error_type, status, retryable",
        [
            ("auth", 502, False),
            ("rate_limit", 503, True),
            ("unavailable", 502, True),
            ("error", 502, False),
            ("invalid_response", 502, False),
        ],
    )
    def test_upstream_error_classification(self, error_type, status, retryable):
        error = UpstreamError(error_type)

        assert error.error_type == error_type
        assert error.http_status == status
        assert error.retryable is retryable
        assert error.details["error_type"] == error_type

    def test_output_errors(self):
        assert EmptyOutputError().error_code == "EMPTY_OUTPUT"
        assert MalformedJsonError().message == "Could not parse JSON output."
