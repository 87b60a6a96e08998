import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas import ErrorResponse
from core.utils import TRACE_ID_HEADER, ensure_trace_id
from pipeline.core.exceptions import BaseError, ErrorCategory

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Vision service failed"


def _error_response(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(by_alias=True, exclude_none=True),
        headers={TRACE_ID_HEADER: error.trace_id or ""},
    )


def _validation_response(request: Request, detail: str) -> JSONResponse:
    trace_id = ensure_trace_id(request)
    error = ErrorResponse(
        error="Request validation failed",
        details=detail,
        code="VALIDATION_ERROR",
        category=ErrorCategory.CLIENT_ERROR.value,
        retryable=False,
        trace_id=trace_id,
    )
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, error)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handler for FastAPI/Pydantic request validation errors."""
    trace_id = ensure_trace_id(request)

    first_error = exc.errors()[0] if exc.errors() else {}
    loc = first_error.get("loc", [])
    field = ".".join(str(loc_part) for loc_part in loc if loc_part != "body")
    msg = first_error.get("msg", "Validation failed")
    detail = f"{field}: {msg}" if field else msg

    logger.warning(
        f"Validation error: {detail}",
        extra={"trace_id": trace_id, "path": request.url.path},
    )
    return _validation_response(request, detail)


async def handle_pydantic_error(request: Request, exc: PydanticCoreValidationError):
    """Handler for Pydantic errors raised outside request parsing."""
    trace_id = ensure_trace_id(request)

    errors = exc.errors() if hasattr(exc, "errors") else []
    first_error = errors[0] if errors else {}
    msg = first_error.get("msg", "Validation failed")

    logger.warning(
        "Pydantic validation failed",
        extra={"trace_id": trace_id, "path": request.url.path},
    )
    return _validation_response(request, msg)


async def handle_app_error(request: Request, exc: BaseError):
    """Handler for application-specific BaseErrors.

    Client errors echo their own message as the summary; everything else is
    reported as a generic vision failure with the message in `details`.
    """
    trace_id = ensure_trace_id(request)

    is_client = exc.category is ErrorCategory.CLIENT_ERROR
    log = logger.warning if is_client else logger.error
    log(
        "Application error: %s",
        exc.message,
        extra={
            "trace_id": trace_id,
            "error_code": exc.error_code,
            "path": request.url.path,
            "http_status": exc.http_status,
        },
    )

    error = ErrorResponse(
        error=exc.message if is_client else GENERIC_FAILURE,
        **exc.to_dict(),
        trace_id=trace_id,
    )
    return _error_response(exc.http_status, error)


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    """Handler for standard HTTP exceptions (404, 405, 503, etc.)."""
    trace_id = ensure_trace_id(request)

    logger.warning(
        "HTTP exception %s: %s",
        exc.status_code,
        exc.detail,
        extra={"trace_id": trace_id, "http_status": exc.status_code},
    )

    error = ErrorResponse(
        error=str(exc.detail),
        details=str(exc.detail),
        code=f"HTTP_{exc.status_code}",
        category=(
            ErrorCategory.SERVER_ERROR.value
            if exc.status_code >= 500
            else ErrorCategory.CLIENT_ERROR.value
        ),
        retryable=False,
        trace_id=trace_id,
    )
    return _error_response(exc.status_code, error)


async def handle_unknown_error(request: Request, exc: Exception):
    """Handler for unexpected 500 errors."""
    trace_id = ensure_trace_id(request)

    logger.exception(
        "Unexpected error occurred",
        extra={"trace_id": trace_id, "path": request.url.path},
    )

    error = ErrorResponse(
        error=GENERIC_FAILURE,
        details="An unexpected error occurred. Please contact support with trace ID.",
        code="INTERNAL_SERVER_ERROR",
        category=ErrorCategory.SERVER_ERROR.value,
        retryable=False,
        trace_id=trace_id,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, error)
