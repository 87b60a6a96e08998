"""Pydantic request/response schemas for API endpoints."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pipeline.core.config import (
    CONTEXT_FIELD_MAX_LENGTH,
    DECLARED_TYPE_MAX_LENGTH,
    RESOURCE_URL_MAX_LENGTH,
)
from pipeline.core.exceptions import ValidationError
from pipeline.models.dto import AnalysisContext, AnalysisRequest
from pipeline.processors.classifier import require_http_url


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "error": "Vision service failed",
                "details": "Could not parse JSON output.",
                "code": "MALFORMED_JSON",
                "category": "external_service",
                "retryable": False,
                "traceId": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
            }
        },
    )

    error: str = Field(..., description="Short summary of the failure")
    details: Optional[str] = Field(
        None, description="Human-readable explanation specific to this occurrence"
    )
    code: str = Field(..., description="Application-specific error code")
    category: str = Field(
        ..., description="Error category (client_error, server_error, etc.)"
    )
    retryable: bool = Field(
        default=False, description="Whether the request can be retried"
    )
    trace_id: Optional[str] = Field(
        None, description="Trace ID for correlating logs with this request"
    )


class ContextModel(BaseModel):
    """Optional job metadata woven into the instruction text."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    project: Optional[str] = Field(None, max_length=CONTEXT_FIELD_MAX_LENGTH)
    address: Optional[str] = Field(None, max_length=CONTEXT_FIELD_MAX_LENGTH)
    builder: Optional[str] = Field(None, max_length=CONTEXT_FIELD_MAX_LENGTH)
    community: Optional[str] = Field(None, max_length=CONTEXT_FIELD_MAX_LENGTH)
    doc_type: Optional[str] = Field(
        None,
        max_length=CONTEXT_FIELD_MAX_LENGTH,
        description="e.g. 'Foundation plan' or 'Plot plan'; selects the prompt",
    )


class AnalyzeRequest(BaseModel):
    """Validated body of POST /analyze-plan.

    Older callers send fileUrl/imageUrl, fileType and extraContext; those
    names are still accepted, with fileUrl taking precedence over imageUrl.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "resourceUrl": "https://files.example.com/plans/lot-12.pdf",
                "declaredType": "pdf",
                "context": {
                    "project": "Lot 12",
                    "builder": "Acme Homes",
                    "docType": "Foundation plan",
                },
                "estimateId": "EST-1042",
            }
        },
    )

    resource_url: str = Field(
        ...,
        max_length=RESOURCE_URL_MAX_LENGTH,
        validation_alias=AliasChoices("resourceUrl", "fileUrl", "imageUrl"),
        description="HTTP(S) URL of the image or PDF to analyze",
    )
    declared_type: Optional[str] = Field(
        None,
        max_length=DECLARED_TYPE_MAX_LENGTH,
        validation_alias=AliasChoices("declaredType", "fileType"),
        description="Caller's type hint: pdf, png, jpg, image/png, ...",
    )
    context: ContextModel = Field(
        default_factory=ContextModel,
        validation_alias=AliasChoices("context", "extraContext"),
    )
    estimate_id: Optional[str] = Field(
        None,
        max_length=CONTEXT_FIELD_MAX_LENGTH,
        validation_alias=AliasChoices("estimateId"),
    )

    @field_validator("resource_url")
    @classmethod
    def validate_resource_url(cls, url_value: str) -> str:
        """Require an absolute http(s) URL with a host.

        Raises:
            ValueError: If the URL is blank or not http(s)
        """
        try:
            return require_http_url(url_value)
        except ValidationError as e:
            raise ValueError(e.message) from e

    @field_validator("estimate_id", mode="before")
    @classmethod
    def coerce_estimate_id(cls, estimate_value: Any) -> Any:
        if isinstance(estimate_value, (int, float)) and not isinstance(
            estimate_value, bool
        ):
            return str(estimate_value)
        return estimate_value

    @field_validator("context", mode="before")
    @classmethod
    def default_null_context(cls, context_value: Any) -> Any:
        return {} if context_value is None else context_value

    def to_domain(self) -> AnalysisRequest:
        return AnalysisRequest(
            resource_url=self.resource_url,
            declared_type=self.declared_type,
            context=AnalysisContext(**self.context.model_dump()),
            estimate_id=self.estimate_id,
        )


class AnalyzeResponse(BaseModel):
    """Successful analysis result."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = Field(True, description="Always true on a 200 response")
    source_kind: str = Field(..., description="'pdf' or 'image'")
    structured: Any = Field(..., description="Parsed JSON object from the model")
    raw: str = Field(..., description="Model text the structured value came from")
    page_count: int = Field(
        0, description="Pages rasterized and sent; 0 for images and direct mode"
    )
    processing_time_seconds: float = Field(
        ..., description="Wall-clock time spent on the request"
    )
    trace_id: Optional[str] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    service: str
    version: str
    document_mode: str
    raster_backend: str
    raster_backend_available: bool
