"""
Typed contracts passed between pipeline stages.

All models are frozen: a request, its page set and its result are created
once per request and never mutated afterwards.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(str, Enum):
    """What the caller's URL points at. Values match the wire `source` field."""

    IMAGE = "image"
    PAGINATED_DOCUMENT = "pdf"


class DocumentInputMode(str, Enum):
    """How paginated documents reach the model (deployment-time choice)."""

    RASTERIZE = "rasterize"
    DIRECT = "direct"


class AnalysisContext(BaseModel):
    """
    Free-form job metadata used only to enrich the instruction text.
    """

    model_config = ConfigDict(frozen=True)

    project: str | None = None
    address: str | None = None
    builder: str | None = None
    community: str | None = None
    doc_type: str | None = None


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource_url: str
    declared_type: str | None = None
    context: AnalysisContext = Field(default_factory=AnalysisContext)
    estimate_id: str | None = None


class RasterPage(BaseModel):
    """
    One document page rendered to an encoded bitmap.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1)
    data: bytes
    mime_type: str = "image/png"
    width: int
    height: int
    dpi: int

    @property
    def pixel_area(self) -> int:
        return self.width * self.height

    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class ExtractionResult(BaseModel):
    """
    Parsed model output relayed to the caller. Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    source_kind: ResourceKind
    structured: Any
    raw_text: str
    page_count: int = 0
