from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from core.logging_utils import redact_url
from pipeline.clients.llm_client import ExtractionClient
from pipeline.models.dto import (
    AnalysisRequest,
    DocumentInputMode,
    ExtractionResult,
    RasterPage,
    ResourceKind,
)
from pipeline.processors.assembler import assemble
from pipeline.processors.classifier import classify, require_http_url
from pipeline.processors.rasterizer import RasterConfig, Rasterizer
from pipeline.processors.response_normalizer import normalize
from pipeline.prompts import build_instruction
from pipeline.schemas.base import ExtractionSchema
from pipeline.schemas.plan_summary import PLAN_SUMMARY_SCHEMA
from pipeline.utils.timing import StageTimers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable per-process pipeline configuration, built once at startup."""

    raster: RasterConfig = field(default_factory=RasterConfig)
    default_kind: ResourceKind = ResourceKind.PAGINATED_DOCUMENT
    document_mode: DocumentInputMode = DocumentInputMode.RASTERIZE
    schema: ExtractionSchema = PLAN_SUMMARY_SCHEMA
    strict_validation: bool = False


class AnalysisPipeline:
    """
    classify -> (maybe) rasterize -> assemble -> extract -> normalize.

    Holds only configuration and stateless collaborators, so one instance can
    serve concurrent requests.
    """

    def __init__(
        self,
        config: PipelineConfig,
        rasterizer: Rasterizer,
        client: ExtractionClient,
    ) -> None:
        self.config = config
        self.rasterizer = rasterizer
        self.client = client

    async def run(
        self,
        request: AnalysisRequest,
        trace_id: Optional[str] = None,
    ) -> ExtractionResult:
        log_extra = {"trace_id": trace_id}
        timers = StageTimers()
        resource_url = require_http_url(request.resource_url)

        kind = classify(
            resource_url, request.declared_type, self.config.default_kind
        )
        logger.info(
            "Classified url=%s declared_type=%s as %s",
            redact_url(resource_url),
            request.declared_type,
            kind.value,
            extra=log_extra,
        )

        pages: list[RasterPage] = []
        if (
            kind is ResourceKind.PAGINATED_DOCUMENT
            and self.config.document_mode is DocumentInputMode.RASTERIZE
        ):
            with timers.timer("rasterize"):
                pages = await self.rasterizer.rasterize(resource_url)

        instruction = build_instruction(request.context, request.estimate_id)
        blocks = assemble(
            instruction,
            kind,
            resource_url=resource_url,
            pages=pages,
            document_mode=self.config.document_mode,
        )

        with timers.timer("extract"):
            envelope = await self.client.extract(blocks, self.config.schema)

        result = normalize(
            envelope,
            kind,
            schema=self.config.schema,
            strict_validation=self.config.strict_validation,
            page_count=len(pages),
        )

        logger.info(
            "Analysis complete kind=%s pages=%d blocks=%d timings_ms=%s",
            kind.value,
            len(pages),
            len(blocks),
            timers.as_millis(),
            extra=log_extra,
        )
        return result
