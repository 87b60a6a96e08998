"""Plan analysis endpoint."""

import logging
import time

from fastapi import APIRouter, Depends, Request

from api.schemas import AnalyzeRequest, AnalyzeResponse, ErrorResponse
from core.dependencies import get_pipeline, require_internal_key
from core.logging_utils import redact_url
from pipeline.orchestrator import AnalysisPipeline

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/analyze-plan",
    response_model=AnalyzeResponse,
    response_model_by_alias=True,
    tags=["analysis"],
    dependencies=[Depends(require_internal_key)],
    responses={
        401: {"description": "Missing or wrong X-Internal-Key", "model": ErrorResponse},
        413: {"description": "Source document too large", "model": ErrorResponse},
        422: {"description": "Validation or render error", "model": ErrorResponse},
        502: {"description": "Fetch or extraction failure", "model": ErrorResponse},
        504: {"description": "Fetch, render or extraction timeout", "model": ErrorResponse},
    },
)
async def analyze_plan(
    request: Request,
    body: AnalyzeRequest,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    start_time = time.time()
    trace_id = getattr(request.state, "trace_id", None)

    logger.info(
        "[NEW REQUEST] url=%s declared_type=%s estimate_id=%s",
        redact_url(body.resource_url),
        body.declared_type,
        body.estimate_id,
        extra={"trace_id": trace_id},
    )

    result = await pipeline.run(body.to_domain(), trace_id=trace_id)

    response = AnalyzeResponse(
        source_kind=result.source_kind.value,
        structured=result.structured,
        raw=result.raw_text,
        page_count=result.page_count,
        processing_time_seconds=round(time.time() - start_time, 3),
        trace_id=trace_id,
    )

    logger.info(
        "[RESPONSE] source=%s pages=%d time=%.2fs",
        response.source_kind,
        response.page_count,
        response.processing_time_seconds,
        extra={
            "trace_id": trace_id,
            "source_kind": response.source_kind,
            "page_count": response.page_count,
        },
    )
    return response
