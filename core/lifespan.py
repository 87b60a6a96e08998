import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.settings import Settings, get_settings
from core.validation import validate_all_settings
from pipeline.clients.llm_client import ExtractionClient
from pipeline.models.dto import DocumentInputMode, ResourceKind
from pipeline.orchestrator import AnalysisPipeline, PipelineConfig
from pipeline.processors.rasterizer import RasterConfig, Rasterizer
from pipeline.rendering import create_backend

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> AnalysisPipeline:
    """Construct the pipeline and its collaborators from validated settings."""
    doc = settings.document
    raster_config = RasterConfig(
        target_dpi=doc.RASTER_TARGET_DPI,
        max_pages=doc.RASTER_MAX_PAGES,
        max_pixels_per_page=doc.RASTER_MAX_PIXELS_PER_PAGE,
        max_source_bytes=doc.max_source_bytes,
        fetch_timeout_seconds=doc.FETCH_TIMEOUT_SECONDS,
        render_timeout_seconds=doc.RENDER_TIMEOUT_SECONDS,
        max_redirects=doc.FETCH_MAX_REDIRECTS,
    )
    config = PipelineConfig(
        raster=raster_config,
        default_kind=ResourceKind(doc.DEFAULT_RESOURCE_KIND),
        document_mode=DocumentInputMode(doc.DOCUMENT_INPUT_MODE),
        strict_validation=settings.llm.STRICT_SCHEMA_VALIDATION,
    )

    backend = create_backend(doc.RASTER_BACKEND)
    if config.document_mode is DocumentInputMode.RASTERIZE and not backend.is_available():
        logger.warning(
            "Raster backend %s is not available; PDF requests will fail",
            backend.name,
        )

    api_key = settings.llm.OPENAI_API_KEY
    client = ExtractionClient(
        api_key.get_secret_value() if api_key else "",
        base_url=settings.llm.LLM_BASE_URL,
        model=settings.llm.LLM_MODEL,
        timeout=settings.llm.LLM_TIMEOUT_SECONDS,
        temperature=settings.llm.LLM_TEMPERATURE,
        max_output_tokens=settings.llm.LLM_MAX_OUTPUT_TOKENS,
    )
    return AnalysisPipeline(config, Rasterizer(backend, raster_config), client)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    settings = get_settings()
    validate_all_settings(settings)

    logger.info("Initializing analysis pipeline...")
    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings)
    logger.info("Analysis pipeline ready")

    yield

    logger.info("Shutting down")
