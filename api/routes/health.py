from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from api.schemas import HealthResponse
from core.dependencies import get_pipeline, get_settings_from_state
from core.settings import Settings
from pipeline.core.config import SERVICE_VERSION
from pipeline.models.dto import DocumentInputMode
from pipeline.orchestrator import AnalysisPipeline

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, tags=["health"])
async def liveness(settings: Settings = Depends(get_settings_from_state)):
    return f"{settings.app.SERVICE_NAME} is alive"


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    settings: Settings = Depends(get_settings_from_state),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Report whether PDF requests can be served with the configured backend.

    Direct document mode never rasterizes, so the backend does not matter there.
    """
    backend = pipeline.rasterizer.backend
    backend_available = backend.is_available()
    mode = pipeline.config.document_mode
    healthy = backend_available or mode is DocumentInputMode.DIRECT

    health = HealthResponse(
        status="healthy" if healthy else "degraded",
        service=settings.app.SERVICE_NAME,
        version=SERVICE_VERSION,
        document_mode=mode.value,
        raster_backend=backend.name,
        raster_backend_available=backend_available,
    )
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=health.model_dump(by_alias=True),
    )
