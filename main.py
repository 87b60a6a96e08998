"""FastAPI application entry point."""

from dotenv import load_dotenv

load_dotenv()

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import analyze, health
from core.error_handlers import (
    handle_app_error,
    handle_http_error,
    handle_pydantic_error,
    handle_unknown_error,
    handle_validation_error,
)
from core.lifespan import lifespan
from core.logging_config import configure_structured_logging
from core.middleware import trace_id_middleware
from core.openapi import custom_openapi
from core.settings import get_settings
from core.utils import TRACE_ID_HEADER
from pipeline.core.config import SERVICE_VERSION
from pipeline.core.exceptions import BaseError

settings = get_settings()

# Configure logging
configure_structured_logging(
    level=settings.app.LOG_LEVEL, json_format=settings.app.LOG_JSON
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="WC Vision Service",
        version=SERVICE_VERSION,
        description="Extracts foundation and plot-plan summaries from plan images and PDFs",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Custom OpenAPI
    app.openapi = lambda: custom_openapi(app)

    # 1. Register Middleware
    app.middleware("http")(trace_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ALLOW_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[TRACE_ID_HEADER],
    )

    # 2. Register Exception Handlers
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(PydanticCoreValidationError, handle_pydantic_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(BaseError, handle_app_error)
    app.add_exception_handler(Exception, handle_unknown_error)

    # Routes
    app.include_router(health.router)
    app.include_router(analyze.router)
    return app


app = create_app()


if __name__ == "__main__":
    logger.info(
        "%s listening on port %d", settings.app.SERVICE_NAME, settings.app.PORT
    )
    uvicorn.run(app, host=settings.app.HOST, port=settings.app.PORT)
