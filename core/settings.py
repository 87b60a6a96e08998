"""
Centralized application settings using Pydantic.

Environment variables are read once at startup through `get_settings()` and
turned into an immutable PipelineConfig in the lifespan. Nothing reads
os.environ after that.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings

from pipeline.core import config as defaults

_MODEL_CONFIG = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class AuthSettings(BaseSettings):
    """Shared-secret guard for the inbound endpoint."""

    INTERNAL_API_KEY: Optional[SecretStr] = None

    model_config = _MODEL_CONFIG


class LLMSettings(BaseSettings):
    """Extraction backend configuration."""

    OPENAI_API_KEY: Optional[SecretStr] = None
    LLM_BASE_URL: str = defaults.DEFAULT_LLM_BASE_URL
    LLM_MODEL: str = defaults.DEFAULT_LLM_MODEL
    LLM_TIMEOUT_SECONDS: float = defaults.LLM_REQUEST_TIMEOUT_SECONDS
    LLM_TEMPERATURE: Optional[float] = None
    LLM_MAX_OUTPUT_TOKENS: Optional[int] = None
    STRICT_SCHEMA_VALIDATION: bool = False

    model_config = _MODEL_CONFIG


class DocumentSettings(BaseSettings):
    """Classification and rasterization configuration."""

    DEFAULT_RESOURCE_KIND: str = "pdf"
    DOCUMENT_INPUT_MODE: str = "rasterize"
    RASTER_BACKEND: str = "pymupdf"
    RASTER_TARGET_DPI: int = defaults.DEFAULT_TARGET_DPI
    RASTER_MAX_PAGES: int = defaults.DEFAULT_MAX_PAGES
    RASTER_MAX_PIXELS_PER_PAGE: int = defaults.DEFAULT_MAX_PIXELS_PER_PAGE
    MAX_SOURCE_SIZE_MB: float = defaults.MAX_SOURCE_SIZE_MB
    FETCH_TIMEOUT_SECONDS: float = defaults.FETCH_TIMEOUT_SECONDS
    FETCH_MAX_REDIRECTS: int = defaults.FETCH_MAX_REDIRECTS
    RENDER_TIMEOUT_SECONDS: float = defaults.RENDER_TIMEOUT_SECONDS

    model_config = _MODEL_CONFIG

    @property
    def max_source_bytes(self) -> int:
        return int(self.MAX_SOURCE_SIZE_MB * 1024 * 1024)


class AppSettings(BaseSettings):
    """General application settings."""

    SERVICE_NAME: str = "wc-vision-service"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    model_config = _MODEL_CONFIG


@dataclass(frozen=True)
class Settings:
    auth: AuthSettings
    llm: LLMSettings
    document: DocumentSettings
    app: AppSettings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        auth=AuthSettings(),
        llm=LLMSettings(),
        document=DocumentSettings(),
        app=AppSettings(),
    )
