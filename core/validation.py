"""Application startup validation checks.

Validates critical settings before the application starts serving, so a
misconfigured deployment fails at boot rather than on the first request.
"""

import logging
import re

from core.settings import Settings
from pipeline.models.dto import DocumentInputMode, ResourceKind
from pipeline.rendering import BACKENDS

logger = logging.getLogger(__name__)


def validate_all_settings(settings: Settings) -> None:
    """Validate all critical settings at application startup.

    Missing secrets only warn: the service still starts, but requests are
    rejected (no INTERNAL_API_KEY) or fail upstream (no OPENAI_API_KEY).

    Raises:
        RuntimeError: If any setting is invalid
    """
    if settings.auth.INTERNAL_API_KEY is None or not (
        settings.auth.INTERNAL_API_KEY.get_secret_value().strip()
    ):
        logger.warning(
            "INTERNAL_API_KEY is not set. All analysis requests will be rejected."
        )
    if settings.llm.OPENAI_API_KEY is None or not (
        settings.llm.OPENAI_API_KEY.get_secret_value().strip()
    ):
        logger.warning(
            "OPENAI_API_KEY is not set. Vision calls will fail until you set it."
        )

    problems = []

    url_pattern = re.compile(r"^https?://.+")
    if not url_pattern.match(settings.llm.LLM_BASE_URL):
        problems.append(
            f"  - LLM_BASE_URL={settings.llm.LLM_BASE_URL} "
            "(must start with http:// or https://)"
        )

    doc = settings.document
    allowed_kinds = {kind.value for kind in ResourceKind}
    if doc.DEFAULT_RESOURCE_KIND not in allowed_kinds:
        problems.append(
            f"  - DEFAULT_RESOURCE_KIND={doc.DEFAULT_RESOURCE_KIND} "
            f"(expected one of {sorted(allowed_kinds)})"
        )
    allowed_modes = {mode.value for mode in DocumentInputMode}
    if doc.DOCUMENT_INPUT_MODE not in allowed_modes:
        problems.append(
            f"  - DOCUMENT_INPUT_MODE={doc.DOCUMENT_INPUT_MODE} "
            f"(expected one of {sorted(allowed_modes)})"
        )
    if doc.RASTER_BACKEND.strip().lower() not in BACKENDS:
        problems.append(
            f"  - RASTER_BACKEND={doc.RASTER_BACKEND} "
            f"(expected one of {sorted(BACKENDS)})"
        )

    positive_checks = [
        (doc.RASTER_TARGET_DPI, "RASTER_TARGET_DPI"),
        (doc.RASTER_MAX_PAGES, "RASTER_MAX_PAGES"),
        (doc.RASTER_MAX_PIXELS_PER_PAGE, "RASTER_MAX_PIXELS_PER_PAGE"),
        (doc.MAX_SOURCE_SIZE_MB, "MAX_SOURCE_SIZE_MB"),
        (doc.FETCH_TIMEOUT_SECONDS, "FETCH_TIMEOUT_SECONDS"),
        (doc.RENDER_TIMEOUT_SECONDS, "RENDER_TIMEOUT_SECONDS"),
        (settings.llm.LLM_TIMEOUT_SECONDS, "LLM_TIMEOUT_SECONDS"),
    ]
    for value, name in positive_checks:
        if value <= 0:
            problems.append(f"  - {name}={value} (must be positive)")

    if doc.FETCH_MAX_REDIRECTS < 0:
        problems.append(
            f"  - FETCH_MAX_REDIRECTS={doc.FETCH_MAX_REDIRECTS} (must be >= 0)"
        )

    if problems:
        error_msg = "❌ Invalid configuration:\n" + "\n".join(problems)
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    logger.info("✅ All critical settings validated successfully")
    logger.info(f"  - LLM: {settings.llm.LLM_BASE_URL} model={settings.llm.LLM_MODEL}")
    logger.info(
        f"  - Documents: mode={doc.DOCUMENT_INPUT_MODE} backend={doc.RASTER_BACKEND} "
        f"dpi={doc.RASTER_TARGET_DPI} max_pages={doc.RASTER_MAX_PAGES}"
    )
