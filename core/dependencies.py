"""FastAPI dependency injection functions.

Routes get the pipeline and settings from app state instead of importing
module-level singletons, so tests can swap them.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from core.logging_utils import sanitize_key_hint
from core.settings import Settings
from pipeline.core.exceptions import UnauthorizedError
from pipeline.orchestrator import AnalysisPipeline

logger = logging.getLogger(__name__)


async def get_settings_from_state(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Settings unavailable",
        )
    return settings


async def get_pipeline(request: Request) -> AnalysisPipeline:
    """Get the analysis pipeline from app state.

    Raises:
        HTTPException: 503 if the pipeline was not initialized
    """
    pipeline = getattr(request.app.state, "pipeline", None)

    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analysis pipeline unavailable",
        )

    return pipeline


async def require_internal_key(
    request: Request,
    x_internal_key: Optional[str] = Header(default=None),
) -> None:
    """Reject the request unless X-Internal-Key matches INTERNAL_API_KEY.

    A server without a configured key rejects every request.

    Raises:
        UnauthorizedError: Missing or wrong key
    """
    settings = await get_settings_from_state(request)
    expected = settings.auth.INTERNAL_API_KEY
    expected_value = expected.get_secret_value() if expected else ""

    if not expected_value or not x_internal_key or not hmac.compare_digest(
        x_internal_key.encode("utf-8"), expected_value.encode("utf-8")
    ):
        logger.warning(
            "Rejected unauthorized request key=%s",
            sanitize_key_hint(x_internal_key),
            extra={"trace_id": getattr(request.state, "trace_id", None)},
        )
        raise UnauthorizedError()
