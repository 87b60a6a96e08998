import asyncio
import logging
from http import HTTPStatus
from typing import Any, Optional, Sequence

import httpx

from pipeline.core.config import (
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MODEL,
    ERROR_BODY_MAX_CHARS,
    LLM_REQUEST_TIMEOUT_SECONDS,
    LLM_RESPONSES_PATH,
)
from pipeline.core.exceptions import OperationTimeoutError, UpstreamError
from pipeline.models.content_blocks import ContentBlock
from pipeline.schemas.base import ExtractionSchema

logger = logging.getLogger(__name__)


def _raise_upstream_error(
    error_type: str,
    details: dict[str, Any],
    exc: Optional[Exception] = None,
) -> None:
    raise UpstreamError(error_type=error_type, details=details) from exc


def _error_type_for_status(status_code: int) -> str:
    if status_code in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN):
        return "auth"
    if status_code == HTTPStatus.TOO_MANY_REQUESTS:
        return "rate_limit"
    return "error"


def build_payload(
    blocks: Sequence[ContentBlock],
    schema: ExtractionSchema,
    *,
    model: str,
    temperature: Optional[float] = None,
    max_output_tokens: Optional[int] = None,
) -> dict[str, Any]:
    """Responses API request body: one user message plus the output schema."""
    payload: dict[str, Any] = {
        "model": model,
        "input": [
            {
                "role": "user",
                "content": [block.to_payload() for block in blocks],
            }
        ],
        "text": {"format": schema.to_response_format()},
    }
    if temperature is not None:
        payload["temperature"] = temperature
    if max_output_tokens is not None:
        payload["max_output_tokens"] = max_output_tokens
    return payload


class ExtractionClient:
    """
    Async client for the multimodal completion backend.

    Performs exactly one request per `extract` call; retry policy belongs to
    the caller so failures stay attributable.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_LLM_BASE_URL,
        model: str = DEFAULT_LLM_MODEL,
        timeout: float = LLM_REQUEST_TIMEOUT_SECONDS,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._api_key = api_key
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{LLM_RESPONSES_PATH}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def extract(
        self,
        blocks: Sequence[ContentBlock],
        schema: ExtractionSchema,
    ) -> dict[str, Any]:
        """
        Submit content blocks with the output schema and return the envelope.

        Raises:
            OperationTimeoutError: Whole call exceeded the configured timeout.
            UpstreamError: Non-2xx status, connection failure or non-JSON body.
        """
        payload = build_payload(
            blocks,
            schema,
            model=self.model,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await asyncio.wait_for(
                    client.post(self.endpoint, json=payload, headers=self._headers()),
                    timeout=self.timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise OperationTimeoutError("extract", self.timeout) from e
        except httpx.HTTPError as e:
            _raise_upstream_error("unavailable", {"reason": str(e)}, e)

        if response.status_code >= 400:
            _raise_upstream_error(
                _error_type_for_status(response.status_code),
                {
                    "http_code": response.status_code,
                    "body": response.text[:ERROR_BODY_MAX_CHARS],
                },
            )

        try:
            envelope = response.json()
        except ValueError as e:
            _raise_upstream_error(
                "invalid_response",
                {"body": response.text[:ERROR_BODY_MAX_CHARS]},
                e,
            )

        if not isinstance(envelope, dict):
            _raise_upstream_error(
                "invalid_response", {"reason": "response body is not a JSON object"}
            )

        logger.debug(
            "Extraction response id=%s status=%s",
            envelope.get("id"),
            envelope.get("status"),
        )
        return envelope
