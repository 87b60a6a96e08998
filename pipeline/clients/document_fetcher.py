import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.logging_utils import redact_url
from pipeline.core.config import (
    ERROR_BODY_MAX_CHARS,
    FETCH_CHUNK_SIZE,
    FETCH_MAX_REDIRECTS,
)
from pipeline.core.exceptions import FetchError, OperationTimeoutError, TooLargeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedDocument:
    url: str
    data: bytes
    content_type: Optional[str]

    @property
    def size(self) -> int:
        return len(self.data)


def _declared_length(response: httpx.Response) -> Optional[int]:
    raw = response.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def _download(
    client: httpx.AsyncClient, url: str, safe_url: str, max_bytes: int
) -> FetchedDocument:
    async with client.stream("GET", url) as response:
        if response.status_code >= 400:
            body = (await response.aread())[:ERROR_BODY_MAX_CHARS]
            raise FetchError(
                f"Source fetch failed with HTTP {response.status_code}",
                details={
                    "http_code": response.status_code,
                    "url": safe_url,
                    "body": body.decode("utf-8", errors="replace"),
                },
            )

        declared = _declared_length(response)
        if declared is not None and declared > max_bytes:
            raise TooLargeError(max_bytes=max_bytes, observed_bytes=declared)

        buffer = bytearray()
        async for chunk in response.aiter_bytes(FETCH_CHUNK_SIZE):
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise TooLargeError(max_bytes=max_bytes, observed_bytes=len(buffer))

        return FetchedDocument(
            url=url,
            data=bytes(buffer),
            content_type=response.headers.get("content-type"),
        )


async def fetch_document(
    url: str,
    *,
    max_bytes: int,
    timeout: float,
    max_redirects: int = FETCH_MAX_REDIRECTS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchedDocument:
    """
    Download a document fully into memory, bounded by size and time.

    The declared Content-Length is checked first, but the body is also counted
    while streaming since servers may omit or misreport it. `timeout` caps the
    whole download, not just each connect or read step, so a server trickling
    bytes cannot hold the request open.

    Raises:
        TooLargeError: Declared or observed size exceeds `max_bytes`.
        OperationTimeoutError: Download did not finish within `timeout`.
        FetchError: Network failure, too many redirects or non-2xx status.
    """
    safe_url = redact_url(url)
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=max_redirects,
            transport=transport,
        ) as client:
            fetched = await asyncio.wait_for(
                _download(client, url, safe_url, max_bytes), timeout=timeout
            )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise OperationTimeoutError(
            "fetch", timeout, details={"url": safe_url}
        ) from e
    except httpx.TooManyRedirects as e:
        raise FetchError(
            "Source fetch exceeded redirect limit",
            details={"url": safe_url, "max_redirects": max_redirects},
        ) from e
    except httpx.HTTPError as e:
        raise FetchError(
            f"Source fetch failed: {type(e).__name__}",
            details={"url": safe_url, "reason": str(e)},
        ) from e

    logger.debug(
        "Fetched source url=%s bytes=%d content_type=%s",
        safe_url,
        fetched.size,
        fetched.content_type,
    )
    return fetched
