"""
Turn a paginated document URL into a bounded, ordered set of raster pages.

Steps: fetch (bounded bytes and time) -> verify PDF -> inspect geometry ->
choose an effective DPI that keeps every page under the pixel ceiling ->
render the first `max_pages` pages -> wrap as 1-indexed RasterPage objects.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Optional

import httpx

from core.logging_utils import redact_url
from pipeline.clients.document_fetcher import fetch_document
from pipeline.core.config import (
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_PIXELS_PER_PAGE,
    DEFAULT_TARGET_DPI,
    FETCH_MAX_REDIRECTS,
    FETCH_TIMEOUT_SECONDS,
    MAX_SOURCE_SIZE_MB,
    MIN_RENDER_DPI,
    PDF_POINTS_PER_INCH,
    RASTER_MIME_TYPE,
    RENDER_TIMEOUT_SECONDS,
)
from pipeline.core.exceptions import RenderError
from pipeline.models.dto import RasterPage
from pipeline.rendering.base import DocumentInfo, RasterBackend, RenderDeadline
from pipeline.utils.file_detection import detect_file_type_from_bytes, is_pdf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterConfig:
    """Rasterization limits.

    Attributes:
        target_dpi: Preferred render resolution
        max_pages: Only pages 1..max_pages are rendered (product convention:
            plan sets front-load the relevant sheets; tune per deployment)
        max_pixels_per_page: Ceiling on width*height of each rendered page
        max_source_bytes: Ceiling on the fetched document size
        fetch_timeout_seconds: Bound on the document download
        render_timeout_seconds: Bound on rendering all pages
        max_redirects: Redirects followed while fetching
    """

    target_dpi: int = DEFAULT_TARGET_DPI
    max_pages: int = DEFAULT_MAX_PAGES
    max_pixels_per_page: int = DEFAULT_MAX_PIXELS_PER_PAGE
    max_source_bytes: int = MAX_SOURCE_SIZE_MB * 1024 * 1024
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    render_timeout_seconds: float = RENDER_TIMEOUT_SECONDS
    max_redirects: int = FETCH_MAX_REDIRECTS


def pixel_dimensions(width_pt: float, height_pt: float, dpi: float) -> tuple[int, int]:
    """Pixel size of a page rendered at `dpi` (rounded up)."""
    scale = dpi / PDF_POINTS_PER_INCH
    return math.ceil(width_pt * scale), math.ceil(height_pt * scale)


def compute_effective_dpi(
    page_size: Optional[tuple[float, float]],
    target_dpi: int,
    max_pixels: int,
) -> int:
    """Largest integer DPI <= target whose rendered area fits `max_pixels`.

    The DPI is scaled by the square root of the overage ratio, then stepped
    down until rounding no longer pushes the area over the ceiling. Unknown
    page geometry keeps `target_dpi`.
    """
    if page_size is None:
        return target_dpi

    width_pt, height_pt = page_size
    if width_pt <= 0 or height_pt <= 0:
        return target_dpi

    width_px, height_px = pixel_dimensions(width_pt, height_pt, target_dpi)
    area = width_px * height_px
    if area <= max_pixels:
        return target_dpi

    dpi = max(MIN_RENDER_DPI, math.floor(target_dpi * math.sqrt(max_pixels / area)))
    while dpi > MIN_RENDER_DPI:
        w, h = pixel_dimensions(width_pt, height_pt, dpi)
        if w * h <= max_pixels:
            break
        dpi -= 1
    return dpi


def choose_render_dpi(info: DocumentInfo, render_count: int, config: RasterConfig) -> int:
    """One DPI for the whole render: the most restrictive page wins."""
    candidates = [
        compute_effective_dpi(
            info.size_of(page_number), config.target_dpi, config.max_pixels_per_page
        )
        for page_number in range(1, render_count + 1)
    ]
    return min(candidates, default=config.target_dpi)


def rasterize_bytes(
    data: bytes,
    backend: RasterBackend,
    config: RasterConfig,
) -> list[RasterPage]:
    """Render the page prefix of an in-memory PDF (blocking).

    Raises:
        RenderError: Not a PDF, zero pages, or nothing rendered.
        OperationTimeoutError: Rendering exceeded the configured bound.
    """
    if not is_pdf(data):
        detected = detect_file_type_from_bytes(data[:16])
        raise RenderError(
            "Source is not a PDF document",
            details={"detected_type": detected[0] if detected else "unknown"},
        )

    deadline = RenderDeadline(config.render_timeout_seconds)
    info = backend.inspect(data, config.max_pages)
    if info.page_count < 1:
        raise RenderError("Document has no pages", details={"backend": backend.name})

    render_count = min(info.page_count, config.max_pages)
    dpi = choose_render_dpi(info, render_count, config)
    if dpi < config.target_dpi:
        logger.info(
            "Lowering render DPI from %d to %d to stay under %d pixels per page",
            config.target_dpi,
            dpi,
            config.max_pixels_per_page,
        )

    rendered = backend.render(data, render_count, dpi, deadline)
    if not rendered:
        raise RenderError(
            "Rendering produced no pages",
            details={"backend": backend.name, "page_count": info.page_count},
        )

    pages = [
        RasterPage(
            index=page.page_number,
            data=page.data,
            mime_type=RASTER_MIME_TYPE,
            width=page.width,
            height=page.height,
            dpi=dpi,
        )
        for page in rendered
    ]
    largest = max(page.pixel_area for page in pages)
    if largest > config.max_pixels_per_page:
        logger.warning(
            "Rendered page of %d pixels exceeds the %d pixel ceiling",
            largest,
            config.max_pixels_per_page,
        )
    logger.info(
        "Rasterized %d of %d page(s) at %d dpi with %s, largest page %d pixels",
        len(pages),
        info.page_count,
        dpi,
        backend.name,
        largest,
    )
    return pages


class Rasterizer:
    """Fetch-and-render front end over a RasterBackend."""

    def __init__(
        self,
        backend: RasterBackend,
        config: RasterConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.backend = backend
        self.config = config
        self._transport = transport

    async def rasterize(self, document_url: str) -> list[RasterPage]:
        """
        Download `document_url` and render its first pages.

        Raises:
            FetchError, TooLargeError, OperationTimeoutError, RenderError
        """
        fetched = await fetch_document(
            document_url,
            max_bytes=self.config.max_source_bytes,
            timeout=self.config.fetch_timeout_seconds,
            max_redirects=self.config.max_redirects,
            transport=self._transport,
        )
        logger.info(
            "Fetched document url=%s bytes=%d",
            redact_url(document_url),
            fetched.size,
        )

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, rasterize_bytes, fetched.data, self.backend, self.config
        )
