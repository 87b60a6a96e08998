"""In-process rasterization with PyMuPDF. Renders in memory, no temp files."""

from __future__ import annotations

import importlib.util
import logging

from pipeline.core.config import PDF_POINTS_PER_INCH
from pipeline.core.exceptions import RenderError
from pipeline.rendering.base import (
    DocumentInfo,
    RasterBackend,
    RenderDeadline,
    RenderedPage,
)

logger = logging.getLogger(__name__)


class PyMuPDFBackend(RasterBackend):
    name = "pymupdf"

    def is_available(self) -> bool:
        return importlib.util.find_spec("fitz") is not None

    def _require_fitz(self):
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            raise RenderError(
                "Rasterization backend unavailable: PyMuPDF is not installed",
                details={"backend": self.name},
            ) from e
        return fitz

    def _open(self, data: bytes):
        fitz = self._require_fitz()
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as e:
            raise RenderError(
                "Document could not be opened",
                details={"backend": self.name, "reason": str(e)},
            ) from e
        if doc.needs_pass:
            doc.close()
            raise RenderError(
                "Document is password protected",
                details={"backend": self.name},
            )
        return doc

    def inspect(self, data: bytes, max_pages: int) -> DocumentInfo:
        doc = self._open(data)
        try:
            sizes = []
            for i in range(min(doc.page_count, max_pages)):
                rect = doc.load_page(i).rect
                sizes.append((float(rect.width), float(rect.height)))
            return DocumentInfo(page_count=doc.page_count, page_sizes=tuple(sizes))
        except RuntimeError as e:
            raise RenderError(
                "Document structure could not be read",
                details={"backend": self.name, "reason": str(e)},
            ) from e
        finally:
            doc.close()

    def render(
        self,
        data: bytes,
        page_count: int,
        dpi: int,
        deadline: RenderDeadline,
    ) -> list[RenderedPage]:
        fitz = self._require_fitz()
        zoom = dpi / PDF_POINTS_PER_INCH
        matrix = fitz.Matrix(zoom, zoom)

        doc = self._open(data)
        rendered: list[RenderedPage] = []
        try:
            for page_number in range(1, min(page_count, doc.page_count) + 1):
                deadline.check()
                try:
                    page = doc.load_page(page_number - 1)
                    pix = page.get_pixmap(matrix=matrix, alpha=False)
                    png = pix.tobytes("png")
                except RuntimeError as e:
                    logger.warning(
                        "Page %d failed to render, keeping %d earlier page(s): %s",
                        page_number,
                        len(rendered),
                        e,
                    )
                    break
                rendered.append(
                    RenderedPage(
                        page_number=page_number,
                        data=png,
                        width=pix.width,
                        height=pix.height,
                    )
                )
        finally:
            doc.close()
        return rendered
