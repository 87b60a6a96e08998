"""Interchangeable rasterization backends.

- PyMuPDFBackend: in-process rendering, in memory
- PdftoppmBackend: poppler CLI invoked as a subprocess
"""

from pipeline.rendering.base import (
    DocumentInfo,
    RasterBackend,
    RenderDeadline,
    RenderedPage,
)
from pipeline.rendering.pdftoppm_backend import PdftoppmBackend
from pipeline.rendering.pymupdf_backend import PyMuPDFBackend

BACKENDS: dict[str, type[RasterBackend]] = {
    PyMuPDFBackend.name: PyMuPDFBackend,
    PdftoppmBackend.name: PdftoppmBackend,
}


def create_backend(name: str) -> RasterBackend:
    """Instantiate a backend by its configured name.

    Raises:
        ValueError: Unknown backend name
    """
    try:
        backend_cls = BACKENDS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown raster backend {name!r} (expected one of: {', '.join(BACKENDS)})"
        ) from None
    return backend_cls()


__all__ = [
    "BACKENDS",
    "DocumentInfo",
    "PdftoppmBackend",
    "PyMuPDFBackend",
    "RasterBackend",
    "RenderDeadline",
    "RenderedPage",
    "create_backend",
]
