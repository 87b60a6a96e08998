"""
Out-of-process rasterization with poppler's `pdftoppm` CLI.

Page geometry is read with pypdf; rendering writes PNGs into a per-call
temporary directory that is removed before this module returns or raises.
"""

from __future__ import annotations

import io
import logging
import os
import re
import shutil
import subprocess
import tempfile
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pypdf import PasswordType, PdfReader
from pypdf.errors import PyPdfError

from pipeline.core.config import ERROR_BODY_MAX_CHARS
from pipeline.core.exceptions import OperationTimeoutError, RenderError
from pipeline.rendering.base import (
    DocumentInfo,
    RasterBackend,
    RenderDeadline,
    RenderedPage,
)

logger = logging.getLogger(__name__)

_PAGE_FILE_RE = re.compile(r"^page-(\d+)\.png$")


def _page_size(page) -> Optional[tuple[float, float]]:
    try:
        width = float(page.mediabox.width)
        height = float(page.mediabox.height)
    except (PyPdfError, ValueError, KeyError, TypeError):
        return None
    if (page.rotation or 0) % 180:
        width, height = height, width
    return width, height


def _collect_pages(out_dir: str, limit: int) -> list[tuple[int, str]]:
    """Return (page_number, path) for the contiguous prefix 1..n of outputs."""
    found: dict[int, str] = {}
    for name in os.listdir(out_dir):
        match = _PAGE_FILE_RE.match(name)
        if match:
            found[int(match.group(1))] = os.path.join(out_dir, name)

    pages = []
    for page_number in range(1, limit + 1):
        if page_number not in found:
            break
        pages.append((page_number, found[page_number]))
    return pages


class PdftoppmBackend(RasterBackend):
    name = "pdftoppm"

    def __init__(self, executable: str = "pdftoppm") -> None:
        self.executable = executable

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def inspect(self, data: bytes, max_pages: int) -> DocumentInfo:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                if reader.decrypt("") == PasswordType.NOT_DECRYPTED:
                    raise RenderError(
                        "Document is password protected",
                        details={"backend": self.name},
                    )
            page_count = len(reader.pages)
            sizes = tuple(
                _page_size(reader.pages[i]) for i in range(min(page_count, max_pages))
            )
        except (PyPdfError, ValueError, KeyError, TypeError) as e:
            raise RenderError(
                "Document could not be opened",
                details={"backend": self.name, "reason": str(e)},
            ) from e
        return DocumentInfo(page_count=page_count, page_sizes=sizes)

    def _run(self, cmd: list[str], deadline: RenderDeadline) -> subprocess.CompletedProcess:
        deadline.check()
        try:
            return subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                timeout=deadline.remaining,
            )
        except FileNotFoundError as e:
            raise RenderError(
                f"Rasterization backend unavailable: {self.executable} not found on PATH",
                details={"backend": self.name},
            ) from e
        except subprocess.TimeoutExpired as e:
            raise OperationTimeoutError(
                "render", deadline.timeout_seconds, details={"backend": self.name}
            ) from e

    def render(
        self,
        data: bytes,
        page_count: int,
        dpi: int,
        deadline: RenderDeadline,
    ) -> list[RenderedPage]:
        with tempfile.TemporaryDirectory(prefix="raster_") as tmp_dir:
            src_path = os.path.join(tmp_dir, "source.pdf")
            with open(src_path, "wb") as f:
                f.write(data)

            cmd = [
                self.executable,
                "-png",
                "-r",
                str(dpi),
                "-f",
                "1",
                "-l",
                str(page_count),
                src_path,
                os.path.join(tmp_dir, "page"),
            ]
            proc = self._run(cmd, deadline)
            outputs = _collect_pages(tmp_dir, page_count)

            if proc.returncode != 0:
                stderr = proc.stderr.decode("utf-8", errors="replace")
                if not outputs:
                    raise RenderError(
                        f"{self.executable} exited with code {proc.returncode}",
                        details={
                            "backend": self.name,
                            "stderr": stderr[:ERROR_BODY_MAX_CHARS],
                        },
                    )
                logger.warning(
                    "%s exited with code %d after %d page(s): %s",
                    self.executable,
                    proc.returncode,
                    len(outputs),
                    stderr[:ERROR_BODY_MAX_CHARS],
                )

            rendered: list[RenderedPage] = []
            for page_number, path in outputs:
                with open(path, "rb") as f:
                    png = f.read()
                try:
                    with Image.open(io.BytesIO(png)) as image:
                        width, height = image.size
                except (UnidentifiedImageError, OSError):
                    logger.warning(
                        "Page %d output is not a readable PNG, keeping %d earlier page(s)",
                        page_number,
                        len(rendered),
                    )
                    break
                rendered.append(
                    RenderedPage(
                        page_number=page_number, data=png, width=width, height=height
                    )
                )
        return rendered
