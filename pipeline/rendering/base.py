from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from pipeline.core.exceptions import OperationTimeoutError


@dataclass(frozen=True)
class DocumentInfo:
    """Page count plus page sizes in PDF points (None where unknown)."""

    page_count: int
    page_sizes: tuple[Optional[tuple[float, float]], ...] = field(default=())

    def size_of(self, page_number: int) -> Optional[tuple[float, float]]:
        if 1 <= page_number <= len(self.page_sizes):
            return self.page_sizes[page_number - 1]
        return None


@dataclass(frozen=True)
class RenderedPage:
    page_number: int
    data: bytes
    width: int
    height: int


@dataclass(frozen=True)
class RenderDeadline:
    """Monotonic deadline shared by all pages of one render call."""

    timeout_seconds: float
    started_at: float = field(default_factory=time.monotonic)

    @property
    def remaining(self) -> float:
        return max(0.0, self.timeout_seconds - (time.monotonic() - self.started_at))

    def check(self) -> None:
        if self.remaining <= 0:
            raise OperationTimeoutError("render", self.timeout_seconds)


class RasterBackend(ABC):
    """
    Page rendering capability: (document bytes, page prefix, dpi) -> PNG pages.

    Implementations must not keep per-document state between calls and must
    release any temporary storage before returning or raising.
    """

    name: str = "base"

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can run in this environment."""

    @abstractmethod
    def inspect(self, data: bytes, max_pages: int) -> DocumentInfo:
        """Read page count and the sizes of the first `max_pages` pages.

        Raises:
            RenderError: Document cannot be opened.
        """

    @abstractmethod
    def render(
        self,
        data: bytes,
        page_count: int,
        dpi: int,
        deadline: RenderDeadline,
    ) -> list[RenderedPage]:
        """Render pages 1..page_count in order as PNG.

        Stops at the first page that fails and returns the pages rendered so
        far, so the result is always a contiguous prefix.

        Raises:
            RenderError: Backend unavailable or document unreadable.
            OperationTimeoutError: Deadline exceeded.
        """
