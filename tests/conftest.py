from __future__ import annotations

import fitz
import pytest

LETTER = (612, 792)


def build_pdf(page_sizes: list[tuple[float, float]]) -> bytes:
    """Create an in-memory PDF with one labelled page per size (in points)."""
    doc = fitz.open()
    for number, (width, height) in enumerate(page_sizes, start=1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((36, 72), f"Sheet {number}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def two_page_pdf() -> bytes:
    return build_pdf([LETTER, LETTER])
