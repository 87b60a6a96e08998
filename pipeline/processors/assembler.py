"""
Assemble the ordered content blocks of a multimodal extraction request.
"""

from typing import Optional, Sequence

from pipeline.models.content_blocks import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    TextBlock,
)
from pipeline.models.dto import DocumentInputMode, RasterPage, ResourceKind


def assemble(
    instruction_text: str,
    resource_kind: ResourceKind,
    *,
    resource_url: str,
    pages: Optional[Sequence[RasterPage]] = None,
    document_mode: DocumentInputMode = DocumentInputMode.RASTERIZE,
) -> list[ContentBlock]:
    """Build the content block sequence for one request.

    The instruction block always comes first. Images are referenced by their
    original URL. Paginated documents become one image block per raster page
    in page order, or a single document block in DIRECT mode.

    Args:
        instruction_text: Natural-language extraction instructions
        resource_kind: Output of the classifier
        resource_url: Caller-supplied URL
        pages: Raster pages (required for documents in RASTERIZE mode)
        document_mode: Deployment-time document handling

    Returns:
        Ordered content blocks

    Raises:
        ValueError: Arguments are inconsistent with the mode
    """
    blocks: list[ContentBlock] = [TextBlock(text=instruction_text)]

    if resource_kind is ResourceKind.IMAGE:
        blocks.append(ImageBlock(image_url=resource_url))
        return blocks

    if document_mode is DocumentInputMode.DIRECT:
        blocks.append(DocumentBlock(file_url=resource_url))
        return blocks

    if not pages:
        raise ValueError("Rasterized document input requires at least one page")

    for page in sorted(pages, key=lambda p: p.index):
        blocks.append(ImageBlock(image_url=page.data_url(), page_index=page.index))
    return blocks
