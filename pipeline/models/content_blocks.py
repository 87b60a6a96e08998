"""
Content blocks of a multimodal extraction request.

Each block renders itself to the Responses API input shape via `to_payload()`.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict


class TextBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": "input_text", "text": self.text}


class ImageBlock(BaseModel):
    """Image reference: a remote URL or a base64 `data:` URL of a raster page."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    image_url: str
    page_index: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {"type": "input_image", "image_url": self.image_url}


class DocumentBlock(BaseModel):
    """Document reference the backend ingests itself, no client-side rendering."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["document"] = "document"
    file_url: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": "input_file", "file_url": self.file_url}


ContentBlock = Union[TextBlock, ImageBlock, DocumentBlock]
