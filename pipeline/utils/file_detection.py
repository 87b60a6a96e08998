"""
File type detection using magic bytes.

Used after a source document is fetched to confirm it really is a PDF before
it is handed to a rasterization backend.

Magic bytes reference:
- PDF:  %PDF (0x25504446)
- JPEG: 0xFFD8FF
- PNG:  0x89504E47 (89 P N G)
- GIF:  GIF87a / GIF89a
- WEBP: RIFF....WEBP
- TIFF: 0x49492A00 (little-endian) or 0x4D4D002A (big-endian)
"""

from typing import Final, Literal

FileType = Literal["pdf", "jpeg", "png", "gif", "webp", "tiff"]
MimeType = Literal[
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/tiff",
]

MAGIC_BYTES_MAP: Final[dict[bytes, tuple[FileType, MimeType]]] = {
    b"%PDF": ("pdf", "application/pdf"),
    b"\xff\xd8\xff": ("jpeg", "image/jpeg"),
    b"\x89PNG": ("png", "image/png"),
    b"GIF87a": ("gif", "image/gif"),
    b"GIF89a": ("gif", "image/gif"),
    b"\x49\x49\x2a\x00": ("tiff", "image/tiff"),
    b"\x4d\x4d\x00\x2a": ("tiff", "image/tiff"),
}

# PDF readers accept a header anywhere in the first KB
PDF_HEADER_SEARCH_BYTES: Final = 1024


def detect_file_type_from_bytes(
    header: bytes,
) -> tuple[FileType, MimeType] | None:
    """
    Detect file type from magic bytes header.

    Args:
        header: First 12+ bytes of file

    Returns:
        Tuple of (file_type, mime_type) or None if unrecognized

    Example:
        >>> detect_file_type_from_bytes(b'%PDF-1.4')
        ('pdf', 'application/pdf')
    """
    for signature, result in MAGIC_BYTES_MAP.items():
        if header.startswith(signature):
            return result
    if header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return ("webp", "image/webp")
    return None


def is_pdf(data: bytes) -> bool:
    """Whether the buffer carries a PDF header (possibly after leading junk)."""
    return b"%PDF" in data[:PDF_HEADER_SEARCH_BYTES]
