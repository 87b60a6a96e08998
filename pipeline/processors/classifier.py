"""
Decide whether a resource URL points at an image or a paginated document.

The decision is a pure function of the declared type and the URL text; no
network access happens here.
"""

import re
from typing import Final, Optional
from urllib.parse import urlparse

from pipeline.core.exceptions import ValidationError
from pipeline.models.dto import ResourceKind

IMAGE_TYPES: Final[frozenset[str]] = frozenset(
    {"image", "png", "jpg", "jpeg", "gif", "webp"}
)
DOCUMENT_TYPES: Final[frozenset[str]] = frozenset({"pdf", "document"})

_IMAGE_EXT_RE: Final = re.compile(r"\.(png|jpg|jpeg|gif|webp)(\?|$)")
_DOCUMENT_EXT_RE: Final = re.compile(r"\.pdf(\?|$)")


def normalize_declared_type(declared_type: Optional[str]) -> str:
    """Reduce a declared type to a bare lowercase token.

    Accepts plain names ("PDF"), extensions (".png") and MIME types
    ("image/jpeg", "application/pdf").
    """
    if not declared_type:
        return ""
    value = declared_type.strip().lower()
    if "/" in value:
        major, _, minor = value.partition("/")
        value = minor.split(";", 1)[0].strip() or major
    return value.lstrip(".")


def require_http_url(resource_url: Optional[str], field: str = "resourceUrl") -> str:
    """Return the stripped URL if it is an absolute http(s) URL with a host.

    Raises:
        ValidationError: URL is blank or not http(s)
    """
    url_value = (resource_url or "").strip()
    if not url_value:
        raise ValidationError("Missing file/image URL", field=field)
    parsed = urlparse(url_value)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc:
        raise ValidationError(
            "URL must be an absolute http:// or https:// URL", field=field
        )
    return url_value


def _strip_fragment(url: str) -> str:
    return url.split("#", 1)[0]


def has_image_extension(resource_url: str) -> bool:
    return bool(_IMAGE_EXT_RE.search(_strip_fragment(resource_url.lower())))


def has_document_extension(resource_url: str) -> bool:
    return bool(_DOCUMENT_EXT_RE.search(_strip_fragment(resource_url.lower())))


def classify(
    resource_url: str,
    declared_type: Optional[str] = None,
    default_kind: ResourceKind = ResourceKind.PAGINATED_DOCUMENT,
) -> ResourceKind:
    """Classify a resource reference.

    Decision order (first match wins):
      1) declared type names an image type -> IMAGE
      2) declared type names the document type -> PAGINATED_DOCUMENT
      3) URL ends with an image extension (before any query) -> IMAGE
      4) URL ends with ".pdf" (before any query) -> PAGINATED_DOCUMENT
      5) otherwise `default_kind`

    Args:
        resource_url: Caller-supplied URL, already validated as non-empty
        declared_type: Optional type hint from the caller
        default_kind: Kind used for ambiguous links (opaque storage URLs)

    Returns:
        The resource kind
    """
    declared = normalize_declared_type(declared_type)
    if declared in IMAGE_TYPES:
        return ResourceKind.IMAGE
    if declared in DOCUMENT_TYPES:
        return ResourceKind.PAGINATED_DOCUMENT

    if has_image_extension(resource_url):
        return ResourceKind.IMAGE
    if has_document_extension(resource_url):
        return ResourceKind.PAGINATED_DOCUMENT

    return default_kind
