"""
Log-safe rendering of caller-supplied values.

Document links are often pre-signed storage URLs whose query strings carry
access tokens, so only scheme, host and path are logged.
"""

from urllib.parse import urlsplit, urlunsplit


def redact_url(url: str | None) -> str:
    """
    Strip credentials, query string and fragment from a URL for logs.

    Rules:
    - None / empty → "***"
    - Unparseable → "***"
    - Otherwise → scheme://host[:port]/path, "?***" appended if a query existed
    """
    if not url:
        return "***"

    try:
        parts = urlsplit(url.strip())
        host = parts.hostname or ""
        port = parts.port
    except ValueError:
        return "***"

    netloc = f"{host}:{port}" if port else host
    redacted = urlunsplit((parts.scheme, netloc, parts.path, "", ""))
    return f"{redacted}?***" if parts.query else redacted


def sanitize_key_hint(key: str | None) -> str:
    """
    Mask a shared secret for logs: last 2 chars only.
    """
    if not key or len(key) < 6:
        return "***"
    return f"***{key[-2:]}"
