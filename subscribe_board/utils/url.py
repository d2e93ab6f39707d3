from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit, urlunsplit

MAX_URL_LENGTH = 2048

_DEFAULT_PORTS = {"http": 80, "https": 443}


def sanitize_http_url(url: Any) -> str:
    """Return a normalized http(s) URL without credentials, or "" if unusable."""
    s = str(url or "").strip()
    if not s or len(s) > MAX_URL_LENGTH:
        return ""

    try:
        parts = urlsplit(s)
        port = parts.port
    except ValueError:
        return ""

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        return ""

    host = parts.hostname
    if not host:
        return ""

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))
