"""URL helpers.

Users configure the node as any of:

- localhost:15672
- http://localhost:15672
- http://localhost:15672/api

The plugin endpoints all live under /api at the server root, so the path
part of the configured URL is dropped and rebuilt explicitly.
"""

from __future__ import annotations

from urllib.parse import urlparse


def _ensure_scheme(url: str) -> str:
    url = (url or "").strip()
    if not url:
        return url
    # Allow "localhost:15672" style inputs.
    if "://" not in url:
        return "http://" + url
    return url


def root_url(node_url: str) -> str:
    """Return the server root URL: scheme://host:port"""
    u = urlparse(_ensure_scheme(node_url))
    scheme = u.scheme or "http"
    netloc = u.netloc or u.path  # handle edge cases where netloc is empty
    return f"{scheme}://{netloc}".rstrip("/")


def api_url(node_url: str, path: str) -> str:
    """Full URL of an /api endpoint on the node."""
    return f"{root_url(node_url)}/api/{path.lstrip('/')}"
