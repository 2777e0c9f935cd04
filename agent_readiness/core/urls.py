"""URL normalization for user-supplied scan targets."""

from __future__ import annotations

from urllib.parse import urljoin, urlparse

import httpx

from agent_readiness.core.errors import InvalidURL

ALLOWED_SCHEMES = ("http", "https")


def normalize_url(raw: str | None) -> str:
    """
    Turn user input into an absolute http(s) URL.

    Input without an ``http://`` or ``https://`` prefix gets ``https://``
    prepended. Raises InvalidURL when the result still has no usable host,
    or when httpx could not build a request for it (e.g. an invalid IDNA host).
    """
    if not raw or not isinstance(raw, str) or not raw.strip():
        raise InvalidURL("Invalid URL provided")

    url = raw.strip()
    if not url.lower().startswith(("http://", "https://")):
        url = "https://" + url

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        _ = parsed.port  # ValueError on a malformed port
    except ValueError as exc:
        raise InvalidURL("Invalid URL format") from exc

    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not hostname:
        raise InvalidURL("Invalid URL format")
    if any(ch.isspace() for ch in parsed.netloc):
        raise InvalidURL("Invalid URL format")

    # Same parser the fetchers use; IDNA errors surface as ValueError
    try:
        httpx.URL(url)
        httpx.URL(robots_url_for(url))
    except (httpx.InvalidURL, ValueError) as exc:
        raise InvalidURL("Invalid URL format") from exc

    return url


def robots_url_for(url: str) -> str:
    """Resolve ``/robots.txt`` against the origin of ``url``."""
    return urljoin(url, "/robots.txt")
