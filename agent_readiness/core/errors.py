"""
Exception hierarchy for the scanner.

Errors that carry an ``http_status`` are rendered by the API as
``{"error": message}`` with that status. Upstream failures never reach the
client as errors: the engines translate them into informational payloads.
"""

from __future__ import annotations

__all__ = [
    "ReadinessError",
    "MissingParameter",
    "InvalidURL",
    "UpstreamFetchFailure",
    "CorsOrNetworkBlocked",
    "FetchTimeout",
    "PageParseError",
    "GenerativeServiceUnavailable",
]


class ReadinessError(RuntimeError):
    """Base exception for scanner failures."""

    http_status: int = 500


class MissingParameter(ReadinessError):
    """Raised when a required query parameter is absent."""

    http_status = 400

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or f"Missing {name}")
        self.name = name


class InvalidURL(ReadinessError):
    """Raised when input cannot be normalized into an absolute http(s) URL."""

    http_status = 400


class UpstreamFetchFailure(ReadinessError):
    """Raised when the target site is unreachable or answers with a non-2xx status."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class CorsOrNetworkBlocked(UpstreamFetchFailure):
    """Raised when the connection to the target is refused, reset or blocked."""


class FetchTimeout(UpstreamFetchFailure):
    """Raised when a fetch exceeds its time budget."""


class PageParseError(ReadinessError):
    """Raised when a fetched page body cannot be parsed."""


class GenerativeServiceUnavailable(ReadinessError):
    """Raised when the generative text service is unconfigured or its call fails."""
