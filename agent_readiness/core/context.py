"""
Per-request analysis context.

Shared resources (HTTP client, generative service) live on app.state, created
in the lifespan. Handlers receive them through an explicit AnalysisContext
dependency instead of reading module globals.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Annotated

import httpx
import structlog
from fastapi import Depends, Request

from agent_readiness.core.config import Settings, get_settings
from agent_readiness.services.analysis import AnalysisService
from agent_readiness.services.generative import GenerativeService

REQUEST_ID_HEADER = "x-request-id"


@dataclass(frozen=True)
class AnalysisContext:
    request_id: str
    settings: Settings
    http_client: httpx.AsyncClient
    generative: GenerativeService

    @property
    def analysis(self) -> AnalysisService:
        return AnalysisService(self.http_client, self.generative, settings=self.settings)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={
            "User-Agent": settings.FETCH_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        },
        follow_redirects=True,
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
    )


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex


async def get_context(request: Request) -> AnalysisContext:
    """Dependency injection for the per-request analysis context."""
    context = AnalysisContext(
        request_id=get_request_id(request),
        settings=get_settings(),
        http_client=request.app.state.http_client,
        generative=request.app.state.generative,
    )
    structlog.contextvars.bind_contextvars(request_id=context.request_id)
    return context


# Type alias for dependency injection
Context = Annotated[AnalysisContext, Depends(get_context)]
