"""
Analysis API Routes

No business logic lives here.
Routes validate input, call engines/services, return responses.

Target-site misbehaviour is answered with 200 and a descriptive status;
HTTP errors are reserved for missing/malformed input or total failure.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from agent_readiness.core.context import Context
from agent_readiness.core.errors import MissingParameter, UpstreamFetchFailure
from agent_readiness.core.urls import normalize_url
from agent_readiness.engines.base import AnalysisError, AnalysisResult, PageData, RobotsAnalysis
from agent_readiness.engines.page.engine import PageFetcher
from agent_readiness.engines.robots.engine import (
    RobotsFetcher,
    build_robots_analysis,
    error_analysis,
    robots_failure_analysis,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


# ─────────────────────────────────────────────
# Response Schemas
# ─────────────────────────────────────────────

class RobotsTextResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    robots_text: str


def _require(value: str | None, name: str, message: str) -> str:
    if not value:
        raise MissingParameter(name, message)
    return normalize_url(value)


def _dump(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(mode="json", by_alias=True))


# ─────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────

@router.get(
    "/analyze-robots",
    response_model=RobotsAnalysis,
    summary="Evaluate AI crawler permissions in robots.txt",
)
async def analyze_robots(ctx: Context, url: str | None = Query(None)) -> Any:
    target = _require(url, "url", "Missing URL")
    fetcher = RobotsFetcher(ctx.http_client, timeout=ctx.settings.ROBOTS_REQUEST_TIMEOUT)

    try:
        robots_text = await fetcher.fetch(target)
        return _dump(build_robots_analysis(robots_text))
    except UpstreamFetchFailure as exc:
        logger.info("robots.txt unavailable", url=target, error=str(exc), status_code=exc.status_code)
        return _dump(robots_failure_analysis(exc))
    except Exception as exc:
        logger.error("Error in analyze-robots", url=target, error=str(exc), exc_info=True)
        return _dump(error_analysis(), status_code=500)


@router.get(
    "/fetch-robots",
    response_model=RobotsTextResponse,
    summary="Proxy the raw robots.txt of a target",
)
async def fetch_robots(ctx: Context, target: str | None = Query(None)) -> Any:
    target_url = _require(target, "target", "Missing target URL")
    fetcher = RobotsFetcher(ctx.http_client, timeout=ctx.settings.ROBOTS_REQUEST_TIMEOUT)

    try:
        robots_text = await fetcher.fetch(target_url)
    except UpstreamFetchFailure as exc:
        if exc.status_code is not None:
            return JSONResponse(status_code=404, content={"error": "robots.txt not found"})
        logger.error("Error fetching robots.txt", url=target_url, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Failed to fetch robots.txt"})
    except Exception as exc:
        logger.error("Error fetching robots.txt", url=target_url, error=str(exc), exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch robots.txt"})

    return _dump(RobotsTextResponse(robots_text=robots_text))


@router.get(
    "/analyze-page",
    response_model=PageData,
    summary="Extract title, description, content preview and JSON-LD from a page",
)
async def analyze_page(ctx: Context, url: str | None = Query(None)) -> Any:
    target = _require(url, "url", "Missing URL")
    fetcher = PageFetcher(
        ctx.http_client,
        timeout=ctx.settings.PAGE_REQUEST_TIMEOUT,
        max_bytes=ctx.settings.MAX_PAGE_BYTES,
    )

    try:
        page = await fetcher.fetch(target)
    except Exception as exc:
        logger.warning("Failed to fetch or parse page", url=target, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Failed to fetch or parse URL"})

    return _dump(page)


@router.get(
    "/analyze",
    response_model=AnalysisResult | AnalysisError,
    summary="Run a complete AI readiness analysis",
    description="Always answers with a renderable analysis; failures are reported in-band via `error`.",
)
async def analyze(ctx: Context, url: str | None = Query(None)) -> Any:
    if not url:
        raise MissingParameter("url", "Missing URL")

    result = await ctx.analysis.analyze(url)
    return _dump(result)
