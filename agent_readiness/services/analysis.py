"""
Analysis Service - runs one complete readiness analysis for a URL.

Pipeline:
1. Normalize the URL (fails fast with InvalidURL)
2. Fetch page data and robots.txt concurrently
3. Score the combined signals
4. Ask the generative service for summary, suggestions and schema review concurrently

Every external step degrades to a fallback value. analyze() never raises: it
returns an AnalysisResult, or an AnalysisError carrying a fallback result.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, TypeVar

import httpx
import structlog

from agent_readiness.core.config import Settings, get_settings
from agent_readiness.core.errors import InvalidURL
from agent_readiness.core.urls import normalize_url
from agent_readiness.engines.base import (
    AISummary,
    AnalysisError,
    AnalysisResult,
    Detail,
    DetailType,
    RobotsAnalysis,
    RobotsStatus,
    StructuredDataAnalysis,
    make_details,
)
from agent_readiness.engines.page.engine import (
    PageAnalyzerEngine,
    structured_data_details,
    structured_data_types,
)
from agent_readiness.engines.robots.engine import RobotsAnalyzerEngine
from agent_readiness.engines.scoring.engine import (
    ScoreSignals,
    calculate_readiness_score,
    score_label,
)
from agent_readiness.services.generative import GenerativeService, fallback_suggestions

logger = structlog.get_logger(__name__)

T = TypeVar("T")

STRUCTURED_DATA_SUMMARY = "AI-powered analysis of your structured data implementation"
SUMMARY_UNAVAILABLE = "Unable to generate AI analysis summary due to service limitations."
SCHEMA_REVIEW_UNAVAILABLE = "Unable to analyze structured data due to service limitations."
DEFAULT_ERROR_MESSAGE = "Analysis failed. Please try again."


def ai_analysis_details() -> list[Detail]:
    return make_details(
        (DetailType.SUCCESS, "Page content is easily parseable by AI agents"),
        (DetailType.INFO, "AI agents can extract key information effectively"),
        (DetailType.SUGGESTION, "Consider adding more semantic markup for enhanced AI understanding"),
    )


def error_result(message: str, url: str = "") -> AnalysisError:
    """Structured error that still renders as a (degraded) analysis."""
    unavailable = (DetailType.ERROR, "Analysis service temporarily unavailable")
    return AnalysisError(
        message=message or DEFAULT_ERROR_MESSAGE,
        url=url,
        score=0,
        label=score_label(0),
        structured_data=StructuredDataAnalysis(
            summary="Unable to analyze structured data",
            details=make_details(unavailable),
            found=[],
            analysis="Service temporarily unavailable",
        ),
        robots_analysis=RobotsAnalysis(
            status=RobotsStatus.ERROR,
            summary="Unable to analyze robots.txt",
            details=make_details(unavailable),
        ),
        ai_summary=AISummary(
            summary="Analysis service temporarily unavailable",
            details=make_details((DetailType.ERROR, "Unable to generate AI analysis")),
            insights=[],
        ),
    )


class AnalysisService:
    """Orchestrates page, robots, scoring and generative steps for one URL."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        generative: GenerativeService,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.page_engine = PageAnalyzerEngine(
            http_client,
            timeout=self.settings.PAGE_REQUEST_TIMEOUT,
            max_bytes=self.settings.MAX_PAGE_BYTES,
        )
        self.robots_engine = RobotsAnalyzerEngine(http_client, timeout=self.settings.ROBOTS_REQUEST_TIMEOUT)
        self.generative = generative

    async def analyze(self, url: str | None) -> AnalysisResult | AnalysisError:
        try:
            return await self._analyze(url)
        except InvalidURL as exc:
            logger.info("Rejected analysis input", url=url, error=str(exc))
            return error_result(str(exc), url=url or "")
        except Exception as exc:
            logger.error("Analysis failed", url=url, error=str(exc), exc_info=True)
            return error_result(str(exc), url=url or "")

    async def _analyze(self, url: str | None) -> AnalysisResult:
        start = time.perf_counter()
        target = normalize_url(url)
        log = logger.bind(url=target)

        page, robots = await asyncio.gather(
            self.page_engine.execute(target),
            self.robots_engine.execute(target),
        )

        signals = ScoreSignals.from_page(page, robots.status)
        score = calculate_readiness_score(signals, self.settings.CONTENT_LENGTH_THRESHOLD)

        summary, suggestions, schema_review = await asyncio.gather(
            self._guarded(
                "ai_summary",
                self.generative.generate_ai_agent_summary(target, page),
                SUMMARY_UNAVAILABLE,
            ),
            self._guarded(
                "suggestions",
                self.generative.generate_improvement_suggestions(
                    target,
                    score=score,
                    has_structured_data=signals.has_structured_data,
                    robots_status=robots.status,
                ),
                fallback_suggestions(
                    signals.has_structured_data, robots.status, self.settings.MAX_SUGGESTIONS
                ),
            ),
            self._guarded(
                "schema_review",
                self.generative.analyze_structured_data(page.structured_data),
                SCHEMA_REVIEW_UNAVAILABLE,
            ),
        )

        result = AnalysisResult(
            url=target,
            score=score,
            label=score_label(score),
            structured_data=StructuredDataAnalysis(
                summary=STRUCTURED_DATA_SUMMARY,
                details=structured_data_details(page.structured_data),
                found=structured_data_types(page.structured_data),
                analysis=schema_review,
            ),
            robots_analysis=robots,
            ai_summary=AISummary(
                summary=summary,
                details=ai_analysis_details(),
                insights=suggestions,
            ),
        )

        log.info(
            "Analysis complete",
            score=score,
            robots_status=robots.status,
            structured_data=signals.has_structured_data,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    async def _guarded(self, step: str, call: Awaitable[T], fallback: T) -> T:
        try:
            return await call
        except Exception as exc:
            logger.warning("Generative step failed, using fallback", step=step, error=str(exc))
            return fallback
