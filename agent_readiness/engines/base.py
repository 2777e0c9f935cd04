"""
Base class and type contracts for the readiness analysis steps.
Every step MUST inherit from AnalysisStep and implement run() and fallback().

Design principles:
- Steps are stateless: all state comes from the call arguments
- Steps are independent: no step calls another
- Steps never abort an analysis: failures degrade to a fallback value
- Every value handed to the rendering layer is an immutable pydantic model
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class DetailType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"
    SUGGESTION = "suggestion"


class RobotsStatus(str, Enum):
    MOSTLY_ALLOWED = "mostly_allowed"
    MOSTLY_BLOCKED = "mostly_blocked"
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    CORS_BLOCKED = "cors_blocked"
    TIMEOUT = "timeout"
    ERROR = "error"


class Crawler(str, Enum):
    """Fixed set of AI crawlers evaluated against robots.txt, in report order."""
    GPTBOT = "GPTBot"
    PERPLEXITYBOT = "PerplexityBot"
    GOOGLEBOT = "GoogleBot"
    BINGBOT = "BingBot"


CRAWLERS: tuple[Crawler, ...] = tuple(Crawler)


# ─────────────────────────────────────────────
# Core data types
# ─────────────────────────────────────────────

class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python, immutable once built."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )


class Detail(WireModel):
    type: DetailType
    message: str


class PageData(WireModel):
    """Page signals extracted from the target's HTML."""
    title: str = ""
    description: str = ""
    content: str = ""
    structured_data: dict[str, Any] | list[Any] | None = None
    key_elements: list[str] = Field(default_factory=list)


class RobotsAnalysis(WireModel):
    status: RobotsStatus
    summary: str
    details: list[Detail] = Field(default_factory=list)
    raw_content: str = ""


class StructuredDataAnalysis(WireModel):
    summary: str
    details: list[Detail] = Field(default_factory=list)
    found: list[str] = Field(default_factory=list)
    analysis: str = ""


class AISummary(WireModel):
    summary: str
    details: list[Detail] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)


class AnalysisResult(WireModel):
    """Complete analysis handed to the rendering layer."""
    url: str = ""
    score: int = Field(ge=0, le=100, default=0)
    label: str = ""
    structured_data: StructuredDataAnalysis
    robots_analysis: RobotsAnalysis
    ai_summary: AISummary


class AnalysisError(AnalysisResult):
    """Analysis that could not run, still carrying a renderable fallback result."""
    error: bool = True
    message: str


def make_details(*items: tuple[DetailType, str]) -> list[Detail]:
    """Build a details list from (type, message) pairs."""
    return [Detail(type=kind, message=message) for kind, message in items]


# ─────────────────────────────────────────────
# Base Step
# ─────────────────────────────────────────────

class AnalysisStep(ABC, Generic[T]):
    """
    Abstract base class for one external call of an analysis.

    All steps MUST:
    1. Implement run(url, **context) -> T
    2. Implement fallback(url, exc, **context) -> T returning a hardcoded value
    3. Be stateless - store nothing on self between calls
    """

    STEP_NAME: str = "base"

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)

    @abstractmethod
    async def run(self, url: str, **context: Any) -> T:
        ...

    @abstractmethod
    def fallback(self, url: str, exc: Exception, **context: Any) -> T:
        ...

    async def execute(self, url: str, **context: Any) -> T:
        """
        Wrapper around run() that adds timing, logging, and fallback on error.
        Call this instead of run() directly.
        """
        start = time.perf_counter()
        self.logger.debug("Step starting", step=self.STEP_NAME, url=url)

        try:
            result = await self.run(url, **context)
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.info(
                "Step complete",
                step=self.STEP_NAME,
                url=url,
                elapsed_ms=round(elapsed, 2),
            )
            return result

        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.warning(
                "Step failed, using fallback",
                step=self.STEP_NAME,
                url=url,
                error=str(exc),
                error_type=type(exc).__name__,
                elapsed_ms=round(elapsed, 2),
            )
            return self.fallback(url, exc, **context)
