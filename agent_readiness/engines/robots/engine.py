"""
Robots Engine - AI crawler permissions from robots.txt.

Flow:
1. Fetch /robots.txt from the target's origin (fixed timeout, no retries)
2. Parse directives into a RobotsRuleSet
3. Resolve each fixed crawler against its own group, falling back to "*"
4. Summarize as mostly_allowed / mostly_blocked

A crawler counts as blocked only on an exact ``Disallow: /`` in its effective
group. Partial-path disallows are not evaluated (known limitation).

Fetch failures never reach the evaluator; they map to fixed informational
payloads (not_found, cors_blocked, timeout, error).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import httpx
import structlog

from agent_readiness.core.config import get_settings
from agent_readiness.core.errors import (
    CorsOrNetworkBlocked,
    FetchTimeout,
    UpstreamFetchFailure,
)
from agent_readiness.core.urls import robots_url_for
from agent_readiness.engines.base import (
    CRAWLERS,
    AnalysisStep,
    Crawler,
    DetailType,
    RobotsAnalysis,
    RobotsStatus,
    make_details,
)
from agent_readiness.engines.robots.parser import (
    WILDCARD_AGENT,
    RobotsRuleSet,
    RuleKind,
    parse_robots,
)

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Permission Evaluator
# ─────────────────────────────────────────────

@dataclass(frozen=True)
class CrawlerPermission:
    crawler: Crawler
    allowed: bool


@dataclass(frozen=True)
class RobotsEvaluation:
    permissions: tuple[CrawlerPermission, ...]

    @property
    def allowed_count(self) -> int:
        return sum(1 for p in self.permissions if p.allowed)

    @property
    def total(self) -> int:
        return len(self.permissions)

    @property
    def status(self) -> RobotsStatus:
        if self.allowed_count > self.total / 2:
            return RobotsStatus.MOSTLY_ALLOWED
        return RobotsStatus.MOSTLY_BLOCKED

    @property
    def summary(self) -> str:
        return f"{self.allowed_count} out of {self.total} major AI crawlers are allowed to access your site."


def is_blocked(rules: RobotsRuleSet, crawler: Crawler | str) -> bool:
    """True iff the crawler's effective group contains ``Disallow: /``."""
    agent = crawler.value if isinstance(crawler, Crawler) else crawler
    effective = rules.rules_for(agent)
    if effective is None:
        effective = rules.rules_for(WILDCARD_AGENT) or ()
    return any(r.kind == RuleKind.DISALLOW and r.path_prefix == "/" for r in effective)


def evaluate_permissions(
    rules: RobotsRuleSet,
    crawlers: Sequence[Crawler] = CRAWLERS,
) -> RobotsEvaluation:
    return RobotsEvaluation(
        permissions=tuple(
            CrawlerPermission(crawler=c, allowed=not is_blocked(rules, c)) for c in crawlers
        )
    )


def build_robots_analysis(robots_text: str) -> RobotsAnalysis:
    """Parse and evaluate robots.txt text into the report payload."""
    evaluation = evaluate_permissions(parse_robots(robots_text))

    items = []
    for permission in evaluation.permissions:
        name = permission.crawler.value
        if permission.allowed:
            items.append((DetailType.SUCCESS, f"{name} is allowed to crawl your site"))
        else:
            items.append((DetailType.ERROR, f"{name} is blocked from crawling your site"))

    return RobotsAnalysis(
        status=evaluation.status,
        summary=evaluation.summary,
        details=make_details(*items),
        raw_content=robots_text,
    )


# ─────────────────────────────────────────────
# Failure payloads
# ─────────────────────────────────────────────

def not_found_analysis() -> RobotsAnalysis:
    return RobotsAnalysis(
        status=RobotsStatus.NOT_FOUND,
        summary="No robots.txt file found. AI crawlers will use default permissions.",
        details=make_details(
            (DetailType.WARNING, "No robots.txt file detected"),
            (DetailType.INFO, "AI crawlers will assume default permissions"),
            (DetailType.SUGGESTION, "Consider adding robots.txt for explicit crawler control"),
        ),
    )


def blocked_analysis() -> RobotsAnalysis:
    return RobotsAnalysis(
        status=RobotsStatus.CORS_BLOCKED,
        summary="Unable to access robots.txt because the connection was refused or blocked.",
        details=make_details(
            (DetailType.WARNING, "Connection to the site was refused or blocked"),
            (DetailType.INFO, "This is a common limitation when analyzing external sites"),
            (DetailType.SUGGESTION, "Check that the site is publicly reachable and not behind a firewall"),
        ),
    )


def timeout_analysis() -> RobotsAnalysis:
    return RobotsAnalysis(
        status=RobotsStatus.TIMEOUT,
        summary="Request timed out while fetching robots.txt.",
        details=make_details(
            (DetailType.WARNING, "Request took too long to complete"),
            (DetailType.INFO, "Site may be slow or temporarily unavailable"),
            (DetailType.SUGGESTION, "Try again later or check site availability"),
        ),
    )


def error_analysis() -> RobotsAnalysis:
    return RobotsAnalysis(
        status=RobotsStatus.ERROR,
        summary="Unable to analyze robots.txt file.",
        details=make_details(
            (DetailType.ERROR, "Failed to fetch or parse robots.txt"),
            (DetailType.INFO, "Analysis will continue with default assumptions"),
            (DetailType.SUGGESTION, "Ensure robots.txt is accessible and properly formatted"),
        ),
    )


def robots_failure_analysis(exc: Exception) -> RobotsAnalysis:
    """Map a robots.txt fetch failure to its informational payload."""
    if isinstance(exc, FetchTimeout):
        return timeout_analysis()
    if isinstance(exc, CorsOrNetworkBlocked):
        return blocked_analysis()
    if isinstance(exc, UpstreamFetchFailure) and exc.status_code is not None:
        return not_found_analysis()
    return error_analysis()


# ─────────────────────────────────────────────
# Fetcher
# ─────────────────────────────────────────────

class RobotsFetcher:
    """Fetch robots.txt text for a normalized URL."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float | None = None):
        self.http_client = http_client
        self.timeout = timeout if timeout is not None else get_settings().ROBOTS_REQUEST_TIMEOUT

    async def fetch(self, url: str) -> str:
        """
        Return the robots.txt body.

        Raises FetchTimeout, CorsOrNetworkBlocked, or UpstreamFetchFailure
        (with status_code set for non-2xx answers).
        """
        robots_url = robots_url_for(url)
        try:
            response = await self.http_client.get(
                robots_url,
                headers={"Accept": "text/plain"},
                follow_redirects=True,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise FetchTimeout("Request timeout", url=robots_url) from exc
        except httpx.NetworkError as exc:
            raise CorsOrNetworkBlocked(f"Connection failed: {exc}", url=robots_url) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchFailure(f"Fetch failed: {exc}", url=robots_url) from exc

        if not response.is_success:
            raise UpstreamFetchFailure(
                f"robots.txt answered {response.status_code}",
                url=robots_url,
                status_code=response.status_code,
            )

        logger.debug("robots.txt fetched", url=robots_url, size=len(response.content))
        return response.text


# ─────────────────────────────────────────────
# Analysis step
# ─────────────────────────────────────────────

class RobotsAnalyzerEngine(AnalysisStep[RobotsAnalysis]):
    """Fetch and evaluate robots.txt; any failure degrades to an informational status."""

    STEP_NAME = "robots"

    def __init__(self, http_client: httpx.AsyncClient, timeout: float | None = None):
        super().__init__()
        self.fetcher = RobotsFetcher(http_client, timeout=timeout)

    async def run(self, url: str, **context: Any) -> RobotsAnalysis:
        robots_text = await self.fetcher.fetch(url)
        analysis = build_robots_analysis(robots_text)
        self.logger.info("Robots evaluated", url=url, status=analysis.status)
        return analysis

    def fallback(self, url: str, exc: Exception, **context: Any) -> RobotsAnalysis:
        return robots_failure_analysis(exc)
