"""
Generative text service (Google Gemini).

Every public method returns usable text: when no API key is configured, the
call fails, or it returns nothing, the service substitutes deterministic
fallback text built from the page signals. GenerativeServiceUnavailable never
leaves this module.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any
from urllib.parse import urlparse

import structlog
from google import genai

from agent_readiness.core.config import Settings, get_settings
from agent_readiness.core.errors import GenerativeServiceUnavailable
from agent_readiness.engines.base import PageData

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Fallback text
# ─────────────────────────────────────────────

FALLBACK_SUGGESTIONS = [
    "Add comprehensive meta descriptions to improve AI agent summaries",
    "Implement structured data markup using schema.org vocabulary",
    "Optimize page titles with descriptive, keyword-rich content",
    "Ensure robots.txt allows AI crawler access to important content",
    "Add FAQ schema to improve question-answering capabilities",
    "Include breadcrumb navigation with structured data",
    "Optimize heading structure (H1, H2, H3) for better content hierarchy",
]


def fallback_page_summary(url: str, page: PageData | None = None) -> str:
    page = page or PageData()
    domain = urlparse(url).hostname or url
    title_part = "well-structured with a clear title" if page.title else "missing a proper title"
    desc_part = "includes a meta description" if page.description else "lacks a meta description"
    if page.structured_data:
        sd_part = "The page implements structured data which helps AI agents understand the content better."
    else:
        sd_part = "The page would benefit from structured data implementation to improve AI agent understanding."
    scope = "comprehensive" if len(page.content or "") > 500 else "moderate"

    return (
        f"This webpage from {domain} appears to be {title_part} and {desc_part}. {sd_part} "
        f"The content appears to be {scope} in scope. AI agents would be able to extract key "
        "information from this page, though optimization opportunities exist to improve "
        "discoverability and understanding."
    )


def fallback_suggestions(has_structured_data: bool, robots_status: str | None, limit: int = 7) -> list[str]:
    picked: list[str] = []
    if not has_structured_data:
        picked += [FALLBACK_SUGGESTIONS[1], FALLBACK_SUGGESTIONS[4], FALLBACK_SUGGESTIONS[5]]
    if robots_status == "mostly_blocked":
        picked.append(FALLBACK_SUGGESTIONS[3])
    picked += [FALLBACK_SUGGESTIONS[0], FALLBACK_SUGGESTIONS[2], FALLBACK_SUGGESTIONS[6]]

    # dict.fromkeys keeps first-seen order
    return list(dict.fromkeys(picked))[:limit]


def fallback_structured_data_review(structured_data: Any) -> str:
    if not structured_data:
        return (
            "No structured data detected on this page. Implementing basic schema.org markup would "
            "significantly improve AI agent understanding. Consider adding WebPage, Organization, or "
            "Article schema depending on your content type. Priority recommendations include adding "
            "JSON-LD structured data for better parsing by AI agents."
        )

    data_type = structured_data.get("@type", "Unknown") if isinstance(structured_data, dict) else "Unknown"
    return (
        f"Current structured data implementation includes {data_type} schema, which provides a good "
        "foundation for AI understanding. The existing markup helps AI agents identify key page "
        "elements and context. Consider expanding the schema with additional properties like "
        "description, image, and relevant business information. Adding FAQ or HowTo schema could "
        "further enhance AI agent comprehension and improve question-answering capabilities."
    )


_NUMBERED_LINE = re.compile(r"^\d+\.")
_BULLET_PREFIX = re.compile(r"^[-•*]\s*")


def parse_suggestions(text: str, limit: int = 7) -> list[str]:
    """Split model output into suggestion lines, dropping numbered headings and short lines."""
    suggestions = []
    for line in text.split("\n"):
        if not line.strip() or _NUMBERED_LINE.match(line) or len(line) <= 20:
            continue
        suggestions.append(_BULLET_PREFIX.sub("", line.strip()))
    return suggestions[:limit]


# ─────────────────────────────────────────────
# Prompts
# ─────────────────────────────────────────────

AGENT_SUMMARY_PROMPT = """Act as an AI agent (like ChatGPT, Perplexity, or Gemini) and describe how you would interpret and summarize this webpage:

URL: {url}
Page Title: {title}
Meta Description: {description}
Main Content: {content}
Key Elements: {key_elements}

Provide a natural, conversational summary that shows exactly how an AI agent would describe this page to a user who asked about it. Focus on what the page is about, the key information available, its main purpose and any important details.
"""

SUGGESTIONS_PROMPT = """Based on the following website analysis, provide specific, actionable suggestions to improve AI agent visibility:

URL: {url}
Current Score: {score}
Structured Data: {structured_data}
Robots.txt Status: {robots_status}

Provide 5-7 specific, actionable recommendations covering AI understanding, structured data, content parsing and AI crawler access.
Format each suggestion as a clear, actionable item without numbering.
"""

STRUCTURED_DATA_PROMPT = """Analyze the following structured data and provide insights for AI optimization:

Structured Data Found: {structured_data}

Provide an assessment of its quality, missing schema.org types that would improve AI understanding, and prioritized implementation recommendations.
"""


# ─────────────────────────────────────────────
# Service
# ─────────────────────────────────────────────

class GenerativeService:
    """Thin async wrapper around the Gemini client with fallback on every call."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None):
        self.settings = settings or get_settings()
        self.model = self.settings.GEMINI_MODEL
        self.timeout = self.settings.GEMINI_TIMEOUT
        self.max_suggestions = self.settings.MAX_SUGGESTIONS

        if client is None and self.settings.generative_enabled:
            client = genai.Client(api_key=self.settings.GEMINI_API_KEY)
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def generate_text(self, prompt: str) -> str:
        """Raw completion. Raises GenerativeServiceUnavailable on any failure."""
        if self._client is None:
            raise GenerativeServiceUnavailable("Gemini API key not configured")

        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(model=self.model, contents=prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GenerativeServiceUnavailable("Gemini request timed out") from exc
        except Exception as exc:
            raise GenerativeServiceUnavailable(f"Gemini request failed: {exc}") from exc

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise GenerativeServiceUnavailable("Gemini returned an empty response")
        return text

    async def generate_ai_agent_summary(self, url: str, page: PageData) -> str:
        prompt = AGENT_SUMMARY_PROMPT.format(
            url=url,
            title=page.title or "Not provided",
            description=page.description or "Not provided",
            content=page.content or "Not provided",
            key_elements=", ".join(page.key_elements) or "Not provided",
        )
        try:
            return await self.generate_text(prompt)
        except GenerativeServiceUnavailable as exc:
            logger.info("Using fallback agent summary", url=url, reason=str(exc))
            return fallback_page_summary(url, page)

    async def generate_improvement_suggestions(
        self,
        url: str,
        *,
        score: int | None = None,
        has_structured_data: bool = False,
        robots_status: str | None = None,
    ) -> list[str]:
        prompt = SUGGESTIONS_PROMPT.format(
            url=url,
            score=score if score is not None else "Not provided",
            structured_data="Present" if has_structured_data else "Missing",
            robots_status=robots_status or "Unknown",
        )
        try:
            suggestions = parse_suggestions(await self.generate_text(prompt), self.max_suggestions)
            if suggestions:
                return suggestions
            logger.info("Model returned no usable suggestions", url=url)
        except GenerativeServiceUnavailable as exc:
            logger.info("Using fallback suggestions", url=url, reason=str(exc))
        return fallback_suggestions(has_structured_data, robots_status, self.max_suggestions)

    async def analyze_structured_data(self, structured_data: Any) -> str:
        prompt = STRUCTURED_DATA_PROMPT.format(
            structured_data=json.dumps(structured_data or {}, indent=2, default=str),
        )
        try:
            return await self.generate_text(prompt)
        except GenerativeServiceUnavailable as exc:
            logger.info("Using fallback structured data review", reason=str(exc))
            return fallback_structured_data_review(structured_data)
