"""
Tests for the Analysis Service orchestration.
Uses httpx MockTransport for the target site and fallback generative text.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from agent_readiness.engines.base import AnalysisError, AnalysisResult
from agent_readiness.services.analysis import AnalysisService
from agent_readiness.services.generative import GenerativeService


class TestAnalysisService:

    @pytest.mark.asyncio
    async def test_full_analysis(self, routed_client, page_html, settings, fallback_generative):
        routes = {
            "/": httpx.Response(200, text=page_html("y" * 800)),
            "/robots.txt": httpx.Response(200, text="User-agent: *\nAllow: /"),
        }
        async with routed_client(routes) as client:
            result = await AnalysisService(client, fallback_generative, settings).analyze("example.com")

        assert isinstance(result, AnalysisResult)
        assert not isinstance(result, AnalysisError)
        assert result.url == "https://example.com"
        assert result.score == 100
        assert result.label == "Excellent"
        assert result.robots_analysis.status == "mostly_allowed"
        assert result.structured_data.found == ["Organization"]
        assert result.ai_summary.summary.startswith("This webpage from example.com")
        assert len(result.ai_summary.details) == 3
        assert result.ai_summary.insights

    @pytest.mark.asyncio
    async def test_normalizes_before_fetching(self, routed_client, settings, fallback_generative):
        seen = []

        def record(request):
            seen.append((request.url.host, request.url.path))
            return httpx.Response(404)

        async with routed_client({"/": record, "/robots.txt": record}) as client:
            await AnalysisService(client, fallback_generative, settings).analyze("example.com")

        assert sorted(seen) == [("example.com", "/"), ("example.com", "/robots.txt")]

    @pytest.mark.asyncio
    async def test_missing_robots_is_not_found(self, routed_client, page_html, settings, fallback_generative):
        routes = {"/": httpx.Response(200, text=page_html())}
        async with routed_client(routes) as client:
            result = await AnalysisService(client, fallback_generative, settings).analyze("https://example.com")

        assert result.robots_analysis.status == "not_found"
        assert result.robots_analysis.raw_content == ""
        # title + description + structured data + robots not_found
        assert result.score == 20 + 15 + 25 + 10

    @pytest.mark.asyncio
    async def test_blocked_site(self, routed_client, page_html, settings, fallback_generative):
        routes = {
            "/": httpx.Response(200, text=page_html()),
            "/robots.txt": httpx.Response(200, text="User-agent: *\nDisallow: /"),
        }
        async with routed_client(routes) as client:
            result = await AnalysisService(client, fallback_generative, settings).analyze("https://example.com")

        assert result.robots_analysis.status == "mostly_blocked"
        assert result.robots_analysis.summary == "0 out of 4 major AI crawlers are allowed to access your site."
        assert "Ensure robots.txt allows AI crawler access to important content" in result.ai_summary.insights

    @pytest.mark.asyncio
    async def test_unreachable_site_still_returns_result(self, routed_client, settings, fallback_generative):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        async with routed_client({"/": refuse, "/robots.txt": refuse}) as client:
            result = await AnalysisService(client, fallback_generative, settings).analyze("https://down.test")

        assert isinstance(result, AnalysisResult)
        assert result.robots_analysis.status == "cors_blocked"
        assert result.structured_data.details[0].message == "No structured data found on the page"

    @pytest.mark.asyncio
    async def test_generative_crash_uses_fallback(self, routed_client, page_html, settings, fallback_generative):
        fallback_generative.generate_ai_agent_summary = AsyncMock(side_effect=RuntimeError("boom"))
        routes = {"/": httpx.Response(200, text=page_html())}
        async with routed_client(routes) as client:
            result = await AnalysisService(client, fallback_generative, settings).analyze("https://example.com")

        assert result.ai_summary.summary == "Unable to generate AI analysis summary due to service limitations."

    @pytest.mark.asyncio
    async def test_suggestion_fallback_honours_configured_limit(self, routed_client, settings):
        limited = settings.model_copy(update={"MAX_SUGGESTIONS": 2})
        generative = GenerativeService(limited)
        generative.generate_improvement_suggestions = AsyncMock(side_effect=RuntimeError("boom"))
        async with routed_client({}) as client:
            result = await AnalysisService(client, generative, limited).analyze("https://example.com")

        # a schema-free site gets six fallback tips at the default limit
        assert len(result.ai_summary.insights) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "   ", None, "http://exa mple.com"])
    async def test_invalid_input_returns_error_shape(self, routed_client, settings, fallback_generative, raw):
        async with routed_client({}) as client:
            result = await AnalysisService(client, fallback_generative, settings).analyze(raw)

        assert isinstance(result, AnalysisError)
        payload = result.model_dump(mode="json", by_alias=True)
        assert payload["error"] is True
        assert payload["message"]
        assert payload["score"] == 0
        assert {"structuredData", "robotsAnalysis", "aiSummary"} <= set(payload)
