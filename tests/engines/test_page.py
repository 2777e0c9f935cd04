"""
Tests for the Page Engine: HTML extraction, fetching and structured-data helpers.
"""

import httpx
import pytest

from agent_readiness.core.errors import PageParseError
from agent_readiness.engines.page.engine import (
    FALLBACK_PAGE,
    PageAnalyzerEngine,
    PageFetcher,
    extract_page_data,
    structured_data_details,
    structured_data_types,
)


# ─────────────────────────────────────────────
# Extraction Tests
# ─────────────────────────────────────────────

class TestExtractPageData:

    def test_extracts_core_signals(self, page_html):
        page = extract_page_data(page_html(), preview_chars=1000)
        assert page.title == "Acme Widgets"
        assert page.description == "Hand-made widgets shipped worldwide."
        assert page.structured_data["@type"] == "Organization"
        assert "Widgets for everyone." in page.content
        assert page.key_elements == ["navigation", "content", "footer"]

    def test_content_is_truncated(self, page_html):
        page = extract_page_data(page_html("x" * 5000), preview_chars=1000)
        assert len(page.content) == 1000

    def test_missing_elements_are_empty(self):
        page = extract_page_data("<html><body><p>hi</p></body></html>", preview_chars=1000)
        assert page.title == ""
        assert page.description == ""
        assert page.structured_data is None

    def test_json_ld_list_is_kept(self):
        html = '<html><head><script type="application/ld+json">[{"@type": "WebPage"}, {"@type": "FAQPage"}]</script></head></html>'
        page = extract_page_data(html, preview_chars=1000)
        assert isinstance(page.structured_data, list)

    def test_empty_json_ld_is_none(self):
        html = '<html><head><script type="application/ld+json">  </script></head></html>'
        assert extract_page_data(html, preview_chars=1000).structured_data is None

    def test_invalid_json_ld_raises(self):
        html = '<html><head><script type="application/ld+json">{not json</script></head></html>'
        with pytest.raises(PageParseError):
            extract_page_data(html, preview_chars=1000)

    def test_wire_format(self, page_html):
        payload = extract_page_data(page_html(), preview_chars=1000).model_dump(mode="json", by_alias=True)
        assert set(payload) == {"title", "description", "content", "structuredData", "keyElements"}


# ─────────────────────────────────────────────
# Fetcher Tests
# ─────────────────────────────────────────────

class TestPageFetcher:

    @pytest.mark.asyncio
    async def test_fetches_and_parses(self, routed_client, page_html):
        routes = {"/": httpx.Response(200, text=page_html(), headers={"content-type": "text/html"})}
        async with routed_client(routes) as client:
            page = await PageFetcher(client, timeout=5).fetch("https://example.com/")
        assert page.title == "Acme Widgets"

    @pytest.mark.asyncio
    async def test_engine_falls_back_on_network_error(self, routed_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with routed_client({"/": handler}) as client:
            page = await PageAnalyzerEngine(client, timeout=5).execute("https://example.com/")
        assert page == FALLBACK_PAGE

    @pytest.mark.asyncio
    async def test_engine_falls_back_on_parse_error(self, routed_client):
        html = '<script type="application/ld+json">{broken</script>'
        async with routed_client({"/": httpx.Response(200, text=html)}) as client:
            page = await PageAnalyzerEngine(client, timeout=5).execute("https://example.com/")
        assert page.structured_data is None
        assert page.title == "Unable to fetch page title"

    @pytest.mark.asyncio
    async def test_body_is_read_up_to_byte_cap(self, routed_client, page_html):
        html = page_html("w" * 50_000)
        async with routed_client({"/": httpx.Response(200, text=html)}) as client:
            page = await PageFetcher(client, timeout=5, max_bytes=600).fetch("https://example.com/")
        # head survives the cut, the long body does not
        assert page.title == "Acme Widgets"
        assert 0 < page.content.count("w") < 600

    @pytest.mark.asyncio
    async def test_non_utf8_charset_is_decoded(self, routed_client):
        body = "<html><head><title>Caf\u00e9</title></head><body></body></html>".encode("latin-1")
        headers = {"content-type": "text/html; charset=latin-1"}
        async with routed_client({"/": httpx.Response(200, content=body, headers=headers)}) as client:
            page = await PageFetcher(client, timeout=5).fetch("https://example.com/")
        assert page.title == "Caf\u00e9"


# ─────────────────────────────────────────────
# Structured data helper Tests
# ─────────────────────────────────────────────

class TestStructuredDataHelpers:

    def test_no_data_is_a_single_error(self):
        for empty in (None, {}, []):
            details = structured_data_details(empty)
            assert len(details) == 1
            assert details[0].type == "error"
            assert details[0].message == "No structured data found on the page"

    def test_typed_object_checklist(self):
        details = structured_data_details({"@type": "Organization", "name": "Acme", "url": "https://acme.test"})
        messages = [d.message for d in details]
        assert messages[0] == "Organization schema detected and properly formatted"
        assert "name property is present in structured data" in messages
        assert "Consider adding description property to structured data" in messages
        assert "Consider adding image property to structured data" in messages
        assert len(details) == 5

    def test_types_from_object(self):
        assert structured_data_types({"@type": "Article"}) == ["Article"]

    def test_types_from_list_are_unique_and_ordered(self):
        data = [{"@type": "WebPage"}, {"@type": "FAQPage"}, {"@type": "WebPage"}, {"name": "untyped"}]
        assert structured_data_types(data) == ["WebPage", "FAQPage"]

    def test_types_from_nothing(self):
        assert structured_data_types(None) == []
