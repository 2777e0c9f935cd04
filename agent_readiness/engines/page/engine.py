"""
Page Engine - fetches the target page and extracts the signals AI agents read.

Extracted:
- <title> text
- meta description
- body text preview (first CONTENT_PREVIEW_CHARS characters)
- first JSON-LD block, parsed
- key page elements (navigation, content, footer)

Also holds the structured-data helpers used to build the report section.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from agent_readiness.core.config import get_settings
from agent_readiness.core.errors import (
    CorsOrNetworkBlocked,
    FetchTimeout,
    PageParseError,
    UpstreamFetchFailure,
)
from agent_readiness.engines.base import (
    AnalysisStep,
    Detail,
    DetailType,
    PageData,
    make_details,
)

logger = structlog.get_logger(__name__)

KEY_ELEMENTS = ["navigation", "content", "footer"]
IMPORTANT_SCHEMA_FIELDS = ["name", "description", "url", "image"]

FALLBACK_PAGE = PageData(
    title="Unable to fetch page title",
    description="Unable to fetch page description",
    content="Unable to fetch page content",
    structured_data=None,
    key_elements=[],
)


# ─────────────────────────────────────────────
# HTML extraction
# ─────────────────────────────────────────────

def extract_page_data(html: str, preview_chars: int | None = None) -> PageData:
    """
    Extract PageData from raw HTML.
    Raises PageParseError when the JSON-LD block is not valid JSON.
    """
    if preview_chars is None:
        preview_chars = get_settings().CONTENT_PREVIEW_CHARS

    soup = BeautifulSoup(html, "lxml")

    title_tag = soup.find("title")
    title = title_tag.get_text() if title_tag else ""

    meta_desc = soup.find("meta", attrs={"name": "description"})
    description = (meta_desc.get("content") or "") if meta_desc else ""

    structured_data: Any = None
    ld_script = soup.find("script", attrs={"type": "application/ld+json"})
    if ld_script is not None:
        raw = ld_script.string or ld_script.get_text()
        if raw.strip():
            try:
                structured_data = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise PageParseError(f"Invalid JSON-LD: {exc.msg}") from exc
        if not isinstance(structured_data, (dict, list)):
            structured_data = None

    body = soup.find("body")
    content = body.get_text() if body else ""

    return PageData(
        title=title,
        description=description,
        content=content[:preview_chars],
        structured_data=structured_data,
        key_elements=list(KEY_ELEMENTS),
    )


# ─────────────────────────────────────────────
# Fetcher
# ─────────────────────────────────────────────

class PageFetcher:
    """
    Fetches a page over plain HTTP and hands the body to extract_page_data().
    The body is streamed and read up to ``max_bytes``; only a short preview is kept anyway.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout: float | None = None,
        max_bytes: int | None = None,
    ):
        settings = get_settings()
        self.http_client = http_client
        self.timeout = timeout if timeout is not None else settings.PAGE_REQUEST_TIMEOUT
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_PAGE_BYTES

    async def fetch(self, url: str) -> PageData:
        try:
            async with self.http_client.stream(
                "GET",
                url,
                follow_redirects=True,
                timeout=self.timeout,
            ) as response:
                html = await self._read_body(response)
        except httpx.TimeoutException as exc:
            raise FetchTimeout("Request timeout", url=url) from exc
        except httpx.NetworkError as exc:
            raise CorsOrNetworkBlocked(f"Connection failed: {exc}", url=url) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchFailure(f"Fetch failed: {exc}", url=url) from exc

        # Error pages are parsed too: their markup is what a crawler would see
        if not response.is_success:
            logger.info("Page answered non-2xx", url=url, status_code=response.status_code)

        return extract_page_data(html)

    async def _read_body(self, response: httpx.Response) -> str:
        chunks: list[bytes] = []
        received = 0
        async for chunk in response.aiter_bytes():
            chunks.append(chunk)
            received += len(chunk)
            if received >= self.max_bytes:
                logger.info("Page body truncated", url=str(response.url), max_bytes=self.max_bytes)
                break

        raw = b"".join(chunks)[: self.max_bytes]
        try:
            return raw.decode(response.charset_encoding or "utf-8", errors="replace")
        except LookupError:
            # Unknown charset in Content-Type
            return raw.decode("utf-8", errors="replace")


class PageAnalyzerEngine(AnalysisStep[PageData]):
    STEP_NAME = "page"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout: float | None = None,
        max_bytes: int | None = None,
    ):
        super().__init__()
        self.fetcher = PageFetcher(http_client, timeout=timeout, max_bytes=max_bytes)

    async def run(self, url: str, **context: Any) -> PageData:
        return await self.fetcher.fetch(url)

    def fallback(self, url: str, exc: Exception, **context: Any) -> PageData:
        return FALLBACK_PAGE


# ─────────────────────────────────────────────
# Structured data helpers
# ─────────────────────────────────────────────

def structured_data_details(data: Any) -> list[Detail]:
    """Checklist of schema.org signals found in the page's JSON-LD."""
    if not data:
        return make_details((DetailType.ERROR, "No structured data found on the page"))

    items: list[tuple[DetailType, str]] = []
    fields = data if isinstance(data, dict) else {}

    data_type = fields.get("@type")
    if data_type:
        items.append((DetailType.SUCCESS, f"{_type_name(data_type)} schema detected and properly formatted"))

    for field in IMPORTANT_SCHEMA_FIELDS:
        if fields.get(field):
            items.append((DetailType.SUCCESS, f"{field} property is present in structured data"))
        else:
            items.append((DetailType.WARNING, f"Consider adding {field} property to structured data"))

    return make_details(*items)


def structured_data_types(data: Any) -> list[str]:
    """Unique @type values from a JSON-LD object or list, in first-seen order."""
    if not data:
        return []

    candidates = data if isinstance(data, list) else [data]
    types: list[str] = []
    for item in candidates:
        if not isinstance(item, dict) or not item.get("@type"):
            continue
        name = _type_name(item["@type"])
        if name not in types:
            types.append(name)
    return types


def _type_name(value: Any) -> str:
    # "@type" may be a list, e.g. ["Organization", "LocalBusiness"]
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)
