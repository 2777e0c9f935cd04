"""
Shared fixtures.
Network access is replaced by httpx MockTransport routed on URL path.
"""

from typing import Callable

import httpx
import pytest

from agent_readiness.core.config import Settings
from agent_readiness.services.generative import GenerativeService

PAGE_HTML = """
<html>
  <head>
    <title>Acme Widgets</title>
    <meta name="description" content="Hand-made widgets shipped worldwide.">
    <script type="application/ld+json">
      {"@context": "https://schema.org", "@type": "Organization", "name": "Acme", "url": "https://acme.test"}
    </script>
  </head>
  <body>
    <nav>Home | Shop</nav>
    <main>{body}</main>
  </body>
</html>
"""


def make_page(body: str = "Widgets for everyone.") -> str:
    return PAGE_HTML.replace("{body}", body)


def build_routed_client(routes: dict[str, Callable[[httpx.Request], httpx.Response] | httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose responses are looked up by request path; unknown paths get 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, httpx.Response):
            return route
        return route(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def routed_client():
    return build_routed_client


@pytest.fixture
def page_html():
    return make_page


@pytest.fixture
def settings() -> Settings:
    return Settings(GEMINI_API_KEY="", LOG_FORMAT="console")


@pytest.fixture
def fallback_generative(settings) -> GenerativeService:
    return GenerativeService(settings)
