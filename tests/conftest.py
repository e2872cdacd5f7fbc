"""Pytest configuration and fixtures for SiteScraper tests."""
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Tuple

import pytest

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sitescraper.core.errors import PageLoadError
from sitescraper.core.service import ScrapingService
from sitescraper.core.settings import EngineSettings
from sitescraper.crawler.html_page import HtmlPage
from sitescraper.crawler.page import Renderer
from sitescraper.storage.memory import MemorySessionStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

# Reduce log noise for test output
logging.getLogger("aiohttp").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)


class FakePage(HtmlPage):
    """HtmlPage served from the fake renderer's dictionary of documents."""

    def __init__(self, renderer: "FakeRenderer", user_agent: str):
        super().__init__()
        self.renderer = renderer
        self.user_agent = user_agent
        self.closed = False

    async def fetch(self, url: str) -> Tuple[str, str]:
        self.renderer.fetched.append(url)
        hook = self.renderer.hooks.get(url)
        if hook is not None:
            await hook()
        if url in self.renderer.failures:
            raise PageLoadError(url, self.renderer.failures[url])
        if url not in self.renderer.pages:
            raise PageLoadError(url, "HTTP 404")
        return self.renderer.pages[url], url

    async def close(self) -> None:
        self.closed = True


class FakeRenderer(Renderer):
    """Renderer serving canned HTML by URL."""

    def __init__(self):
        self.pages: Dict[str, str] = {}
        self.failures: Dict[str, str] = {}
        self.hooks: Dict[str, Callable[[], Awaitable[None]]] = {}
        self.fetched: List[str] = []
        self.opened: List[FakePage] = []
        self.closed = False

    async def new_page(self, user_agent: str) -> FakePage:
        page = FakePage(self, user_agent)
        self.opened.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> EngineSettings:
    """Engine settings without settle delays."""
    return EngineSettings(dynamic_content_wait_ms=0, pagination_settle_ms=0)


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def service(renderer, store, settings) -> ScrapingService:
    return ScrapingService(renderer, store, settings)


@pytest.fixture
def make_page():
    """Build an HtmlPage from markup."""
    def _make_page(html: str, url: str = "https://example.com/") -> HtmlPage:
        return HtmlPage(html, url)

    return _make_page
