"""Headless browser renderer built on Playwright.

One Chromium instance is shared by every run; each run gets its own
browser context, so cookies and navigation never leak between sessions.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import Browser, BrowserContext, ElementHandle as PlaywrightElement
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Playwright, async_playwright

from ..core.errors import ElementResolutionError, PageLoadError
from ..core.settings import EngineSettings
from ..models.config import Attribute, AttributeKind
from .page import ElementHandle, PageModel, Renderer

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920x1080",
]

_IS_DISABLED_JS = """el => !!el.disabled
    || el.classList.contains('disabled')
    || el.getAttribute('aria-disabled') === 'true'"""


class BrowserElement(ElementHandle):
    """Element handle living in a browser page."""

    def __init__(self, handle: PlaywrightElement):
        self.handle = handle

    async def value(self, attribute: Attribute) -> Optional[str]:
        try:
            if attribute.kind == AttributeKind.TEXT:
                raw = await self.handle.text_content()
                raw = raw.strip() if raw else raw
            elif attribute.kind == AttributeKind.HTML:
                raw = (await self.handle.inner_html()).strip()
            else:
                raw = await self.handle.get_attribute(attribute.name)
        except PlaywrightError as e:
            raise ElementResolutionError(f"Could not read {attribute}: {e}") from e
        return raw or None

    async def is_disabled(self) -> bool:
        return bool(await self.handle.evaluate(_IS_DISABLED_JS))

    async def activate(self) -> None:
        try:
            await self.handle.click()
        except PlaywrightError as e:
            raise ElementResolutionError(f"Could not click element: {e}") from e


class BrowserPage(PageModel):
    """A Playwright page inside a dedicated browser context."""

    def __init__(self, context: BrowserContext, page: Page, timeout_ms: int):
        self.context = context
        self.page = page
        self.timeout_ms = timeout_ms

    @property
    def url(self) -> str:
        return self.page.url

    async def load(self, url: str) -> None:
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
        except PlaywrightError as e:
            raise PageLoadError(url, str(e)) from e

    async def _query_all(self, selector: str) -> List[ElementHandle]:
        try:
            handles = await self.page.query_selector_all(selector)
        except PlaywrightError as e:
            raise ElementResolutionError(f"Query {selector!r} failed: {e}") from e
        return [BrowserElement(handle) for handle in handles]

    async def query(self, css_query: str) -> List[ElementHandle]:
        return await self._query_all(css_query)

    async def query_path(self, path_query: str) -> List[ElementHandle]:
        return await self._query_all(f"xpath={path_query}")

    async def text(self) -> str:
        return await self.page.evaluate("() => document.body ? document.body.textContent || '' : ''")

    async def close(self) -> None:
        await self.context.close()


class PlaywrightRenderer(Renderer):
    """Renderer that executes pages in headless Chromium."""

    def __init__(self, settings: Optional[EngineSettings] = None, headless: bool = True):
        self.settings = settings or EngineSettings()
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def _get_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                logger.info("Launching headless Chromium")
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless, args=LAUNCH_ARGS
                )
            return self._browser

    async def new_page(self, user_agent: str) -> BrowserPage:
        browser = await self._get_browser()
        context = await browser.new_context(user_agent=user_agent)
        page = await context.new_page()
        return BrowserPage(context, page, self.settings.page_load_timeout_ms)

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
