"""Static renderer: fetches pages over HTTP with aiohttp."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

import aiohttp
from aiohttp import ClientError, ClientSession

from ..core.errors import PageLoadError
from ..core.settings import EngineSettings
from .html_page import HtmlPage
from .page import Renderer

logger = logging.getLogger(__name__)


class StaticPage(HtmlPage):
    """An :class:`HtmlPage` whose documents are downloaded with aiohttp."""

    def __init__(
        self,
        session: ClientSession,
        user_agent: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
    ):
        """Initialize the page.

        Args:
            session: Shared aiohttp session.
            user_agent: User-Agent header sent with every request.
            timeout: Deadline of one page load in seconds.
            max_retries: Attempts per page on transport errors.
            retry_backoff: Base delay between attempts, doubled each retry.
        """
        super().__init__()
        self.session = session
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

    async def fetch(self, url: str) -> Tuple[str, str]:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                async with self.session.get(
                    url,
                    headers={"User-Agent": self.user_agent},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                    allow_redirects=True,
                ) as response:
                    if response.status >= 400:
                        # HTTP error statuses are not retried
                        raise PageLoadError(url, f"HTTP {response.status}")
                    html = await response.text(errors="replace")
                    return html, str(response.url)
            except (ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{self.max_retries} to fetch {url} failed: {e!r}")
                if attempt < self.max_retries and self.retry_backoff > 0:
                    await asyncio.sleep(self.retry_backoff * 2 ** (attempt - 1))

        reason = str(last_error) or type(last_error).__name__
        raise PageLoadError(url, reason)


class StaticRenderer(Renderer):
    """Renderer that downloads HTML without executing scripts."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        session: Optional[ClientSession] = None,
        retry_backoff: float = 1.0,
    ):
        """Initialize the renderer.

        Args:
            settings: Engine settings (timeout and retries).
            session: Optional aiohttp ClientSession to reuse.
            retry_backoff: Base delay between fetch attempts in seconds.
        """
        self.settings = settings or EngineSettings()
        self.retry_backoff = retry_backoff
        self._session = session
        self._external_session = session is not None

    def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession()
            self._external_session = False
        return self._session

    async def new_page(self, user_agent: str) -> StaticPage:
        return StaticPage(
            self._get_session(),
            user_agent,
            timeout=self.settings.page_load_timeout,
            max_retries=self.settings.max_retries,
            retry_backoff=self.retry_backoff,
        )

    async def close(self) -> None:
        if self._session is not None and not self._external_session:
            await self._session.close()
        self._session = None
