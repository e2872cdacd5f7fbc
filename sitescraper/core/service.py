"""Scraping service: the engine's entry points for callers."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Union

from ..crawler.controller import ConfigInput, CrawlController, load_configuration
from ..crawler.discovery import SiteDiscoverer
from ..crawler.multisite import MultiSiteController
from ..crawler.page import PageModel, Renderer
from ..crawler.registry import CancellationToken, SessionRegistry
from ..models.config import Selector, resolve_user_agent
from ..models.session import SelectorTestResult
from ..storage.base import SessionStore
from .errors import ScraperError
from .selector_engine import SelectorEngine
from .settings import EngineSettings

logger = logging.getLogger(__name__)


class ScrapingService:
    """Runs, stops and previews crawls against one renderer and session store."""

    def __init__(
        self,
        renderer: Renderer,
        store: SessionStore,
        settings: Optional[EngineSettings] = None,
    ):
        """Initialize the service.

        Args:
            renderer: Renderer shared by all runs.
            store: Session store receiving run state.
            settings: Engine settings. Defaults to ``EngineSettings()``.
        """
        self.renderer = renderer
        self.store = store
        self.settings = settings or EngineSettings()
        self.registry = SessionRegistry()
        self.engine = SelectorEngine()
        self.single_site = CrawlController(
            renderer, store, registry=self.registry, settings=self.settings, engine=self.engine
        )
        self.multi_site = MultiSiteController(
            renderer,
            store,
            registry=self.registry,
            settings=self.settings,
            engine=self.engine,
            discoverer=SiteDiscoverer(self.settings),
        )
        self._tasks: Dict[int, asyncio.Task] = {}

    async def run_single_site(self, config: ConfigInput, session_id: int) -> None:
        """Crawl the target site, following pagination if configured."""
        await self.single_site.run(config, session_id)

    async def run_multi_site(self, config: ConfigInput, session_id: int) -> None:
        """Discover websites from the target page and scrape each of them."""
        await self.multi_site.run(config, session_id)

    async def run(
        self, config: ConfigInput, session_id: int, token: Optional[CancellationToken] = None
    ) -> None:
        """Run in multi-site mode when the options ask for it, otherwise single-site."""
        controller = self.single_site
        if config is not None:
            try:
                if load_configuration(config).options.multi_site_enabled:
                    controller = self.multi_site
            except ValueError:
                # The controller reports the validation error on the session
                pass
        await controller.run(config, session_id, token=token)

    def start(self, config: ConfigInput, session_id: int) -> asyncio.Task:
        """Start a run in the background.

        The session is registered before this returns, so a :meth:`stop`
        issued right after ``start`` reaches the run.

        Returns:
            The task executing the run.

        Raises:
            SessionAlreadyRunning: If the session already has an active run.
        """
        token = self.registry.register(session_id)
        task = asyncio.create_task(
            self.run(config, session_id, token=token), name=f"scrape-session-{session_id}"
        )
        self._tasks[session_id] = task

        def _done(finished: asyncio.Task) -> None:
            if self._tasks.get(session_id) is finished:
                del self._tasks[session_id]
            if finished.cancelled():
                self.registry.release(session_id)
            elif finished.exception() is not None:
                logger.error(f"Background run of session {session_id} failed: {finished.exception()!r}")

        task.add_done_callback(_done)
        return task

    async def stop(self, session_id: int) -> None:
        """Stop a run at its next page or site boundary."""
        await self.single_site.stop(session_id)

    def is_running(self, session_id: int) -> bool:
        return self.registry.is_active(session_id)

    async def test_selector(
        self,
        page_or_url: Union[PageModel, str],
        selector: Union[Selector, Dict],
        user_agent_profile: Optional[str] = None,
    ) -> SelectorTestResult:
        """Preview what a selector extracts.

        Args:
            page_or_url: A loaded page, or a URL to load with the renderer.
            selector: Selector to test.
            user_agent_profile: Profile used when a URL has to be loaded.

        Returns:
            The selector test result.
        """
        if not isinstance(selector, Selector):
            selector = Selector.model_validate(selector)

        if not isinstance(page_or_url, str):
            return await self.engine.test_selector(page_or_url, selector)

        page = await self.renderer.new_page(resolve_user_agent(user_agent_profile))
        try:
            await page.load(page_or_url)
            return await self.engine.test_selector(page, selector)
        except ScraperError as e:
            return SelectorTestResult(success=False, error=str(e))
        finally:
            await page.close()

    async def close(self) -> None:
        """Stop background runs and release the renderer."""
        for session_id in list(self._tasks):
            await self.stop(session_id)
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        await self.renderer.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
