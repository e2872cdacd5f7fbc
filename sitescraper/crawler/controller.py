"""Crawl run state machines.

A run moves ``idle -> running -> completed | failed | stopped``. Terminal
statuses are final. Cancellation is cooperative: :meth:`BaseController.stop`
flips the session's token, and the run notices it before starting its
next page, so a page that is already loading is still extracted.
"""
from __future__ import annotations

import abc
import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..core.dedup import Deduplicator
from ..core.errors import ConfigurationNotFound, PageLoadError
from ..core.filters import FilterPipeline
from ..core.selector_engine import SelectorEngine
from ..core.settings import EngineSettings, pause
from ..models.config import Configuration
from ..models.session import Record, SessionStatus
from ..storage.base import SessionStore
from .page import PageModel, Renderer
from .progress import ProgressReporter
from .registry import CancellationToken, SessionRegistry

logger = logging.getLogger(__name__)

ConfigInput = Union[Configuration, Mapping[str, Any], None]


def load_configuration(config: ConfigInput) -> Configuration:
    """Validate the configuration a run was started with.

    Raises:
        ConfigurationNotFound: If no configuration was given.
        pydantic.ValidationError: If a mapping is not a valid configuration.
    """
    if config is None:
        raise ConfigurationNotFound()
    if isinstance(config, Configuration):
        return config
    return Configuration.model_validate(config)


class BaseController(abc.ABC):
    """Shared lifecycle of a crawl run: status, results, deduplication, errors."""

    def __init__(
        self,
        renderer: Renderer,
        store: SessionStore,
        registry: Optional[SessionRegistry] = None,
        settings: Optional[EngineSettings] = None,
        engine: Optional[SelectorEngine] = None,
    ):
        """Initialize the controller.

        Args:
            renderer: Source of page models.
            store: Session store receiving status, progress, results and errors.
            registry: Registry of active runs, shared with other controllers.
            settings: Engine settings.
            engine: Selector engine.
        """
        self.renderer = renderer
        self.store = store
        self.registry = registry or SessionRegistry()
        self.settings = settings or EngineSettings()
        self.engine = engine or SelectorEngine()
        self.filters = FilterPipeline()
        self.deduplicator = Deduplicator()

    async def run(
        self, config: ConfigInput, session_id: int, token: Optional[CancellationToken] = None
    ) -> None:
        """Execute a run for a session until it completes, fails or is stopped.

        A session that is already stopped (or otherwise terminal) is not
        crawled.

        Args:
            config: Configuration of the run (model, mapping or None).
            session_id: Session receiving the run's state.
            token: Token from an earlier ``registry.register(session_id)``;
                the run registers the session itself when omitted.

        Raises:
            SessionAlreadyRunning: If the session already has an active run.
        """
        if token is None:
            token = self.registry.register(session_id)
        reporter = ProgressReporter(self.store, session_id)
        try:
            session = await self.store.get_session(session_id)
            if token.cancelled or (session is not None and session.status.is_terminal):
                logger.info(f"Session {session_id} was stopped before it started")
                return

            configuration = load_configuration(config)
            await reporter.status(SessionStatus.RUNNING)

            page = await self.renderer.new_page(configuration.user_agent)
            try:
                records = await self.crawl(page, configuration, reporter, token)
            finally:
                await page.close()

            if configuration.options.remove_duplicates:
                before = len(records)
                records = self.deduplicator.dedupe(records)
                logger.info(f"Session {session_id}: removed {before - len(records)} duplicate records")

            await reporter.results(records)
            if token.cancelled:
                logger.info(f"Session {session_id} stopped with {len(records)} records")
            else:
                await reporter.status(SessionStatus.COMPLETED)

        except ValidationError as e:
            await reporter.error(f"Invalid configuration: {e}")
            await reporter.status(SessionStatus.FAILED)
        except Exception as e:
            logger.exception(f"Session {session_id} failed")
            await reporter.error(str(e))
            if not token.cancelled:
                await reporter.status(SessionStatus.FAILED)
        finally:
            self.registry.release(session_id)

    async def stop(self, session_id: int) -> None:
        """Ask a run to stop and mark its session stopped.

        The run finishes the page or site it is working on before it exits.
        """
        if not self.registry.cancel(session_id):
            logger.warning(f"Session {session_id} has no active run")
        await self.store.set_status(session_id, SessionStatus.STOPPED, datetime.utcnow())

    async def extract(self, page: PageModel, config: Configuration) -> List[Record]:
        """Run the selector engine on a loaded page and apply the filters."""
        records = await self.engine.extract(page, config.selectors)
        return self.filters.apply(records, config.filters)

    async def settle(self, config: Configuration) -> None:
        """Wait for dynamic content and the politeness delay after a page load."""
        if config.options.wait_for_dynamic_content:
            await pause(self.settings.dynamic_content_wait_ms)
        if config.request_delay_ms > 0:
            await pause(config.request_delay_ms)

    @abc.abstractmethod
    async def crawl(
        self,
        page: PageModel,
        config: Configuration,
        reporter: ProgressReporter,
        token: CancellationToken,
    ) -> List[Record]:
        """Visit pages and return the accumulated records."""


class CrawlController(BaseController):
    """Single-site crawl that follows a 'next page' control."""

    async def crawl(
        self,
        page: PageModel,
        config: Configuration,
        reporter: ProgressReporter,
        token: CancellationToken,
    ) -> List[Record]:
        records: List[Record] = []
        page_index = 1
        current_url = config.target_url
        total = config.pagination.max_pages or 1
        has_next_page = True

        while has_next_page and not token.cancelled:
            try:
                await page.load(current_url)
                await self.settle(config)

                page_records = await self.extract(page, config)
                records.extend(page_records)
                await reporter.progress(page_index, total, records)
                logger.info(f"Page {page_index}: {len(page_records)} records from {current_url}")

                next_url = await self.next_page(page, config, page_index)
                if next_url is None:
                    has_next_page = False
                else:
                    page_index += 1
                    current_url = next_url

            except Exception as e:
                if page_index == 1 and isinstance(e, PageLoadError):
                    raise
                await reporter.error(f"Page {page_index}: {e}")
                has_next_page = False

        return records

    async def next_page(self, page: PageModel, config: Configuration, page_index: int) -> Optional[str]:
        """Activate the 'next page' control.

        Returns:
            URL of the next page, or None when pagination is over.
        """
        selector = config.pagination.next_page_selector
        if not config.options.handle_pagination or not selector:
            return None

        max_pages = config.pagination.max_pages or self.settings.default_max_pages
        if page_index >= max_pages:
            logger.info(f"Reached the page limit ({max_pages})")
            return None

        buttons = await page.query(selector)
        if not buttons:
            logger.info(f"No next-page control matches {selector!r}")
            return None

        button = buttons[0]
        if await button.is_disabled():
            logger.info("Next-page control is disabled")
            return None

        await button.activate()
        await pause(self.settings.pagination_settle_ms)
        return page.url
