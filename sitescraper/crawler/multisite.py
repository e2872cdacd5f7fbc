"""Multi-site crawl: discover websites from a seed page, then scrape each one."""
from __future__ import annotations

import logging
from typing import List, Optional

from ..core.errors import SiteFetchError
from ..models.config import SOURCE_FIELD, Configuration
from ..models.session import Record
from .controller import BaseController
from .discovery import SiteDiscoverer
from .page import PageModel
from .progress import ProgressReporter
from .registry import CancellationToken

logger = logging.getLogger(__name__)


class MultiSiteController(BaseController):
    """Scrapes every discovered website once, without pagination.

    A failing site is logged and skipped; the run continues with the next
    candidate. Every record is tagged with the URL it came from.
    """

    def __init__(self, *args, discoverer: Optional[SiteDiscoverer] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.discoverer = discoverer or SiteDiscoverer(self.settings)

    async def crawl(
        self,
        page: PageModel,
        config: Configuration,
        reporter: ProgressReporter,
        token: CancellationToken,
    ) -> List[Record]:
        urls = await self.discoverer.discover(page, config)
        records: List[Record] = []
        total = len(urls)

        for site_index, url in enumerate(urls, 1):
            if token.cancelled:
                break
            try:
                site_records = await self.scrape_site(page, config, url)
                records.extend(site_records)
                logger.info(f"Site {site_index}/{total}: {len(site_records)} records from {url}")
            except SiteFetchError as e:
                await reporter.error(f"Site {site_index}: {e}")
            await reporter.progress(site_index, total, records)

        return records

    async def scrape_site(self, page: PageModel, config: Configuration, url: str) -> List[Record]:
        """Load one website and extract its records.

        Raises:
            SiteFetchError: If loading or extraction failed.
        """
        try:
            await page.load(url)
            await self.settle(config)
            records = await self.extract(page, config)
        except Exception as e:
            raise SiteFetchError(url, str(e)) from e
        return [{**record, SOURCE_FIELD: url} for record in records]
