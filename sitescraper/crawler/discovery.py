"""Discovery of candidate websites from a seed page (usually search results)."""
from __future__ import annotations

import logging
from typing import List, Optional, Set
from urllib.parse import parse_qs, urljoin, urlparse

from ..core.errors import ElementResolutionError
from ..core.settings import EngineSettings, pause
from ..models.config import Attribute, Configuration
from .page import PageModel

logger = logging.getLogger(__name__)

# Tried in order, result containers before generic anchors
LINK_SELECTORS = [
    "div.g a[href]",
    "li.b_algo h2 a[href]",
    "a.result__a[href]",
    "div.result a[href]",
    "[data-testid='result'] a[href]",
    "h3 a[href]",
    "a[href^='http://'], a[href^='https://']",
]

# Query parameters redirect wrappers use to carry the real target
REDIRECT_PARAMS = ("q", "url", "uddg", "u", "target", "dest")

HREF = Attribute.named("href")


def _is_http(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def unwrap_redirect(url: str) -> str:
    """Return the target of a redirect-wrapper URL, or the URL itself.

    Example:
        ``https://www.google.com/url?q=https://example.com/&sa=U`` becomes
        ``https://example.com/``.
    """
    query = parse_qs(urlparse(url).query)
    for param in REDIRECT_PARAMS:
        for value in query.get(param, []):
            if _is_http(value):
                return value
    return url


def base_host(url: str) -> str:
    """Lower-cased host of a URL without a leading ``www.``."""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


class SiteDiscoverer:
    """Collects candidate URLs from a seed page.

    Links are gathered with a fixed list of generic patterns, redirect
    wrappers are unwrapped, and links back to the seed site itself are
    dropped. The list is deduplicated by URL and capped at ``maxWebsites``.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def normalize_candidate(self, href: Optional[str], page_url: str) -> Optional[str]:
        """Turn an ``href`` into an absolute, unwrapped http(s) URL.

        Returns:
            The candidate URL, or None if the link is not a web URL.
        """
        if not href:
            return None
        url = unwrap_redirect(urljoin(page_url, href.strip()))
        return url if _is_http(url) else None

    @staticmethod
    def is_same_site(url: str, seed_hosts: Set[str]) -> bool:
        host = base_host(url)
        return any(host == seed or host.endswith("." + seed) for seed in seed_hosts)

    async def discover(self, page: PageModel, config: Configuration) -> List[str]:
        """Load the seed page and collect candidate URLs.

        Args:
            page: Page to load the seed into.
            config: Crawl configuration; ``target_url`` is the seed.

        Returns:
            Candidate URLs in discovery order.
        """
        await page.load(config.target_url)
        if config.options.wait_for_dynamic_content:
            await pause(self.settings.dynamic_content_wait_ms)

        limit = config.options.max_websites or self.settings.default_max_websites
        seed_hosts = {h for h in (base_host(config.target_url), base_host(page.url)) if h}

        candidates: List[str] = []
        seen: Set[str] = set()
        for css in LINK_SELECTORS:
            try:
                elements = await page.query(css)
            except ElementResolutionError as e:
                logger.debug(f"Link pattern {css!r} failed: {e}")
                continue

            for element in elements:
                try:
                    href = await element.value(HREF)
                except ElementResolutionError as e:
                    logger.debug(f"Could not read link: {e}")
                    continue

                url = self.normalize_candidate(href, page.url)
                if url is None or url in seen or self.is_same_site(url, seed_hosts):
                    continue
                seen.add(url)
                candidates.append(url)
                if len(candidates) >= limit:
                    logger.info(f"Discovered {len(candidates)} websites (limit reached)")
                    return candidates

        logger.info(f"Discovered {len(candidates)} websites from {config.target_url}")
        return candidates
