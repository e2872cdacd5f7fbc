"""Renderers and crawl state machines for SiteScraper."""

from .page import ElementHandle, PageModel, Renderer
from .html_page import HtmlPage
from .static import StaticPage, StaticRenderer
from .registry import CancellationToken, SessionRegistry
from .progress import ProgressReporter
from .controller import CrawlController
from .discovery import SiteDiscoverer
from .multisite import MultiSiteController

__all__ = [
    "ElementHandle",
    "PageModel",
    "Renderer",
    "HtmlPage",
    "StaticPage",
    "StaticRenderer",
    "CancellationToken",
    "SessionRegistry",
    "ProgressReporter",
    "CrawlController",
    "SiteDiscoverer",
    "MultiSiteController",
]
