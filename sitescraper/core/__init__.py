"""Core extraction logic for SiteScraper."""

from .errors import (
    ConfigurationNotFound,
    ElementResolutionError,
    FilterValidationError,
    PageLoadError,
    RegexError,
    RequiredFieldMissing,
    ScraperError,
    SessionAlreadyRunning,
    SiteFetchError,
)
from .settings import EngineSettings
from .selector_engine import SelectorEngine
from .filters import FilterPipeline
from .dedup import Deduplicator
from .service import ScrapingService

__all__ = [
    "ConfigurationNotFound",
    "ElementResolutionError",
    "FilterValidationError",
    "PageLoadError",
    "RegexError",
    "RequiredFieldMissing",
    "ScraperError",
    "SessionAlreadyRunning",
    "SiteFetchError",
    "EngineSettings",
    "SelectorEngine",
    "FilterPipeline",
    "Deduplicator",
    "ScrapingService",
]
