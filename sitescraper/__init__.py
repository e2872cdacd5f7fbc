"""SiteScraper: selector-driven extraction across paginated and discovered pages."""

__version__ = "0.1.0"
__license__ = "MIT"

# Import key components for easier access
from .models import (
    Attribute,
    Configuration,
    FilterSet,
    Options,
    PaginationSettings,
    Progress,
    Record,
    Selector,
    Session,
    SessionStatus,
)
from .core import EngineSettings, ScrapingService
from .crawler import StaticRenderer
from .storage import MemorySessionStore, SessionStore

__all__ = [
    "Attribute",
    "Configuration",
    "FilterSet",
    "Options",
    "PaginationSettings",
    "Progress",
    "Record",
    "Selector",
    "Session",
    "SessionStatus",
    "EngineSettings",
    "ScrapingService",
    "StaticRenderer",
    "MemorySessionStore",
    "SessionStore",
]
