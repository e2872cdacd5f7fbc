"""Session storage for SiteScraper."""

from .base import SessionStore
from .memory import MemorySessionStore

__all__ = [
    "SessionStore",
    "MemorySessionStore",
]
