"""Exceptions raised by the SiteScraper engine."""
from typing import Optional


class ScraperError(Exception):
    """Base class for engine errors."""


class ConfigurationNotFound(ScraperError):
    """The run was started without a usable configuration."""

    def __init__(self, message: str = "Configuration not found"):
        super().__init__(message)


class PageLoadError(ScraperError):
    """A page could not be loaded into the page model."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class ElementResolutionError(ScraperError):
    """A CSS or XPath query could not be evaluated, or an element could not be read."""


class RegexError(ScraperError):
    """A selector or filter pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid regex pattern {pattern!r}: {reason}")


class RequiredFieldMissing(ScraperError):
    """A required selector resolved to nothing for a candidate record."""

    def __init__(self, field: str, index: Optional[int] = None):
        self.field = field
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"Required field {field!r} missing{where}")


class SiteFetchError(ScraperError):
    """A discovered site could not be scraped."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class FilterValidationError(ScraperError, ValueError):
    """An include/exclude filter pattern is invalid."""


class SessionAlreadyRunning(ScraperError):
    """A run was started for a session id that is still active."""
