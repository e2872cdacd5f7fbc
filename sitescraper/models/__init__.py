"""Pydantic models for SiteScraper."""

from .config import (
    Attribute,
    AttributeKind,
    Configuration,
    FilterSet,
    Options,
    PaginationSettings,
    Selector,
    UserAgentProfile,
    resolve_user_agent,
)
from .session import Progress, Record, SelectorTestResult, Session, SessionStatus

__all__ = [
    "Attribute",
    "AttributeKind",
    "Configuration",
    "FilterSet",
    "Options",
    "PaginationSettings",
    "Selector",
    "UserAgentProfile",
    "resolve_user_agent",
    "Progress",
    "Record",
    "SelectorTestResult",
    "Session",
    "SessionStatus",
]
