"""Configuration models for SiteScraper."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class UserAgentProfile(str, Enum):
    """Browser identities a crawl can present."""
    CHROME_DESKTOP = "Chrome (Desktop)"
    FIREFOX_DESKTOP = "Firefox (Desktop)"
    SAFARI_DESKTOP = "Safari (Desktop)"
    MOBILE_CHROME = "Mobile Chrome"


USER_AGENTS: Dict[UserAgentProfile, str] = {
    UserAgentProfile.CHROME_DESKTOP: (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    UserAgentProfile.FIREFOX_DESKTOP: (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0"
    ),
    UserAgentProfile.SAFARI_DESKTOP: (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/14.1.1 Safari/605.1.15"
    ),
    UserAgentProfile.MOBILE_CHROME: (
        "Mozilla/5.0 (Linux; Android 10; SM-G975F) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.120 Mobile Safari/537.36"
    ),
}


def resolve_user_agent(profile: Optional[str]) -> str:
    """Get the user-agent string for a profile name.

    Unknown or empty profile names fall back to the desktop Chrome profile.
    """
    try:
        return USER_AGENTS[UserAgentProfile(profile)]
    except ValueError:
        return USER_AGENTS[UserAgentProfile.CHROME_DESKTOP]


class AttributeKind(str, Enum):
    """What part of a matched element a selector reads."""
    TEXT = "text"
    HTML = "html"
    NAMED = "named"


_TEXT_NAMES = {"textcontent", "text", "innertext"}
_HTML_NAMES = {"innerhtml", "html"}


class Attribute(BaseModel):
    """Closed variant: element text, inner HTML or a named attribute."""

    model_config = ConfigDict(frozen=True)

    kind: AttributeKind = Field(AttributeKind.TEXT, description="Which value to read")
    name: Optional[str] = Field(None, description="Attribute name when kind is NAMED")

    @classmethod
    def text(cls) -> Attribute:
        return cls(kind=AttributeKind.TEXT)

    @classmethod
    def html(cls) -> Attribute:
        return cls(kind=AttributeKind.HTML)

    @classmethod
    def named(cls, name: str) -> Attribute:
        return cls(kind=AttributeKind.NAMED, name=name)

    @classmethod
    def parse(cls, value: Optional[str]) -> Attribute:
        """Parse the attribute string used in stored configurations.

        Args:
            value: "textContent", "innerHTML" or an attribute name like "href".

        Returns:
            Attribute variant.
        """
        if not value or not value.strip():
            return cls.text()
        lowered = value.strip().lower()
        if lowered in _TEXT_NAMES:
            return cls.text()
        if lowered in _HTML_NAMES:
            return cls.html()
        return cls.named(value.strip())

    @model_validator(mode="after")
    def check_name(self) -> Attribute:
        if self.kind == AttributeKind.NAMED and not self.name:
            raise ValueError("A named attribute needs a name")
        return self

    def __str__(self) -> str:
        if self.kind == AttributeKind.TEXT:
            return "textContent"
        if self.kind == AttributeKind.HTML:
            return "innerHTML"
        return self.name or ""


class Selector(BaseModel):
    """A named rule describing how to read one field from a page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field("", description="Client-side identifier of the selector")
    name: str = Field(..., min_length=1, description="Field name in the output records")
    css_query: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("css_query", "cssQuery", "cssSelector"),
        description="CSS selector matching the field's elements",
    )
    path_query: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("path_query", "pathQuery", "xpath"),
        description="XPath expression matching the field's elements",
    )
    regex: Optional[str] = Field(
        None,
        description="Pattern applied to the extracted value, or to the page text when no query is set",
    )
    attribute: Attribute = Field(default_factory=Attribute.text, description="Value to read from each element")
    required: bool = Field(False, description="Discard a candidate record when this field is missing")

    @field_validator("css_query", "path_query", "regex", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("attribute", mode="before")
    @classmethod
    def parse_attribute(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return Attribute.parse(v)
        return v

    @property
    def is_pure_regex(self) -> bool:
        """Whether the selector scans the page text instead of elements."""
        return bool(self.regex) and not self.is_element_bound

    @property
    def is_element_bound(self) -> bool:
        """Whether the selector resolves elements with a CSS or XPath query."""
        return bool(self.css_query or self.path_query)


class FilterSet(BaseModel):
    """Include/exclude patterns applied to every field of a record."""

    model_config = ConfigDict(frozen=True)

    include: Optional[str] = Field(None, description="Keep records where some field matches")
    exclude: Optional[str] = Field(None, description="Drop records where some field matches")

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v:
            return None
        return v


class Options(BaseModel):
    """Behaviour switches for a crawl run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    handle_pagination: bool = Field(
        False, validation_alias=AliasChoices("handle_pagination", "handlePagination")
    )
    wait_for_dynamic_content: bool = Field(
        False,
        validation_alias=AliasChoices("wait_for_dynamic_content", "waitForDynamicContent", "waitForDynamic"),
    )
    remove_duplicates: bool = Field(
        False, validation_alias=AliasChoices("remove_duplicates", "removeDuplicates")
    )
    respect_robots: bool = Field(
        False,
        validation_alias=AliasChoices("respect_robots", "respectRobots"),
        description="Advisory only; the engine does not read robots.txt",
    )
    multi_website: bool = Field(
        False, validation_alias=AliasChoices("multi_website", "multiWebsite")
    )
    extract_urls_from_results: bool = Field(
        False, validation_alias=AliasChoices("extract_urls_from_results", "extractUrlsFromResults")
    )
    max_websites: Optional[int] = Field(
        None, ge=1, validation_alias=AliasChoices("max_websites", "maxWebsites")
    )

    @property
    def multi_site_enabled(self) -> bool:
        return self.multi_website and self.extract_urls_from_results


class PaginationSettings(BaseModel):
    """How to find the next page and when to stop."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    next_page_selector: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("next_page_selector", "nextPageSelector", "nextSelector"),
        description="CSS selector of the 'next page' control",
    )
    max_pages: Optional[int] = Field(
        None,
        ge=1,
        validation_alias=AliasChoices("max_pages", "maxPages"),
        description="Maximum number of pages to visit",
    )

    @field_validator("next_page_selector", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# Field that multi-site runs add to every record
SOURCE_FIELD = "source_url"


class Configuration(BaseModel):
    """A complete crawl configuration. Read-only for the duration of a run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_url: str = Field(
        ...,
        validation_alias=AliasChoices("target_url", "targetUrl"),
        description="First page to load",
    )
    user_agent_profile: str = Field(
        UserAgentProfile.CHROME_DESKTOP.value,
        validation_alias=AliasChoices("user_agent_profile", "userAgentProfile", "userAgent"),
        description="Name of the user-agent profile",
    )
    request_delay_ms: int = Field(
        1000,
        ge=0,
        validation_alias=AliasChoices("request_delay_ms", "requestDelayMs", "requestDelay"),
        description="Politeness delay before reading each page",
    )
    selectors: List[Selector] = Field(..., description="Field extraction rules")
    filters: FilterSet = Field(default_factory=FilterSet)
    options: Options = Field(default_factory=Options)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)

    @field_validator("target_url")
    @classmethod
    def check_target_url(cls, v: str) -> str:
        parsed = urlparse(v.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Target URL must be an absolute http(s) URL, got {v!r}")
        return v.strip()

    @field_validator("user_agent_profile", mode="before")
    @classmethod
    def default_profile(cls, v: Any) -> Any:
        if v is None or v == "":
            return UserAgentProfile.CHROME_DESKTOP.value
        if isinstance(v, UserAgentProfile):
            return v.value
        return v

    @field_validator("filters", "options", "pagination", mode="before")
    @classmethod
    def none_to_default(cls, v: Any) -> Any:
        return {} if v is None else v

    @model_validator(mode="after")
    def check_unique_names(self) -> Configuration:
        seen = set()
        for selector in self.selectors:
            if selector.name in seen:
                raise ValueError(f"Duplicate selector name: {selector.name!r}")
            seen.add(selector.name)
        if self.options.multi_site_enabled and SOURCE_FIELD in seen:
            raise ValueError(f"Selector name {SOURCE_FIELD!r} is reserved in multi-website mode")
        return self

    @property
    def user_agent(self) -> str:
        """User-agent string for the configured profile."""
        return resolve_user_agent(self.user_agent_profile)
