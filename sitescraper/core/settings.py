"""Engine settings for SiteScraper."""
from __future__ import annotations

import asyncio
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "SITESCRAPER_"


class EngineSettings(BaseModel):
    """Tunables shared by every crawl run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    dynamic_content_wait_ms: int = Field(
        2000, ge=0, description="Pause before reading a page when waiting for dynamic content"
    )
    pagination_settle_ms: int = Field(
        2000, ge=0, description="Pause after activating the next-page control"
    )
    page_load_timeout_ms: int = Field(
        30000, gt=0, description="Deadline of a single page load"
    )
    default_max_pages: int = Field(
        10, ge=1, description="Page cap when pagination has no maxPages"
    )
    default_max_websites: int = Field(
        20, ge=1, description="Candidate cap when multi-site options have no maxWebsites"
    )
    max_retries: int = Field(
        3, ge=1, description="Attempts per page fetch for the static renderer"
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> EngineSettings:
        """Create settings from ``SITESCRAPER_*`` environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            EngineSettings with every variable that is set applied.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)

    @property
    def page_load_timeout(self) -> float:
        """Page load deadline in seconds."""
        return self.page_load_timeout_ms / 1000


async def pause(milliseconds: int) -> None:
    """Sleep for a number of milliseconds without blocking other runs."""
    if milliseconds > 0:
        await asyncio.sleep(milliseconds / 1000)
