"""Page model contract between the engine and a renderer.

The engine never touches a DOM directly. A renderer hands out
:class:`PageModel` instances that answer CSS and XPath queries with
ordered :class:`ElementHandle` lists and expose the page's text. Every
operation is a coroutine, so navigation, queries and clicks are the
suspension points of a crawl run.
"""
from __future__ import annotations

import abc
from typing import List, Optional

from ..models.config import Attribute


class ElementHandle(abc.ABC):
    """A reference to one matched element of a loaded page."""

    @abc.abstractmethod
    async def value(self, attribute: Attribute) -> Optional[str]:
        """Read a value from the element.

        Args:
            attribute: Text content, inner HTML or a named attribute.

        Returns:
            The stripped value, or None if the element has no such value.
        """

    @abc.abstractmethod
    async def is_disabled(self) -> bool:
        """Whether the element is a disabled control.

        An element is disabled when it has a ``disabled`` attribute, a
        ``disabled`` class or ``aria-disabled="true"``.
        """

    @abc.abstractmethod
    async def activate(self) -> None:
        """Click the element (follow a link, press a button)."""


class PageModel(abc.ABC):
    """A loaded page that can be queried."""

    @property
    @abc.abstractmethod
    def url(self) -> str:
        """The page's current location."""

    @abc.abstractmethod
    async def load(self, url: str) -> None:
        """Navigate to a URL.

        Raises:
            PageLoadError: If the page could not be loaded in time.
        """

    @abc.abstractmethod
    async def query(self, css_query: str) -> List[ElementHandle]:
        """Resolve a CSS selector to all matching elements in page order."""

    @abc.abstractmethod
    async def query_path(self, path_query: str) -> List[ElementHandle]:
        """Resolve an XPath expression to an ordered node list."""

    @abc.abstractmethod
    async def text(self) -> str:
        """Full text content of the page body."""

    async def close(self) -> None:
        """Release the page."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class Renderer(abc.ABC):
    """Produces page models for crawl runs."""

    @abc.abstractmethod
    async def new_page(self, user_agent: str) -> PageModel:
        """Open a fresh page that identifies itself with ``user_agent``."""

    async def close(self) -> None:
        """Release renderer resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
