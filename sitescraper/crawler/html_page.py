"""Page model over a static HTML document.

CSS queries are answered by BeautifulSoup (soupsieve) and XPath queries by
lxml, both parsing the same markup with the lxml HTML parser.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import lxml.html
from bs4 import BeautifulSoup, Tag
from lxml import etree

from ..core.errors import ElementResolutionError, PageLoadError
from ..models.config import Attribute, AttributeKind
from .page import ElementHandle, PageModel

logger = logging.getLogger(__name__)


def _non_empty(value: Optional[str]) -> Optional[str]:
    return value if value else None


def _class_tokens(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


class SoupElement(ElementHandle):
    """Element matched by a CSS query."""

    def __init__(self, page: HtmlPage, tag: Tag):
        self._page = page
        self.tag = tag

    async def value(self, attribute: Attribute) -> Optional[str]:
        if attribute.kind == AttributeKind.TEXT:
            return _non_empty(self.tag.get_text().strip())
        if attribute.kind == AttributeKind.HTML:
            return _non_empty(self.tag.decode_contents().strip())
        raw = self.tag.get(attribute.name)
        if isinstance(raw, list):
            raw = " ".join(raw)
        return _non_empty(raw)

    async def is_disabled(self) -> bool:
        return (
            self.tag.has_attr("disabled")
            or "disabled" in _class_tokens(self.tag.get("class"))
            or self.tag.get("aria-disabled") == "true"
        )

    async def activate(self) -> None:
        await self._page.follow(self.tag.get("href"), self.tag.name)


class LxmlElement(ElementHandle):
    """Element matched by an XPath query."""

    def __init__(self, page: HtmlPage, element: etree._Element):
        self._page = page
        self.element = element

    def _inner_html(self) -> str:
        markup = lxml.html.tostring(self.element, encoding="unicode", with_tail=False)
        start = markup.find(">") + 1
        end = markup.rfind("<")
        return markup[start:end] if end >= start else ""

    async def value(self, attribute: Attribute) -> Optional[str]:
        if attribute.kind == AttributeKind.TEXT:
            return _non_empty(self.element.text_content().strip())
        if attribute.kind == AttributeKind.HTML:
            return _non_empty(self._inner_html().strip())
        return _non_empty(self.element.get(attribute.name))

    async def is_disabled(self) -> bool:
        return (
            "disabled" in self.element.attrib
            or "disabled" in _class_tokens(self.element.get("class"))
            or self.element.get("aria-disabled") == "true"
        )

    async def activate(self) -> None:
        await self._page.follow(self.element.get("href"), self.element.tag)


class StringNode(ElementHandle):
    """Text or attribute node selected by an XPath such as ``//a/@href``."""

    def __init__(self, text: str):
        self._text = text

    async def value(self, attribute: Attribute) -> Optional[str]:
        if attribute.kind == AttributeKind.NAMED:
            return None
        return _non_empty(self._text.strip())

    async def is_disabled(self) -> bool:
        return False

    async def activate(self) -> None:
        raise ElementResolutionError("Text nodes cannot be activated")


class HtmlPage(PageModel):
    """A page model backed by an HTML string.

    ``load`` delegates to :meth:`fetch`, which subclasses implement to
    retrieve markup; the base class only serves content set directly.
    """

    def __init__(self, html: str = "", url: str = "about:blank"):
        self._url = url
        self._soup = BeautifulSoup("", "lxml")
        self._tree: Optional[lxml.html.HtmlElement] = None
        self.set_content(html, url)

    @property
    def url(self) -> str:
        return self._url

    def set_content(self, html: str, url: Optional[str] = None) -> None:
        """Replace the page's document.

        Args:
            html: Markup of the new document.
            url: Location of the new document, if it changed.
        """
        if url:
            self._url = url
        self._soup = BeautifulSoup(html or "", "lxml")
        self._tree = lxml.html.document_fromstring(html) if html and html.strip() else None

    async def fetch(self, url: str) -> Tuple[str, str]:
        """Retrieve markup for a URL.

        Returns:
            Tuple of (html, final url after redirects).
        """
        raise PageLoadError(url, "no fetcher configured for this page")

    async def load(self, url: str) -> None:
        html, final_url = await self.fetch(url)
        self.set_content(html, final_url or url)
        logger.debug(f"Loaded {self._url} ({len(html)} characters)")

    async def follow(self, href: Optional[str], tag_name: str = "element") -> None:
        """Start navigating to an element's link target.

        The page moves to the target URL with an empty document; the next
        :meth:`load` of :attr:`url` fetches it.
        """
        if not href:
            raise ElementResolutionError(f"<{tag_name}> has no href to follow")
        self.set_content("", urljoin(self._url, href))

    async def query(self, css_query: str) -> List[ElementHandle]:
        try:
            tags = self._soup.select(css_query)
        except Exception as e:
            raise ElementResolutionError(f"Invalid CSS selector {css_query!r}: {e}") from e
        return [SoupElement(self, tag) for tag in tags]

    async def query_path(self, path_query: str) -> List[ElementHandle]:
        if self._tree is None:
            return []
        try:
            result = self._tree.xpath(path_query)
        except etree.XPathError as e:
            raise ElementResolutionError(f"Invalid XPath {path_query!r}: {e}") from e

        if not isinstance(result, list):
            raise ElementResolutionError(f"XPath {path_query!r} does not select nodes")

        handles: List[ElementHandle] = []
        for node in result:
            if isinstance(node, etree._Element):
                handles.append(LxmlElement(self, node))
            elif isinstance(node, str):
                handles.append(StringNode(str(node)))
        return handles

    async def text(self) -> str:
        body = self._soup.body
        return body.get_text() if body is not None else self._soup.get_text()
