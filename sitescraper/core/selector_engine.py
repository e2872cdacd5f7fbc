"""Selector evaluation: turns a loaded page and a rule set into records."""
from __future__ import annotations

import functools
import logging
import re
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..models.config import Selector
from ..models.session import Record, SelectorTestResult
from .errors import ElementResolutionError, RegexError, RequiredFieldMissing

if TYPE_CHECKING:
    from ..crawler.page import ElementHandle, PageModel

logger = logging.getLogger(__name__)

Matches = List[Tuple[Selector, List["ElementHandle"]]]


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern:
    """Compile a regular expression, raising :class:`RegexError` if it is invalid."""
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise RegexError(pattern, str(e)) from e


def match_value(match: Optional[re.Match]) -> Optional[str]:
    """Value of a regex match: the first capture group if it matched text, else the full match."""
    if match is None:
        return None
    if match.re.groups and match.group(1):
        return match.group(1)
    return match.group(0)


class SelectorEngine:
    """Evaluates selectors against one page snapshot.

    Pure-regex selectors scan the page text and yield one single-field
    record per match. Element-bound selectors are zipped by match index:
    when any of them matches more than one element, every index becomes
    a candidate record (multi-item mode) and candidates missing a required
    field are dropped; otherwise the first matches form at most one record.
    Regex records always come before element records.
    """

    async def extract(self, page: PageModel, selectors: Sequence[Selector]) -> List[Record]:
        """Extract records from a page.

        Args:
            page: Loaded page to read from.
            selectors: Rule set of the configuration.

        Returns:
            Pure-regex records followed by element-bound records.
        """
        if not selectors:
            return []

        pure_regex = [s for s in selectors if s.is_pure_regex]
        element_bound = [s for s in selectors if s.is_element_bound]

        records: List[Record] = []
        if pure_regex:
            text = await page.text()
            for selector in pure_regex:
                records.extend(self._scan_text(text, selector))

        records.extend(await self._extract_elements(page, element_bound))
        return records

    def _scan_text(self, text: str, selector: Selector) -> List[Record]:
        """Emit one record per match of a pure-regex selector."""
        try:
            pattern = compile_pattern(selector.regex)
        except RegexError as e:
            logger.warning(f"Skipping selector {selector.name!r}: {e}")
            return []

        records = []
        for match in pattern.finditer(text):
            value = (match_value(match) or "").strip()
            if value:
                records.append({selector.name: value})
        return records

    async def _query(self, page: PageModel, selector: Selector) -> List[ElementHandle]:
        if selector.css_query:
            return await page.query(selector.css_query)
        return await page.query_path(selector.path_query)

    async def _resolve(self, page: PageModel, selector: Selector) -> List[ElementHandle]:
        """Resolve a selector's match set; broken queries match nothing."""
        try:
            return await self._query(page, selector)
        except ElementResolutionError as e:
            logger.warning(f"Error resolving {selector.name!r}: {e}")
        except Exception as e:
            logger.warning(f"Error resolving {selector.name!r}: {e}", exc_info=True)
        return []

    async def _extract_elements(self, page: PageModel, selectors: List[Selector]) -> List[Record]:
        if not selectors:
            return []

        matches: Matches = [(s, await self._resolve(page, s)) for s in selectors]
        max_count = max(len(elements) for _, elements in matches)

        if max_count > 1:
            records = []
            for index in range(max_count):
                try:
                    record = await self._build_candidate(matches, index, enforce_required=True)
                except RequiredFieldMissing as e:
                    logger.debug(f"Discarding candidate record: {e}")
                    continue
                if record is not None:
                    records.append(record)
            return records

        record = await self._build_candidate(matches, 0, enforce_required=False)
        return [record] if record is not None else []

    async def _build_candidate(
        self, matches: Matches, index: int, enforce_required: bool
    ) -> Optional[Record]:
        """Assemble the record at ``index``.

        Returns:
            The record, or None if no field resolved to a value.

        Raises:
            RequiredFieldMissing: If ``enforce_required`` and a required field is empty.
        """
        record: Record = {}
        has_data = False
        for selector, elements in matches:
            element = elements[index] if index < len(elements) else None
            value = await self._field_value(selector, element)
            if value:
                has_data = True
            elif enforce_required and selector.required:
                raise RequiredFieldMissing(selector.name, index)
            record[selector.name] = value or None
        return record if has_data else None

    async def _field_value(self, selector: Selector, element: Optional[ElementHandle]) -> Optional[str]:
        if element is None:
            return None
        try:
            value = await element.value(selector.attribute)
        except Exception as e:
            logger.warning(f"Error extracting {selector.name!r}: {e}")
            return None

        if value and selector.regex:
            try:
                pattern = compile_pattern(selector.regex)
            except RegexError as e:
                # Keep the raw value
                logger.warning(f"Ignoring pattern of {selector.name!r}: {e}")
                return value
            value = match_value(pattern.search(value))
        return value

    async def test_selector(self, page: PageModel, selector: Selector) -> SelectorTestResult:
        """Try one selector against a page and preview its first value.

        Args:
            page: Loaded page.
            selector: Selector to try.

        Returns:
            Success with a preview of the first resolved value, or a failure
            describing what went wrong.
        """
        try:
            if selector.is_element_bound:
                elements = await self._query(page, selector)
                if not elements:
                    return SelectorTestResult(success=False, error="Element not found")

                value = await elements[0].value(selector.attribute)
                if value and selector.regex:
                    try:
                        pattern = compile_pattern(selector.regex)
                    except RegexError as e:
                        return SelectorTestResult(success=False, error=f"Invalid regex pattern: {e.reason}")
                    value = match_value(pattern.search(value))
                return SelectorTestResult(success=True, preview=value or "Element found but no content")

            if selector.regex:
                try:
                    pattern = compile_pattern(selector.regex)
                except RegexError as e:
                    return SelectorTestResult(success=False, error=f"Invalid regex pattern: {e.reason}")
                match = pattern.search(await page.text())
                if match is None:
                    return SelectorTestResult(success=False, error="Regex pattern did not match any content")
                value = (match_value(match) or "").strip()
                return SelectorTestResult(success=True, preview=value or "Regex matched but no content")

            return SelectorTestResult(success=False, error="Element not found")
        except Exception as e:
            logger.debug(f"Selector test for {selector.name!r} failed: {e}")
            return SelectorTestResult(success=False, error=str(e))
