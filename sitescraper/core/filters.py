"""Include/exclude filtering of extracted records."""
import logging
import re
from typing import List, Optional

from ..models.config import FilterSet
from ..models.session import Record
from .errors import FilterValidationError, RegexError
from .selector_engine import compile_pattern

logger = logging.getLogger(__name__)


class FilterPipeline:
    """Keeps records that match ``include`` and do not match ``exclude``.

    Both patterns are case-insensitive and tested against every non-null
    field value of a record.
    """

    @staticmethod
    def _compile(pattern: Optional[str], role: str) -> Optional[re.Pattern]:
        if not pattern:
            return None
        try:
            return compile_pattern(pattern, re.IGNORECASE)
        except RegexError as e:
            raise FilterValidationError(f"Invalid {role} filter pattern {pattern!r}: {e.reason}") from e

    @staticmethod
    def _matches_any(pattern: re.Pattern, record: Record) -> bool:
        return any(value and pattern.search(str(value)) for value in record.values())

    def apply(self, records: List[Record], filters: Optional[FilterSet]) -> List[Record]:
        """Filter records.

        Args:
            records: Records to filter.
            filters: Include/exclude patterns; None keeps every record.

        Returns:
            Surviving records in their original order.

        Raises:
            FilterValidationError: If a pattern is not a valid regular expression.
        """
        if filters is None:
            return list(records)

        include = self._compile(filters.include, "include")
        exclude = self._compile(filters.exclude, "exclude")
        if include is None and exclude is None:
            return list(records)

        kept = [
            record
            for record in records
            if (include is None or self._matches_any(include, record))
            and (exclude is None or not self._matches_any(exclude, record))
        ]
        if len(kept) != len(records):
            logger.debug(f"Filtered out {len(records) - len(kept)} of {len(records)} records")
        return kept
