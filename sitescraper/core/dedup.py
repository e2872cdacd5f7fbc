"""Exact-content deduplication of records."""
import json
from typing import List

from ..models.session import Record


class Deduplicator:
    """Drops records whose field map equals an earlier record's."""

    @staticmethod
    def key(record: Record) -> str:
        """Canonical form of a record: key order does not matter."""
        return json.dumps(record, sort_keys=True, ensure_ascii=False)

    def dedupe(self, records: List[Record]) -> List[Record]:
        """Remove duplicates, keeping the first occurrence of each record in order."""
        seen = set()
        unique = []
        for record in records:
            key = self.key(record)
            if key in seen:
                continue
            seen.add(key)
            unique.append(record)
        return unique
