"""Pushes run state of one session to the session store."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from ..models.session import Progress, Record, SessionStatus
from ..storage.base import SessionStore

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Publishes status, progress, results and errors for one session."""

    def __init__(self, store: SessionStore, session_id: int):
        self.store = store
        self.session_id = session_id

    async def status(self, status: SessionStatus) -> None:
        """Set the session's status, stamping the end time for terminal statuses."""
        ended_at = datetime.utcnow() if status.is_terminal else None
        logger.info(f"Session {self.session_id}: {status.value}")
        await self.store.set_status(self.session_id, status, ended_at)

    async def progress(self, current: int, total: int, records: List[Record]) -> None:
        """Publish a progress snapshot together with the records so far.

        The snapshot's ``errors`` field is always 0; the error log is the
        record of failures.
        """
        snapshot = Progress(current=current, total=total, extracted=len(records), errors=0)
        await self.store.set_progress(self.session_id, snapshot)
        await self.store.set_results(self.session_id, records)
        logger.debug(f"Session {self.session_id}: {current}/{total}, {len(records)} records")

    async def results(self, records: List[Record]) -> None:
        await self.store.set_results(self.session_id, records)

    async def error(self, message: str) -> None:
        """Append a message to the session's error log."""
        logger.error(f"Session {self.session_id}: {message}")
        await self.store.append_error(self.session_id, message)
