"""In-memory session store."""
from __future__ import annotations

import copy
import itertools
import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..models.session import Progress, Record, Session, SessionStatus
from .base import SessionStore

logger = logging.getLogger(__name__)


class MemorySessionStore(SessionStore):
    """Keeps sessions in a dictionary for the lifetime of the process.

    Readers get deep copies, so snapshots never change under them. Terminal
    statuses are absorbing: once a session is completed, failed or stopped,
    further status changes are ignored.
    """

    def __init__(self):
        self._sessions: Dict[int, Session] = {}
        self._ids = itertools.count(1)

    async def create_session(self, configuration_id: Optional[int] = None) -> Session:
        session = Session(id=next(self._ids), configuration_id=configuration_id)
        self._sessions[session.id] = session
        return session.model_copy(deep=True)

    async def get_session(self, session_id: int) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def _get(self, session_id: int) -> Optional[Session]:
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning(f"Ignoring update for unknown session {session_id}")
        return session

    async def set_status(
        self, session_id: int, status: SessionStatus, ended_at: Optional[datetime] = None
    ) -> None:
        session = self._get(session_id)
        if session is None:
            return
        if session.status.is_terminal:
            logger.debug(
                f"Session {session_id} is already {session.status.value}; ignoring {status.value}"
            )
            return
        session.status = status
        if ended_at:
            session.completed_at = ended_at

    async def set_progress(self, session_id: int, progress: Progress) -> None:
        session = self._get(session_id)
        if session is not None:
            session.progress = progress.model_copy()

    async def set_results(self, session_id: int, results: List[Record]) -> None:
        session = self._get(session_id)
        if session is not None:
            session.results = copy.deepcopy(results)

    async def append_error(self, session_id: int, message: str) -> None:
        session = self._get(session_id)
        if session is not None:
            session.error_log.append(message)
