"""Session store contract used by the crawl engine."""
from __future__ import annotations

import abc
from datetime import datetime
from typing import List, Optional

from ..models.session import Progress, Record, Session, SessionStatus


class SessionStore(abc.ABC):
    """Abstract base class for session stores.

    The engine only mutates sessions through :meth:`set_status`,
    :meth:`set_progress`, :meth:`set_results` and :meth:`append_error`.
    How the store persists them is up to the implementation.
    """

    @abc.abstractmethod
    async def create_session(self, configuration_id: Optional[int] = None) -> Session:
        """Create an idle session.

        Args:
            configuration_id: Configuration the session will run.

        Returns:
            The new session.
        """

    @abc.abstractmethod
    async def get_session(self, session_id: int) -> Optional[Session]:
        """Get a snapshot of a session, or None if it does not exist."""

    @abc.abstractmethod
    async def set_status(
        self, session_id: int, status: SessionStatus, ended_at: Optional[datetime] = None
    ) -> None:
        """Update a session's status and, for terminal statuses, its end time."""

    @abc.abstractmethod
    async def set_progress(self, session_id: int, progress: Progress) -> None:
        """Replace a session's progress snapshot."""

    @abc.abstractmethod
    async def set_results(self, session_id: int, results: List[Record]) -> None:
        """Replace a session's accumulated records."""

    @abc.abstractmethod
    async def append_error(self, session_id: int, message: str) -> None:
        """Append a message to a session's error log."""

    async def close(self) -> None:
        """Release store resources."""
