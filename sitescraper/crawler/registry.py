"""Registry of active crawl runs and their cancellation tokens."""
from __future__ import annotations

import logging
from typing import Dict, List

from ..core.errors import SessionAlreadyRunning

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal, checked by a run between pages or sites."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class SessionRegistry:
    """Maps active session ids to their cancellation tokens."""

    def __init__(self):
        self._tokens: Dict[int, CancellationToken] = {}

    def register(self, session_id: int) -> CancellationToken:
        """Register a run for a session.

        Raises:
            SessionAlreadyRunning: If the session already has an active run.
        """
        if session_id in self._tokens:
            raise SessionAlreadyRunning(f"Session {session_id} is already running")
        token = CancellationToken()
        self._tokens[session_id] = token
        return token

    def cancel(self, session_id: int) -> bool:
        """Request a run to stop.

        Returns:
            True if the session had an active run.
        """
        token = self._tokens.get(session_id)
        if token is None:
            return False
        token.cancel()
        return True

    def release(self, session_id: int) -> None:
        self._tokens.pop(session_id, None)

    def is_active(self, session_id: int) -> bool:
        return session_id in self._tokens

    def active_sessions(self) -> List[int]:
        return list(self._tokens)
