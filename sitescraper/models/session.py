"""Session models for SiteScraper."""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

Record = Dict[str, Optional[str]]
"""One extracted row: field name to value (``None`` when unresolved)."""


class SessionStatus(str, Enum):
    """Status of a crawl session."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.FAILED, SessionStatus.STOPPED}
)


class Progress(BaseModel):
    """Progress snapshot of a crawl run."""
    current: int = Field(0, ge=0, description="Page or site currently processed (1-based)")
    total: int = Field(0, ge=0, description="Expected number of pages or sites")
    extracted: int = Field(0, ge=0, description="Records accumulated so far")
    errors: int = Field(0, ge=0, description="Reported error count")


class Session(BaseModel):
    """Mutable state of one crawl run, as seen by the session store."""
    id: int = Field(..., description="Session identifier")
    configuration_id: Optional[int] = Field(None, description="Configuration the run was started from")
    status: SessionStatus = Field(SessionStatus.IDLE, description="Run status")
    progress: Progress = Field(default_factory=Progress)
    results: List[Record] = Field(default_factory=list, description="Accumulated records")
    error_log: List[str] = Field(default_factory=list, description="Chronological error messages")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = Field(None, description="When the run reached a terminal status")


class SelectorTestResult(BaseModel):
    """Outcome of trying a single selector against a page."""
    success: bool = Field(..., description="Whether the selector produced a value")
    preview: Optional[str] = Field(None, description="First resolved value")
    error: Optional[str] = Field(None, description="Why the selector failed")
