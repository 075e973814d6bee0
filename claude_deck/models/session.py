"""Session model - a Claude Code conversation tracked by the deck."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

PLACEHOLDER_PREFIX = "pending-"


class SessionStatus(str, Enum):
    """Live status of a session, recomputed on every reconciliation pass.

    - IDLE: no terminal window hosts the session
    - WAITING: a window hosts it and Claude is waiting for input
    - RUNNING: a window hosts it and Claude is producing output
    """

    IDLE = "idle"
    WAITING = "waiting"
    RUNNING = "running"

    @property
    def symbol(self) -> str:
        """Single-character indicator for list displays."""
        if self is SessionStatus.RUNNING:
            return "●"
        if self is SessionStatus.WAITING:
            return "◎"
        return "○"


class Session(BaseModel):
    """A Claude Code session and the bookkeeping the deck keeps about it.

    `window_id` is a back-reference to the terminal window last known to
    host the session (0 = none). Holding it never implies ownership of the
    window.
    """

    session_id: str = Field(..., description="Claude's own session ID (used with --resume)")
    project_path: str = Field(..., description="Working directory of the session")
    name: str = Field(default="", description="Human-facing display name")
    name_locked: bool = Field(
        default=False,
        description="True once a human set the name; title sync never overwrites it",
    )
    window_id: int = Field(default=0, ge=0, description="Last known terminal window ID")
    pinned: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.now)
    last_accessed_at: datetime = Field(default_factory=datetime.now)

    # Runtime fields (not persisted)
    status: SessionStatus = Field(default=SessionStatus.IDLE, exclude=True)
    transcript_path: str | None = Field(
        default=None,
        exclude=True,
        description="JSONL transcript, used only for recency ordering",
    )

    @property
    def folder_name(self) -> str:
        """Last component of the project path."""
        parts = [p for p in self.project_path.split("/") if p]
        return parts[-1] if parts else self.project_path

    @property
    def is_placeholder(self) -> bool:
        """True for sessions recorded for a window before Claude wrote a transcript."""
        return self.session_id.startswith(PLACEHOLDER_PREFIX)

    @property
    def display_name(self) -> str:
        return self.name or self.folder_name

    def to_dict(self) -> dict:
        """Serialize for API responses (includes runtime status)."""
        return {
            "session_id": self.session_id,
            "name": self.display_name,
            "name_locked": self.name_locked,
            "project_path": self.project_path,
            "window_id": self.window_id,
            "status": self.status.value,
            "symbol": self.status.symbol,
            "pinned": self.pinned,
            "placeholder": self.is_placeholder,
            "last_accessed_at": self.last_accessed_at.isoformat(),
        }


def placeholder_id(window_id: int) -> str:
    """Session ID used for a window opened before its transcript exists."""
    return f"{PLACEHOLDER_PREFIX}{window_id}"
