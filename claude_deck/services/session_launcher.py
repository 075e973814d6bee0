"""Opening, creating and closing session windows.

Every operation here mutates session records and is meant to run on the
StatusMonitor's owner thread (the HTTP layer goes through
StatusMonitor.call). New window IDs are claimed immediately so the binding
exists before the next reconciliation pass.
"""

import logging
from dataclasses import dataclass

from claude_deck.backends.base import TerminalBackend
from claude_deck.models.session import SessionStatus
from claude_deck.services.reconciler import find_active_window_id
from claude_deck.services.session_store import SessionStore
from claude_deck.services.window_claim import claim_window_id

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when an operation names a session the store does not track."""


@dataclass
class LaunchResult:
    """Outcome of opening or creating a session window."""

    session_id: str
    window_id: int
    focused_existing: bool = False


class SessionLauncher:
    """Opens and closes terminal windows for tracked sessions."""

    def __init__(self, store: SessionStore, backend: TerminalBackend):
        """Initialize the launcher.

        Args:
            store: Session store to update.
            backend: Window controller.
        """
        self._store = store
        self._backend = backend

    def open_session(self, session_id: str) -> LaunchResult:
        """Focus a session's window, or open a tab resuming it.

        Raises:
            SessionNotFoundError: If the session is unknown.
        """
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        active = find_active_window_id(session, self._backend)
        if active and self._backend.focus_window(active):
            claim_window_id(self._store.sessions, session, active)
            self._store.save()
            return LaunchResult(session_id=session_id, window_id=active, focused_existing=True)

        window_id = self._backend.open_session(
            session.project_path, session.session_id, title=session.name
        )
        logger.info(f"Opened session {session_id[:8]} in window {window_id or '?'}")
        if window_id > 0:
            claim_window_id(self._store.sessions, session, window_id)
            session.status = SessionStatus.WAITING
            self._store.save()
        return LaunchResult(session_id=session_id, window_id=window_id)

    def new_session(self, project_path: str, name: str = "") -> LaunchResult:
        """Open a tab with a fresh Claude session in a project directory.

        A placeholder session is recorded for the window; it is replaced by
        the real session when Claude reports it, and dropped if the window
        is closed first.
        """
        window_id = self._backend.new_session(project_path, title=name)
        logger.info(f"Started new session in {project_path} (window {window_id or '?'})")
        if window_id <= 0:
            return LaunchResult(session_id="", window_id=0)

        placeholder = self._store.create_placeholder(project_path, window_id, name)
        placeholder.status = SessionStatus.WAITING
        return LaunchResult(session_id=placeholder.session_id, window_id=window_id)

    def close_session(self, session_id: str) -> bool:
        """Close a session's window and forget the binding.

        Raises:
            SessionNotFoundError: If the session is unknown.
        """
        session = self._store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.window_id <= 0:
            return False

        closed = self._backend.close_window(session.window_id)
        if closed:
            session.window_id = 0
            session.status = SessionStatus.IDLE
            self._store.save()
        return closed

    def rename_session(self, session_id: str, name: str) -> bool:
        """Rename a session, locking the name, and retitle its tab.

        Raises:
            SessionNotFoundError: If the session is unknown.
        """
        session = self._store.rename_session(session_id, name)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.window_id > 0:
            self._backend.set_title(session.window_id, name)
        return True
