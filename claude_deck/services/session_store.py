"""SessionStore - persisted session records.

Holds every session the deck tracks and persists the fields that must
survive restarts (names, name locks, window IDs) to sessions.yaml.
Runtime fields (status, transcript path) are rebuilt on each run.

The store does no locking of its own: all mutations are expected to run on
the StatusMonitor's owner thread.
"""

import logging
from datetime import datetime
from pathlib import Path

import yaml
from pydantic import ValidationError

from claude_deck.models.session import Session, placeholder_id
from claude_deck.services.discovery import TranscriptInfo, discover_transcripts
from claude_deck.services.window_claim import claim_window_id

logger = logging.getLogger(__name__)

STATE_FILENAME = "sessions.yaml"


class SessionStore:
    """Central store for tracked sessions.

    This is the persistence collaborator for reconciliation: it hands out
    the live session list for apply_status_updates()/claim_window_id() to
    mutate and saves it when asked.
    """

    def __init__(
        self,
        data_dir: str | Path = "~/.claude-deck",
        projects_dir: str | Path | None = None,
        track_discovered: bool = True,
    ):
        """Initialize the store.

        Args:
            data_dir: Directory for sessions.yaml.
            projects_dir: Claude Code's projects directory. When given, every
                load rediscovers transcript paths from it.
            track_discovered: Also start tracking sessions found there that
                the store does not know yet.
        """
        self.data_dir = Path(data_dir).expanduser()
        self.projects_dir = Path(projects_dir).expanduser() if projects_dir else None
        self.track_discovered = track_discovered
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._sessions: list[Session] = []

        self.load()

    @property
    def state_file(self) -> Path:
        return self.data_dir / STATE_FILENAME

    @property
    def sessions(self) -> list[Session]:
        """The live session list (mutated in place by reconciliation)."""
        return self._sessions

    # =========================================================================
    # Persistence
    # =========================================================================

    def load(self) -> None:
        """Load sessions from disk, replacing the in-memory list.

        Transcript paths are not persisted; they are rediscovered from the
        Claude projects directory when one is configured.
        """
        self._sessions = self._read_state()
        logger.info(f"Loaded {len(self._sessions)} sessions from {self.state_file}")

        if self.projects_dir is not None:
            self.sync_transcripts(
                discover_transcripts(self.projects_dir), track_new=self.track_discovered
            )

    def _read_state(self) -> list[Session]:
        if not self.state_file.exists():
            return []

        try:
            with open(self.state_file) as f:
                state = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Cannot read {self.state_file}, starting empty: {e}")
            return []

        sessions = []
        for data in state.get("sessions") or []:
            try:
                sessions.append(Session(**data))
            except (TypeError, ValidationError) as e:
                logger.warning(f"Skipping invalid session entry: {e}")
        return sessions

    def save(self) -> bool:
        """Persist sessions to disk.

        Returns:
            True if save succeeded.
        """
        state = {"sessions": [s.model_dump(mode="json") for s in self._sessions]}
        try:
            with open(self.state_file, "w") as f:
                yaml.dump(state, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        except OSError as e:
            logger.error(f"Failed to save sessions to {self.state_file}: {e}")
            return False
        logger.info(f"Saved {len(self._sessions)} sessions")
        return True

    # =========================================================================
    # Session CRUD
    # =========================================================================

    def list_sessions(self) -> list[Session]:
        """Sessions, pinned first then most recently accessed."""
        return sorted(
            self._sessions,
            key=lambda s: (not s.pinned, -s.last_accessed_at.timestamp()),
        )

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        for session in self._sessions:
            if session.session_id == session_id:
                return session
        return None

    def add_session(self, session: Session) -> Session:
        """Add a session, replacing any existing one with the same ID."""
        self._sessions = [s for s in self._sessions if s.session_id != session.session_id]
        self._sessions.append(session)
        self.save()
        return session

    def remove_session(self, session_id: str) -> bool:
        """Stop tracking a session (Claude's own transcript is left alone).

        Returns:
            True if the session existed.
        """
        before = len(self._sessions)
        self._sessions = [s for s in self._sessions if s.session_id != session_id]
        if len(self._sessions) == before:
            return False
        self.save()
        return True

    def rename_session(self, session_id: str, name: str) -> Session | None:
        """Set a session's name and lock it against title sync.

        Returns:
            The renamed session, or None if unknown.
        """
        session = self.get_session(session_id)
        if session is None:
            return None
        session.name = name
        session.name_locked = True
        self.save()
        return session

    def set_transcript_path(self, session_id: str, transcript_path: str) -> bool:
        """Record where a session's transcript lives (runtime only)."""
        session = self.get_session(session_id)
        if session is None:
            return False
        session.transcript_path = transcript_path
        return True

    def sync_transcripts(self, transcripts: list[TranscriptInfo], track_new: bool = True) -> int:
        """Attach discovered transcripts to sessions.

        Args:
            transcripts: Output of discover_transcripts().
            track_new: Start tracking sessions the store does not know yet.

        Returns:
            Number of sessions added.
        """
        added = 0
        for info in transcripts:
            session = self.get_session(info.session_id)
            if session is None:
                if not track_new:
                    continue
                modified = datetime.fromtimestamp(info.modified_at)
                session = Session(
                    session_id=info.session_id,
                    project_path=info.project_path,
                    created_at=modified,
                    last_accessed_at=modified,
                )
                self._sessions.append(session)
                added += 1
            session.transcript_path = info.transcript_path

        if added:
            logger.info(f"Tracking {added} discovered session(s)")
            self.save()
        return added

    # =========================================================================
    # Placeholders
    # =========================================================================

    def create_placeholder(self, project_path: str, window_id: int, name: str = "") -> Session:
        """Track a freshly opened window before Claude has created its session.

        Args:
            project_path: Directory the window was opened in.
            window_id: The new window's ID.
            name: Name the user asked for, if any (locked when given).

        Returns:
            The placeholder session.
        """
        session = Session(
            session_id=placeholder_id(window_id),
            project_path=project_path,
            name=name,
            name_locked=bool(name),
        )
        self._sessions.append(session)
        claim_window_id(self._sessions, session, window_id)
        self.save()
        return session

    def remove_closed_placeholders(self, live_window_ids: set[int]) -> list[str]:
        """Drop placeholders whose window has been closed or taken by another session.

        A placeholder exists only to hold its window, so one left with window
        ID 0 is dropped as well.

        Returns:
            IDs of the removed placeholders.
        """
        removed = [
            s.session_id
            for s in self._sessions
            if s.is_placeholder and s.window_id not in live_window_ids
        ]
        if removed:
            self._sessions = [s for s in self._sessions if s.session_id not in removed]
            logger.info(f"Removed {len(removed)} placeholder(s) whose window closed")
        return removed

    def register_session(
        self,
        session_id: str,
        project_path: str,
        transcript_path: str | None = None,
    ) -> Session:
        """Record a session Claude reported, adopting a matching placeholder.

        Only a session seen for the first time adopts: if a placeholder exists
        for the same directory, the new session inherits its name and claims
        its window, and the placeholder is dropped. Sessions already tracked
        keep their own window.

        Returns:
            The tracked session.
        """
        session = self.get_session(session_id)
        is_new = session is None
        if is_new:
            session = Session(session_id=session_id, project_path=project_path)
            self._sessions.append(session)
            logger.info(f"Tracking new session {session_id[:8]} in {project_path}")
        session.last_accessed_at = datetime.now()
        if transcript_path:
            session.transcript_path = transcript_path

        placeholders = [
            s for s in self._sessions if s.is_placeholder and s.project_path == project_path
        ]
        if is_new and placeholders:
            placeholder = max(placeholders, key=lambda s: s.created_at)
            if placeholder.name and not session.name_locked:
                session.name = placeholder.name
                session.name_locked = placeholder.name_locked
            window_id = placeholder.window_id
            self._sessions.remove(placeholder)
            claim_window_id(self._sessions, session, window_id)
            logger.info(f"Session {session_id[:8]} adopted window {window_id}")

        self.save()
        return session

    def clear(self) -> None:
        """Clear all sessions (for testing)."""
        self._sessions.clear()
        self.save()
