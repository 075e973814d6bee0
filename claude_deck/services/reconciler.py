"""Status reconciliation between tracked sessions and open terminal windows.

Reconciliation is split in two phases so the slow part can run off the
thread that owns session state:

- compute_statuses() queries the backend and matches windows to sessions.
  It only reads the sessions it is given and returns new StatusUpdate
  values, so it is safe to call from a worker thread.
- apply_status_updates() writes those updates into the session records.
  It mutates shared state and must run on the owning thread.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from claude_deck.backends.base import TerminalBackend, WindowQueryError, WindowSnapshot
from claude_deck.models.session import Session, SessionStatus
from claude_deck.services.activity import last_activity
from claude_deck.services.session_matcher import (
    match_session,
    order_windows_busy_first,
    path_matches,
)
from claude_deck.titles import strip_indicator

logger = logging.getLogger(__name__)


@dataclass
class StatusUpdate:
    """Computed status and bookkeeping for one session."""

    session_id: str
    status: SessionStatus
    old_status: SessionStatus  # For change detection
    name: str = ""  # Non-empty if the name should be updated
    old_name: str = ""  # For change detection
    window_id: int = 0  # Window ID to record on the session
    strong: bool = False


@dataclass
class ReconcileResult:
    """Everything one reconciliation pass produced."""

    updates: list[StatusUpdate] = field(default_factory=list)
    live_window_ids: set[int] = field(default_factory=set)  # All open windows
    names_changed: bool = False
    any_changed: bool = False
    error: str | None = None  # Set when the backend could not be queried


def _query_windows(backend: TerminalBackend) -> tuple[list[WindowSnapshot], str | None]:
    try:
        return backend.list_windows(), None
    except WindowQueryError as e:
        logger.warning(f"Cannot list {backend.backend_name} windows, treating as none open: {e}")
        return [], str(e)


def order_by_recency(
    sessions: list[Session],
    recency: Callable[[Session], float | None] = last_activity,
) -> list[Session]:
    """Most recently active first; sessions with no activity signal last.

    Placeholders go first: their window was opened for them moments ago and
    they have no transcript to compete with.
    """
    stamped = [(s, recency(s)) for s in sessions]
    stamped.sort(
        key=lambda pair: (not pair[0].is_placeholder, pair[1] is None, -(pair[1] or 0.0))
    )
    return [s for s, _ in stamped]


def compute_statuses(
    sessions: list[Session],
    backend: TerminalBackend,
    aggressive: bool = False,
    recency: Callable[[Session], float | None] = last_activity,
) -> ReconcileResult:
    """Compute status updates without modifying sessions (thread-safe).

    Args:
        sessions: Sessions to reconcile. Only read.
        backend: Backend providing the window snapshot.
        aggressive: Also trust working-directory matches for window IDs and
            names. Used right after startup, when stored bindings may be
            lost and path matches are the best information available.
        recency: Activity signal used to give recent sessions first pick.

    Returns:
        ReconcileResult with one update per session.
    """
    windows, error = _query_windows(backend)
    result = ReconcileResult(
        live_window_ids={w.window_id for w in windows},
        error=error,
    )
    windows_by_id = {w.window_id: w for w in windows}
    windows = order_windows_busy_first(windows)

    claimed: set[int] = set()
    carried: list[tuple[StatusUpdate, Session]] = []

    for session in order_by_recency(sessions, recency):
        match = match_session(session, windows, claimed)
        trusted = match.strong or (aggressive and match.matched)

        update = StatusUpdate(
            session_id=session.session_id,
            status=match.status,
            old_status=session.status,
            old_name=session.name,
            strong=match.strong,
        )

        if trusted:
            update.window_id = match.window_id
        else:
            # Weak or no match: keep the stored binding for now
            update.window_id = session.window_id
            carried.append((update, session))

        if trusted and not session.name_locked:
            clean_title = strip_indicator(match.title)
            if clean_title and clean_title != session.name:
                update.name = clean_title
                result.names_changed = True

        result.updates.append(update)

    # A carried-over window ID yields to a session that matched the window
    # this pass, and is dropped once the window resumes a different session.
    carried_ids = {u.session_id for u, _ in carried}
    taken = {
        u.window_id for u in result.updates if u.window_id and u.session_id not in carried_ids
    }
    for update, session in carried:
        window_id = update.window_id
        if not window_id:
            continue
        window = windows_by_id.get(window_id)
        repurposed = (
            window is not None
            and window.explicit_session_id != ""
            and window.explicit_session_id != session.session_id
        )
        if window_id in taken or repurposed:
            update.window_id = 0
        else:
            taken.add(window_id)

    sessions_by_id = {s.session_id: s for s in sessions}
    for update in result.updates:
        session = sessions_by_id[update.session_id]
        if (
            update.status != session.status
            or update.window_id != session.window_id
            or update.name
        ):
            result.any_changed = True
            break

    logger.debug(
        f"Reconciled {len(sessions)} sessions against {len(windows)} windows "
        f"(aggressive={aggressive}, changed={result.any_changed})"
    )
    return result


def apply_status_updates(sessions: list[Session], updates: list[StatusUpdate]) -> tuple[bool, bool]:
    """Apply computed updates to sessions (must be called from the owning thread).

    Args:
        sessions: Session records to mutate in place.
        updates: Output of compute_statuses().

    Returns:
        (changed, needs_save) where needs_save is True if persisted fields
        (name, window ID) changed.
    """
    changed = False
    needs_save = False

    update_map = {u.session_id: u for u in updates}

    # Which window IDs are being claimed, and by whom
    claimed_windows = {u.window_id: u.session_id for u in updates if u.window_id > 0}

    for session in sessions:
        update = update_map.get(session.session_id)
        if update is not None:
            if session.status != update.status:
                session.status = update.status
                changed = True
            if update.name and session.name != update.name:
                session.name = update.name
                changed = True
                needs_save = True
            if session.window_id != update.window_id:
                session.window_id = update.window_id
                changed = True
                needs_save = True
        elif session.window_id > 0:
            # Not part of this pass - drop our reference if another session now owns the window
            claimer = claimed_windows.get(session.window_id)
            if claimer is not None and claimer != session.session_id:
                logger.debug(
                    f"Clearing stale window {session.window_id} from {session.session_id[:8]}"
                )
                session.window_id = 0
                changed = True
                needs_save = True

    return changed, needs_save


def refresh_statuses(
    sessions: list[Session],
    backend: TerminalBackend,
    aggressive: bool = False,
) -> bool:
    """Compute and apply in one step (convenience wrapper).

    Returns:
        True if any persisted fields were updated (caller should save).
    """
    result = compute_statuses(sessions, backend, aggressive=aggressive)
    _, needs_save = apply_status_updates(sessions, result.updates)
    return needs_save


def find_active_window_id(session: Session, backend: TerminalBackend) -> int:
    """Find the open window hosting a session, for focusing before opening.

    Checks the stored window ID first (clearing it if the window is gone),
    then an explicit --resume match, then a working-directory match.

    Returns:
        The window ID, or 0 if no open window hosts the session.
    """
    windows, _ = _query_windows(backend)

    if session.window_id > 0:
        if any(w.window_id == session.window_id for w in windows):
            return session.window_id
        session.window_id = 0

    for window in windows:
        if window.explicit_session_id and window.explicit_session_id == session.session_id:
            return window.window_id

    for window in windows:
        if window.explicit_session_id:
            continue
        if path_matches(window.cwd, session.project_path):
            return window.window_id

    return 0
