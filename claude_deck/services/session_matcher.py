"""Session-to-window matching.

Finds the terminal window hosting a session using three tiers, first
success wins:

1. Stored window ID (strong) - unless another session already claimed the
   window this pass, or the window now resumes a different session.
2. Explicit session ID from `--resume <id>` (strong) - ground truth.
3. Working directory at or under the project path (weak) - only windows
   without an explicit session ID qualify. Several sessions can share a
   directory, so weak matches drive status but not renames.
"""

from dataclasses import dataclass

from claude_deck.backends.base import WindowSnapshot
from claude_deck.models.session import Session, SessionStatus


@dataclass
class MatchResult:
    """Outcome of matching one session against the window snapshot."""

    status: SessionStatus
    title: str = ""  # Raw title of the matched window
    window_id: int = 0
    strong: bool = False

    @property
    def matched(self) -> bool:
        return self.window_id != 0


def order_windows_busy_first(windows: list[WindowSnapshot]) -> list[WindowSnapshot]:
    """Put windows whose title shows the spinner first, keeping relative order.

    When sessions share a directory, the one actually producing output is
    then preferred by scan order.
    """
    return sorted(windows, key=lambda w: not w.has_busy_indicator)


def path_matches(cwd: str, project_path: str) -> bool:
    """True if cwd is the project path or a directory below it."""
    if not cwd or not project_path:
        return False
    return cwd == project_path or cwd.startswith(project_path.rstrip("/") + "/")


def _status_for(window: WindowSnapshot) -> SessionStatus:
    if window.has_busy_indicator:
        return SessionStatus.RUNNING
    return SessionStatus.WAITING


def _claim(window: WindowSnapshot, claimed: set[int], strong: bool) -> MatchResult:
    claimed.add(window.window_id)
    return MatchResult(
        status=_status_for(window),
        title=window.title,
        window_id=window.window_id,
        strong=strong,
    )


def match_session(
    session: Session,
    windows: list[WindowSnapshot],
    claimed: set[int],
) -> MatchResult:
    """Find the window hosting a session.

    Args:
        session: The session to match.
        windows: Current snapshot, already in preferred scan order.
        claimed: Window IDs bound to other sessions this pass. A matched
            window ID is added to it.

    Returns:
        MatchResult; IDLE with window_id 0 if nothing matched.
    """
    # 1. Stored window ID
    if session.window_id > 0:
        for window in windows:
            if window.window_id != session.window_id:
                continue
            if window.window_id in claimed:
                break  # Stale: another session owns it now
            if window.explicit_session_id and window.explicit_session_id != session.session_id:
                break  # Window was reused for a different session
            return _claim(window, claimed, strong=True)

    # 2. Explicit session ID
    for window in windows:
        if window.window_id in claimed:
            continue
        if window.explicit_session_id and window.explicit_session_id == session.session_id:
            return _claim(window, claimed, strong=True)

    # 3. Working directory
    for window in windows:
        if window.explicit_session_id or window.window_id in claimed:
            continue
        if path_matches(window.cwd, session.project_path):
            return _claim(window, claimed, strong=False)

    return MatchResult(status=SessionStatus.IDLE)
