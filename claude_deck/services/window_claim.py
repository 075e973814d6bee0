"""Window ID claiming outside the periodic reconciliation.

Used right after the deck opens or creates a window for a session, so the
binding is in place before the next reconciliation pass runs. Like
apply_status_updates(), this mutates session records and must run on the
thread that owns them.
"""

import logging

from claude_deck.models.session import Session

logger = logging.getLogger(__name__)


def claim_window_id(sessions: list[Session], claiming: Session, window_id: int) -> bool:
    """Bind a window to a session and strip it from every other session.

    Args:
        sessions: All tracked sessions.
        claiming: The session taking the window.
        window_id: The window's ID. Non-positive IDs are ignored.

    Returns:
        True if any other session was modified.
    """
    if window_id <= 0:
        return False

    modified = False
    for session in sessions:
        if session is claiming:
            continue
        if session.window_id == window_id:
            logger.debug(
                f"Window {window_id} moves from {session.session_id[:8]} "
                f"to {claiming.session_id[:8]}"
            )
            session.window_id = 0
            modified = True

    claiming.window_id = window_id
    return modified
