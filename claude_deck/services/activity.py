"""Activity recency for sessions, taken from their transcript files."""

import logging
import os

from claude_deck.models.session import Session

logger = logging.getLogger(__name__)


def last_activity(session: Session) -> float | None:
    """Get when a session was last active.

    Args:
        session: The session to inspect.

    Returns:
        Modification time of the session's JSONL transcript, or None if it
        has no transcript or the file cannot be read.
    """
    if not session.transcript_path:
        return None
    try:
        return os.stat(session.transcript_path).st_mtime
    except OSError as e:
        logger.debug(f"Cannot stat transcript for {session.session_id[:8]}: {e}")
        return None
