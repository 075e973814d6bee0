"""Event routes for Claude Deck.

Provides the Server-Sent Events (SSE) endpoint for live session updates.
"""

import logging

from flask import Blueprint, Response, current_app, request

from claude_deck.services.event_bus import EventBus, get_event_bus

logger = logging.getLogger(__name__)

events_bp = Blueprint("events", __name__)


def _get_event_bus() -> EventBus:
    return current_app.extensions.get("event_bus") or get_event_bus()


def _last_event_id() -> int | None:
    """Parse the Last-Event-ID header browsers send on reconnect."""
    raw = request.headers.get("Last-Event-ID", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.debug(f"Ignoring malformed Last-Event-ID: {raw!r}")
        return None


@events_bp.route("/events")
def sse_events():
    """Server-Sent Events endpoint for real-time updates.

    Events:
    - sessions_updated: A reconciliation pass changed statuses, names or windows
    - session_opened: A session's window was focused or launched
    - session_renamed: A session was renamed by hand
    - backend_unavailable: The terminal could not be queried

    A client reconnecting with a Last-Event-ID header only receives the
    events it missed.

    Returns:
        SSE stream with events in format:
        id: <event_id>
        event: <event_type>
        data: <json_payload>
    """
    stream = _get_event_bus().get_sse_stream(last_event_id=_last_event_id())

    return Response(
        stream,
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
