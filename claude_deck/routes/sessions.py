"""Session routes for Claude Deck.

Provides REST API endpoints for session management:
- List sessions with live status
- Trigger a reconciliation pass
- Open, close, rename and delete sessions
- Start a new session in a project directory
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from claude_deck.services.session_launcher import SessionLauncher, SessionNotFoundError
from claude_deck.services.status_monitor import StatusMonitor

logger = logging.getLogger(__name__)

sessions_bp = Blueprint("sessions", __name__)


def _get_monitor() -> StatusMonitor:
    """Get the status monitor from app extensions."""
    return current_app.extensions["status_monitor"]


def _get_launcher() -> SessionLauncher:
    """Get the session launcher from app extensions."""
    return current_app.extensions["session_launcher"]


def _not_found(session_id: str):
    return jsonify({"success": False, "error": f"Unknown session: {session_id}"}), 404


@sessions_bp.route("/sessions", methods=["GET"])
def list_sessions():
    """List all tracked sessions with their current status.

    Returns:
        JSON with a `sessions` list (see Session.to_dict) and the last
        backend error, if the most recent pass could not list windows.
    """
    monitor = _get_monitor()
    sessions = monitor.store.list_sessions()
    logger.debug(f"[API] GET /sessions - {len(sessions)} sessions")
    return jsonify(
        {
            "sessions": [s.to_dict() for s in sessions],
            "backend_error": monitor.last_error,
        }
    )


@sessions_bp.route("/sessions/<session_id>", methods=["GET"])
def get_session(session_id: str):
    """Get one session."""
    session = _get_monitor().store.get_session(session_id)
    if session is None:
        return _not_found(session_id)
    return jsonify({"session": session.to_dict()})


@sessions_bp.route("/sessions/refresh", methods=["POST"])
def refresh_sessions():
    """Trigger a reconciliation pass.

    Request body (optional):
        {"aggressive": bool}

    Returns:
        JSON with the pass's sequence number. Results arrive over SSE.
    """
    data = request.get_json(silent=True) or {}
    seq = _get_monitor().trigger("api", aggressive=bool(data.get("aggressive", False)))
    return jsonify({"success": True, "seq": seq}), 202


@sessions_bp.route("/sessions/<session_id>/open", methods=["POST"])
def open_session(session_id: str):
    """Focus the session's window, or open a tab resuming it.

    Emits session_opened with the session and whether a window was reused.
    """
    monitor = _get_monitor()
    launcher = _get_launcher()

    def open_and_announce():
        result = launcher.open_session(session_id)
        if result.window_id > 0:
            monitor.publish_session(
                "session_opened", session_id, focused_existing=result.focused_existing
            )
        return result

    try:
        result = monitor.call(open_and_announce)
    except SessionNotFoundError:
        return _not_found(session_id)

    monitor.trigger("opened")
    return jsonify(
        {
            "success": result.window_id > 0 or result.focused_existing,
            "window_id": result.window_id,
            "focused_existing": result.focused_existing,
        }
    )


@sessions_bp.route("/sessions/<session_id>/close", methods=["POST"])
def close_session(session_id: str):
    """Close the session's window."""
    try:
        closed = _get_monitor().call(_get_launcher().close_session, session_id)
    except SessionNotFoundError:
        return _not_found(session_id)
    return jsonify({"success": closed})


@sessions_bp.route("/sessions/<session_id>/rename", methods=["POST"])
def rename_session(session_id: str):
    """Rename a session. The name is locked against title sync.

    Emits session_renamed with the updated session.

    Request body:
        {"name": "string"}
    """
    data = request.get_json(silent=True) or {}
    name = str(data.get("name", "")).strip()
    if not name:
        return jsonify({"success": False, "error": "Missing name"}), 400

    monitor = _get_monitor()
    launcher = _get_launcher()

    def rename_and_announce():
        launcher.rename_session(session_id, name)
        monitor.publish_session("session_renamed", session_id)

    try:
        monitor.call(rename_and_announce)
    except SessionNotFoundError:
        return _not_found(session_id)
    return jsonify({"success": True, "name": name})


@sessions_bp.route("/sessions/new", methods=["POST"])
def new_session():
    """Start a fresh Claude session in a project directory.

    Request body:
        {"project_path": "string", "name": "optional string"}
    """
    data = request.get_json(silent=True) or {}
    project_path = str(data.get("project_path", "")).strip()
    if not project_path:
        return jsonify({"success": False, "error": "Missing project_path"}), 400

    monitor = _get_monitor()
    result = monitor.call(
        _get_launcher().new_session, project_path, str(data.get("name", "")).strip()
    )
    if result.window_id <= 0:
        return jsonify({"success": False, "error": "Terminal did not report a window"}), 502

    monitor.trigger("created")
    return jsonify(
        {"success": True, "session_id": result.session_id, "window_id": result.window_id}
    ), 201


@sessions_bp.route("/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str):
    """Stop tracking a session. Claude's transcript is left untouched."""
    removed = _get_monitor().call(_get_monitor().store.remove_session, session_id)
    if not removed:
        return _not_found(session_id)
    return jsonify({"success": True})


@sessions_bp.route("/health", methods=["GET"])
def health():
    """Report backend availability and the last backend error."""
    monitor = _get_monitor()
    backend = monitor.backend
    return jsonify(
        {
            "backend": backend.backend_name,
            "available": backend.is_available(),
            "monitor_running": monitor.is_running,
            "last_error": monitor.last_error,
        }
    )
