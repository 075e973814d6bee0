"""Hooks routes for Claude Code lifecycle events.

Claude Code hooks POST here so the deck can reconcile immediately instead
of waiting for the next scan. Hooks that name a session and its working
directory also register the session (and let it adopt a placeholder
window opened for it).

Endpoints:
- POST /hook/<event>   - session-start, session-end, stop, notification,
                         user-prompt-submit
"""

import json
import logging

from flask import Blueprint, current_app, jsonify, request

hooks_bp = Blueprint("hooks", __name__)

logger = logging.getLogger(__name__)

HOOK_EVENTS = {
    "session-start",
    "session-end",
    "stop",
    "notification",
    "user-prompt-submit",
}


def _log_hook_request(event_type: str, data: dict) -> None:
    """Log hook request with full data for debugging."""
    session_id = data.get("session_id", "")[:8] or "unknown"
    cwd = data.get("cwd", "")
    cwd_short = cwd.split("/")[-1] if cwd else "no-cwd"
    logger.info(f"[HOOK] {event_type} | session={session_id}... | cwd={cwd_short}")
    logger.debug(f"[HOOK] {event_type} full data: {json.dumps(data, default=str)}")


@hooks_bp.route("/<event_type>", methods=["POST"])
def hook_event(event_type: str):
    """Handle a Claude Code hook.

    Request body:
        {
            "session_id": "string",
            "cwd": "string",
            "transcript_path": "string"
        }

    Returns:
        JSON with the reconciliation sequence number.
    """
    if event_type not in HOOK_EVENTS:
        return jsonify({"status": "error", "message": f"Unknown hook: {event_type}"}), 404

    data = request.get_json(silent=True) or {}
    _log_hook_request(event_type, data)

    config = current_app.extensions.get("config")
    if config and not config.hooks.enabled:
        return jsonify({"status": "disabled", "message": "Hooks are disabled"}), 200

    monitor = current_app.extensions["status_monitor"]
    session_id = data.get("session_id") or ""
    cwd = data.get("cwd") or ""

    if session_id and cwd and event_type != "session-end":
        monitor.call(
            monitor.store.register_session,
            session_id,
            cwd,
            data.get("transcript_path"),
        )

    seq = monitor.trigger(f"hook:{event_type}")
    return jsonify({"status": "ok", "seq": seq})
