"""Services for Claude Deck."""

from claude_deck.services.activity import last_activity
from claude_deck.services.config_service import (
    ConfigService,
    get_config_service,
    reset_config_service,
)
from claude_deck.services.discovery import TranscriptInfo, discover_transcripts
from claude_deck.services.event_bus import Event, EventBus, get_event_bus, reset_event_bus
from claude_deck.services.reconciler import (
    ReconcileResult,
    StatusUpdate,
    apply_status_updates,
    compute_statuses,
    find_active_window_id,
    order_by_recency,
    refresh_statuses,
)
from claude_deck.services.session_launcher import (
    LaunchResult,
    SessionLauncher,
    SessionNotFoundError,
)
from claude_deck.services.session_matcher import (
    MatchResult,
    match_session,
    order_windows_busy_first,
    path_matches,
)
from claude_deck.services.session_store import SessionStore
from claude_deck.services.status_monitor import StatusMonitor
from claude_deck.services.window_claim import claim_window_id

__all__ = [
    "ConfigService",
    "Event",
    "EventBus",
    "LaunchResult",
    "MatchResult",
    "ReconcileResult",
    "SessionLauncher",
    "SessionNotFoundError",
    "SessionStore",
    "StatusMonitor",
    "StatusUpdate",
    "TranscriptInfo",
    "apply_status_updates",
    "claim_window_id",
    "compute_statuses",
    "discover_transcripts",
    "find_active_window_id",
    "get_config_service",
    "get_event_bus",
    "last_activity",
    "match_session",
    "order_by_recency",
    "order_windows_busy_first",
    "path_matches",
    "refresh_statuses",
    "reset_config_service",
    "reset_event_bus",
]
