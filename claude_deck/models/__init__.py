"""Domain models for Claude Deck."""

from claude_deck.models.config import AppConfig, HookConfig, TerminalConfig
from claude_deck.models.session import (
    PLACEHOLDER_PREFIX,
    Session,
    SessionStatus,
    placeholder_id,
)

__all__ = [
    # Session
    "PLACEHOLDER_PREFIX",
    "Session",
    "SessionStatus",
    "placeholder_id",
    # Config
    "AppConfig",
    "HookConfig",
    "TerminalConfig",
]
