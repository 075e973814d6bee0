"""Terminal backend implementations."""

from claude_deck.backends.base import (
    TerminalBackend,
    WindowQueryError,
    WindowSnapshot,
    build_launch_command,
    parse_explicit_session_id,
)
from claude_deck.backends.kitty import KittyBackend, get_kitty_backend, reset_kitty_backend
from claude_deck.backends.wezterm import (
    WezTermBackend,
    get_wezterm_backend,
    reset_wezterm_backend,
)
from claude_deck.models.config import TerminalConfig

__all__ = [
    "KittyBackend",
    "TerminalBackend",
    "WezTermBackend",
    "WindowQueryError",
    "WindowSnapshot",
    "build_launch_command",
    "get_backend",
    "get_kitty_backend",
    "get_wezterm_backend",
    "parse_explicit_session_id",
    "reset_backends",
    "reset_kitty_backend",
    "reset_wezterm_backend",
]


def get_backend(config: TerminalConfig | None = None) -> TerminalBackend:
    """Get the terminal backend selected by configuration.

    Args:
        config: Terminal settings. Defaults are used if not provided.

    Returns:
        The singleton backend for the configured terminal.
    """
    config = config or TerminalConfig()
    kwargs = {
        "claude_command": config.claude_command,
        "shell": config.shell,
        "command_timeout": config.command_timeout,
    }
    if config.backend == "wezterm":
        return get_wezterm_backend(**kwargs)
    return get_kitty_backend(**kwargs)


def reset_backends() -> None:
    """Reset all backend singletons (for testing)."""
    reset_kitty_backend()
    reset_wezterm_backend()
