"""Application configuration models with Pydantic validation."""

from pydantic import BaseModel, Field


class TerminalConfig(BaseModel):
    """Terminal multiplexer configuration.

    The backend is chosen here and handed to the backend factory at
    startup; nothing else reads it.
    """

    backend: str = Field(
        default="kitty",
        pattern="^(kitty|wezterm)$",
        description="Terminal backend used to list and open windows",
    )
    claude_command: str = Field(
        default="claude",
        description="Command that starts Claude Code inside a new tab",
    )
    shell: str = Field(
        default="zsh",
        description="Interactive shell wrapping the command so the tab survives exit",
    )
    command_timeout: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Timeout in seconds for each terminal CLI call",
    )


class HookConfig(BaseModel):
    """Claude Code hooks configuration.

    Hooks are an opportunistic trigger for reconciliation; the periodic
    scan keeps running regardless.
    """

    enabled: bool = Field(
        default=True,
        description="Whether to accept Claude Code hook events",
    )


class AppConfig(BaseModel):
    """Root application configuration.

    Loaded from config.yaml and validated with Pydantic.
    """

    scan_interval: int = Field(
        default=3,
        ge=1,
        le=60,
        description="Seconds between periodic reconciliation passes",
    )
    aggressive_on_startup: bool = Field(
        default=True,
        description="Trust working-directory matches on the first pass after startup",
    )
    data_dir: str = Field(
        default="~/.claude-deck",
        description="Directory holding sessions.yaml",
    )
    claude_projects_dir: str = Field(
        default="~/.claude/projects",
        description="Claude Code transcript directory scanned at startup",
    )
    discover_sessions: bool = Field(
        default=True,
        description="Track sessions found in the transcript directory",
    )
    terminal: TerminalConfig = Field(
        default_factory=TerminalConfig,
        description="Terminal backend settings",
    )
    hooks: HookConfig = Field(
        default_factory=HookConfig,
        description="Claude Code hooks configuration",
    )
    port: int = Field(
        default=5151,
        ge=1024,
        le=65535,
        description="Port for the Flask server",
    )
    debug: bool = Field(
        default=False,
        description="Enable Flask debug mode",
    )
