"""Abstract base class for terminal backend implementations.

Defines the interface for terminal multiplexer integrations: listing
open windows (the snapshot side) and opening/focusing/closing them (the
controller side).
"""

import re
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass

from claude_deck.titles import has_busy_indicator

RESUME_FLAG = "--resume "

_SESSION_ID_RUN = re.compile(r"[0-9a-fA-F-]*")


class WindowQueryError(Exception):
    """Raised when the multiplexer's control channel cannot be queried."""


def parse_explicit_session_id(command_line: str) -> str:
    """Extract the session ID following --resume in a command line.

    The flag may appear directly in argv or inside a `zsh -c '...'` string.
    Reads the maximal run of hex digits and hyphens after the flag.

    Args:
        command_line: Space-joined process command line.

    Returns:
        The session ID, or "" if the flag is missing or not followed by one.
    """
    idx = command_line.find(RESUME_FLAG)
    if idx == -1:
        return ""
    match = _SESSION_ID_RUN.match(command_line, idx + len(RESUME_FLAG))
    return match.group(0) if match else ""


def build_launch_command(
    project_path: str,
    session_id: str = "",
    claude_command: str = "claude",
    shell: str = "zsh",
) -> list[str]:
    """Build the argv that runs Claude inside a new tab.

    The command is wrapped in an interactive shell followed by
    `exec <shell>` so the tab stays open after Claude exits. Resumed
    sessions carry `--resume <id>`, which is what lets later snapshots
    recover the session ID from the window's command line.

    Args:
        project_path: Directory to cd into.
        session_id: Session to resume, or "" for a fresh session.
        claude_command: Command that starts Claude Code.
        shell: Interactive shell to wrap the command in.

    Returns:
        argv list suitable for `kitty @ launch` or `wezterm cli spawn --`.
    """
    command = f"cd {shlex.quote(project_path)} && {claude_command}"
    if session_id:
        command += f" {RESUME_FLAG}{session_id}"
    return [shell, "-i", "-c", f"{command}; exec {shell}"]


@dataclass
class WindowSnapshot:
    """One open terminal window as seen during a single reconciliation pass."""

    window_id: int  # Backend handle (kitty window id, WezTerm pane id)
    title: str = ""  # May start with a Claude status indicator
    command_line: str = ""  # Raw invocation, may embed --resume <id>
    cwd: str = ""  # Current working directory
    explicit_session_id: str = ""  # Parsed from command_line by the backend

    @property
    def has_busy_indicator(self) -> bool:
        return has_busy_indicator(self.title)

    @classmethod
    def from_command_line(
        cls, window_id: int, title: str, command_line: str, cwd: str
    ) -> "WindowSnapshot":
        """Build a snapshot, parsing the explicit session ID from the command line."""
        return cls(
            window_id=window_id,
            title=title,
            command_line=command_line,
            cwd=cwd,
            explicit_session_id=parse_explicit_session_id(command_line),
        )


class TerminalBackend(ABC):
    """Abstract interface for terminal backends.

    Terminal backends provide the ability to:
    - List open windows running Claude Code
    - Open a window resuming a session, or a fresh one
    - Focus, close and retitle windows by handle
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier (e.g., 'kitty', 'wezterm')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is installed and reachable.

        Returns:
            True if the backend can be used, False otherwise.
        """

    @abstractmethod
    def list_windows(self) -> list[WindowSnapshot]:
        """List open windows that host Claude Code.

        Returns:
            Snapshots in the order the multiplexer reports them.

        Raises:
            WindowQueryError: If the control channel cannot be queried.
        """

    @abstractmethod
    def open_session(self, project_path: str, session_id: str, title: str = "") -> int:
        """Open a new tab resuming a session.

        Args:
            project_path: Directory to start in.
            session_id: Session to resume.
            title: Optional tab title.

        Returns:
            The new window's handle, or 0 if the backend cannot report one.
        """

    @abstractmethod
    def new_session(self, project_path: str, title: str = "") -> int:
        """Open a new tab starting a fresh session.

        Returns:
            The new window's handle, or 0 if the backend cannot report one.
        """

    @abstractmethod
    def focus_window(self, window_id: int) -> bool:
        """Bring a window to the foreground.

        Returns:
            True if focus successful, False otherwise.
        """

    @abstractmethod
    def close_window(self, window_id: int) -> bool:
        """Close a window.

        Returns:
            True if the window was closed, False otherwise.
        """

    def set_title(self, window_id: int, title: str) -> bool:  # noqa: ARG002
        """Set a window's tab title.

        Default implementation does nothing; backends override when supported.

        Returns:
            True if the title was set, False otherwise.
        """
        return False
