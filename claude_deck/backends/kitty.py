"""Kitty terminal backend for Claude Deck.

Implements the TerminalBackend interface using kitty's remote control
protocol (`kitty @ ...`). Requires `allow_remote_control yes` in kitty.conf.
"""

import json
import logging
import shutil
import subprocess

from claude_deck.backends.base import (
    TerminalBackend,
    WindowQueryError,
    WindowSnapshot,
    build_launch_command,
)
from claude_deck.titles import has_any_indicator

logger = logging.getLogger(__name__)

# Cache the kitty availability check
_kitty_available: bool | None = None


def _run_kitty(*args: str, timeout: int = 10) -> tuple[int, str, str]:
    """Run a kitty remote control command.

    Args:
        *args: Command arguments to pass to `kitty @`.
        timeout: Command timeout in seconds.

    Returns:
        Tuple of (return_code, stdout, stderr).
    """
    cmd = ["kitty", "@", *args]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return (result.returncode, result.stdout or "", result.stderr or "")
    except subprocess.TimeoutExpired:
        return (1, "", "Command timed out")
    except FileNotFoundError:
        return (1, "", "kitty not found")


class KittyBackend(TerminalBackend):
    """Kitty-based terminal backend.

    Window handles are kitty window IDs, which are stable for the life of
    the kitty instance.
    """

    def __init__(
        self,
        claude_command: str = "claude",
        shell: str = "zsh",
        command_timeout: int = 10,
    ):
        """Initialize the kitty backend.

        Args:
            claude_command: Command that starts Claude Code.
            shell: Interactive shell wrapping launched commands.
            command_timeout: Timeout for each `kitty @` call.
        """
        self.claude_command = claude_command
        self.shell = shell
        self.command_timeout = command_timeout

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "kitty"

    def is_available(self) -> bool:
        """Check if kitty is installed.

        Returns:
            True if the kitty binary is on PATH, False otherwise.
        """
        global _kitty_available
        if _kitty_available is not None:
            return _kitty_available

        _kitty_available = shutil.which("kitty") is not None
        return _kitty_available

    def _run(self, *args: str) -> tuple[int, str, str]:
        return _run_kitty(*args, timeout=self.command_timeout)

    def _is_claude_window(self, cmdline: str, window_title: str, tab_title: str) -> bool:
        return (
            self.claude_command in cmdline
            or has_any_indicator(tab_title)
            or has_any_indicator(window_title)
        )

    def list_windows(self) -> list[WindowSnapshot]:
        """List kitty windows running Claude Code.

        Uses 'kitty @ ls' and walks OS windows, tabs and windows. A window
        counts as Claude's if its command line mentions the Claude command
        or its window/tab title carries a Claude status indicator.

        Returns:
            Snapshots in kitty's order.

        Raises:
            WindowQueryError: If kitty cannot be reached or returns bad JSON.
        """
        if not self.is_available():
            raise WindowQueryError("kitty not installed")

        returncode, stdout, stderr = self._run("ls")
        if returncode != 0:
            raise WindowQueryError(f"kitty @ ls failed: {stderr.strip() or returncode}")

        try:
            os_windows = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise WindowQueryError(f"kitty @ ls returned invalid JSON: {e}") from e

        windows = []
        for os_window in os_windows or []:
            for tab in os_window.get("tabs") or []:
                tab_title = tab.get("title") or ""
                for win in tab.get("windows") or []:
                    cmdline = " ".join(win.get("cmdline") or [])
                    window_title = win.get("title") or ""

                    if not self._is_claude_window(cmdline, window_title, tab_title):
                        continue

                    # Window title is more accurate than tab title
                    title = window_title or tab_title

                    windows.append(
                        WindowSnapshot.from_command_line(
                            window_id=int(win.get("id", 0)),
                            title=title,
                            command_line=cmdline,
                            cwd=win.get("cwd") or "",
                        )
                    )

        logger.debug(f"kitty reported {len(windows)} Claude windows")
        return windows

    def _launch(self, project_path: str, session_id: str, title: str) -> int:
        args = ["launch", "--type=tab", "--cwd", project_path]
        if title:
            args += ["--tab-title", title]
        args += build_launch_command(project_path, session_id, self.claude_command, self.shell)

        returncode, stdout, stderr = self._run(*args)
        if returncode != 0:
            logger.warning(f"kitty @ launch failed: {stderr.strip()}")
            return 0

        # kitty @ launch prints the new window id
        try:
            return int(stdout.strip())
        except ValueError:
            logger.warning(f"Unexpected kitty @ launch output: {stdout!r}")
            return 0

    def open_session(self, project_path: str, session_id: str, title: str = "") -> int:
        """Open a new kitty tab resuming a session.

        Returns:
            The new window ID, or 0 on failure.
        """
        return self._launch(project_path, session_id, title)

    def new_session(self, project_path: str, title: str = "") -> int:
        """Open a new kitty tab starting a fresh session.

        Returns:
            The new window ID, or 0 on failure.
        """
        return self._launch(project_path, "", title)

    def focus_window(self, window_id: int) -> bool:
        """Focus a kitty window by ID."""
        if window_id <= 0:
            return False
        returncode, _, _ = self._run("focus-window", "--match", f"id:{window_id}")
        return returncode == 0

    def close_window(self, window_id: int) -> bool:
        """Close a kitty window by ID."""
        if window_id <= 0:
            return False
        returncode, _, _ = self._run("close-window", "--match", f"id:{window_id}")
        return returncode == 0

    def set_title(self, window_id: int, title: str) -> bool:
        """Rename the kitty tab holding a window."""
        if window_id <= 0 or not title:
            return False
        returncode, _, _ = self._run("set-tab-title", "--match", f"id:{window_id}", title)
        return returncode == 0


# Singleton instance
_backend_instance: KittyBackend | None = None


def get_kitty_backend(**kwargs) -> KittyBackend:
    """Get the singleton kitty backend instance.

    Keyword arguments are only used on first call.
    """
    global _backend_instance
    if _backend_instance is None:
        _backend_instance = KittyBackend(**kwargs)
    return _backend_instance


def reset_kitty_backend() -> None:
    """Reset the singleton instance (for testing)."""
    global _backend_instance, _kitty_available
    _backend_instance = None
    _kitty_available = None
