"""WezTerm terminal backend for Claude Deck.

Implements the TerminalBackend interface using the wezterm CLI.
"""

import contextlib
import json
import logging
import shutil
import subprocess
from urllib.parse import unquote, urlparse

from claude_deck.backends.base import (
    TerminalBackend,
    WindowQueryError,
    WindowSnapshot,
    build_launch_command,
)
from claude_deck.titles import has_any_indicator

logger = logging.getLogger(__name__)

# Cache the WezTerm availability check
_wezterm_available: bool | None = None


def _run_wezterm(*args: str, timeout: int = 10) -> tuple[int, str, str]:
    """Run a wezterm CLI command.

    Args:
        *args: Command arguments to pass to wezterm cli.
        timeout: Command timeout in seconds.

    Returns:
        Tuple of (return_code, stdout, stderr).
    """
    cmd = ["wezterm", "cli", *args]
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
        return (1, "", "wezterm not found")


def get_tty_command_line(tty: str | None, timeout: int = 5) -> str:
    """Get the command lines of all processes attached to a TTY.

    WezTerm does not report a pane's command line, so this asks `ps` for
    every process on the pane's TTY and joins their arguments.

    Args:
        tty: TTY path (e.g., /dev/ttys001).
        timeout: Command timeout in seconds.

    Returns:
        Space-joined process arguments, or "" if unavailable.
    """
    if not tty:
        return ""
    try:
        result = subprocess.run(
            ["ps", "-o", "args=", "-t", tty.removeprefix("/dev/")],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug(f"Failed to read processes on {tty}: {e}")
        return ""
    if result.returncode != 0:
        return ""
    return " ".join(line.strip() for line in result.stdout.splitlines() if line.strip())


def cwd_from_url(cwd: str | None) -> str:
    """Reduce WezTerm's `file://host/path` cwd to a plain path."""
    if not cwd:
        return ""
    if cwd.startswith("file://"):
        return unquote(urlparse(cwd).path)
    return cwd


class WezTermBackend(TerminalBackend):
    """WezTerm-based terminal backend.

    Window handles are WezTerm pane IDs.
    """

    def __init__(
        self,
        claude_command: str = "claude",
        shell: str = "zsh",
        command_timeout: int = 10,
    ):
        """Initialize the WezTerm backend.

        Args:
            claude_command: Command that starts Claude Code.
            shell: Interactive shell wrapping spawned commands.
            command_timeout: Timeout for each wezterm CLI call.
        """
        self.claude_command = claude_command
        self.shell = shell
        self.command_timeout = command_timeout

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "wezterm"

    def is_available(self) -> bool:
        """Check if WezTerm is installed and available.

        Returns:
            True if wezterm CLI is available, False otherwise.
        """
        global _wezterm_available
        if _wezterm_available is not None:
            return _wezterm_available

        _wezterm_available = shutil.which("wezterm") is not None
        return _wezterm_available

    def _run(self, *args: str) -> tuple[int, str, str]:
        return _run_wezterm(*args, timeout=self.command_timeout)

    def list_windows(self) -> list[WindowSnapshot]:
        """List WezTerm panes running Claude Code.

        Uses 'wezterm cli list --format json' to get pane information and
        `ps` on each candidate pane's TTY to recover its command line.

        Returns:
            Snapshots in WezTerm's order.

        Raises:
            WindowQueryError: If wezterm cannot be reached or returns bad JSON.
        """
        if not self.is_available():
            raise WindowQueryError("wezterm not installed")

        returncode, stdout, stderr = self._run("list", "--format", "json")
        if returncode != 0:
            raise WindowQueryError(f"wezterm cli list failed: {stderr.strip() or returncode}")

        try:
            panes = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise WindowQueryError(f"wezterm cli list returned invalid JSON: {e}") from e

        windows = []
        for pane in panes or []:
            title = pane.get("title") or ""
            tab_title = pane.get("tab_title") or ""
            cmdline = get_tty_command_line(pane.get("tty_name"), timeout=self.command_timeout)

            is_claude = (
                self.claude_command in cmdline
                or has_any_indicator(title)
                or has_any_indicator(tab_title)
            )
            if not is_claude:
                continue

            windows.append(
                WindowSnapshot.from_command_line(
                    window_id=int(pane.get("pane_id", 0)),
                    # Raw pane title (has spinner chars for activity)
                    title=title or tab_title,
                    command_line=cmdline,
                    cwd=cwd_from_url(pane.get("cwd")),
                )
            )

        logger.debug(f"wezterm reported {len(windows)} Claude panes")
        return windows

    def _spawn(self, project_path: str, session_id: str, title: str) -> int:
        args = [
            "spawn",
            "--cwd",
            project_path,
            "--",
            *build_launch_command(project_path, session_id, self.claude_command, self.shell),
        ]
        returncode, stdout, stderr = self._run(*args)
        if returncode != 0:
            logger.warning(f"wezterm cli spawn failed: {stderr.strip()}")
            return 0

        # spawn prints the new pane id
        try:
            pane_id = int(stdout.strip())
        except ValueError:
            logger.warning(f"Unexpected wezterm cli spawn output: {stdout!r}")
            return 0

        if title:
            self.set_title(pane_id, title)
        return pane_id

    def open_session(self, project_path: str, session_id: str, title: str = "") -> int:
        """Spawn a new WezTerm tab resuming a session.

        Returns:
            The new pane ID, or 0 on failure.
        """
        return self._spawn(project_path, session_id, title)

    def new_session(self, project_path: str, title: str = "") -> int:
        """Spawn a new WezTerm tab starting a fresh session.

        Returns:
            The new pane ID, or 0 on failure.
        """
        return self._spawn(project_path, "", title)

    def focus_window(self, window_id: int) -> bool:
        """Bring the WezTerm pane to foreground.

        Uses 'wezterm cli activate-pane' and AppleScript for app activation.

        Args:
            window_id: The pane ID.

        Returns:
            True if focus successful, False otherwise.
        """
        if window_id <= 0:
            return False

        returncode, _, _ = self._run("activate-pane", "--pane-id", str(window_id))
        if returncode != 0:
            return False

        # Also bring WezTerm application to foreground (macOS)
        with contextlib.suppress(Exception):
            subprocess.run(
                ["osascript", "-e", 'tell application "WezTerm" to activate'],
                capture_output=True,
                timeout=5,
            )

        return True

    def close_window(self, window_id: int) -> bool:
        """Kill a WezTerm pane."""
        if window_id <= 0:
            return False
        returncode, _, _ = self._run("kill-pane", "--pane-id", str(window_id))
        return returncode == 0

    def set_title(self, window_id: int, title: str) -> bool:
        """Set the title of the tab holding a pane."""
        if window_id <= 0 or not title:
            return False
        returncode, _, _ = self._run("set-tab-title", "--pane-id", str(window_id), title)
        return returncode == 0


# Singleton instance
_backend_instance: WezTermBackend | None = None


def get_wezterm_backend(**kwargs) -> WezTermBackend:
    """Get the singleton WezTerm backend instance.

    Keyword arguments are only used on first call.
    """
    global _backend_instance
    if _backend_instance is None:
        _backend_instance = WezTermBackend(**kwargs)
    return _backend_instance


def reset_wezterm_backend() -> None:
    """Reset the singleton instance (for testing)."""
    global _backend_instance, _wezterm_available
    _backend_instance = None
    _wezterm_available = None
