"""Tests for the WezTerm backend."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from claude_deck.backends import get_backend, reset_backends
from claude_deck.backends.base import WindowQueryError
from claude_deck.backends.kitty import KittyBackend
from claude_deck.backends.wezterm import (
    WezTermBackend,
    cwd_from_url,
    get_tty_command_line,
    get_wezterm_backend,
    reset_wezterm_backend,
)
from claude_deck.models.config import TerminalConfig


@pytest.fixture(autouse=True)
def reset_backend():
    """Reset the backend singletons before each test."""
    reset_backends()
    yield
    reset_backends()


@pytest.fixture
def mock_wezterm_available():
    """Mock WezTerm as available."""
    with patch("claude_deck.backends.wezterm.shutil.which") as mock_which:
        mock_which.return_value = "/usr/local/bin/wezterm"
        yield mock_which


@pytest.fixture
def backend(mock_wezterm_available):
    """Create a WezTerm backend with mocked availability."""
    return WezTermBackend()


class TestWezTermBackendInit:
    """Tests for WezTermBackend initialization."""

    def test_backend_name(self, backend):
        """Backend name is 'wezterm'."""
        assert backend.backend_name == "wezterm"

    def test_is_available_when_not_installed(self):
        """is_available returns False when WezTerm is not installed."""
        with patch("claude_deck.backends.wezterm.shutil.which", return_value=None):
            assert WezTermBackend().is_available() is False

    def test_singleton(self):
        """get_wezterm_backend returns the same instance."""
        assert get_wezterm_backend() is get_wezterm_backend()
        first = get_wezterm_backend()
        reset_wezterm_backend()
        assert get_wezterm_backend() is not first


class TestGetBackend:
    """Tests for selecting a backend from configuration."""

    def test_default_is_kitty(self):
        """Default configuration selects kitty."""
        assert isinstance(get_backend(), KittyBackend)

    def test_wezterm_selected(self):
        """backend: wezterm selects WezTerm with configured settings."""
        backend = get_backend(TerminalConfig(backend="wezterm", shell="bash", command_timeout=3))
        assert isinstance(backend, WezTermBackend)
        assert backend.shell == "bash"
        assert backend.command_timeout == 3


class TestListWindows:
    """Tests for list_windows."""

    @patch("claude_deck.backends.wezterm.get_tty_command_line")
    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_parses_claude_panes(self, mock_run, mock_tty, backend):
        """Panes running claude become snapshots keyed by pane ID."""
        mock_run.return_value = (
            0,
            json.dumps(
                [
                    {
                        "pane_id": 12,
                        "title": "✳ Fix tests",
                        "tab_title": "",
                        "cwd": "file://host/Users/me/proj%20x",
                        "tty_name": "/dev/ttys004",
                    },
                    {
                        "pane_id": 13,
                        "title": "zsh",
                        "tab_title": "",
                        "cwd": "file://host/Users/me",
                        "tty_name": "/dev/ttys005",
                    },
                ]
            ),
            "",
        )
        mock_tty.side_effect = lambda tty, timeout=5: (
            "zsh -i -c claude --resume beef-01; exec zsh" if tty == "/dev/ttys004" else "-zsh"
        )

        windows = backend.list_windows()

        assert len(windows) == 1
        assert windows[0].window_id == 12
        assert windows[0].title == "✳ Fix tests"
        assert windows[0].cwd == "/Users/me/proj x"
        assert windows[0].explicit_session_id == "beef-01"

    @patch("claude_deck.backends.wezterm.get_tty_command_line", return_value="")
    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_indicator_only_pane_counts(self, mock_run, mock_tty, backend):  # noqa: ARG002
        """A pane whose title shows a spinner is kept even without a command line."""
        mock_run.return_value = (
            0,
            json.dumps([{"pane_id": 4, "title": "⠂ working", "cwd": "/p"}]),
            "",
        )

        windows = backend.list_windows()

        assert [w.window_id for w in windows] == [4]
        assert windows[0].has_busy_indicator is True

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_error_raises(self, mock_run, backend):
        """CLI failure raises WindowQueryError."""
        mock_run.return_value = (1, "", "no running wezterm")
        with pytest.raises(WindowQueryError):
            backend.list_windows()

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_invalid_json_raises(self, mock_run, backend):
        """Garbage output raises WindowQueryError."""
        mock_run.return_value = (0, "{", "")
        with pytest.raises(WindowQueryError):
            backend.list_windows()


class TestWindowControl:
    """Tests for spawning, focusing, closing and titling panes."""

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_open_session_spawns_and_titles(self, mock_run, backend):
        """open_session spawns a pane and sets its tab title."""
        mock_run.return_value = (0, "21\n", "")

        assert backend.open_session("/p", "abc", title="Named") == 21

        spawn_args = mock_run.call_args_list[0][0]
        assert spawn_args[:4] == ("spawn", "--cwd", "/p", "--")
        assert spawn_args[-1] == "cd /p && claude --resume abc; exec zsh"
        title_args = mock_run.call_args_list[1][0]
        assert title_args == ("set-tab-title", "--pane-id", "21", "Named")

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_new_session_without_title(self, mock_run, backend):
        """new_session spawns once when no title is given."""
        mock_run.return_value = (0, "5", "")

        assert backend.new_session("/p") == 5
        assert mock_run.call_count == 1
        assert mock_run.call_args[0][-1] == "cd /p && claude; exec zsh"

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_spawn_failure(self, mock_run, backend):
        """Spawn failure reports pane 0."""
        mock_run.return_value = (1, "", "err")
        assert backend.new_session("/p") == 0

    @patch("claude_deck.backends.wezterm.subprocess.run")
    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_focus_window(self, mock_run, mock_subprocess, backend):
        """focus_window activates the pane and the app."""
        mock_run.return_value = (0, "", "")

        assert backend.focus_window(12) is True
        mock_run.assert_called_once_with("activate-pane", "--pane-id", "12", timeout=10)
        assert mock_subprocess.call_args[0][0][0] == "osascript"

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_focus_failure(self, mock_run, backend):
        """Failed activation reports False."""
        mock_run.return_value = (1, "", "no pane")
        assert backend.focus_window(12) is False

    @patch("claude_deck.backends.wezterm._run_wezterm")
    def test_close_window(self, mock_run, backend):
        """close_window kills the pane."""
        mock_run.return_value = (0, "", "")
        assert backend.close_window(12) is True
        mock_run.assert_called_once_with("kill-pane", "--pane-id", "12", timeout=10)


class TestHelpers:
    """Tests for module helpers."""

    def test_cwd_from_url(self):
        """file:// URLs reduce to their path."""
        assert cwd_from_url("file://mac.local/Users/me/app") == "/Users/me/app"
        assert cwd_from_url("/plain/path") == "/plain/path"
        assert cwd_from_url(None) == ""

    @patch("claude_deck.backends.wezterm.subprocess.run")
    def test_tty_command_line(self, mock_run):
        """Processes on the TTY are joined into one line."""
        mock_run.return_value = MagicMock(
            returncode=0, stdout="-zsh\nclaude --resume abc\n", stderr=""
        )

        assert get_tty_command_line("/dev/ttys001") == "-zsh claude --resume abc"
        assert mock_run.call_args[0][0] == ["ps", "-o", "args=", "-t", "ttys001"]

    def test_tty_command_line_without_tty(self):
        """Missing TTY yields empty string."""
        assert get_tty_command_line(None) == ""

    @patch("claude_deck.backends.wezterm.subprocess.run")
    def test_tty_command_line_timeout(self, mock_run):
        """ps timeout yields empty string."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ps", timeout=5)
        assert get_tty_command_line("/dev/ttys001") == ""
