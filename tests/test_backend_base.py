"""Tests for shared backend helpers."""

from claude_deck.backends.base import (
    WindowSnapshot,
    build_launch_command,
    parse_explicit_session_id,
)


class TestParseExplicitSessionId:
    """Tests for parse_explicit_session_id."""

    def test_direct_argument(self):
        """Session ID directly after --resume is extracted."""
        cmd = "claude --resume 3f2a9c1e-8b7d-4e6f-a1b2-c3d4e5f60718"
        assert parse_explicit_session_id(cmd) == "3f2a9c1e-8b7d-4e6f-a1b2-c3d4e5f60718"

    def test_inside_shell_string(self):
        """ID embedded in a zsh -c string stops at the first non-hex character."""
        cmd = "zsh -i -c cd /p && claude --resume abc123; exec zsh"
        assert parse_explicit_session_id(cmd) == "abc123"

    def test_uppercase_hex(self):
        """Uppercase hex digits are accepted."""
        assert parse_explicit_session_id("claude --resume ABC-DEF") == "ABC-DEF"

    def test_no_flag(self):
        """No --resume flag yields empty string."""
        assert parse_explicit_session_id("claude") == ""
        assert parse_explicit_session_id("") == ""

    def test_malformed_token(self):
        """A non-hex token after the flag yields empty string."""
        assert parse_explicit_session_id("claude --resume xyz") == ""

    def test_flag_without_value(self):
        """Flag at end of line yields empty string."""
        assert parse_explicit_session_id("claude --resume") == ""


class TestWindowSnapshot:
    """Tests for WindowSnapshot."""

    def test_from_command_line_parses_session_id(self):
        """from_command_line fills explicit_session_id."""
        window = WindowSnapshot.from_command_line(7, "⠂ x", "claude --resume abc", "/p")
        assert window.explicit_session_id == "abc"
        assert window.has_busy_indicator is True

    def test_no_busy_indicator(self):
        """Unsaved marker is not busy."""
        window = WindowSnapshot(window_id=1, title="✳ x")
        assert window.has_busy_indicator is False


class TestBuildLaunchCommand:
    """Tests for build_launch_command."""

    def test_resume_command(self):
        """Resumed sessions carry --resume and keep the tab open."""
        argv = build_launch_command("/home/me/proj", "abc-123")
        assert argv[:3] == ["zsh", "-i", "-c"]
        assert argv[3] == "cd /home/me/proj && claude --resume abc-123; exec zsh"

    def test_fresh_command(self):
        """Fresh sessions have no --resume flag."""
        argv = build_launch_command("/p", "", claude_command="claude", shell="bash")
        assert argv == ["bash", "-i", "-c", "cd /p && claude; exec bash"]

    def test_quotes_paths_with_spaces(self):
        """Project paths are shell-quoted."""
        argv = build_launch_command("/my projects/app", "abc")
        assert "cd '/my projects/app' && claude --resume abc" in argv[3]

    def test_round_trips_through_parser(self):
        """The launched command line yields the session ID back."""
        argv = build_launch_command("/p", "deadbeef-0001")
        assert parse_explicit_session_id(" ".join(argv)) == "deadbeef-0001"
