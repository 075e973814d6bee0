"""Tests for domain models and activity recency."""

import os

import pytest
from pydantic import ValidationError

from claude_deck.models.config import AppConfig, TerminalConfig
from claude_deck.models.session import Session, SessionStatus, placeholder_id
from claude_deck.services.activity import last_activity


class TestSession:
    """Tests for the Session model."""

    def test_defaults(self):
        """New sessions are idle, unnamed and unbound."""
        session = Session(session_id="abc", project_path="/home/me/proj")
        assert session.status is SessionStatus.IDLE
        assert session.window_id == 0
        assert session.display_name == "proj"
        assert session.is_placeholder is False

    def test_negative_window_rejected(self):
        """Window IDs cannot be negative."""
        with pytest.raises(ValidationError):
            Session(session_id="abc", project_path="/p", window_id=-1)

    def test_dump_excludes_runtime_fields(self):
        """Status and transcript path are not serialized."""
        session = Session(session_id="abc", project_path="/p", transcript_path="/t")
        dumped = session.model_dump(mode="json")
        assert "status" not in dumped
        assert "transcript_path" not in dumped

    def test_to_dict(self):
        """API dict carries status value and symbol."""
        session = Session(session_id="abc", project_path="/p", name="Work")
        session.status = SessionStatus.RUNNING
        data = session.to_dict()
        assert data["status"] == "running"
        assert data["symbol"] == "●"
        assert data["name"] == "Work"

    def test_placeholder(self):
        """Placeholder IDs are recognised."""
        session = Session(session_id=placeholder_id(12), project_path="/p")
        assert session.session_id == "pending-12"
        assert session.is_placeholder is True

    def test_status_symbols(self):
        """Each status has a distinct symbol."""
        assert {s.symbol for s in SessionStatus} == {"○", "◎", "●"}


class TestConfigModels:
    """Tests for configuration models."""

    def test_defaults(self):
        """Default configuration values."""
        config = AppConfig()
        assert config.scan_interval == 3
        assert config.aggressive_on_startup is True
        assert config.terminal.claude_command == "claude"

    def test_rejects_unknown_backend(self):
        """Only kitty and wezterm are supported."""
        with pytest.raises(ValidationError):
            TerminalConfig(backend="iterm")

    def test_scan_interval_bounds(self):
        """Scan interval must be between 1 and 60 seconds."""
        with pytest.raises(ValidationError):
            AppConfig(scan_interval=0)


class TestLastActivity:
    """Tests for last_activity."""

    def test_transcript_mtime(self, temp_dir):
        """Recency is the transcript's modification time."""
        transcript = temp_dir / "abc.jsonl"
        transcript.write_text("{}\n")
        os.utime(transcript, (1000, 2000))
        session = Session(session_id="abc", project_path="/p", transcript_path=str(transcript))

        assert last_activity(session) == 2000

    def test_missing_transcript(self, temp_dir):
        """No transcript means no recency signal."""
        assert last_activity(Session(session_id="abc", project_path="/p")) is None
        missing = Session(
            session_id="abc", project_path="/p", transcript_path=str(temp_dir / "nope.jsonl")
        )
        assert last_activity(missing) is None
