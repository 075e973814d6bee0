"""Pytest configuration and shared fixtures for Claude Deck tests."""

import json
import os
import tempfile
from pathlib import Path

import pytest

from claude_deck.backends.base import TerminalBackend, WindowQueryError, WindowSnapshot
from claude_deck.models.session import Session


class FakeBackend(TerminalBackend):
    """In-memory backend recording controller calls."""

    def __init__(self, windows: list[WindowSnapshot] | None = None):
        self.windows = list(windows or [])
        self.error: str | None = None
        self.next_window_id = 100
        self.opened: list[tuple[str, str, str]] = []
        self.focused: list[int] = []
        self.closed: list[int] = []
        self.titles: dict[int, str] = {}

    @property
    def backend_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return self.error is None

    def list_windows(self) -> list[WindowSnapshot]:
        if self.error:
            raise WindowQueryError(self.error)
        return list(self.windows)

    def _open(self, project_path: str, session_id: str, title: str) -> int:
        self.opened.append((project_path, session_id, title))
        window_id = self.next_window_id
        self.next_window_id += 1
        command = f"claude --resume {session_id}" if session_id else "claude"
        self.windows.append(
            WindowSnapshot.from_command_line(window_id, title, command, project_path)
        )
        return window_id

    def open_session(self, project_path: str, session_id: str, title: str = "") -> int:
        return self._open(project_path, session_id, title)

    def new_session(self, project_path: str, title: str = "") -> int:
        return self._open(project_path, "", title)

    def focus_window(self, window_id: int) -> bool:
        self.focused.append(window_id)
        return any(w.window_id == window_id for w in self.windows)

    def close_window(self, window_id: int) -> bool:
        self.closed.append(window_id)
        before = len(self.windows)
        self.windows = [w for w in self.windows if w.window_id != window_id]
        return len(self.windows) < before

    def set_title(self, window_id: int, title: str) -> bool:
        self.titles[window_id] = title
        return True


def make_window(
    window_id: int,
    title: str = "",
    cwd: str = "/p",
    resume: str = "",
) -> WindowSnapshot:
    """Build a snapshot the way a backend would."""
    command_line = f"zsh -i -c cd {cwd} && claude --resume {resume}" if resume else "claude"
    return WindowSnapshot.from_command_line(window_id, title, command_line, cwd)


def make_session(session_id: str, project_path: str = "/p", **kwargs) -> Session:
    return Session(session_id=session_id, project_path=project_path, **kwargs)


def write_transcript(
    projects_dir: Path,
    session_id: str,
    project_dir: str = "-p",
    cwd: str | None = "/p",
    with_content: bool = True,
    mtime: float | None = None,
) -> Path:
    """Write a Claude Code transcript under a projects directory."""
    entries = [{"type": "summary", "summary": "x"}]
    if with_content:
        entries.append(
            {
                "type": "user",
                "sessionId": session_id,
                "message": {"role": "user", "content": "hello"},
                **({"cwd": cwd} if cwd else {}),
            }
        )
    path = projects_dir / project_dir / f"{session_id}.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(e) + "\n" for e in entries))
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for state files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_backend():
    """Create an empty fake backend."""
    return FakeBackend()
