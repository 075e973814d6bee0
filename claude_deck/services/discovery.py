"""Discovery of Claude Code sessions from their transcript files.

Claude Code writes one JSONL transcript per session to
~/.claude/projects/<encoded-path>/<session-uuid>.jsonl. Scanning those
files recovers every session's transcript path after a restart, so recency
ordering works on the first reconciliation pass, and lists sessions that
were started outside the deck.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CLAUDE_PROJECTS_DIR = "~/.claude/projects"

# Only the head of a transcript is read; cwd and the first messages are there
HEADER_BYTES = 20 * 1024

CONTENT_ROLES = {"user", "assistant"}


@dataclass
class TranscriptInfo:
    """One session transcript found on disk."""

    session_id: str
    transcript_path: str
    project_path: str
    modified_at: float  # Transcript mtime (epoch seconds)


# =============================================================================
# Path encoding
# =============================================================================


def decode_project_path(encoded: str) -> str:
    """Turn an encoded project directory name back into a path.

    The encoding maps "/", "_" and "-" all to "-", so this is lossy and only
    used when the transcript itself does not record its working directory.

    Args:
        encoded: Directory name (e.g., -Users-sam-project)

    Returns:
        Best-guess absolute path (e.g., /Users/sam/project), or "".
    """
    if not encoded:
        return ""
    return "/" + "/".join(part for part in encoded.split("-") if part)


# =============================================================================
# Transcript parsing
# =============================================================================


def parse_jsonl_line(line: str) -> dict | None:
    """Parse a single JSONL line, or None if blank or malformed."""
    line = line.strip()
    if not line:
        return None
    try:
        entry = json.loads(line)
    except json.JSONDecodeError:
        return None
    return entry if isinstance(entry, dict) else None


def _entry_role(entry: dict) -> str:
    message = entry.get("message")
    if isinstance(message, dict) and message.get("role"):
        return str(message["role"])
    return str(entry.get("type") or "")


def read_transcript_header(transcript_path: str | Path) -> tuple[str, bool]:
    """Read the working directory and content flag from a transcript's head.

    Args:
        transcript_path: Path to the JSONL transcript.

    Returns:
        (cwd, has_content): cwd is "" if not recorded; has_content is True
        once a user or assistant message appears.
    """
    try:
        with open(transcript_path, encoding="utf-8", errors="replace") as f:
            head = f.read(HEADER_BYTES)
    except OSError as e:
        logger.debug(f"Cannot read transcript {transcript_path}: {e}")
        return "", False

    cwd = ""
    has_content = False
    # The last line may be cut off by the read limit; it simply fails to parse
    for line in head.splitlines():
        entry = parse_jsonl_line(line)
        if entry is None:
            continue
        if not cwd and entry.get("cwd"):
            cwd = str(entry["cwd"])
        if _entry_role(entry) in CONTENT_ROLES:
            has_content = True
        if cwd and has_content:
            break
    return cwd, has_content


def _is_session_id(name: str) -> bool:
    try:
        uuid.UUID(name)
    except ValueError:
        return False
    return True


# =============================================================================
# Discovery
# =============================================================================


def discover_transcripts(projects_dir: str | Path = CLAUDE_PROJECTS_DIR) -> list[TranscriptInfo]:
    """Scan the Claude projects directory for session transcripts.

    Files whose name is not a session UUID, and transcripts with no user or
    assistant message yet, are skipped.

    Args:
        projects_dir: Claude Code's projects directory.

    Returns:
        Transcripts found, newest first.
    """
    root = Path(projects_dir).expanduser()
    if not root.is_dir():
        logger.debug(f"No Claude projects directory at {root}")
        return []

    found = []
    for project_dir in sorted(root.iterdir()):
        if not project_dir.is_dir():
            continue
        for transcript in project_dir.glob("*.jsonl"):
            session_id = transcript.stem
            if not _is_session_id(session_id):
                continue
            try:
                modified_at = transcript.stat().st_mtime
            except OSError:
                continue

            cwd, has_content = read_transcript_header(transcript)
            if not has_content:
                continue

            found.append(
                TranscriptInfo(
                    session_id=session_id,
                    transcript_path=str(transcript),
                    project_path=cwd or decode_project_path(project_dir.name),
                    modified_at=modified_at,
                )
            )

    found.sort(key=lambda t: t.modified_at, reverse=True)
    logger.info(f"Discovered {len(found)} session transcripts in {root}")
    return found
