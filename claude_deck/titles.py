"""Title indicator parsing for Claude Code window titles.

Claude Code prefixes its terminal title with a single status character:
- ✳ when the conversation has unsaved changes
- a braille spinner frame (⠂⠄⠆⠇⠃⠁...) while it is producing output

These helpers classify that character and strip it to recover the
human-readable name Claude put in the title.
"""

from enum import Enum

UNSAVED_MARKER = "✳"

# Braille patterns used by the spinner (six-dot block)
SPINNER_FIRST = "⠀"
SPINNER_LAST = "⠿"


class TitleIndicator(str, Enum):
    """Classification of a title's leading character."""

    NONE = "none"
    UNSAVED = "unsaved"
    BUSY = "busy"


def _classify_char(ch: str) -> TitleIndicator:
    if ch == UNSAVED_MARKER:
        return TitleIndicator.UNSAVED
    if SPINNER_FIRST <= ch <= SPINNER_LAST:
        return TitleIndicator.BUSY
    return TitleIndicator.NONE


def classify_indicator(title: str) -> TitleIndicator:
    """Classify the first code point of a title.

    Args:
        title: Raw window or tab title.

    Returns:
        TitleIndicator for the leading character (NONE for empty titles).
    """
    if not title:
        return TitleIndicator.NONE
    return _classify_char(title[0])


def has_busy_indicator(title: str) -> bool:
    """True if the title starts with a spinner frame."""
    return classify_indicator(title) is TitleIndicator.BUSY


def has_any_indicator(title: str) -> bool:
    """True if the title starts with any Claude status character."""
    return classify_indicator(title) is not TitleIndicator.NONE


def strip_indicator(title: str) -> str:
    """Remove leading status characters and surrounding whitespace.

    Indicators exposed by trimming (e.g. " ⠂ name" or "✳ ⠂ name") are
    removed as well, so strip_indicator(strip_indicator(t)) equals
    strip_indicator(t) for every string.

    Args:
        title: Raw window or tab title.

    Returns:
        The cleaned display name (may be empty).
    """
    if has_any_indicator(title):
        title = title[1:]
    title = title.strip()
    while has_any_indicator(title):
        title = title[1:].strip()
    return title
