"""Claude Deck - live status tracking for Claude Code sessions in terminal tabs."""

__version__ = "0.3.0"
