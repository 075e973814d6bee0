#!/usr/bin/env python3
"""Claude Deck - Run the application.

Usage:
    python run.py
    # Or: python -m claude_deck.app

The API will be available at http://localhost:5151
"""

from claude_deck.app import main

if __name__ == "__main__":
    main()
