"""Flask routes for Claude Deck."""

from claude_deck.routes.events import events_bp
from claude_deck.routes.hooks import hooks_bp
from claude_deck.routes.sessions import sessions_bp

__all__ = [
    "events_bp",
    "hooks_bp",
    "sessions_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app.

    Args:
        app: The Flask application instance.
    """
    app.register_blueprint(sessions_bp, url_prefix="/api")
    app.register_blueprint(events_bp, url_prefix="/api")
    app.register_blueprint(hooks_bp, url_prefix="/hook")
