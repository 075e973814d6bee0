"""Flask application factory for Claude Deck.

Wires together:
- ConfigService: Configuration loading and migration
- TerminalBackend: kitty or WezTerm window listing and control
- SessionStore: Persisted session records
- StatusMonitor: Periodic reconciliation and the owner thread for session state
- SessionLauncher: Opening/closing session windows
- EventBus: Real-time SSE event broadcasting

Usage:
    from claude_deck.app import create_app
    app = create_app()
    app.run(port=5151)
"""

import logging

from flask import Flask

from claude_deck.backends import get_backend
from claude_deck.models import AppConfig
from claude_deck.routes import register_blueprints
from claude_deck.services import (
    SessionLauncher,
    SessionStore,
    StatusMonitor,
    get_config_service,
    get_event_bus,
)

logger = logging.getLogger(__name__)


def create_app(config_path: str = "config.yaml", config: AppConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Path to the configuration file.
        config: Pre-built configuration (skips loading config_path).

    Returns:
        Configured Flask application. The status monitor is not started.
    """
    if config is None:
        config = get_config_service(config_path).get_config()

    app = Flask(__name__)
    app.extensions["config"] = config

    _init_services(app, config)
    register_blueprints(app)

    return app


def _init_services(app: Flask, config: AppConfig) -> None:
    """Initialize all services and wire them together.

    Args:
        app: Flask application.
        config: Application configuration.
    """
    backend = get_backend(config.terminal)
    app.extensions["terminal_backend"] = backend

    store = SessionStore(
        data_dir=config.data_dir,
        projects_dir=config.claude_projects_dir,
        track_discovered=config.discover_sessions,
    )
    app.extensions["session_store"] = store

    event_bus = get_event_bus()
    app.extensions["event_bus"] = event_bus

    app.extensions["status_monitor"] = StatusMonitor(
        store=store,
        backend=backend,
        event_bus=event_bus,
        config=config,
    )
    app.extensions["session_launcher"] = SessionLauncher(store=store, backend=backend)

    logger.info(f"Services initialized (backend={backend.backend_name}, data={store.data_dir})")


def main():
    """Run the Flask application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = create_app()
    config = app.extensions["config"]

    app.extensions["status_monitor"].start()

    logger.info(f"Starting Claude Deck on port {config.port}")
    try:
        # The reloader would start a second monitor in the child process
        app.run(
            host="127.0.0.1",
            port=config.port,
            debug=config.debug,
            threaded=True,
            use_reloader=False,
        )
    finally:
        app.extensions["status_monitor"].stop()


if __name__ == "__main__":
    main()
