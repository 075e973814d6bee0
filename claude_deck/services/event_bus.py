"""EventBus - live session updates for SSE clients.

The status monitor and the session routes publish here; every connected
/api/events stream gets a copy. Recent events stay in a bounded history so
a client that reconnects with Last-Event-ID picks up what it missed.

Event types:
- sessions_updated: a reconciliation pass changed statuses, names or windows
- session_opened: a session's window was focused or launched
- session_renamed: a session was renamed by hand
- backend_unavailable: the terminal could not be queried
"""

import json
import logging
import queue
import threading
from collections import deque
from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)

# Per-client backlog; a client this far behind is disconnected
CLIENT_QUEUE_SIZE = 100


@dataclass
class Event:
    """One published event."""

    id: int
    event_type: str
    data: dict
    timestamp: datetime = field(default_factory=datetime.now)

    def to_sse(self) -> str:
        """Format as an SSE message (id, event and data lines, blank terminator)."""
        return f"id: {self.id}\nevent: {self.event_type}\ndata: {json.dumps(self.data)}\n\n"


class EventBus:
    """Fan-out of session events to SSE clients.

    Thread-safe: events are published from the monitor's owner thread and
    from request threads, and consumed by streaming request threads.
    """

    def __init__(self, history_size: int = 100):
        """Initialize the EventBus.

        Args:
            history_size: Number of recent events kept for replay.
        """
        self._history: deque[Event] = deque(maxlen=history_size)
        self._clients: list[queue.Queue] = []
        self._lock = threading.Lock()
        self._last_id = 0

    def emit(self, event_type: str, data: dict) -> Event:
        """Publish an event to every connected client.

        Args:
            event_type: One of the event types listed in the module docstring.
            data: JSON-serializable payload.

        Returns:
            The published Event.
        """
        with self._lock:
            self._last_id += 1
            event = Event(id=self._last_id, event_type=event_type, data=data)
            self._history.append(event)

            for client in list(self._clients):
                try:
                    client.put_nowait(event)
                except queue.Full:
                    logger.warning("Dropping SSE client that stopped reading")
                    self._clients.remove(client)

        return event

    def events_since(self, last_event_id: int) -> list[Event]:
        """Events still in history with an ID above last_event_id."""
        with self._lock:
            return [e for e in self._history if e.id > last_event_id]

    def get_sse_stream(
        self,
        last_event_id: int | None = None,
        timeout: float = 30.0,
    ) -> Generator[str, None, None]:
        """Stream events as SSE messages.

        Args:
            last_event_id: ID of the last event the client saw. When given,
                newer events from history are replayed first; otherwise the
                whole history is.
            timeout: Seconds without events before a keep-alive comment.

        Yields:
            SSE-formatted strings.
        """
        client: queue.Queue = queue.Queue(maxsize=CLIENT_QUEUE_SIZE)
        with self._lock:
            self._clients.append(client)
            since = last_event_id or 0
            replay = [e for e in self._history if e.id > since]

        try:
            for event in replay:
                yield event.to_sse()
            while True:
                try:
                    yield client.get(timeout=timeout).to_sse()
                except queue.Empty:
                    yield ": keep-alive\n\n"
        finally:
            with self._lock:
                if client in self._clients:
                    self._clients.remove(client)

    def get_buffered_events(self, event_type: str | None = None) -> list[Event]:
        """Events in history, optionally only those of one type."""
        with self._lock:
            events = list(self._history)
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    @property
    def client_count(self) -> int:
        """Number of connected SSE streams."""
        with self._lock:
            return len(self._clients)


# Singleton instance for the application
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the global EventBus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global EventBus (for testing)."""
    global _event_bus
    _event_bus = None
