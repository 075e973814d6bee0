"""Tests for the SSE event bus."""

import json

from claude_deck.services.event_bus import Event, EventBus, get_event_bus, reset_event_bus


class TestEvent:
    """Tests for Event formatting."""

    def test_to_sse(self):
        """Events format as SSE messages with their ID first."""
        event = Event(id=9, event_type="sessions_updated", data={"seq": 3})

        assert event.to_sse() == (
            f"id: 9\nevent: sessions_updated\ndata: {json.dumps({'seq': 3})}\n\n"
        )


class TestEventBus:
    """Tests for EventBus."""

    def test_ids_increase(self):
        """Each published event gets the next ID."""
        bus = EventBus()
        first = bus.emit("sessions_updated", {})
        second = bus.emit("session_renamed", {})

        assert (first.id, second.id) == (1, 2)

    def test_history_is_bounded(self):
        """Only the most recent events are kept."""
        bus = EventBus(history_size=2)
        for i in range(5):
            bus.emit("sessions_updated", {"i": i})

        assert [e.data["i"] for e in bus.get_buffered_events()] == [3, 4]

    def test_buffered_events_filter(self):
        """History can be filtered by event type."""
        bus = EventBus()
        bus.emit("sessions_updated", {})
        bus.emit("backend_unavailable", {"error": "x"})

        assert [e.event_type for e in bus.get_buffered_events("backend_unavailable")] == [
            "backend_unavailable"
        ]

    def test_events_since(self):
        """events_since returns only newer events."""
        bus = EventBus()
        for _ in range(3):
            bus.emit("sessions_updated", {})

        assert [e.id for e in bus.events_since(1)] == [2, 3]
        assert bus.events_since(3) == []

    def test_stream_replays_history(self):
        """A new stream receives the history first, then keep-alives."""
        bus = EventBus()
        bus.emit("sessions_updated", {"seq": 1})

        stream = bus.get_sse_stream(timeout=0.01)
        assert "event: sessions_updated" in next(stream)
        assert bus.client_count == 1
        assert next(stream) == ": keep-alive\n\n"

        stream.close()
        assert bus.client_count == 0

    def test_stream_resumes_after_last_event_id(self):
        """A reconnecting stream skips events the client already saw."""
        bus = EventBus()
        bus.emit("sessions_updated", {"seq": 1})
        bus.emit("session_opened", {"seq": 2})

        stream = bus.get_sse_stream(last_event_id=1, timeout=0.01)

        assert next(stream).startswith("id: 2\nevent: session_opened\n")
        assert next(stream) == ": keep-alive\n\n"
        stream.close()

    def test_live_events_reach_stream(self):
        """Events published after connecting are delivered."""
        bus = EventBus()
        stream = bus.get_sse_stream(timeout=0.01)
        assert next(stream) == ": keep-alive\n\n"

        bus.emit("session_renamed", {"session": {"session_id": "abc"}})

        assert "event: session_renamed" in next(stream)
        stream.close()

    def test_slow_client_dropped(self, monkeypatch):
        """A client whose queue is full is disconnected, others keep going."""
        monkeypatch.setattr("claude_deck.services.event_bus.CLIENT_QUEUE_SIZE", 1)
        bus = EventBus()
        stream = bus.get_sse_stream(timeout=0.01)
        next(stream)

        bus.emit("sessions_updated", {})
        bus.emit("sessions_updated", {})

        assert bus.client_count == 0
        stream.close()


def test_singleton():
    """get_event_bus returns one instance until reset."""
    reset_event_bus()
    first = get_event_bus()
    assert get_event_bus() is first
    reset_event_bus()
    assert get_event_bus() is not first
    reset_event_bus()
