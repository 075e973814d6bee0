"""StatusMonitor - schedules reconciliation and owns session state.

Threading model:
- One owner thread drains a message queue. It is the only thread that
  mutates session records: applying reconciliation results, claiming
  window IDs, and running store operations submitted through call().
- Each trigger() submits one compute_statuses() run to a worker pool. The
  worker reads a copy of the sessions and posts its result back to the
  owner queue, tagged with a sequence number.
- A timer thread triggers a pass every scan_interval seconds. Other
  triggers (HTTP refresh, Claude Code hooks, opened windows) call
  trigger() directly.

Results are applied in sequence order: a result older than one already
applied, or computed before an owner-thread mutation, is dropped. Every
field a pass sets is recomputed on the next one, so dropping is harmless.
"""

import logging
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from claude_deck.backends.base import TerminalBackend
from claude_deck.models.config import AppConfig
from claude_deck.models.session import Session
from claude_deck.services.activity import last_activity
from claude_deck.services.event_bus import EventBus, get_event_bus
from claude_deck.services.reconciler import (
    ReconcileResult,
    apply_status_updates,
    compute_statuses,
)
from claude_deck.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class StatusMonitor:
    """Runs reconciliation passes and applies their results serially."""

    DEFAULT_SCAN_INTERVAL_SECONDS = 3.0

    def __init__(
        self,
        store: SessionStore,
        backend: TerminalBackend,
        event_bus: EventBus | None = None,
        config: AppConfig | None = None,
        recency: Callable[[Session], float | None] = last_activity,
        max_workers: int = 2,
    ):
        """Initialize the monitor.

        Args:
            store: Session store whose records this monitor owns.
            backend: Backend providing window snapshots.
            event_bus: Event bus for SSE. Uses singleton if not provided.
            config: Application configuration for interval/startup mode.
            recency: Activity signal used for matching order.
            max_workers: Size of the worker pool for reconciliation passes.
        """
        self._store = store
        self._backend = backend
        self._event_bus = event_bus or get_event_bus()
        self._config = config
        self._recency = recency

        self._queue: queue.Queue = queue.Queue()
        self._max_workers = max_workers
        self._executor = self._new_executor()
        self._executor_closed = False

        # Sequencing
        self._seq_lock = threading.Lock()
        self._seq = 0
        self._last_applied_seq = 0

        # Threading
        self._running = False
        self._stop_event = threading.Event()
        self._owner_thread: threading.Thread | None = None
        self._timer_thread: threading.Thread | None = None
        self._lock = threading.Lock()

        self._last_error: str | None = None

    @property
    def scan_interval_seconds(self) -> float:
        """Get scan interval from config or use default."""
        if self._config:
            return float(self._config.scan_interval)
        return self.DEFAULT_SCAN_INTERVAL_SECONDS

    @property
    def aggressive_on_startup(self) -> bool:
        if self._config:
            return self._config.aggressive_on_startup
        return True

    @property
    def is_running(self) -> bool:
        """Check if the monitor threads are running."""
        return self._running

    @property
    def last_error(self) -> str | None:
        """Backend error from the most recently applied pass, if any."""
        return self._last_error

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def backend(self) -> TerminalBackend:
        return self._backend

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the owner and timer threads, beginning with an aggressive pass."""
        with self._lock:
            if self._running:
                return

            self._running = True
            self._stop_event.clear()
            if self._executor_closed:
                self._executor = self._new_executor()
                self._executor_closed = False
            self._owner_thread = threading.Thread(
                target=self._owner_loop, name="deck-owner", daemon=True
            )
            self._owner_thread.start()

            # Recover bindings lost across restarts before normal passes
            self.trigger("startup", aggressive=self.aggressive_on_startup)

            self._timer_thread = threading.Thread(
                target=self._timer_loop, name="deck-timer", daemon=True
            )
            self._timer_thread.start()
            logger.info(
                f"StatusMonitor started (backend={self._backend.backend_name}, "
                f"interval={self.scan_interval_seconds}s)"
            )

    def stop(self) -> None:
        """Stop all threads. Passes still computing finish but are not applied."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._stop_event.set()
            self._queue.put(None)

            for thread in (self._timer_thread, self._owner_thread):
                if thread:
                    thread.join(timeout=5.0)
            self._timer_thread = None
            self._owner_thread = None
            self._executor.shutdown(wait=False)
            self._executor_closed = True
            logger.info("StatusMonitor stopped")

    # =========================================================================
    # Triggers
    # =========================================================================

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="reconcile")

    def _next_seq(self) -> int:
        with self._seq_lock:
            self._seq += 1
            return self._seq

    def trigger(self, reason: str = "manual", aggressive: bool = False) -> int:
        """Start one asynchronous reconciliation pass.

        Safe to call from any thread.

        Args:
            reason: Why the pass was requested (for logging).
            aggressive: Trust working-directory matches for names/window IDs.

        Returns:
            The pass's sequence number.
        """
        seq = self._next_seq()
        sessions = [s.model_copy() for s in list(self._store.sessions)]
        logger.debug(f"Reconcile #{seq} triggered ({reason}, {len(sessions)} sessions)")
        try:
            self._executor.submit(self._compute, seq, sessions, aggressive)
        except RuntimeError as e:
            # Executor already shut down
            logger.debug(f"Reconcile #{seq} not scheduled: {e}")
        return seq

    def _compute(self, seq: int, sessions: list[Session], aggressive: bool) -> None:
        try:
            result = compute_statuses(
                sessions, self._backend, aggressive=aggressive, recency=self._recency
            )
        except Exception as e:
            logger.error(f"Reconcile #{seq} failed: {e}", exc_info=True)
            return
        self._queue.put(("result", seq, result))

    def _timer_loop(self) -> None:
        while not self._stop_event.wait(self.scan_interval_seconds):
            self.trigger("interval")

    # =========================================================================
    # Owner thread
    # =========================================================================

    def _on_owner_thread(self) -> bool:
        return threading.current_thread() is self._owner_thread

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float | None = 30.0) -> Any:
        """Run a callable on the owner thread and return its result.

        Used for every mutation that does not come from a reconciliation
        pass (renames, opening windows, claims). Runs inline when the monitor
        is not running or when already on the owner thread.

        Raises:
            Whatever the callable raises.
        """
        if not self._running or self._on_owner_thread():
            return self._run_mutation(fn, args)

        future: Future = Future()
        self._queue.put(("call", fn, args, future))
        return future.result(timeout=timeout)

    def _run_mutation(self, fn: Callable[..., Any], args: tuple) -> Any:
        try:
            return fn(*args)
        finally:
            # Results computed from pre-mutation reads are now stale
            with self._seq_lock:
                self._last_applied_seq = self._seq

    def _owner_loop(self) -> None:
        while True:
            message = self._queue.get()
            if message is None:
                break
            try:
                self._handle(message)
            except Exception as e:
                logger.error(f"Owner thread error: {e}", exc_info=True)

    def _handle(self, message: tuple) -> None:
        kind = message[0]
        if kind == "result":
            _, seq, result = message
            self.apply_result(seq, result)
        elif kind == "call":
            _, fn, args, future = message
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self._run_mutation(fn, args))
            except Exception as e:
                future.set_exception(e)

    def apply_result(self, seq: int, result: ReconcileResult) -> bool:
        """Apply a reconciliation result (owner thread only).

        Args:
            seq: Sequence number the pass was triggered with.
            result: The pass's output.

        Returns:
            True if the result was applied, False if it was stale.
        """
        with self._seq_lock:
            if seq <= self._last_applied_seq:
                logger.debug(f"Dropping stale reconcile #{seq}")
                return False
            self._last_applied_seq = seq

        changed, needs_save = apply_status_updates(self._store.sessions, result.updates)

        # An unreachable backend reports no windows; keep placeholders until it answers
        if not result.error and self._store.remove_closed_placeholders(result.live_window_ids):
            changed = True
            needs_save = True

        if needs_save:
            self._store.save()

        if result.error and result.error != self._last_error:
            self._event_bus.emit("backend_unavailable", {"error": result.error})
        self._last_error = result.error

        if changed:
            self._event_bus.emit(
                "sessions_updated",
                {
                    "seq": seq,
                    "names_changed": result.names_changed,
                    "sessions": [s.to_dict() for s in self._store.list_sessions()],
                },
            )
        return True

    def publish_session(self, event_type: str, session_id: str, **extra: Any) -> bool:
        """Announce a change to one session (owner thread only).

        Args:
            event_type: session_opened or session_renamed.
            session_id: The session that changed.
            **extra: Additional payload fields.

        Returns:
            False if the session is not tracked.
        """
        session = self._store.get_session(session_id)
        if session is None:
            return False
        self._event_bus.emit(event_type, {"session": session.to_dict(), **extra})
        return True
