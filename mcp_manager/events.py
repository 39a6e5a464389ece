"""Fire-and-forget fan-out of state-change notifications.

Mutating operations publish here after they succeed and never wait for
delivery.  Subscribers are either callbacks (plain functions or coroutine
functions) or bounded queues.  Delivery failures are logged and dropped.
"""

import asyncio
import inspect
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set, Union

from mcp_manager.constants import EVENT_CONFIG_CHANGED

logger = logging.getLogger(__name__)

EventCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]

_HISTORY_SIZE = 200
_QUEUE_SIZE = 256


class EventBroadcaster:
    """Publishes named events with a JSON-able payload to all subscribers."""

    def __init__(self, history_size: int = _HISTORY_SIZE) -> None:
        self._events: Deque[Dict[str, Any]] = deque(maxlen=history_size)
        self._callbacks: List[EventCallback] = []
        self._queues: List[asyncio.Queue[Dict[str, Any]]] = []
        self._pending: Set[asyncio.Task[Any]] = set()
        self._event_id_counter = 0

    # ── Subscription ─────────────────────────────────────────────────

    def add_listener(self, callback: EventCallback) -> None:
        self._callbacks.append(callback)
        logger.debug("Event listener added (total: %d).", len(self._callbacks))

    def remove_listener(self, callback: EventCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def subscribe(self, maxsize: int = _QUEUE_SIZE) -> asyncio.Queue[Dict[str, Any]]:
        """Create a new event subscriber queue."""
        queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self._queues.append(queue)
        logger.debug("Event subscriber added (total: %d).", len(self._queues))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[Dict[str, Any]]) -> None:
        try:
            self._queues.remove(queue)
            logger.debug("Event subscriber removed (total: %d).", len(self._queues))
        except ValueError:
            pass

    # ── Publishing ───────────────────────────────────────────────────

    def emit(self, name: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Publish one event.  Never raises for delivery problems."""
        self._event_id_counter += 1
        event: Dict[str, Any] = {
            "id": f"evt-{self._event_id_counter}",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "name": name,
            "payload": payload or {},
        }
        self._events.append(event)

        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Dropping event '%s' for a slow subscriber.", name)

        for callback in list(self._callbacks):
            self._deliver(callback, event)
        return event

    def emit_change(self, name: str, payload: Optional[Dict[str, Any]] = None) -> None:
        """Publish a per-action event followed by the coalescing ``config-changed``."""
        self.emit(name, payload)
        self.emit(EVENT_CONFIG_CHANGED, {})

    def _deliver(self, callback: EventCallback, event: Dict[str, Any]) -> None:
        try:
            result = callback(event)
        except Exception:
            logger.exception("Event listener failed for '%s'.", event["name"])
            return
        if not inspect.isawaitable(result):
            return
        try:
            task = asyncio.ensure_future(result)
        except RuntimeError:
            logger.warning("No running loop; async listener skipped for '%s'.", event["name"])
            return
        self._pending.add(task)
        task.add_done_callback(self._on_delivered)

    def _on_delivered(self, task: "asyncio.Task[Any]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async event listener failed: %s", exc, exc_info=exc)

    # ── History ──────────────────────────────────────────────────────

    def recent(self, limit: int = 50, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return recent events, newest last, optionally filtered by name."""
        result = list(self._events)
        if name:
            result = [e for e in result if e["name"] == name]
        return result[-limit:]
