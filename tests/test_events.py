"""Tests for EventBroadcaster."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import pytest

from mcp_manager.events import EventBroadcaster


class TestEmit:
    def test_event_shape(self) -> None:
        events = EventBroadcaster()
        evt = events.emit("server-added", {"name": "a"})
        assert evt["id"] == "evt-1"
        assert evt["name"] == "server-added"
        assert evt["payload"] == {"name": "a"}
        assert "T" in evt["timestamp"]

    def test_callback_receives_event(self) -> None:
        events = EventBroadcaster()
        seen: List[Dict[str, Any]] = []
        events.add_listener(seen.append)
        events.emit_change("server-deleted", {"name": "x"})
        assert [e["name"] for e in seen] == ["server-deleted", "config-changed"]

    def test_failing_callback_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        events = EventBroadcaster()

        def boom(_event: Dict[str, Any]) -> None:
            raise RuntimeError("listener broke")

        seen: List[Dict[str, Any]] = []
        events.add_listener(boom)
        events.add_listener(seen.append)
        with caplog.at_level(logging.ERROR, logger="mcp_manager.events"):
            events.emit("config-changed")
        assert len(seen) == 1
        assert "Event listener failed" in caplog.text

    def test_remove_listener(self) -> None:
        events = EventBroadcaster()
        seen: List[Dict[str, Any]] = []
        events.add_listener(seen.append)
        events.remove_listener(seen.append)
        events.remove_listener(seen.append)
        events.emit("x")
        assert seen == []

    def test_recent_filters_and_limits(self) -> None:
        events = EventBroadcaster(history_size=5)
        for i in range(8):
            events.emit("a" if i % 2 else "b", {"i": i})
        assert len(events.recent()) == 5
        assert [e["payload"]["i"] for e in events.recent(name="a")] == [3, 5, 7]
        assert [e["payload"]["i"] for e in events.recent(limit=2)] == [6, 7]


@pytest.mark.asyncio
class TestAsyncDelivery:
    async def test_queue_subscriber(self) -> None:
        events = EventBroadcaster()
        queue = events.subscribe()
        events.emit("server-added", {"name": "a"})
        evt = await asyncio.wait_for(queue.get(), timeout=1)
        assert evt["payload"] == {"name": "a"}
        events.unsubscribe(queue)
        events.emit("server-added", {"name": "b"})
        assert queue.empty()

    async def test_full_queue_drops_event(self, caplog: pytest.LogCaptureFixture) -> None:
        events = EventBroadcaster()
        queue = events.subscribe(maxsize=1)
        with caplog.at_level(logging.WARNING, logger="mcp_manager.events"):
            events.emit("one")
            events.emit("two")
        assert queue.qsize() == 1
        assert queue.get_nowait()["name"] == "one"
        assert "slow subscriber" in caplog.text

    async def test_async_listener(self) -> None:
        events = EventBroadcaster()
        done = asyncio.Event()

        async def listener(_event: Dict[str, Any]) -> None:
            done.set()

        events.add_listener(listener)
        events.emit("config-changed")
        await asyncio.wait_for(done.wait(), timeout=1)

    async def test_failing_async_listener_does_not_propagate(self) -> None:
        events = EventBroadcaster()

        async def listener(_event: Dict[str, Any]) -> None:
            raise RuntimeError("async broke")

        events.add_listener(listener)
        events.emit("config-changed")
        await asyncio.sleep(0.01)
