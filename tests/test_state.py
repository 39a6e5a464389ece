"""Tests for the readers-writer lock and shared cells."""

from __future__ import annotations

import asyncio

import pytest

from mcp_manager.state import OptionalSlot, ReadWriteLock, SharedCell


@pytest.mark.asyncio
class TestReadWriteLock:
    async def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        async with lock.read():
            async with lock.read():
                assert lock.readers == 2
        assert lock.readers == 0

    async def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        order = []

        async def reader() -> None:
            async with lock.read():
                order.append("read")

        async with lock.write():
            assert lock.write_locked
            task = asyncio.create_task(reader())
            await asyncio.sleep(0.01)
            assert order == []
            order.append("write-done")
        await task
        assert order == ["write-done", "read"]

    async def test_waiting_writer_blocks_new_readers(self) -> None:
        lock = ReadWriteLock()
        order = []

        async def writer() -> None:
            async with lock.write():
                order.append("write")

        async def late_reader() -> None:
            async with lock.read():
                order.append("late-read")

        async with lock.read():
            w = asyncio.create_task(writer())
            await asyncio.sleep(0.01)
            r = asyncio.create_task(late_reader())
            await asyncio.sleep(0.01)
            assert order == []
        await asyncio.gather(w, r)
        assert order == ["write", "late-read"]

    async def test_cancelled_writer_releases_readers(self) -> None:
        lock = ReadWriteLock()
        got = []

        async def late_reader() -> None:
            async with lock.read():
                got.append(True)

        async with lock.read():
            w = asyncio.create_task(lock.write().__aenter__())
            await asyncio.sleep(0.01)
            r = asyncio.create_task(late_reader())
            await asyncio.sleep(0.01)
            w.cancel()
            await asyncio.sleep(0.01)
            assert got == [True]
        await r


@pytest.mark.asyncio
class TestSharedCell:
    async def test_get_set(self) -> None:
        cell = SharedCell(1, name="n")
        await cell.set(2)
        assert await cell.get() == 2

    async def test_write_guard(self) -> None:
        cell = SharedCell([1])
        async with cell.write() as guard:
            guard.value = guard.value + [2]
        async with cell.read() as value:
            assert value == [1, 2]

    async def test_independent_cells_do_not_block(self) -> None:
        a = SharedCell("a")
        b = SharedCell("b")
        async with a.write():
            assert await asyncio.wait_for(b.get(), timeout=1) == "b"

    async def test_optional_slot_take(self) -> None:
        slot: OptionalSlot[str] = OptionalSlot(name="slot")
        assert await slot.take() is None
        await slot.set("handle")
        assert await slot.take() == "handle"
        assert await slot.get() is None
