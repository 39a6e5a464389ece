"""Shared-state cells guarded by asyncio readers-writer locks.

Every piece of mutable state that both the command side and the embedded
tool server touch (config cache, remembered path, settings, runtime status,
cancellation slot) lives in its own :class:`SharedCell`.  Cells never share
a lock, so a settings write does not block a config read.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Generic, Optional, TypeVar

T = TypeVar("T")


class ReadWriteLock:
    """Readers-writer lock for coroutines.

    Any number of readers may hold the lock together; a writer holds it
    alone.  A waiting writer blocks new readers so writers are not starved.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and not self._writers_waiting)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
                # Readers parked behind a cancelled writer must re-check.
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class CellGuard(Generic[T]):
    """Write access to a cell's value while its write lock is held."""

    def __init__(self, cell: "SharedCell[T]") -> None:
        self._cell = cell

    @property
    def value(self) -> T:
        return self._cell._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._cell._value = new_value


class SharedCell(Generic[T]):
    """A single value behind its own :class:`ReadWriteLock`.

    Usage::

        async with cell.read() as value:
            ...
        async with cell.write() as guard:
            guard.value = new_value
    """

    def __init__(self, value: T, name: str = "") -> None:
        self._value = value
        self._lock = ReadWriteLock()
        self.name = name

    @asynccontextmanager
    async def read(self) -> AsyncIterator[T]:
        async with self._lock.read():
            yield self._value

    @asynccontextmanager
    async def write(self) -> AsyncIterator[CellGuard[T]]:
        async with self._lock.write():
            yield CellGuard(self)

    async def get(self) -> T:
        async with self._lock.read():
            return self._value

    async def set(self, value: T) -> None:
        async with self._lock.write():
            self._value = value

    def __repr__(self) -> str:
        return f"SharedCell(name={self.name!r}, value={self._value!r})"


class OptionalSlot(SharedCell[Optional[T]]):
    """A cell that is either empty or holds one value, with take semantics."""

    def __init__(self, name: str = "") -> None:
        super().__init__(None, name=name)

    async def take(self) -> Optional[T]:
        """Empty the slot and return what it held."""
        async with self._lock.write():
            value, self._value = self._value, None
            return value
