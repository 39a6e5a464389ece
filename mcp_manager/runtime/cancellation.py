"""Cooperative cancellation handle for the tool server's serving task."""

import asyncio
import itertools

_ids = itertools.count(1)


class CancellationHandle:
    """One-shot stop signal.

    ``cancel()`` only sets the flag and returns immediately; the serving task
    notices it on its own schedule.  Sharing the object is how it is cloned:
    every holder observes the same signal.  A handle is never reused across
    restarts.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.id = next(_ids)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until :meth:`cancel` has been called."""
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationHandle(id={self.id}, cancelled={self.cancelled})"
