"""Cancellable delayed callbacks."""

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    """Handle returned by a scheduler; cancelling is idempotent."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop.

    Must be used from inside a running loop; the callback runs on that loop.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, callback)
