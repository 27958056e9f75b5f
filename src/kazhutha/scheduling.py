"""
Deferred callbacks on a single logical timeline.

The host needs two kinds of delay: the pause that lets everybody see a
finished trick, and the bot think-delay. Both go through a ``Scheduler`` so
the event loop can be swapped for a manual clock in tests. ``Timer`` keeps at
most one outstanding callback: starting it again cancels the previous one.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after ``delay`` seconds, cancellably."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop (``loop.call_later``)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


class Timer:
    """Single-slot, cancel-on-restart timer."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handle: Cancellable | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        generation = self._generation

        def fire() -> None:
            # A cancelled or restarted timer must not run late.
            if generation != self._generation:
                return
            self._handle = None
            callback()

        self._handle = self._scheduler.call_later(delay, fire)

    def cancel(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


__all__ = ["Cancellable", "Scheduler", "AsyncioScheduler", "Timer"]
