# timerpool/runtime/clock.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import heapq
import time
from dataclasses import dataclass, field
from typing import List, Optional

from timerpool.core.errors import ClockError, ValidationError
from timerpool.interfaces.types import Handle, Millis, ScheduledFunc


class AsyncioClock:
    """
    Clock source backed by an asyncio event loop. Callbacks are scheduled with
    loop.call_later() and run on the loop's thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        :param loop: Loop to schedule on. When omitted, the running loop is
                     looked up on every call to after().
        """
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as e:
            raise ClockError("AsyncioClock needs a running event loop or an explicit loop.") from e

    def after(self, delay_ms: Millis, fn: ScheduledFunc) -> asyncio.TimerHandle:
        return self._get_loop().call_later(delay_ms / 1000.0, fn)

    def cancel(self, handle: Optional[Handle]) -> None:
        if handle is not None:
            handle.cancel()

    def now(self) -> Millis:
        if self._loop is not None:
            return self._loop.time() * 1000.0
        # Same time base as the default loop's loop.time()
        return time.monotonic() * 1000.0


@dataclass(order=True)
class _ManualHandle:
    """A callback queued on a ManualClock, ordered by due time then sequence."""

    when: float
    sequence: int
    fn: ScheduledFunc = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """
    Deterministic clock whose time only moves when advance() is called.

    Useful for tests and simulations: callbacks run synchronously inside
    advance(), in due-time order, with now() reporting each callback's due
    time while it runs. Callbacks due at the same instant run in the order
    they were scheduled.
    """

    def __init__(self, start: Millis = 0.0) -> None:
        self._now = float(start)
        self._heap: List[_ManualHandle] = []
        self._counter = 0

    def after(self, delay_ms: Millis, fn: ScheduledFunc) -> _ManualHandle:
        handle = _ManualHandle(when=self._now + delay_ms, sequence=self._counter, fn=fn)
        self._counter += 1
        heapq.heappush(self._heap, handle)
        return handle

    def cancel(self, handle: Optional[Handle]) -> None:
        if handle is not None:
            handle.cancel()

    def now(self) -> Millis:
        return self._now

    def advance(self, ms: Millis) -> int:
        """
        Move time forward by ms milliseconds, running every callback that
        becomes due on the way.

        If a callback raises, the exception propagates with now() left at
        that callback's due time; callbacks not yet run stay queued.

        :return: Number of callbacks run.
        """
        if ms < 0:
            raise ValidationError(f"Cannot advance a clock backwards ({ms!r} ms).")
        target = self._now + ms
        ran = self._run_until(target)
        self._now = target
        return ran

    def run_due(self) -> int:
        """Run callbacks already due at the current time."""
        return self._run_until(self._now)

    def pending(self) -> int:
        """Number of scheduled, uncancelled callbacks."""
        return sum(1 for handle in self._heap if not handle.cancelled)

    def _run_until(self, target: float) -> int:
        ran = 0
        while self._heap and self._heap[0].when <= target:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            self._now = max(self._now, handle.when)
            # Spent handles no longer count as pending
            handle.cancelled = True
            ran += 1
            handle.fn()
        return ran
