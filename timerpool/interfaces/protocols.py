# timerpool/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Optional, Protocol, runtime_checkable

from timerpool.interfaces.types import Handle, Millis, ScheduledFunc


@runtime_checkable
class ClockSource(Protocol):
    """
    Clock source protocol for type checking.

    Methods:
        after(delay_ms, fn): Schedules fn to run once after delay_ms and
            returns a cancellable handle.
        cancel(handle): Cancels a handle returned by after().
        now(): Returns the current time in milliseconds.

    Runtime Invariants:
    - after() never invokes fn synchronously.
    - fn never runs before delay_ms has elapsed, but may run later.
    - now() does not go backwards.

    Error Handling:
    - cancel() is idempotent: cancelling None, an already fired or an already
      cancelled handle is a no-op and must not raise.
    """

    def after(self, delay_ms: Millis, fn: ScheduledFunc) -> Handle:
        """Schedule fn to run once after delay_ms milliseconds."""
        ...

    def cancel(self, handle: Optional[Handle]) -> None:
        """Cancel a pending handle."""
        ...

    def now(self) -> Millis:
        """Current time in milliseconds."""
        ...


@runtime_checkable
class Releasable(Protocol):
    """
    Protocol for closures handed to the deferred cleanup queue.

    release() drops every reference the closure holds. Calling the closure
    after release() must be a no-op.
    """

    def release(self) -> None: ...
