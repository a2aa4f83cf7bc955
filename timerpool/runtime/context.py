"""
Runtime context owning the timer pool, the deferred cleanup queue and the
clock source they schedule on.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from timerpool.core.errors import ContextError, ValidationError
from timerpool.core.validations import Validator
from timerpool.interfaces.protocols import ClockSource
from timerpool.interfaces.types import Handle, Millis, TickCallback, TimerCallback, TimerID
from timerpool.runtime.cleanup import CleanupQueue
from timerpool.runtime.clock import AsyncioClock
from timerpool.runtime.registry import TimerRegistry

if TYPE_CHECKING:
    from timerpool.core.timer import Timer

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL: Millis = 500.0


@dataclass(frozen=True)
class ContextConfig:
    """
    Tunables for a TimerContext.

    :param sweep_interval: Milliseconds between two drains of the deferred
                           cleanup queue.
    """

    sweep_interval: Millis = DEFAULT_SWEEP_INTERVAL

    def __post_init__(self) -> None:
        Validator().validate_interval(self.sweep_interval, "sweep_interval")
        if self.sweep_interval == 0:
            raise ValidationError("Timer sweep_interval must be positive.")


class TimerContext:
    """
    Owns everything timers share: the clock source, the registry of live
    timers and the cleanup queue with its periodic sweep.

    The sweep starts with start(), or implicitly when the first timer is
    registered, and stops with close().
    """

    def __init__(
        self,
        clock: Optional[ClockSource] = None,
        config: Optional[ContextConfig] = None,
        validator: Optional[Validator] = None,
    ) -> None:
        """
        :param clock: Clock source to schedule on. Defaults to AsyncioClock.
        :param config: Context tunables.
        :param validator: Argument validator shared by the context's timers.
        """
        self._clock = clock if clock is not None else AsyncioClock()
        self._config = config or ContextConfig()
        self._validator = validator or Validator()
        self._registry = TimerRegistry()
        self._cleanup = CleanupQueue()
        self._sweep_handle: Optional[Handle] = None
        self._sweep_loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False
        self._closed = False

    @property
    def clock(self) -> ClockSource:
        return self._clock

    @property
    def config(self) -> ContextConfig:
        return self._config

    @property
    def validator(self) -> Validator:
        return self._validator

    @property
    def registry(self) -> TimerRegistry:
        return self._registry

    @property
    def cleanup(self) -> CleanupQueue:
        return self._cleanup

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Begin the periodic cleanup sweep. Starting twice is a no-op."""
        if self._closed:
            raise ContextError("Cannot start a closed timer context.")
        if self._started:
            return
        self._arm_sweep()
        self._started = True
        logger.debug("Timer context started, sweeping every %s ms", self._config.sweep_interval)

    def close(self) -> None:
        """
        Stop the sweep, disarm every timer and release whatever is still
        waiting for cleanup. Closing twice is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        self._started = False
        self._clock.cancel(self._sweep_handle)
        self._sweep_handle = None
        self._registry.cancel_all()
        self._cleanup.drain()
        logger.debug("Timer context closed with %d timer(s) still registered", len(self._registry))

    def __enter__(self) -> "TimerContext":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def register(self, timer: "Timer") -> TimerID:
        """
        Add a timer to the pool, starting the context if needed.

        :raises ContextError: If the context is closed.
        """
        if self._closed:
            raise ContextError("Cannot register a timer on a closed timer context.")
        if not self._started:
            self.start()
        elif self._sweep_orphaned():
            logger.debug("Event loop changed, re-arming the cleanup sweep")
            self._clock.cancel(self._sweep_handle)
            self._arm_sweep()
        return self._registry.add(timer)

    def unregister(self, timer: "Timer") -> bool:
        return self._registry.remove(timer)

    def defer_release(self, closure: Any) -> None:
        """Queue a closure for release on the next sweep."""
        self._cleanup.enqueue(closure)

    def sweep(self) -> int:
        """Drain the cleanup queue now. Returns the number of closures released."""
        return self._cleanup.drain()

    def _arm_sweep(self) -> None:
        self._sweep_handle = self._clock.after(self._config.sweep_interval, self._on_sweep)
        self._sweep_loop = _running_loop()

    def _sweep_orphaned(self) -> bool:
        # A sweep armed under an event loop dies with that loop
        if self._sweep_loop is None:
            return False
        loop = _running_loop()
        return loop is not None and loop is not self._sweep_loop

    def _on_sweep(self) -> None:
        self._sweep_handle = None
        try:
            self.sweep()
        finally:
            if self._started:
                self._arm_sweep()

    # Timer factories

    def timer(self, interval: Millis, callback: TimerCallback) -> "Timer":
        """A timer that fires once and stays registered until killed."""
        from timerpool.core.timer import Timer

        return Timer(interval, callback, context=self)

    def repeater(self, interval: Millis, callback: TimerCallback) -> "Timer":
        """A timer that re-arms itself after every fire."""
        from timerpool.core.policies import RepeaterPolicy
        from timerpool.core.timer import Timer

        return Timer(interval, callback, policy=RepeaterPolicy(), context=self)

    def multi(
        self,
        interval: Millis,
        repetitions: int,
        callback: TickCallback,
        completion_callback: Optional[TimerCallback] = None,
    ) -> "Timer":
        """A timer that ticks `repetitions` times, then completes and dies."""
        from timerpool.core.policies import MultiPolicy
        from timerpool.core.timer import Timer

        return Timer(interval, callback, policy=MultiPolicy(repetitions, completion_callback), context=self)

    def one_shot(self, interval: Millis, callback: TimerCallback) -> "Timer":
        """A timer that fires once and then kills itself."""
        from timerpool.core.policies import OneShotPolicy
        from timerpool.core.timer import Timer

        return Timer(interval, callback, policy=OneShotPolicy(), context=self)

    def trigger(
        self,
        interval: Millis,
        callback: TimerCallback,
        heartbeat_interval: Millis,
        heartbeat_callback: TimerCallback,
    ) -> "Timer":
        """A one-shot timer that drives a heartbeat repeater until it fires."""
        from timerpool.core.policies import TriggerPolicy
        from timerpool.core.timer import Timer

        return Timer(
            interval,
            callback,
            policy=TriggerPolicy(heartbeat_interval, heartbeat_callback),
            context=self,
        )

    # Pool operations

    def pool_size(self) -> int:
        return len(self._registry)

    def pause_all_timers(self) -> None:
        self._registry.pause_all()

    def restart_all_timers(self) -> None:
        self._registry.restart_all()

    def cancel_all_timers(self) -> None:
        self._registry.cancel_all()

    def kill_all_timers(self) -> None:
        self._registry.kill_all()


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


_default_context: Optional[TimerContext] = None
_default_lock = threading.Lock()


def get_default_context() -> TimerContext:
    """Return the process-wide context, creating it on first use."""
    global _default_context
    with _default_lock:
        if _default_context is None or _default_context.closed:
            _default_context = TimerContext()
        return _default_context


def set_default_context(context: Optional[TimerContext]) -> None:
    """Install `context` as the process-wide context (None forgets it)."""
    global _default_context
    with _default_lock:
        _default_context = context


def init(clock: Optional[ClockSource] = None, config: Optional[ContextConfig] = None) -> TimerContext:
    """
    Replace the process-wide context with a new, started one. Any previous
    default context is closed first.
    """
    global _default_context
    with _default_lock:
        previous, _default_context = _default_context, None
    if previous is not None:
        previous.close()
    context = TimerContext(clock=clock, config=config)
    context.start()
    set_default_context(context)
    return context


def shutdown() -> None:
    """Close and forget the process-wide context, if any."""
    global _default_context
    with _default_lock:
        previous, _default_context = _default_context, None
    if previous is not None:
        previous.close()
