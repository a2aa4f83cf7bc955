# timerpool/core/timer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from timerpool.core.errors import ValidationError
from timerpool.core.policies import TimerPolicy
from timerpool.core.states import TimerKind, TimerState
from timerpool.interfaces.types import Handle, Millis, TimerID

if TYPE_CHECKING:
    from timerpool.runtime.context import TimerContext

logger = logging.getLogger(__name__)


class _FireClosure:
    """
    The zero-argument function handed to the clock source. Works out the time
    elapsed since the previous fire and forwards it to the bound callback.
    """

    __slots__ = ("_timer", "_callback")

    def __init__(self, timer: "Timer", callback: Callable[[Millis, Millis], None]) -> None:
        self._timer: Optional[Timer] = timer
        self._callback: Optional[Callable[[Millis, Millis], None]] = callback

    @property
    def released(self) -> bool:
        return self._timer is None

    def __call__(self) -> None:
        timer, callback = self._timer, self._callback
        if timer is None:
            return
        delta, now = timer._mark_fired()
        callback(delta, now)

    def release(self) -> None:
        self._timer = None
        self._callback = None


class Timer:
    """
    A delayed unit of work scheduled on a context's clock source.

    A timer owns at most one clock handle at a time and moves through
    INIT -> RUNNING <-> PAUSED -> DEAD. What happens when it fires is decided
    by its policy: the base policy fires once and stays registered, other
    policies repeat, count down, or kill the timer after a terminal fire.

    Each timer needs its own policy instance; policies carry per-timer
    progress.
    """

    def __init__(
        self,
        interval: Millis,
        callback: Callable[..., None],
        policy: Optional[TimerPolicy] = None,
        context: Optional["TimerContext"] = None,
    ) -> None:
        """
        Validate, register and arm a timer.

        :param interval: Delay in milliseconds before each fire.
        :param callback: User callback, called as (delta, now) for most
                         policies and (index, delta, now) for multi timers.
        :param policy: Callback wrapping policy. Defaults to TimerPolicy.
        :param context: Owning context. Defaults to the process-wide one.
        :raises ValidationError: If any argument is malformed.
        """
        if context is None:
            from timerpool.runtime.context import get_default_context

            context = get_default_context()
        policy = policy if policy is not None else TimerPolicy()

        validator = context.validator
        validator.validate_interval(interval)
        validator.validate_callback(callback)
        policy.validate(validator)

        self._context = context
        self._policy = policy
        self._state = TimerState.INIT
        self._interval = interval
        self._user_callback: Optional[Callable[..., None]] = None
        self._callback: Optional[Callable[[Millis, Millis], None]] = None
        self._fire_closure: Optional[_FireClosure] = None
        self._handle: Optional[Handle] = None
        self._last_fire_time = context.clock.now()
        self._killable = True
        self._user_state: Dict[str, Any] = {}
        self._id: TimerID = context.register(self)

        try:
            self.set_callback(callback)
            self._arm()
        except Exception:
            # Never leave a half-built timer in the pool
            self._terminate()
            raise

    def __repr__(self) -> str:
        return (
            f"<Timer id={self._id} kind={self.kind.name} state={self._state.name} "
            f"interval={self._interval!r}>"
        )

    @property
    def id(self) -> TimerID:
        return self._id

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def kind(self) -> TimerKind:
        return self._policy.kind

    @property
    def policy(self) -> TimerPolicy:
        return self._policy

    @property
    def context(self) -> "TimerContext":
        return self._context

    @property
    def handle(self) -> Optional[Handle]:
        """The live clock handle, or None while disarmed."""
        return self._handle

    @property
    def last_fire_time(self) -> Millis:
        return self._last_fire_time

    @property
    def user_state(self) -> Dict[str, Any]:
        """Caller-owned key/value bag; never read by the timer itself."""
        return self._user_state

    @user_state.setter
    def user_state(self, value: Dict[str, Any]) -> None:
        if not isinstance(value, dict):
            raise ValidationError(f"Timer user_state must be a dict, got {value!r}.")
        self._user_state = value

    @property
    def killable(self) -> bool:
        return self._killable

    @killable.setter
    def killable(self, value: bool) -> None:
        self._killable = bool(value)
        self._policy.on_killable(self, self._killable)

    @property
    def interval(self) -> Millis:
        return self._interval

    @interval.setter
    def interval(self, value: Millis) -> None:
        """Change the interval. Always disarms; the next restart() uses it."""
        self._context.validator.validate_interval(value)
        self.cancel()
        self._interval = value
        self._fire_closure = None

    @property
    def callback(self) -> Optional[_FireClosure]:
        """The memoized function this timer hands to the clock."""
        if self._callback is None:
            return None
        if self._fire_closure is None:
            self._fire_closure = _FireClosure(self, self._callback)
        return self._fire_closure

    @callback.setter
    def callback(self, callback: Callable[..., None]) -> None:
        self.set_callback(callback)

    @property
    def user_callback(self) -> Optional[Callable[..., None]]:
        return self._user_callback

    def set_callback(self, callback: Callable[..., None]) -> None:
        """
        Bind a new user callback. A running timer is re-armed so the new
        callback gets a full interval.

        :raises ValidationError: If callback is not callable.
        """
        self._context.validator.validate_callback(callback)
        if self._state is TimerState.DEAD:
            logger.debug("Ignoring callback change on dead timer %s", self._id)
            return
        self._user_callback = callback
        self._callback = self._policy.wrap(self, callback)
        self._fire_closure = None
        self._last_fire_time = self._context.clock.now()
        if self.is_running():
            self._arm()

    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    def cancel(self) -> None:
        """
        Disarm without touching the state or the registry. Timers that own
        other timers disarm those too.
        """
        self._disarm()
        self._policy.on_cancel(self)

    def pause(self) -> None:
        """Disarm and mark PAUSED. Elapsed progress is not kept."""
        if self._state is TimerState.DEAD:
            return
        self.cancel()
        self._state = TimerState.PAUSED
        self._policy.on_pause(self)

    def restart(self) -> None:
        """Re-arm with a full interval, unless dead or held by the policy."""
        if self._state is TimerState.DEAD:
            return
        if self._policy.blocks_restart(self):
            logger.debug("Timer %s is in flight, restart ignored", self._id)
            return
        self._arm()
        self._policy.on_restart(self)

    def kill(self) -> None:
        """
        Disarm, unregister and retire the timer. Killing a dead or protected
        timer is a no-op.
        """
        if self._state is TimerState.DEAD:
            return
        if not self._killable:
            logger.debug("Timer %s is protected, kill ignored", self._id)
            return
        self._terminate()

    def _terminate(self) -> None:
        # kill() without the protection check, for timers owned by another timer
        if self._state is TimerState.DEAD:
            return
        closure = self._fire_closure
        self._disarm()
        self._context.unregister(self)
        # The closure may be on the stack right now; release it on a later sweep
        self._context.defer_release(closure)
        self._state = TimerState.DEAD
        self._policy.on_kill(self)
        logger.debug("Killed timer %s", self._id)

    def _disarm(self) -> None:
        if self._handle is not None:
            self._context.clock.cancel(self._handle)
            self._handle = None

    def _arm(self) -> None:
        self._disarm()
        closure = self.callback
        if closure is None:
            return
        clock = self._context.clock
        self._last_fire_time = clock.now()
        self._handle = clock.after(self._interval, closure)
        self._state = TimerState.RUNNING
        logger.debug("Armed timer %s for %s ms", self._id, self._interval)

    def _mark_fired(self) -> Tuple[Millis, Millis]:
        # The handle that just fired is spent
        self._handle = None
        now = self._context.clock.now()
        delta = now - self._last_fire_time
        self._last_fire_time = now
        return delta, now
