# timerpool/core/policies.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from timerpool.core.states import TimerKind, TimerState
from timerpool.interfaces.types import Millis, TickCallback, TimerCallback

if TYPE_CHECKING:
    from timerpool.core.timer import Timer
    from timerpool.core.validations import Validator


class _BoundCallback:
    """
    Callable binding a user callback to the timer it drives. Released
    closures drop their references and ignore further calls.
    """

    def __init__(self, timer: "Timer", callback: Callable[..., None]) -> None:
        self.timer: Optional[Timer] = timer
        self.callback: Optional[Callable[..., None]] = callback

    @property
    def released(self) -> bool:
        return self.timer is None

    def __call__(self, delta: Millis, now: Millis) -> None:
        if self.timer is None:
            return
        self._fire(delta, now)

    def _fire(self, delta: Millis, now: Millis) -> None:
        self.callback(delta, now)

    def release(self) -> None:
        self.timer = None
        self.callback = None


def _rearm_if_idle(timer: "Timer") -> None:
    # A callback that paused, killed or re-armed its own timer keeps that decision
    if timer.state is TimerState.RUNNING and timer.handle is None:
        timer.restart()


def _finish(timer: "Timer", closure: _BoundCallback) -> None:
    timer.kill()
    if timer.state is TimerState.DEAD:
        timer.context.defer_release(closure)


class TimerPolicy:
    """
    Strategy deciding how a timer wraps its callback and reacts to lifecycle
    changes. The base policy calls the user callback and leaves the timer
    registered, waiting for an explicit restart().
    """

    kind = TimerKind.TIMER

    def validate(self, validator: "Validator") -> None:
        """Check policy-specific arguments before the timer registers."""

    def wrap(self, timer: "Timer", callback: Callable[..., None]) -> _BoundCallback:
        return _BoundCallback(timer, callback)

    def blocks_restart(self, timer: "Timer") -> bool:
        return False

    def on_cancel(self, timer: "Timer") -> None:
        pass

    def on_pause(self, timer: "Timer") -> None:
        pass

    def on_restart(self, timer: "Timer") -> None:
        pass

    def on_kill(self, timer: "Timer") -> None:
        pass

    def on_killable(self, timer: "Timer", killable: bool) -> None:
        pass


class _RepeaterTick(_BoundCallback):
    def _fire(self, delta: Millis, now: Millis) -> None:
        timer = self.timer
        try:
            self.callback(delta, now)
        finally:
            _rearm_if_idle(timer)


class RepeaterPolicy(TimerPolicy):
    """
    Re-arms after every fire. Each tick is a fresh one-shot schedule, so a
    slow callback delays the next tick instead of causing catch-up fires.
    """

    kind = TimerKind.REPEATER

    def wrap(self, timer: "Timer", callback: TimerCallback) -> _BoundCallback:
        return _RepeaterTick(timer, callback)


class _OneShotFire(_BoundCallback):
    def __init__(self, timer: "Timer", callback: TimerCallback, policy: "OneShotPolicy") -> None:
        super().__init__(timer, callback)
        self.policy: Optional[OneShotPolicy] = policy

    def _fire(self, delta: Millis, now: Millis) -> None:
        timer, policy = self.timer, self.policy
        if policy.fired:
            return
        policy.fired = True
        try:
            self.callback(delta, now)
        finally:
            _finish(timer, self)

    def release(self) -> None:
        super().release()
        self.policy = None


class OneShotPolicy(TimerPolicy):
    """
    Fires the callback exactly once, then kills the timer. restart() is
    ignored while the timer is armed.
    """

    kind = TimerKind.ONE_SHOT

    def __init__(self) -> None:
        self.fired = False

    def wrap(self, timer: "Timer", callback: TimerCallback) -> _BoundCallback:
        return _OneShotFire(timer, callback, self)

    def blocks_restart(self, timer: "Timer") -> bool:
        return timer.state is TimerState.RUNNING and timer.handle is not None


class _MultiTick(_BoundCallback):
    def __init__(self, timer: "Timer", callback: TickCallback, policy: "MultiPolicy") -> None:
        super().__init__(timer, callback)
        self.policy: Optional[MultiPolicy] = policy

    def _fire(self, delta: Millis, now: Millis) -> None:
        timer, policy = self.timer, self.policy
        if policy.remaining > 0:
            policy.remaining -= 1
            index = policy.count
            policy.count += 1
            try:
                self.callback(index, delta, now)
            finally:
                _rearm_if_idle(timer)
        elif not policy.completed:
            policy.completed = True
            try:
                if policy.completion is not None:
                    policy.completion(delta, now)
            finally:
                _finish(timer, self)

    def release(self) -> None:
        super().release()
        self.policy = None


class MultiPolicy(TimerPolicy):
    """
    Ticks a fixed number of times, passing the tick index to the callback,
    then runs the completion callback once and kills the timer.

    Progress lives on the policy, so rebinding the tick callback does not
    restart the count.
    """

    kind = TimerKind.MULTI

    def __init__(self, repetitions: int, completion: Optional[TimerCallback] = None) -> None:
        self.repetitions = repetitions
        self.remaining = repetitions
        self.count = 0
        self.completion = completion
        self.completed = False

    def validate(self, validator: "Validator") -> None:
        validator.validate_repetitions(self.repetitions)
        validator.validate_callback(self.completion, "completion callback", optional=True)

    def wrap(self, timer: "Timer", callback: TickCallback) -> _BoundCallback:
        return _MultiTick(timer, callback, self)


class _TriggerFire(_BoundCallback):
    def __init__(self, timer: "Timer", callback: TimerCallback, policy: "TriggerPolicy") -> None:
        super().__init__(timer, callback)
        self.policy: Optional[TriggerPolicy] = policy

    def _fire(self, delta: Millis, now: Millis) -> None:
        timer, policy = self.timer, self.policy
        if policy.fired:
            return
        policy.fired = True
        try:
            policy.stop_heartbeat()
            self.callback(delta, now)
        finally:
            _finish(timer, self)

    def release(self) -> None:
        super().release()
        self.policy = None


class TriggerPolicy(TimerPolicy):
    """
    A one-shot that drives a heartbeat repeater until it fires.

    The heartbeat is created and armed whenever the trigger's callback is
    bound, and is owned by the trigger: it follows the trigger's pause,
    restart, kill and killable changes, and is always stopped before the
    terminal callback runs.
    """

    kind = TimerKind.TRIGGER

    def __init__(self, heartbeat_interval: Millis, heartbeat_callback: TimerCallback) -> None:
        self.heartbeat_interval = heartbeat_interval
        self.heartbeat_callback = heartbeat_callback
        self.heartbeat: Optional[Timer] = None
        self.fired = False

    def validate(self, validator: "Validator") -> None:
        validator.validate_interval(self.heartbeat_interval, "heartbeat interval")
        validator.validate_callback(self.heartbeat_callback, "heartbeat callback")

    def wrap(self, timer: "Timer", callback: TimerCallback) -> _BoundCallback:
        from timerpool.core.timer import Timer

        self.stop_heartbeat()
        heartbeat = Timer(
            self.heartbeat_interval,
            self.heartbeat_callback,
            policy=RepeaterPolicy(),
            context=timer.context,
        )
        heartbeat.killable = timer.killable
        if timer.state is TimerState.PAUSED:
            # Ticks only while the trigger itself is armed
            heartbeat.pause()
        self.heartbeat = heartbeat
        return _TriggerFire(timer, callback, self)

    def stop_heartbeat(self) -> None:
        heartbeat, self.heartbeat = self.heartbeat, None
        if heartbeat is not None:
            heartbeat._terminate()

    def blocks_restart(self, timer: "Timer") -> bool:
        return timer.state is TimerState.RUNNING and timer.handle is not None

    def on_cancel(self, timer: "Timer") -> None:
        if self.heartbeat is not None:
            self.heartbeat.cancel()

    def on_pause(self, timer: "Timer") -> None:
        if self.heartbeat is not None:
            self.heartbeat.pause()

    def on_restart(self, timer: "Timer") -> None:
        if self.heartbeat is not None:
            self.heartbeat.restart()

    def on_kill(self, timer: "Timer") -> None:
        self.stop_heartbeat()

    def on_killable(self, timer: "Timer", killable: bool) -> None:
        if self.heartbeat is not None:
            self.heartbeat.killable = killable
