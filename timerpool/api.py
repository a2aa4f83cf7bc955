# timerpool/api.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Module-level timer factories and pool operations.

Every function works on the process-wide default context unless an explicit
`context` is passed.
"""

from __future__ import annotations

from typing import Optional

from timerpool.core.timer import Timer
from timerpool.interfaces.types import Millis, TickCallback, TimerCallback
from timerpool.runtime.context import TimerContext, get_default_context


def _resolve(context: Optional[TimerContext]) -> TimerContext:
    return context if context is not None else get_default_context()


def timer(interval: Millis, callback: TimerCallback, *, context: Optional[TimerContext] = None) -> Timer:
    """Create a timer that fires once and stays registered until killed."""
    return _resolve(context).timer(interval, callback)


def repeater(interval: Millis, callback: TimerCallback, *, context: Optional[TimerContext] = None) -> Timer:
    """Create a timer that fires every `interval` milliseconds until stopped."""
    return _resolve(context).repeater(interval, callback)


def multi(
    interval: Millis,
    repetitions: int,
    callback: TickCallback,
    completion_callback: Optional[TimerCallback] = None,
    *,
    context: Optional[TimerContext] = None,
) -> Timer:
    """
    Create a timer that calls `callback(index, delta, now)` `repetitions`
    times, then `completion_callback(delta, now)` once, then dies.
    """
    return _resolve(context).multi(interval, repetitions, callback, completion_callback)


def one_shot(interval: Millis, callback: TimerCallback, *, context: Optional[TimerContext] = None) -> Timer:
    """Create a timer that fires once and then kills itself."""
    return _resolve(context).one_shot(interval, callback)


def trigger(
    interval: Millis,
    callback: TimerCallback,
    heartbeat_interval: Millis,
    heartbeat_callback: TimerCallback,
    *,
    context: Optional[TimerContext] = None,
) -> Timer:
    """
    Create a one-shot timer firing after `interval`, with a heartbeat calling
    `heartbeat_callback` every `heartbeat_interval` until then.
    """
    return _resolve(context).trigger(interval, callback, heartbeat_interval, heartbeat_callback)


def pool_size(*, context: Optional[TimerContext] = None) -> int:
    """Number of live timers."""
    return _resolve(context).pool_size()


def pause_all_timers(*, context: Optional[TimerContext] = None) -> None:
    _resolve(context).pause_all_timers()


def restart_all_timers(*, context: Optional[TimerContext] = None) -> None:
    _resolve(context).restart_all_timers()


def cancel_all_timers(*, context: Optional[TimerContext] = None) -> None:
    _resolve(context).cancel_all_timers()


def kill_all_timers(*, context: Optional[TimerContext] = None) -> None:
    """Kill every live timer except the ones marked not killable."""
    _resolve(context).kill_all_timers()
