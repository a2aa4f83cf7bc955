# tests/unit/core/test_timer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from timerpool.core.errors import ClockError, ValidationError
from timerpool.core.states import TimerKind, TimerState


def test_timer_arms_on_creation(context, recorder):
    t = context.timer(10, recorder)
    assert t.state is TimerState.RUNNING
    assert t.is_running()
    assert t.handle is not None
    assert t.kind is TimerKind.TIMER
    assert t.id == 1
    assert context.pool_size() == 1
    assert t in context.registry


def test_ids_are_unique_per_context(context, recorder):
    first = context.timer(10, recorder)
    second = context.timer(10, recorder)
    assert (first.id, second.id) == (1, 2)


def test_timer_fires_once_with_delta_and_now(context, manual_clock, recorder):
    t = context.timer(10, recorder)

    manual_clock.advance(9)
    assert recorder.count == 0

    manual_clock.advance(1)
    assert recorder.calls == [(10.0, 10.0)]
    assert t.last_fire_time == 10.0

    # A plain timer stays registered and RUNNING, but is not re-armed
    manual_clock.advance(100)
    assert recorder.count == 1
    assert t.state is TimerState.RUNNING
    assert t.handle is None
    assert context.pool_size() == 1


def test_restart_after_fire_rearms(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    manual_clock.advance(10)
    t.restart()
    manual_clock.advance(10)
    assert recorder.calls == [(10.0, 10.0), (10.0, 20.0)]


def test_cancel_is_idempotent(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    t.cancel()
    t.cancel()
    assert t.handle is None
    assert t.state is TimerState.RUNNING
    assert context.pool_size() == 1

    manual_clock.advance(20)
    assert recorder.count == 0
    # Only the context's sweep is still scheduled
    assert manual_clock.pending() == 1


def test_pause_then_restart_starts_a_full_interval(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    manual_clock.advance(7)

    t.pause()
    assert t.state is TimerState.PAUSED
    assert t.handle is None
    assert not t.is_running()

    t.restart()
    manual_clock.advance(9)
    assert recorder.count == 0
    manual_clock.advance(1)
    assert recorder.calls == [(10.0, 17.0)]


def test_restart_while_running_replaces_the_handle(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    manual_clock.advance(5)
    old_handle = t.handle
    t.restart()
    assert t.handle is not old_handle
    assert manual_clock.pending() == 2

    manual_clock.advance(5)
    assert recorder.count == 0
    manual_clock.advance(5)
    assert recorder.count == 1


def test_kill_unregisters_and_defers_release(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    closure = t.callback

    t.kill()
    assert t.state is TimerState.DEAD
    assert t.handle is None
    assert t not in context.registry
    assert context.pool_size() == 0
    assert len(context.cleanup) == 1
    assert not closure.released

    manual_clock.advance(20)
    assert recorder.count == 0


def test_kill_is_idempotent(context, recorder):
    t = context.timer(10, recorder)
    context.timer(10, recorder)
    t.kill()
    t.kill()
    assert context.pool_size() == 1
    assert len(context.cleanup) == 1


def test_protected_timer_ignores_kill(context, recorder):
    t = context.timer(10, recorder)
    t.killable = False
    assert t.killable is False

    t.kill()
    assert t.state is TimerState.RUNNING
    assert context.pool_size() == 1

    t.killable = True
    t.kill()
    assert t.state is TimerState.DEAD


def test_dead_timer_cannot_be_revived(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    t.kill()

    t.restart()
    assert t.state is TimerState.DEAD
    t.pause()
    assert t.state is TimerState.DEAD
    assert t.handle is None

    manual_clock.advance(50)
    assert recorder.count == 0


def test_dead_timer_ignores_new_callback(context, recorder, recorder_factory):
    t = context.timer(10, recorder)
    t.kill()
    t.callback = recorder_factory()
    assert t.user_callback is recorder


def test_interval_change_disarms_without_rearming(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    t.interval = 20
    assert t.interval == 20
    assert t.handle is None
    assert t.state is TimerState.RUNNING

    manual_clock.advance(30)
    assert recorder.count == 0

    t.restart()
    manual_clock.advance(19)
    assert recorder.count == 0
    manual_clock.advance(1)
    assert recorder.calls == [(20.0, 50.0)]


def test_invalid_interval_change_leaves_timer_armed(context, recorder):
    t = context.timer(10, recorder)
    with pytest.raises(ValidationError):
        t.interval = -1
    assert t.interval == 10
    assert t.handle is not None


def test_new_callback_on_running_timer_gets_fresh_interval(context, manual_clock, recorder_factory):
    first, second = recorder_factory(), recorder_factory()
    t = context.timer(10, first)
    manual_clock.advance(5)

    t.callback = second
    assert t.user_callback is second
    manual_clock.advance(9)
    assert second.count == 0

    manual_clock.advance(1)
    assert first.count == 0
    assert second.calls == [(10.0, 15.0)]


def test_new_callback_on_paused_timer_does_not_arm(context, recorder, recorder_factory):
    t = context.timer(10, recorder)
    t.pause()
    t.set_callback(recorder_factory())
    assert t.state is TimerState.PAUSED
    assert t.handle is None


def test_set_callback_rejects_non_callable(context, recorder):
    t = context.timer(10, recorder)
    with pytest.raises(ValidationError):
        t.set_callback("nope")
    assert t.user_callback is recorder


def test_callback_closure_is_memoized(context, recorder):
    t = context.timer(10, recorder)
    closure = t.callback
    assert t.callback is closure

    t.interval = 5
    assert t.callback is not closure

    rebound = t.callback
    t.callback = recorder
    assert t.callback is not rebound


def test_user_state_bag(context, recorder):
    t = context.timer(10, recorder)
    assert t.user_state == {}

    t.user_state["owner"] = "scheduler"
    assert t.user_state["owner"] == "scheduler"

    t.user_state = {"retries": 3}
    assert t.user_state == {"retries": 3}

    with pytest.raises(ValidationError):
        t.user_state = ["not", "a", "dict"]


def test_construction_validates_before_registering(context, recorder):
    with pytest.raises(ValidationError):
        context.timer(-1, recorder)
    with pytest.raises(ValidationError):
        context.timer(10, None)
    with pytest.raises(ValidationError):
        context.timer("10", recorder)
    assert context.pool_size() == 0


def test_callback_exception_propagates(context, manual_clock, recorder_factory):
    failing = recorder_factory(raises=RuntimeError("boom"))
    t = context.timer(10, failing)

    with pytest.raises(RuntimeError, match="boom"):
        manual_clock.advance(10)

    assert failing.count == 1
    assert t.handle is None
    assert t.state is TimerState.RUNNING


def test_killed_closure_released_on_sweep(context, manual_clock, recorder):
    t = context.timer(10, recorder)
    closure = t.callback
    t.kill()

    manual_clock.advance(499)
    assert not closure.released
    manual_clock.advance(1)
    assert closure.released
    assert len(context.cleanup) == 0

    # A released closure is inert
    closure()
    assert recorder.count == 0


def test_repr(context, recorder):
    t = context.timer(10, recorder)
    assert repr(t) == "<Timer id=1 kind=TIMER state=RUNNING interval=10>"


@pytest.mark.parametrize("factory", ["timer", "repeater", "one_shot", "trigger"])
def test_failed_arm_leaves_no_timer_behind(context, manual_clock, recorder, factory):
    manual_clock.after = MagicMock(side_effect=ClockError("no loop"))
    args = (50, recorder, 10, recorder) if factory == "trigger" else (10, recorder)

    with pytest.raises(ClockError):
        getattr(context, factory)(*args)
    assert context.pool_size() == 0
