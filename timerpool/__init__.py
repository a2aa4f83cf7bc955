"""timerpool: delayed and repeating timers on a single-threaded event loop

This package wraps a clock source (an asyncio loop by default) so callers can
register timers without managing raw scheduling handles.

Responsibilities:
    - Timer lifecycle (INIT, RUNNING, PAUSED, DEAD)
    - Timer variants: plain, repeater, one-shot, multi, trigger
    - Process-wide pool with bulk pause/restart/cancel/kill
    - Deferred release of dead callback closures

Cross-cutting Concerns:
    Thread Safety:
        - Timers assume the clock's single dispatch thread
        - Registry and cleanup queue mutation is locked

    Error Handling:
        - Malformed arguments raise ValidationError at construction
        - Invalid-state operations are no-ops
        - User callback exceptions are never swallowed

    Logging:
        - Module loggers under "timerpool", silent unless configured
"""

import logging

from timerpool.api import (
    cancel_all_timers,
    kill_all_timers,
    multi,
    one_shot,
    pause_all_timers,
    pool_size,
    repeater,
    restart_all_timers,
    timer,
    trigger,
)
from timerpool.core.errors import ClockError, ContextError, TimerError, ValidationError
from timerpool.core.policies import MultiPolicy, OneShotPolicy, RepeaterPolicy, TimerPolicy, TriggerPolicy
from timerpool.core.states import TimerKind, TimerState
from timerpool.core.timer import Timer
from timerpool.runtime.clock import AsyncioClock, ManualClock
from timerpool.runtime.context import (
    ContextConfig,
    TimerContext,
    get_default_context,
    init,
    set_default_context,
    shutdown,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AsyncioClock",
    "ClockError",
    "ContextConfig",
    "ContextError",
    "ManualClock",
    "MultiPolicy",
    "OneShotPolicy",
    "RepeaterPolicy",
    "Timer",
    "TimerContext",
    "TimerError",
    "TimerKind",
    "TimerPolicy",
    "TimerState",
    "TriggerPolicy",
    "ValidationError",
    "cancel_all_timers",
    "get_default_context",
    "init",
    "kill_all_timers",
    "multi",
    "one_shot",
    "pause_all_timers",
    "pool_size",
    "repeater",
    "restart_all_timers",
    "set_default_context",
    "shutdown",
    "timer",
    "trigger",
]
