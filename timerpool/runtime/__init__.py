"""
Runtime package: clock sources, the timer registry, the deferred cleanup
queue and the context that owns them.
"""

from .cleanup import CleanupQueue
from .clock import AsyncioClock, ManualClock
from .context import ContextConfig, TimerContext
from .registry import TimerRegistry

__all__ = ["AsyncioClock", "CleanupQueue", "ContextConfig", "ManualClock", "TimerContext", "TimerRegistry"]
