# timerpool/runtime/registry.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import itertools
import logging
import threading
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from timerpool.interfaces.types import TimerID

if TYPE_CHECKING:
    from timerpool.core.timer import Timer

logger = logging.getLogger(__name__)


class TimerRegistry:
    """
    The pool of live timers, keyed by id.

    Bulk operations work on a snapshot so timers may unregister themselves
    (for example by being killed) while the walk is in progress.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._timers: Dict[TimerID, "Timer"] = {}
        self._ids = itertools.count(1)

    def add(self, timer: "Timer") -> TimerID:
        """
        Register a timer and hand out its id.

        :param timer: The timer to register.
        :return: The id assigned to the timer.
        """
        with self._lock:
            timer_id = next(self._ids)
            self._timers[timer_id] = timer
        return timer_id

    def remove(self, timer: "Timer") -> bool:
        """
        Unregister a timer. Removing an unknown timer is a no-op.

        :return: True if the timer was registered.
        """
        with self._lock:
            return self._timers.pop(timer.id, None) is not None

    def get(self, timer_id: TimerID) -> Optional["Timer"]:
        with self._lock:
            return self._timers.get(timer_id)

    def snapshot(self) -> List["Timer"]:
        """Live timers at this instant, in registration order."""
        with self._lock:
            return list(self._timers.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._timers)

    def __contains__(self, timer: object) -> bool:
        with self._lock:
            timer_id = getattr(timer, "id", None)
            return self._timers.get(timer_id) is timer

    def __iter__(self) -> Iterator["Timer"]:
        return iter(self.snapshot())

    def pause_all(self) -> None:
        timers = self.snapshot()
        logger.debug("Pausing %d timer(s)", len(timers))
        for timer in timers:
            timer.pause()

    def restart_all(self) -> None:
        timers = self.snapshot()
        logger.debug("Restarting %d timer(s)", len(timers))
        for timer in timers:
            timer.restart()

    def cancel_all(self) -> None:
        timers = self.snapshot()
        logger.debug("Cancelling %d timer(s)", len(timers))
        for timer in timers:
            timer.cancel()

    def kill_all(self) -> None:
        """
        Kill every registered timer except protected ones, which stay
        registered with their state untouched.
        """
        spared = 0
        for timer in self.snapshot():
            if not timer.killable:
                spared += 1
                continue
            timer.kill()
        logger.debug("Killed all timers, %d protected timer(s) spared", spared)
