# timerpool/runtime/cleanup.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Deque, Optional

from timerpool.interfaces.protocols import Releasable

logger = logging.getLogger(__name__)


class _CleanupQueueLock:
    """
    Internal context manager ensuring thread-safe access to the cleanup queue.
    """

    def __init__(self, lock: threading.RLock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._lock.release()


class CleanupQueue:
    """
    FIFO buffer of dead callback closures awaiting release.

    A terminating callback may still be running when it kills its own timer,
    so its closure is parked here and released on a later sweep instead of
    being torn down underneath the running frame.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._queue: Deque[Any] = deque()

    def enqueue(self, closure: Optional[Any]) -> None:
        """
        Park a closure for release on the next drain. None is ignored.

        :param closure: The closure to release later.
        """
        if closure is None:
            return
        with _CleanupQueueLock(self._lock):
            self._queue.append(closure)

    def drain(self) -> int:
        """
        Release every queued closure, oldest first.

        :return: Number of closures released.
        """
        released = 0
        while True:
            with _CleanupQueueLock(self._lock):
                if not self._queue:
                    break
                closure = self._queue.popleft()
            # Release outside the lock; release() never re-enters the queue
            if isinstance(closure, Releasable):
                closure.release()
            released += 1
        if released:
            logger.debug("Released %d deferred closure(s)", released)
        return released

    def clear(self) -> None:
        """
        Drop every queued closure without releasing it.
        """
        with _CleanupQueueLock(self._lock):
            self._queue.clear()

    def __len__(self) -> int:
        with _CleanupQueueLock(self._lock):
            return len(self._queue)
