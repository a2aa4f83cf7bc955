# timerpool/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Callable

TimerID = int
Millis = float
Handle = Any

# Callback Types
TimerCallback = Callable[[Millis, Millis], None]
TickCallback = Callable[[int, Millis, Millis], None]
ScheduledFunc = Callable[[], None]
