# timerpool/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from enum import Enum, auto


class TimerState(Enum):
    """Lifecycle states of a timer.

    DEAD is terminal: no operation moves a timer out of it.
    """

    INIT = auto()  # Constructed, not yet armed
    RUNNING = auto()  # Armed, or fired and awaiting restart
    PAUSED = auto()  # Disarmed by pause()
    DEAD = auto()  # Killed and removed from the registry


class TimerKind(Enum):
    """Callback wrapping policy a timer was created with."""

    TIMER = auto()  # Fire once, stay registered
    REPEATER = auto()  # Re-arm after every fire
    ONE_SHOT = auto()  # Fire once, then kill
    MULTI = auto()  # Fixed number of ticks, then completion
    TRIGGER = auto()  # Heartbeat repeater until a terminal fire
