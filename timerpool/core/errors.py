# timerpool/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class TimerError(Exception):
    """
    Base exception class for errors raised by the timer library.
    """


class ValidationError(TimerError):
    """
    Raised when a timer, policy or context is constructed or updated with
    malformed arguments (negative interval, non-callable callback, ...).
    """


class ContextError(TimerError):
    """
    Raised when a timer is registered against a context that has been closed.
    """


class ClockError(TimerError):
    """
    Raised when the clock source is unable to schedule a callback, for example
    when no asyncio event loop is running.
    """
