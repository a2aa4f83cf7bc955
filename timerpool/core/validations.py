# timerpool/core/validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import math
from typing import Any

from timerpool.core.errors import ValidationError


class Validator:
    """
    Performs construction-time validation of timer arguments so malformed
    input fails fast instead of being coerced.
    """

    def __init__(self) -> None:
        self._rules = _DefaultValidationRules

    def validate_interval(self, interval: Any, name: str = "interval") -> None:
        """
        Check that an interval is a finite, non-negative number of milliseconds.

        :param interval: The value to validate.
        :param name: Argument name used in the error message.
        :raises ValidationError: If validation fails.
        """
        self._rules.validate_interval(interval, name)

    def validate_callback(self, callback: Any, name: str = "callback", optional: bool = False) -> None:
        """
        Check that a callback is callable (or None when optional).

        :raises ValidationError: If validation fails.
        """
        if optional and callback is None:
            return
        self._rules.validate_callback(callback, name)

    def validate_repetitions(self, repetitions: Any) -> None:
        """
        Check that a repetition count is a non-negative integer.

        :raises ValidationError: If validation fails.
        """
        self._rules.validate_repetitions(repetitions)


class _DefaultValidationRules:
    """
    Built-in rules shared by every Validator.
    """

    @staticmethod
    def validate_interval(interval: Any, name: str) -> None:
        # bool is an int subclass; True is not a duration
        if isinstance(interval, bool) or not isinstance(interval, (int, float)):
            raise ValidationError(f"Timer {name} must be a number of milliseconds, got {interval!r}.")
        if not math.isfinite(interval):
            raise ValidationError(f"Timer {name} must be finite, got {interval!r}.")
        if interval < 0:
            raise ValidationError(f"Timer {name} must be non-negative, got {interval!r}.")

    @staticmethod
    def validate_callback(callback: Any, name: str) -> None:
        if not callable(callback):
            raise ValidationError(f"Timer {name} must be callable, got {callback!r}.")

    @staticmethod
    def validate_repetitions(repetitions: Any) -> None:
        if isinstance(repetitions, bool) or not isinstance(repetitions, int):
            raise ValidationError(f"Repetitions must be an integer, got {repetitions!r}.")
        if repetitions < 0:
            raise ValidationError(f"Repetitions must be non-negative, got {repetitions!r}.")
