# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from timerpool.runtime.context import shutdown


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "property: mark test as a property-based test")
    config.addinivalue_line("markers", "realtime: mark test as depending on wall-clock timing")


class Recorder:
    """Callable that records every call it receives."""

    def __init__(self, raises=None):
        self.calls = []
        self._raises = raises

    def __call__(self, *args):
        self.calls.append(args)
        if self._raises is not None:
            raise self._raises

    @property
    def count(self):
        return len(self.calls)


@pytest.fixture
def manual_clock():
    """A deterministic clock starting at t=0."""
    from timerpool.runtime.clock import ManualClock

    return ManualClock()


@pytest.fixture
def context(manual_clock):
    """A started timer context driven by the manual clock."""
    from timerpool.runtime.context import TimerContext

    ctx = TimerContext(clock=manual_clock)
    ctx.start()
    yield ctx
    ctx.close()


@pytest.fixture
def recorder():
    """A fresh call recorder."""
    return Recorder()


@pytest.fixture
def recorder_factory():
    """Returns a factory for call recorders, optionally raising on every call."""

    def _factory(raises=None):
        return Recorder(raises=raises)

    return _factory


@pytest.fixture
def error_classes():
    """Provides a tuple of error classes for quick reference."""
    from timerpool.core.errors import ClockError, ContextError, TimerError, ValidationError

    return (TimerError, ValidationError, ContextError, ClockError)


@pytest.fixture(autouse=True)
def reset_default_context():
    yield
    # Never leak the process-wide context between tests
    shutdown()
