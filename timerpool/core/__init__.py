"""
Core package: the timer state machine, its wrap policies, lifecycle enums,
argument validation and the error hierarchy.
"""
