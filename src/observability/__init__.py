"""
Observability for level-up sessions.

Records step transitions, selections and lifecycle events to a run log that
can be formatted, saved and reloaded.
"""

from src.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    TransitionEvent,
    SelectionEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "TransitionEvent",
    "SelectionEvent",
    "get_run_log",
    "reset_run_log",
]
