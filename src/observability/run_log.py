"""
Run Log for level-up sessions.

Records step transitions, ledger changes and lifecycle events of every
level-up so a session can be inspected, saved and reloaded after the fact.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    TRANSITION = "transition"  # Level-up step change
    SELECTION = "selection"  # Ledger change (select, resolve, remove, refused)
    CUSTOM = "custom"  # Lifecycle and other events


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # event_type has a default so subclasses can add fields with defaults;
    # each subclass sets its own value in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
        )

    def __str__(self) -> str:
        name = self.context.get("event_name", self.event_type.value)
        return f"[{self.sequence_number}] {name.upper()} {self.context}"


@dataclass
class TransitionEvent(LogEvent):
    """A level-up step change."""

    from_step: str = ""
    to_step: str = ""
    trigger: str = ""

    def __post_init__(self):
        self.event_type = EventType.TRANSITION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "from_step": self.from_step,
                "to_step": self.to_step,
                "trigger": self.trigger,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransitionEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            from_step=data.get("from_step", ""),
            to_step=data.get("to_step", ""),
            trigger=data.get("trigger", ""),
        )

    def __str__(self) -> str:
        return (
            f"[{self.sequence_number}] TRANSITION {self.from_step} -> {self.to_step} "
            f"(trigger: {self.trigger})"
        )


@dataclass
class SelectionEvent(LogEvent):
    """A change to the selection ledger, or a refused selection."""

    action: str = ""  # "select", "pending", "resolve", "remove" or "refused"
    option_id: str = ""
    count: int = 0  # Count after the change
    points_remaining: int = 0
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.event_type = EventType.SELECTION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "action": self.action,
                "option_id": self.option_id,
                "count": self.count,
                "points_remaining": self.points_remaining,
                "details": self.details,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SelectionEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            action=data.get("action", ""),
            option_id=data.get("option_id", ""),
            count=data.get("count", 0),
            points_remaining=data.get("points_remaining", 0),
            details=data.get("details", {}),
        )

    def __str__(self) -> str:
        detail_str = f" {self.details}" if self.details else ""
        return (
            f"[{self.sequence_number}] {self.action.upper()} {self.option_id} "
            f"x{self.count} ({self.points_remaining} left){detail_str}"
        )


_EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.TRANSITION: TransitionEvent,
    EventType.SELECTION: SelectionEvent,
}


class RunLog:
    """
    Central run log for level-up events.

    Singleton pattern - use get_run_log() to access.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        self._subscribers = []
        logger.info("RunLog reset")

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged, until the next reset."""
        self._subscribers.append(callback)

    def _log_event(self, event: LogEvent) -> None:
        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        # A failing subscriber must not break the level-up
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_transition(
        self,
        from_step: str,
        to_step: str,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
    ) -> TransitionEvent:
        """Log a step change."""
        event = TransitionEvent(
            from_step=from_step,
            to_step=to_step,
            trigger=trigger,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_selection(
        self,
        action: str,
        option_id: str,
        count: int,
        points_remaining: int,
        details: Optional[dict[str, Any]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> SelectionEvent:
        """Log a ledger change."""
        event = SelectionEvent(
            action=action,
            option_id=option_id,
            count=count,
            points_remaining=points_remaining,
            details=details or {},
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_custom(
        self,
        event_name: str,
        details: dict[str, Any],
    ) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number

        Returns:
            List of events
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_transitions(self) -> list[TransitionEvent]:
        """Get all transition events."""
        return [e for e in self._events if isinstance(e, TransitionEvent)]

    def get_selections(self) -> list[SelectionEvent]:
        """Get all selection events."""
        return [e for e in self._events if isinstance(e, SelectionEvent)]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        return {
            "session_start": self._session_start.isoformat(),
            "total_events": len(self._events),
            "transitions": len(self.get_transitions()),
            "selections": len(self.get_selections()),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize the log to JSON."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file, replacing the current contents."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = get_run_log()
        log.reset()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._sequence = data.get("sequence", 0)

        for event_data in data.get("events", []):
            event_class = _EVENT_CLASSES.get(EventType(event_data["event_type"]), LogEvent)
            log._events.append(event_class.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Format the log as a human-readable string.

        Args:
            event_types: Filter by event types (None = all)
            max_events: Maximum number of events to include

        Returns:
            Formatted log string
        """
        lines = [
            "=== Level-Up Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
