"""
Event domain models for the event-driven architecture.

Upload lifecycle changes are announced as events so that side concerns such
as the audit log stay decoupled from the upload core.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional


class EventPriority(IntEnum):
    """Event priority levels for processing order."""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


@dataclass(frozen=True)
class Event:
    """
    Immutable event representing something that happened in the system.
    """

    name: str
    """Event name/type identifier."""

    data: Any = None
    """Event payload data."""

    priority: EventPriority = EventPriority.NORMAL
    """Event processing priority."""

    timestamp: float = field(default_factory=time.time)
    """Unix timestamp when event was created."""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    """Unique event identifier."""

    source: Optional[str] = None
    """Component that generated the event."""

    correlation_id: Optional[str] = None
    """ID for correlating related events, usually the upload id."""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Event name cannot be empty")

        if not isinstance(self.priority, EventPriority):
            raise ValueError("Priority must be an EventPriority enum value")

    def __lt__(self, other: 'Event') -> bool:
        """
        Compare events for priority queue ordering.

        Higher priority events come first, then by timestamp (FIFO).
        """
        if not isinstance(other, Event):
            return NotImplemented

        if self.priority.value != other.priority.value:
            return self.priority.value > other.priority.value

        return self.timestamp < other.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'data': self.data,
            'priority': self.priority.name,
            'timestamp': self.timestamp,
            'event_id': self.event_id,
            'source': self.source,
            'correlation_id': self.correlation_id,
        }


class UploadEvents:
    """Names of upload lifecycle events."""

    STARTED = "upload.started"
    PART_UPLOADED = "upload.part_uploaded"
    COMPLETED = "upload.completed"
    ABORTED = "upload.aborted"
    FAILED = "upload.failed"
