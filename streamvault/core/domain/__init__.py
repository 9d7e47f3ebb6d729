"""
Domain models representing the core entities and value objects.

This module contains pure domain models without external dependencies.
"""

from .events import Event, EventPriority, UploadEvents
from .upload import (
    DEFAULT_MIN_PART_SIZE, MIB, CompletedPart, CoordinatorState, ObjectRef, SessionState
)

__all__ = [
    "DEFAULT_MIN_PART_SIZE",
    "MIB",
    "CompletedPart",
    "CoordinatorState",
    "Event",
    "EventPriority",
    "ObjectRef",
    "SessionState",
    "UploadEvents",
]
