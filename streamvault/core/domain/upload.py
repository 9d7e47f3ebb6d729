"""
Upload domain models.

This module defines the value objects and state enumerations shared by the
upload session, the coordinator, and the storage backends.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


MIB = 1024 * 1024
DEFAULT_MIN_PART_SIZE = 5 * MIB


class SessionState(Enum):
    """Multipart upload session states."""
    INITIATING = "initiating"
    ACCUMULATING = "accumulating"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are possible."""
        return self in (SessionState.COMPLETED, SessionState.ABORTED)


class CoordinatorState(Enum):
    """Lifecycle of one upload coordinator."""
    RECEIVING = "receiving"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if the coordinator accepts no further events."""
        return self in (CoordinatorState.COMPLETED, CoordinatorState.FAILED)


@dataclass(frozen=True)
class CompletedPart:
    """A part acknowledged by the storage backend."""
    part_number: int
    token: str
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "part_number": self.part_number,
            "token": self.token,
            "size": self.size,
        }


@dataclass(frozen=True)
class ObjectRef:
    """Reference to a finished object in storage."""
    key: str
    size: int
    parts: int
    etag: Optional[str] = None
    location: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "size": self.size,
            "parts": self.parts,
            "etag": self.etag,
            "location": self.location,
        }


def parts_are_contiguous(parts: List[CompletedPart]) -> bool:
    """Check that part numbers run 1..n with no gaps or duplicates."""
    return all(part.part_number == index
               for index, part in enumerate(parts, start=1))
