"""
Core module containing the upload engine, domain models, and service interfaces.

This module is independent of the web framework and of any particular
storage service.
"""

from .domain.events import Event, EventPriority, UploadEvents
from .domain.upload import CompletedPart, CoordinatorState, ObjectRef, SessionState
from .interfaces.lifecycle import IComponent, IHealthCheckable, IStartable, IStoppable
from .interfaces.messaging import IEventBus
from .interfaces.storage import IStorageBackend
from .services.coordinator import UploadCoordinator
from .services.session import UploadSession

__all__ = [
    "CompletedPart",
    "CoordinatorState",
    "Event",
    "EventPriority",
    "IComponent",
    "IEventBus",
    "IHealthCheckable",
    "IStartable",
    "IStoppable",
    "IStorageBackend",
    "ObjectRef",
    "SessionState",
    "UploadCoordinator",
    "UploadEvents",
    "UploadSession",
]
