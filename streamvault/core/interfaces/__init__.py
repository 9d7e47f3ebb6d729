"""
Core interfaces defining the contracts for all major system components.

These interfaces provide the foundation for dependency inversion and enable
loose coupling between components.
"""

from .lifecycle import IComponent, IHealthCheckable, IStartable, IStoppable
from .messaging import IEventBus
from .storage import IStorageBackend
from .upload import IStreamSink, IUploadCoordinator, IUploadService

__all__ = [
    "IComponent",
    "IEventBus",
    "IHealthCheckable",
    "IStartable",
    "IStoppable",
    "IStorageBackend",
    "IStreamSink",
    "IUploadCoordinator",
    "IUploadService",
]
