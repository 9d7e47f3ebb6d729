"""
Core service implementations.

This module contains the upload engine and the event bus that implement the
interfaces defined in the core.interfaces module.
"""

from .coordinator import UploadCoordinator
from .event_bus import EventBus
from .part_buffer import PartBuffer
from .part_uploader import PartUploader
from .session import UploadSession

__all__ = [
    "EventBus",
    "PartBuffer",
    "PartUploader",
    "UploadCoordinator",
    "UploadSession",
]
