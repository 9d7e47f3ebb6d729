"""
StreamVault - streams uploaded files into object storage as multipart uploads.

Inbound bytes are buffered until they form a part of at least the backend's
minimum part size, each part is uploaded before more data is accepted, and
the object is assembled once the stream ends.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain.upload import CompletedPart, CoordinatorState, ObjectRef, SessionState
from .core.exceptions import (
    BackendRejected, BackendUnavailable, IncompleteUpload, PartTooSmall, SessionExpired, StreamAborted, UploadError
)
from .core.interfaces.storage import IStorageBackend
from .core.services.coordinator import UploadCoordinator
from .core.services.part_buffer import PartBuffer
from .core.services.part_uploader import PartUploader
from .core.services.session import UploadSession

__all__ = [
    "BackendRejected",
    "BackendUnavailable",
    "CompletedPart",
    "CoordinatorState",
    "IStorageBackend",
    "IncompleteUpload",
    "ObjectRef",
    "PartBuffer",
    "PartTooSmall",
    "PartUploader",
    "SessionExpired",
    "SessionState",
    "StreamAborted",
    "UploadCoordinator",
    "UploadError",
    "UploadSession",
]
