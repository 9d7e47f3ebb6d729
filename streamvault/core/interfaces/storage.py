"""
Storage backend interface.

Any object store that offers a begin/append/complete multipart protocol with
a minimum part size can back the upload core. These four operations and the
minimum part size are the entire contract the core depends on.
"""

from abc import abstractmethod
from typing import List

from ..domain.upload import CompletedPart, ObjectRef
from .lifecycle import IComponent


class IStorageBackend(IComponent):
    """Interface for multipart object storage backends.

    Implementations must be safe for concurrent use by independent uploads.
    Failures are reported as ``UploadError`` subclasses.
    """

    @property
    @abstractmethod
    def min_part_size(self) -> int:
        """Minimum size in bytes of every part except the last."""
        pass

    @abstractmethod
    async def initiate_upload(self, key: str) -> str:
        """
        Open a multipart upload for ``key``.

        Returns:
            Backend-issued session identifier

        Raises:
            BackendUnavailable: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def upload_part(self, session_id: str, key: str,
                          part_number: int, body: bytes) -> str:
        """
        Upload one numbered part.

        Returns:
            Token (ETag) acknowledging the part

        Raises:
            BackendUnavailable: On network or service errors
            PartTooSmall: If the backend rejects the part size
            SessionExpired: If the session is unknown to the backend
        """
        pass

    @abstractmethod
    async def complete_upload(self, session_id: str, key: str,
                              parts: List[CompletedPart]) -> ObjectRef:
        """
        Assemble the object from the ordered list of acknowledged parts.

        Raises:
            BackendUnavailable: On network or service errors
            PartTooSmall: If a non-final part is under the minimum size
            SessionExpired: If the session is unknown to the backend
        """
        pass

    @abstractmethod
    async def abort_upload(self, session_id: str, key: str) -> None:
        """Discard all uploaded parts of the session."""
        pass
