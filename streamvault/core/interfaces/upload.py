"""
Upload service interfaces.

This module defines the contract between the inbound stream source and the
upload core, and the service surface exposed to request handlers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..domain.upload import CoordinatorState, ObjectRef
from .lifecycle import IComponent


class IStreamSink(ABC):
    """Receiver of the event sequence produced by a stream source.

    A source delivers ``on_part_begin``, zero or more ``on_chunk`` calls in
    order, then ``on_part_end``/``on_stream_end``, or ``on_stream_error`` at
    any point. Every call is awaited before the next one is made.
    """

    async def on_part_begin(self, name: Optional[str]) -> None:
        """Called when the source starts delivering a named part."""
        pass

    @abstractmethod
    async def on_chunk(self, data: bytes) -> None:
        """Accept the next chunk of bytes."""
        pass

    async def on_part_end(self) -> Optional[ObjectRef]:
        """Called when the current part is fully delivered."""
        return await self.on_stream_end()

    @abstractmethod
    async def on_stream_end(self) -> ObjectRef:
        """Finalize after the last chunk."""
        pass

    @abstractmethod
    async def on_stream_error(self, error: BaseException) -> None:
        """Tear down after the source failed."""
        pass


class IUploadCoordinator(IStreamSink):
    """Interface of a per-upload coordinator."""

    @property
    @abstractmethod
    def upload_id(self) -> str:
        pass

    @property
    @abstractmethod
    def state(self) -> CoordinatorState:
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Get a serializable snapshot of the upload."""
        pass


class IUploadService(IComponent):
    """
    Interface for the upload service.

    Issues destination keys, creates one coordinator per upload, and keeps
    track of uploads for reporting.
    """

    @abstractmethod
    async def start_upload(self, destination_key_hint: Optional[str] = None) -> IUploadCoordinator:
        """
        Open a new multipart upload session.

        Args:
            destination_key_hint: Client-supplied name, usually the file name

        Returns:
            Coordinator ready to receive chunks

        Raises:
            UploadError: If the backend refuses to open the session
        """
        pass

    @abstractmethod
    def get_upload(self, upload_id: str) -> Optional[IUploadCoordinator]:
        """Get a tracked upload by id."""
        pass

    @abstractmethod
    def list_uploads(self, state: Optional[CoordinatorState] = None) -> List[IUploadCoordinator]:
        """List tracked uploads with optional state filtering."""
        pass

    @abstractmethod
    def get_upload_statistics(self) -> Dict[str, Any]:
        """Get upload statistics."""
        pass
