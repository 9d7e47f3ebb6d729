"""
Shared fixtures for the StreamVault tests.
"""

from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, Mock

import pytest

from streamvault.core.domain.upload import MIB, CompletedPart, ObjectRef
from streamvault.core.interfaces.messaging import IEventBus
from streamvault.core.services.coordinator import UploadCoordinator
from streamvault.core.services.part_uploader import PartUploader
from streamvault.core.services.session import UploadSession
from streamvault.infrastructure.storage.memory import InMemoryStorageBackend


class RecordingBackend(InMemoryStorageBackend):
    """In-memory backend that records every call and can fail on demand."""

    def __init__(self, min_part_size: int = 5 * MIB) -> None:
        super().__init__(min_part_size=min_part_size)
        self.calls: List[Tuple[Any, ...]] = []
        self.part_bodies: Dict[int, bytes] = {}
        self.fail_initiate: Optional[Exception] = None
        self.fail_parts: Dict[int, List[Exception]] = {}
        self.fail_complete: List[Exception] = []
        self.fail_abort: Optional[Exception] = None

    async def initiate_upload(self, key: str) -> str:
        self.calls.append(("initiate", key))
        if self.fail_initiate is not None:
            raise self.fail_initiate
        return await super().initiate_upload(key)

    async def upload_part(self, session_id: str, key: str,
                          part_number: int, body: bytes) -> str:
        self.calls.append(("upload_part", part_number, len(body)))
        errors = self.fail_parts.get(part_number)
        if errors:
            raise errors.pop(0)
        self.part_bodies[part_number] = bytes(body)
        return await super().upload_part(session_id, key, part_number, body)

    async def complete_upload(self, session_id: str, key: str,
                              parts: List[CompletedPart]) -> ObjectRef:
        self.calls.append(("complete", [part.part_number for part in parts]))
        if self.fail_complete:
            raise self.fail_complete.pop(0)
        return await super().complete_upload(session_id, key, parts)

    async def abort_upload(self, session_id: str, key: str) -> None:
        self.calls.append(("abort", session_id))
        if self.fail_abort is not None:
            raise self.fail_abort
        await super().abort_upload(session_id, key)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def part_sizes(self) -> List[int]:
        return [call[2] for call in self.calls if call[0] == "upload_part"]


@pytest.fixture
def backend() -> RecordingBackend:
    """Backend enforcing the real 5 MiB minimum part size."""
    return RecordingBackend()


@pytest.fixture
def small_backend() -> RecordingBackend:
    """Backend with a 4 byte minimum part size for readable tests."""
    return RecordingBackend(min_part_size=4)


@pytest.fixture
def mock_event_bus() -> Mock:
    """Create a mock event bus."""
    bus = Mock(spec=IEventBus)
    bus.publish = AsyncMock(return_value="event-id")
    bus.subscribe = AsyncMock(return_value="subscription-id")
    bus.unsubscribe = AsyncMock(return_value=True)
    bus.wait_until_idle = AsyncMock()
    return bus


async def make_coordinator(backend: InMemoryStorageBackend, key: str = "uploads/test.bin",
                           event_bus: Optional[IEventBus] = None,
                           max_retries: int = 0) -> UploadCoordinator:
    """Open a session on ``backend`` and wrap it in a coordinator."""
    session = await UploadSession.initiate(backend, key)
    return UploadCoordinator(
        upload_id="upload-1",
        session=session,
        uploader=PartUploader(backend, max_retries=max_retries, retry_backoff=0),
        min_part_size=backend.min_part_size,
        event_bus=event_bus,
        filename="test.bin"
    )


def build_form(boundary: str, files: List[Tuple[str, str, bytes]],
               fields: Optional[Dict[str, str]] = None) -> bytes:
    """Encode a multipart/form-data body."""
    body = b""
    for name, value in (fields or {}).items():
        body += (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n"
        ).encode()
    for name, filename, content in files:
        body += (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
            f"Content-Type: application/octet-stream\r\n\r\n"
        ).encode() + content + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return body
