"""
In-memory multipart storage backend.

Enforces the same rules as S3 multipart uploads: parts must be completed in
ascending order with matching ETags, every part except the last must reach
the minimum part size, and completion with an empty part list is rejected.
Used for development and tests.
"""

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ...core.domain.upload import DEFAULT_MIN_PART_SIZE, CompletedPart, ObjectRef
from ...core.exceptions import IncompleteUpload, PartTooSmall, SessionExpired
from ...core.interfaces.storage import IStorageBackend

logger = logging.getLogger(__name__)


@dataclass
class _PendingUpload:
    key: str
    parts: Dict[int, Tuple[str, bytes]] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)


class InMemoryStorageBackend(IStorageBackend):
    """Multipart storage held in process memory."""

    def __init__(self, min_part_size: int = DEFAULT_MIN_PART_SIZE) -> None:
        self._min_part_size = min_part_size
        self._uploads: Dict[str, _PendingUpload] = {}
        self._objects: Dict[str, bytes] = {}
        self._etags: Dict[str, str] = {}
        self._running = False
        self._stats = {
            "uploads_initiated": 0,
            "parts_uploaded": 0,
            "uploads_completed": 0,
            "uploads_aborted": 0,
        }

    @property
    def name(self) -> str:
        return "InMemoryStorageBackend"

    @property
    def min_part_size(self) -> int:
        return self._min_part_size

    async def start(self) -> None:
        self._running = True
        logger.info(f"In-memory storage ready (min part size {self._min_part_size} bytes)")

    async def stop(self) -> None:
        self._running = False
        if self._uploads:
            logger.warning(f"Discarding {len(self._uploads)} unfinished multipart uploads")
        self._uploads.clear()

    async def check_health(self) -> Dict[str, Any]:
        return {
            "healthy": True,
            "status": "running" if self._running else "stopped",
            "details": {
                "objects": len(self._objects),
                "pending_uploads": len(self._uploads),
                **self._stats,
            }
        }

    async def initiate_upload(self, key: str) -> str:
        session_id = uuid.uuid4().hex
        self._uploads[session_id] = _PendingUpload(key=key)
        self._stats["uploads_initiated"] += 1
        return session_id

    async def upload_part(self, session_id: str, key: str,
                          part_number: int, body: bytes) -> str:
        upload = self._get_upload(session_id, key)
        etag = f'"{hashlib.md5(body).hexdigest()}"'
        # Re-uploading a part number replaces it, as S3 does
        upload.parts[part_number] = (etag, bytes(body))
        self._stats["parts_uploaded"] += 1
        return etag

    async def complete_upload(self, session_id: str, key: str,
                              parts: List[CompletedPart]) -> ObjectRef:
        upload = self._get_upload(session_id, key)

        if not parts:
            raise IncompleteUpload(f"Upload {session_id} has no parts to complete")

        chunks: List[bytes] = []
        previous = 0
        for index, part in enumerate(parts):
            if part.part_number <= previous:
                raise IncompleteUpload(
                    f"Parts must be in ascending order, got {part.part_number} after {previous}",
                    part_number=part.part_number
                )
            previous = part.part_number

            stored = upload.parts.get(part.part_number)
            if stored is None or stored[0] != part.token:
                raise IncompleteUpload(
                    f"Part {part.part_number} was not uploaded or its token does not match",
                    part_number=part.part_number
                )

            is_last = index == len(parts) - 1
            if not is_last and len(stored[1]) < self._min_part_size:
                raise PartTooSmall(
                    f"Part {part.part_number} is {len(stored[1])} bytes, "
                    f"minimum is {self._min_part_size}",
                    part_number=part.part_number
                )
            chunks.append(stored[1])

        data = b"".join(chunks)
        digest = hashlib.md5(b"".join(
            bytes.fromhex(upload.parts[p.part_number][0].strip('"')) for p in parts
        )).hexdigest()
        etag = f'"{digest}-{len(parts)}"'

        self._objects[key] = data
        self._etags[key] = etag
        del self._uploads[session_id]
        self._stats["uploads_completed"] += 1

        return ObjectRef(key=key, size=len(data), parts=len(parts), etag=etag,
                         location=f"memory://{key}")

    async def abort_upload(self, session_id: str, key: str) -> None:
        self._get_upload(session_id, key)
        del self._uploads[session_id]
        self._stats["uploads_aborted"] += 1

    def get_object(self, key: str) -> Optional[bytes]:
        """Get the content of a stored object."""
        return self._objects.get(key)

    def list_objects(self) -> List[str]:
        return sorted(self._objects)

    def pending_uploads(self) -> List[str]:
        """Ids of multipart uploads that were neither completed nor aborted."""
        return list(self._uploads)

    def _get_upload(self, session_id: str, key: str) -> _PendingUpload:
        upload = self._uploads.get(session_id)
        if upload is None or upload.key != key:
            raise SessionExpired(f"No such upload: {session_id}")
        return upload
