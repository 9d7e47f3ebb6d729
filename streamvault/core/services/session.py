"""
Multipart upload session.

An ``UploadSession`` owns the identity of one backend multipart upload and
the ordered record of its acknowledged parts, and drives the session through
``INITIATING -> ACCUMULATING -> FINALIZING -> COMPLETED``, with ``ABORTED``
reachable from every non-terminal state.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from ..domain.upload import CompletedPart, ObjectRef, SessionState, parts_are_contiguous
from ..exceptions import IncompleteUpload, InvalidSessionState, PartOrderError, UploadError
from ..interfaces.storage import IStorageBackend

logger = logging.getLogger(__name__)


class UploadSession:
    """State of one backend multipart upload.

    Parts are recorded only after the backend acknowledged them, so
    ``completed_parts`` never reports a part the backend has not confirmed.
    """

    def __init__(self, backend: IStorageBackend, destination_key: str):
        self._backend = backend
        self._destination_key = destination_key
        self._session_id: Optional[str] = None
        self._state = SessionState.INITIATING
        self._completed_parts: List[CompletedPart] = []
        self._next_part_number = 1
        self._created_at = time.time()
        self._finished_at: Optional[float] = None

    @classmethod
    async def initiate(cls, backend: IStorageBackend, destination_key: str) -> "UploadSession":
        """
        Ask the backend to open a multipart upload.

        Args:
            backend: Storage backend
            destination_key: Key the finished object is stored under

        Returns:
            Session in the ``ACCUMULATING`` state

        Raises:
            UploadError: If the backend refuses to open the upload
        """
        session = cls(backend, destination_key)
        session._session_id = await backend.initiate_upload(destination_key)
        session._state = SessionState.ACCUMULATING
        logger.info(f"Opened multipart upload {session._session_id} for {destination_key}")
        return session

    @property
    def session_id(self) -> str:
        if self._session_id is None:
            raise InvalidSessionState("Session has not been initiated")
        return self._session_id

    @property
    def destination_key(self) -> str:
        return self._destination_key

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def next_part_number(self) -> int:
        return self._next_part_number

    @property
    def completed_parts(self) -> Tuple[CompletedPart, ...]:
        return tuple(self._completed_parts)

    @property
    def bytes_uploaded(self) -> int:
        return sum(part.size for part in self._completed_parts)

    def record_part(self, part_number: int, token: str, size: int = 0) -> CompletedPart:
        """
        Record a part the backend acknowledged.

        Raises:
            InvalidSessionState: If the session is not accumulating
            PartOrderError: If ``part_number`` is not the next expected number
        """
        if self._state is not SessionState.ACCUMULATING:
            raise InvalidSessionState(
                f"Cannot record part {part_number} in state {self._state.value}",
                part_number=part_number
            )
        if part_number != self._next_part_number:
            raise PartOrderError(
                f"Expected part {self._next_part_number}, got {part_number}",
                part_number=part_number
            )
        if not token:
            raise PartOrderError(f"Part {part_number} has no token", part_number=part_number)

        part = CompletedPart(part_number=part_number, token=token, size=size)
        self._completed_parts.append(part)
        self._next_part_number += 1
        return part

    async def complete(self) -> ObjectRef:
        """
        Assemble the object from the recorded parts.

        If the backend call fails the session returns to ``ACCUMULATING``; the
        parts stay valid on the backend, so ``complete()`` may be retried.

        Raises:
            InvalidSessionState: If the session is not accumulating
            IncompleteUpload: If the recorded parts have gaps or are empty
            UploadError: If the backend fails to assemble the object
        """
        if self._state is not SessionState.ACCUMULATING:
            raise InvalidSessionState(f"Cannot complete session in state {self._state.value}")

        if not self._completed_parts or not parts_are_contiguous(self._completed_parts):
            raise IncompleteUpload(
                f"Parts of {self._destination_key} are not contiguous from 1: "
                f"{[part.part_number for part in self._completed_parts]}"
            )

        self._state = SessionState.FINALIZING
        try:
            object_ref = await self._backend.complete_upload(
                self.session_id, self._destination_key, list(self._completed_parts)
            )
        except UploadError:
            self._state = SessionState.ACCUMULATING
            raise

        self._state = SessionState.COMPLETED
        self._finished_at = time.time()
        logger.info(
            f"Completed multipart upload {self._session_id}: {object_ref.key} "
            f"({object_ref.size} bytes in {object_ref.parts} parts)"
        )
        return object_ref

    async def abort(self) -> None:
        """
        Discard the upload on the backend.

        Best effort: backend failures are logged, never raised. Calling
        ``abort()`` on a terminal session does nothing.
        """
        if self._state.is_terminal:
            return

        self._state = SessionState.ABORTED
        self._finished_at = time.time()
        if self._session_id is None:
            return

        try:
            await self._backend.abort_upload(self._session_id, self._destination_key)
            logger.info(f"Aborted multipart upload {self._session_id} for {self._destination_key}")
        except Exception as e:
            logger.warning(f"Failed to abort multipart upload {self._session_id}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self._session_id,
            "destination_key": self._destination_key,
            "state": self._state.value,
            "next_part_number": self._next_part_number,
            "completed_parts": [part.to_dict() for part in self._completed_parts],
            "bytes_uploaded": self.bytes_uploaded,
            "created_at": self._created_at,
            "finished_at": self._finished_at,
        }
