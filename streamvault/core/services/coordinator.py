"""
Upload coordinator.

The coordinator turns a stream of arbitrarily sized chunks into backend parts
of at least ``min_part_size`` bytes. Every part upload is awaited before the
part counter advances or the next chunk is accepted, so the recorded parts
always match what the backend acknowledged and the inbound stream is held
back while a part is in flight.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from ..domain.events import UploadEvents
from ..domain.upload import CoordinatorState, ObjectRef
from ..exceptions import InvalidSessionState, StreamAborted, UploadAborted, UploadError
from ..interfaces.messaging import IEventBus
from ..interfaces.upload import IUploadCoordinator
from .part_buffer import PartBuffer
from .part_uploader import PartUploader
from .session import UploadSession

logger = logging.getLogger(__name__)


class UploadCoordinator(IUploadCoordinator):
    """
    Orchestrates one upload from first chunk to finished object.

    Any failure while uploading a part aborts the backend session exactly
    once and leaves the coordinator in the ``FAILED`` state. A retryable
    failure of the final ``complete()`` call keeps the acknowledged parts so
    the caller may call ``retry_complete()`` or ``abort()``.

    Zero-byte uploads are stored as a single empty part, because S3-style
    backends reject completion with an empty part list.
    """

    def __init__(
        self,
        upload_id: str,
        session: UploadSession,
        uploader: PartUploader,
        min_part_size: int,
        event_bus: Optional[IEventBus] = None,
        filename: Optional[str] = None
    ):
        if min_part_size < 1:
            raise ValueError("min_part_size must be positive")

        self._upload_id = upload_id
        self._session = session
        self._uploader = uploader
        self._min_part_size = min_part_size
        self._event_bus = event_bus
        self._filename = filename

        self._buffer = PartBuffer()
        self._lock = asyncio.Lock()
        self._state = CoordinatorState.RECEIVING
        self._bytes_received = 0
        self._result: Optional[ObjectRef] = None
        self._error: Optional[UploadError] = None
        self._started_at = time.time()
        self._finished_at: Optional[float] = None

    @property
    def upload_id(self) -> str:
        return self._upload_id

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def destination_key(self) -> str:
        return self._session.destination_key

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @property
    def bytes_received(self) -> int:
        return self._bytes_received

    @property
    def buffered_bytes(self) -> int:
        return self._buffer.size()

    @property
    def result(self) -> Optional[ObjectRef]:
        return self._result

    @property
    def error(self) -> Optional[UploadError]:
        return self._error

    async def on_part_begin(self, name: Optional[str]) -> None:
        if name and not self._filename:
            self._filename = name

    async def on_chunk(self, data: bytes) -> None:
        """
        Accept the next chunk and upload a part once enough bytes are buffered.

        Raises:
            UploadAborted: If the coordinator already failed
            InvalidSessionState: If the stream already ended
            UploadError: If the part upload failed; the session is aborted
        """
        async with self._lock:
            self._ensure_receiving()
            if not data:
                return

            self._buffer.append(data)
            self._bytes_received += len(data)

            if self._buffer.size() >= self._min_part_size:
                await self._upload_next_part(self._buffer.drain())

    async def on_stream_end(self) -> ObjectRef:
        """
        Upload the trailing bytes as the final part and complete the session.

        The final part may be smaller than ``min_part_size``.

        Returns:
            Reference to the stored object

        Raises:
            UploadError: If the final part or the completion failed
        """
        async with self._lock:
            self._ensure_receiving()
            self._state = CoordinatorState.FINALIZING

            body = self._buffer.drain()
            if body or self._session.next_part_number == 1:
                await self._upload_next_part(body)

            return await self._complete()

    async def retry_complete(self) -> ObjectRef:
        """
        Retry completion after a retryable ``complete()`` failure.

        Raises:
            InvalidSessionState: If the coordinator is not waiting for completion
        """
        async with self._lock:
            if self._state is not CoordinatorState.FINALIZING:
                raise InvalidSessionState(
                    f"Upload {self._upload_id} is not awaiting completion ({self._state.value})",
                    upload_id=self._upload_id
                )
            return await self._complete()

    async def on_stream_error(self, error: BaseException) -> None:
        """
        Abort after the inbound stream failed. Runs its cleanup at most once.
        """
        if self._state.is_terminal:
            return

        async with self._lock:
            # The upload may have finished while waiting for the lock
            if self._state.is_terminal:
                return
            if isinstance(error, UploadError):
                failure = error
            else:
                failure = StreamAborted(f"Inbound stream failed: {error}")
            await self._fail(failure)

    async def abort(self, reason: str = "Upload abandoned") -> None:
        """Give up on the upload and discard the backend session."""
        if self._state.is_terminal:
            return

        async with self._lock:
            if self._state.is_terminal:
                return
            await self._fail(UploadAborted(reason))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upload_id": self._upload_id,
            "filename": self._filename,
            "destination_key": self.destination_key,
            "state": self._state.value,
            "bytes_received": self._bytes_received,
            "buffered_bytes": self._buffer.size(),
            "parts_uploaded": len(self._session.completed_parts),
            "min_part_size": self._min_part_size,
            "result": self._result.to_dict() if self._result else None,
            "error": self._error.to_dict() if self._error else None,
            "started_at": self._started_at,
            "finished_at": self._finished_at,
        }

    def _ensure_receiving(self) -> None:
        if self._state is CoordinatorState.FAILED:
            raise UploadAborted(
                f"Upload {self._upload_id} already failed", upload_id=self._upload_id
            )
        if self._state is not CoordinatorState.RECEIVING:
            raise InvalidSessionState(
                f"Upload {self._upload_id} no longer accepts data ({self._state.value})",
                upload_id=self._upload_id
            )

    async def _upload_next_part(self, body: bytes) -> None:
        part_number = self._session.next_part_number
        try:
            token = await self._uploader.upload_part(self._session, part_number, body)
            self._session.record_part(part_number, token, len(body))
        except UploadError as e:
            await self._fail(e)
            raise
        except asyncio.CancelledError:
            await self._fail(StreamAborted(
                f"Upload of part {part_number} was cancelled", part_number=part_number
            ))
            raise

        await self._publish(UploadEvents.PART_UPLOADED, {
            "upload_id": self._upload_id,
            "part_number": part_number,
            "size": len(body),
        })

    async def _complete(self) -> ObjectRef:
        try:
            result = await self._session.complete()
        except UploadError as e:
            if e.upload_id is None:
                e.upload_id = self._upload_id
            if e.retryable:
                self._error = e
                logger.warning(f"Completion of upload {self._upload_id} failed, parts kept: {e.message}")
            else:
                await self._fail(e)
            raise

        self._result = result
        self._error = None
        self._state = CoordinatorState.COMPLETED
        self._finished_at = time.time()

        await self._publish(UploadEvents.COMPLETED, {
            "upload_id": self._upload_id,
            "filename": self._filename,
            "key": result.key,
            "size": result.size,
            "parts": result.parts,
        })
        return result

    async def _fail(self, error: UploadError) -> None:
        if self._state.is_terminal:
            return

        if error.upload_id is None:
            error.upload_id = self._upload_id
        self._state = CoordinatorState.FAILED
        self._error = error
        self._finished_at = time.time()
        self._buffer.clear()

        logger.error(f"Upload {self._upload_id} failed [{error.error_code}]: {error.message}")
        await self._session.abort()

        await self._publish(UploadEvents.ABORTED, {
            "upload_id": self._upload_id,
            "filename": self._filename,
            "key": self.destination_key,
            "error": error.to_dict(),
        })

    async def _publish(self, event_name: str, data: Dict[str, Any]) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(event_name, data, correlation_id=self._upload_id)
        except RuntimeError as e:
            logger.warning(f"Could not publish {event_name} for upload {self._upload_id}: {e}")
