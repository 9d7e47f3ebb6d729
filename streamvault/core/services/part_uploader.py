"""
Part uploader.

Sends one accumulated buffer to the storage backend as a numbered part of a
session and returns the backend's acknowledgment token.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from ..exceptions import BackendUnavailable, UploadError
from ..interfaces.storage import IStorageBackend

if TYPE_CHECKING:
    from .session import UploadSession

logger = logging.getLogger(__name__)


class PartUploader:
    """
    Upload single parts to a storage backend.

    The uploader holds no per-upload state and can be shared by concurrent
    uploads. Errors are reported, never swallowed. With ``max_retries`` > 0
    a ``BackendUnavailable`` failure is retried with exponential backoff;
    every other error is raised on the first occurrence.
    """

    MAX_BACKOFF_SECONDS = 30.0

    def __init__(self, backend: IStorageBackend, max_retries: int = 0,
                 retry_backoff: float = 0.5) -> None:
        """
        Initialize the part uploader.

        Args:
            backend: Storage backend receiving the parts
            max_retries: Extra attempts for transient backend failures
            retry_backoff: Delay before the first retry, doubled on each retry
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self._backend = backend
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff

    @property
    def backend(self) -> IStorageBackend:
        return self._backend

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def upload_part(self, session: "UploadSession", part_number: int, body: bytes) -> str:
        """
        Upload ``body`` as part ``part_number`` of ``session``.

        Args:
            session: Open upload session
            part_number: 1-based part number
            body: Part payload

        Returns:
            Token (ETag) issued by the backend

        Raises:
            BackendUnavailable: If the backend stays unreachable
            PartTooSmall: If the backend rejects the part size
            SessionExpired: If the backend no longer knows the session
        """
        if part_number < 1:
            raise ValueError(f"Part numbers start at 1, got {part_number}")

        attempt = 0
        while True:
            try:
                token = await self._backend.upload_part(
                    session.session_id, session.destination_key, part_number, body
                )
            except BackendUnavailable as e:
                if attempt >= self._max_retries:
                    raise self._annotate(e, part_number)
                delay = min(self._retry_backoff * (2 ** attempt), self.MAX_BACKOFF_SECONDS)
                attempt += 1
                logger.warning(
                    f"Part {part_number} of {session.destination_key} failed "
                    f"(attempt {attempt}/{self._max_retries + 1}): {e.message}; "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                continue
            except UploadError as e:
                raise self._annotate(e, part_number)

            logger.debug(
                f"Uploaded part {part_number} ({len(body)} bytes) "
                f"of {session.destination_key}"
            )
            return token

    @staticmethod
    def _annotate(error: UploadError, part_number: int) -> UploadError:
        if error.part_number is None:
            error.part_number = part_number
        return error
