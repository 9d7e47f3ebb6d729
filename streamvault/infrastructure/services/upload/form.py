"""
Multipart form stream source.

Parses a ``multipart/form-data`` request body incrementally and streams every
file field into its own upload. The parser reports events synchronously;
they are collected per written chunk and then awaited one by one, so each
chunk is fully handed to storage before the next chunk is read from the
request.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import ClientDisconnect

from ....core.domain.upload import ObjectRef
from ....core.exceptions import MalformedRequest, StreamAborted, UploadError
from ....core.interfaces.upload import IUploadCoordinator, IUploadService

logger = logging.getLogger(__name__)

MAX_FIELD_SIZE = 64 * 1024


def parse_boundary(content_type: Optional[str]) -> bytes:
    """
    Extract the multipart boundary from a Content-Type header.

    Raises:
        MalformedRequest: If the header is not multipart/form-data with a boundary
    """
    ctype, options = parse_options_header(content_type)
    if ctype != b"multipart/form-data":
        raise MalformedRequest(
            f"Expected multipart/form-data, got {ctype.decode('latin-1') or 'no content type'}"
        )
    boundary = options.get(b"boundary")
    if not boundary:
        raise MalformedRequest("Multipart request has no boundary")
    return boundary


class FormStreamSource:
    """
    Feed a multipart form body into upload coordinators.

    Every field with a non-empty file name becomes one upload. Plain form
    fields are kept in ``fields``; a field chosen without a file (empty file
    name) is ignored.
    """

    def __init__(self, service: IUploadService, content_type: Optional[str],
                 max_field_size: int = MAX_FIELD_SIZE):
        self._service = service
        self._max_field_size = max_field_size
        self._parser = MultipartParser(parse_boundary(content_type), callbacks={
            "on_part_begin": self._on_part_begin,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_end": self._on_end,
        })

        self._pending: List[Tuple[Any, ...]] = []
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: Dict[bytes, bytes] = {}

        self._current: Optional[IUploadCoordinator] = None
        self._field_name: Optional[str] = None
        self._field_value = bytearray()
        self._fields: Dict[str, str] = {}
        self._results: List[ObjectRef] = []
        self._bytes_received = 0
        self._ended = False

    @property
    def fields(self) -> Dict[str, str]:
        return dict(self._fields)

    @property
    def results(self) -> List[ObjectRef]:
        return list(self._results)

    @property
    def bytes_received(self) -> int:
        return self._bytes_received

    async def consume(self, stream: AsyncIterator[bytes]) -> List[ObjectRef]:
        """
        Read the whole body from ``stream`` and store every file field.

        Returns:
            One object reference per stored file, in form order

        Raises:
            MalformedRequest: If the body is not a valid multipart form
            StreamAborted: If reading the body failed or it was truncated
            UploadError: If storing a file failed
        """
        try:
            async for chunk in stream:
                await self.feed(chunk)
            return await self.finish()
        except UploadError as e:
            await self.fail(e)
            raise
        except asyncio.CancelledError:
            await self.fail(StreamAborted("Request was cancelled"))
            raise
        except (ClientDisconnect, OSError) as e:
            error = StreamAborted(f"Request body could not be read: {e}")
            await self.fail(error)
            raise error from e
        except Exception as e:
            await self.fail(StreamAborted(f"Request handling failed: {e}"))
            raise

    async def feed(self, chunk: bytes) -> None:
        """Parse the next chunk of the body and deliver the resulting events."""
        if not chunk:
            return
        self._bytes_received += len(chunk)
        try:
            self._parser.write(chunk)
        except MultipartParseError as e:
            raise MalformedRequest(f"Malformed multipart body: {e}") from e
        await self._deliver_pending()

    async def finish(self) -> List[ObjectRef]:
        """
        Finish parsing after the last chunk.

        Raises:
            StreamAborted: If the body ended before the closing boundary
        """
        self._parser.finalize()
        await self._deliver_pending()
        if not self._ended:
            raise StreamAborted(
                f"Request body ended before the closing boundary "
                f"after {self._bytes_received} bytes"
            )
        return list(self._results)

    async def fail(self, error: BaseException) -> None:
        """Abort the upload that is currently receiving data, if any."""
        coordinator, self._current = self._current, None
        if coordinator is not None:
            await coordinator.on_stream_error(error)

    async def _deliver_pending(self) -> None:
        events, self._pending = self._pending, []
        for event in events:
            kind = event[0]
            if kind == "begin":
                await self._begin_part(event[1], event[2])
            elif kind == "data":
                await self._part_data(event[1])
            elif kind == "end":
                await self._end_part()
            elif kind == "finish":
                self._ended = True

    async def _begin_part(self, name: str, filename: Optional[str]) -> None:
        self._field_name = None
        self._field_value.clear()

        if filename is None:
            self._field_name = name
            return
        if not filename:
            logger.debug(f"Skipping file field {name!r} without a file")
            return

        self._current = await self._service.start_upload(filename)
        await self._current.on_part_begin(filename)

    async def _part_data(self, data: bytes) -> None:
        if self._current is not None:
            await self._current.on_chunk(data)
        elif self._field_name is not None:
            if len(self._field_value) + len(data) > self._max_field_size:
                raise MalformedRequest(
                    f"Form field {self._field_name!r} exceeds {self._max_field_size} bytes"
                )
            self._field_value.extend(data)

    async def _end_part(self) -> None:
        if self._current is not None:
            coordinator, self._current = self._current, None
            try:
                result = await coordinator.on_part_end()
            except UploadError:
                if not coordinator.state.is_terminal:
                    await coordinator.on_stream_error(StreamAborted("Upload could not be completed"))
                raise
            if result is not None:
                self._results.append(result)
        elif self._field_name is not None:
            self._fields[self._field_name] = self._field_value.decode("utf-8", "replace")
            self._field_name = None

    # Parser callbacks, invoked synchronously from MultipartParser.write()

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._header_field.clear()
        self._header_value.clear()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field.extend(data[start:end])

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value.extend(data[start:end])

    def _on_header_end(self) -> None:
        self._headers[bytes(self._header_field).lower()] = bytes(self._header_value)
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition"))
        name = options.get(b"name", b"").decode("utf-8", "replace")
        raw_filename = options.get(b"filename")
        filename = raw_filename.decode("utf-8", "replace") if raw_filename is not None else None
        self._pending.append(("begin", name, filename))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if end > start:
            self._pending.append(("data", bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._pending.append(("end",))

    def _on_end(self) -> None:
        self._pending.append(("finish",))
