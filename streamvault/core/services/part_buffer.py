"""
Chunk accumulation buffer.
"""

from typing import List


class PartBuffer:
    """Accumulates byte chunks, in arrival order, until they are drained as one part.

    The buffer enforces no size limit; the coordinator decides when to drain.
    """

    def __init__(self) -> None:
        self._pending: List[bytes] = []
        self._size = 0

    def append(self, chunk: bytes) -> None:
        if not chunk:
            return
        self._pending.append(bytes(chunk))
        self._size += len(chunk)

    def size(self) -> int:
        return self._size

    def drain(self) -> bytes:
        """Return the concatenation of all pending chunks and empty the buffer.

        Draining an empty buffer returns ``b""``.
        """
        data = b"".join(self._pending)
        self.clear()
        return data

    def clear(self) -> None:
        self._pending.clear()
        self._size = 0

    def __len__(self) -> int:
        return self._size
