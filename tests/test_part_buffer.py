"""
Tests for the part buffer.
"""

from streamvault.core.services.part_buffer import PartBuffer


class TestPartBuffer:
    """Test cases for PartBuffer."""

    def test_new_buffer_is_empty(self) -> None:
        buffer = PartBuffer()
        assert buffer.size() == 0
        assert len(buffer) == 0
        assert buffer.drain() == b""

    def test_drain_preserves_arrival_order(self) -> None:
        buffer = PartBuffer()
        buffer.append(b"abc")
        buffer.append(b"de")
        buffer.append(b"f")

        assert buffer.size() == 6
        assert buffer.drain() == b"abcdef"
        assert buffer.size() == 0

    def test_empty_chunks_are_ignored(self) -> None:
        buffer = PartBuffer()
        buffer.append(b"")
        buffer.append(b"x")
        buffer.append(b"")

        assert buffer.size() == 1
        assert buffer.drain() == b"x"

    def test_append_copies_mutable_input(self) -> None:
        buffer = PartBuffer()
        chunk = bytearray(b"data")
        buffer.append(chunk)
        chunk[0:4] = b"XXXX"

        assert buffer.drain() == b"data"

    def test_clear_discards_pending_bytes(self) -> None:
        buffer = PartBuffer()
        buffer.append(b"12345")
        buffer.clear()

        assert buffer.size() == 0
        assert buffer.drain() == b""
