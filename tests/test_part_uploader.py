"""
Tests for the part uploader, including retry of transient failures.
"""

from unittest.mock import AsyncMock, patch

import pytest

from streamvault.core.exceptions import BackendUnavailable, PartTooSmall, SessionExpired
from streamvault.core.services.part_uploader import PartUploader
from streamvault.core.services.session import UploadSession


class TestPartUploader:
    """Test cases for PartUploader."""

    @pytest.fixture
    async def session(self, small_backend) -> UploadSession:
        return await UploadSession.initiate(small_backend, "uploads/a.bin")

    async def test_upload_returns_backend_token(self, small_backend, session) -> None:
        uploader = PartUploader(small_backend)

        token = await uploader.upload_part(session, 1, b"hello")

        assert token.startswith('"') and token.endswith('"')
        assert small_backend.part_bodies[1] == b"hello"

    async def test_part_numbers_start_at_one(self, small_backend, session) -> None:
        uploader = PartUploader(small_backend)

        with pytest.raises(ValueError):
            await uploader.upload_part(session, 0, b"data")

    async def test_errors_propagate_without_retries(self, small_backend, session) -> None:
        small_backend.fail_parts[1] = [BackendUnavailable("connection reset")]
        uploader = PartUploader(small_backend)

        with pytest.raises(BackendUnavailable) as exc_info:
            await uploader.upload_part(session, 1, b"data")

        assert exc_info.value.part_number == 1
        assert small_backend.count("upload_part") == 1

    async def test_transient_failures_are_retried(self, small_backend, session) -> None:
        small_backend.fail_parts[1] = [BackendUnavailable("timeout"), BackendUnavailable("timeout")]
        uploader = PartUploader(small_backend, max_retries=2, retry_backoff=0.01)

        with patch("streamvault.core.services.part_uploader.asyncio.sleep", new=AsyncMock()) as sleep:
            token = await uploader.upload_part(session, 1, b"data")

        assert token
        assert small_backend.count("upload_part") == 3
        assert [c.args[0] for c in sleep.await_args_list] == [0.01, 0.02]

    async def test_retries_are_bounded(self, small_backend, session) -> None:
        small_backend.fail_parts[1] = [BackendUnavailable("down")] * 5
        uploader = PartUploader(small_backend, max_retries=1, retry_backoff=0)

        with pytest.raises(BackendUnavailable):
            await uploader.upload_part(session, 1, b"data")

        assert small_backend.count("upload_part") == 2

    @pytest.mark.parametrize("error", [
        PartTooSmall("too small"),
        SessionExpired("no such upload"),
    ])
    async def test_permanent_errors_are_not_retried(self, small_backend, session, error) -> None:
        small_backend.fail_parts[1] = [error]
        uploader = PartUploader(small_backend, max_retries=3, retry_backoff=0)

        with pytest.raises(type(error)):
            await uploader.upload_part(session, 1, b"data")

        assert small_backend.count("upload_part") == 1

    def test_negative_retries_rejected(self, small_backend) -> None:
        with pytest.raises(ValueError):
            PartUploader(small_backend, max_retries=-1)
