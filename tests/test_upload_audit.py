"""
Tests for the upload audit log subscriber.
"""

from unittest.mock import Mock

import pytest

from streamvault.core.domain.events import Event, UploadEvents
from streamvault.core.services.event_bus import EventBus
from streamvault.infrastructure.logging.setup import LoggingManager
from streamvault.infrastructure.services.upload.audit import UploadAuditLog, format_audit_line


def test_format_audit_line() -> None:
    # 2026-10-17 10:00:00 UTC
    line = format_audit_line("report.pdf", 1792231200.0)

    assert line == "User uploaded file report.pdf on Sat, 17 Oct 2026 10:00:00 GMT"


def test_format_audit_line_without_name() -> None:
    assert format_audit_line(None, 0).startswith("User uploaded file unnamed on Thu, 01 Jan 1970")


class TestUploadAuditLog:
    """Test cases for UploadAuditLog."""

    @pytest.fixture
    def logging_manager(self) -> Mock:
        return Mock(spec=LoggingManager)

    async def test_completed_upload_is_audited(self, logging_manager: Mock) -> None:
        bus = EventBus()
        audit = UploadAuditLog(bus, logging_manager)
        await bus.start()
        await audit.start()

        await bus.publish(UploadEvents.COMPLETED, {
            "upload_id": "u1", "filename": "cat.png", "key": "uploads/cat.png", "size": 3, "parts": 1,
        })
        await bus.publish(UploadEvents.ABORTED, {"upload_id": "u2", "filename": "dog.png"})
        await bus.wait_until_idle()

        logging_manager.log_audit.assert_called_once()
        line = logging_manager.log_audit.call_args.args[0]
        assert line.startswith("User uploaded file cat.png on ")
        assert line.endswith(" GMT")
        assert logging_manager.log_audit.call_args.kwargs == {"upload_id": "u1", "key": "uploads/cat.png"}

        health = await audit.check_health()
        assert health["details"]["records_written"] == 1

        await audit.stop()
        await bus.stop()

    async def test_start_and_stop_manage_subscription(self, logging_manager: Mock, mock_event_bus: Mock) -> None:
        audit = UploadAuditLog(mock_event_bus, logging_manager)

        await audit.start()
        await audit.start()
        mock_event_bus.subscribe.assert_awaited_once_with(UploadEvents.COMPLETED, audit.handle_completed)
        assert (await audit.check_health())["healthy"] is True

        await audit.stop()
        mock_event_bus.unsubscribe.assert_awaited_once_with("subscription-id")
        assert (await audit.check_health())["healthy"] is False

    async def test_handler_uses_event_time(self, logging_manager: Mock, mock_event_bus: Mock) -> None:
        audit = UploadAuditLog(mock_event_bus, logging_manager)
        event = Event(name=UploadEvents.COMPLETED, data={"filename": "a.txt"}, timestamp=0.0)

        await audit.handle_completed(event)

        logging_manager.log_audit.assert_called_once_with(
            "User uploaded file a.txt on Thu, 01 Jan 1970 00:00:00 GMT", upload_id=None, key=None
        )
