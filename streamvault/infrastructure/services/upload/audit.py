"""
Upload audit log.

Subscribes to completed uploads on the event bus and appends one line per
upload to the audit log.
"""

import logging
from email.utils import formatdate
from typing import Any, Dict, Optional

from ....core.domain.events import Event, UploadEvents
from ....core.interfaces.lifecycle import IComponent
from ....core.interfaces.messaging import IEventBus
from ...logging.setup import LoggingManager

logger = logging.getLogger(__name__)


def format_audit_line(filename: Optional[str], timestamp: float) -> str:
    """Format the audit line for an upload that finished at ``timestamp``."""
    return f"User uploaded file {filename or 'unnamed'} on {formatdate(timestamp, usegmt=True)}"


class UploadAuditLog(IComponent):
    """Writes an audit record for every completed upload."""

    def __init__(self, event_bus: IEventBus, logging_manager: LoggingManager):
        self._event_bus = event_bus
        self._logging_manager = logging_manager
        self._subscription_id: Optional[str] = None
        self._records_written = 0

    @property
    def name(self) -> str:
        return "UploadAuditLog"

    async def start(self) -> None:
        if self._subscription_id is not None:
            return
        self._subscription_id = await self._event_bus.subscribe(
            UploadEvents.COMPLETED, self.handle_completed
        )
        logger.info(f"Upload audit log writing to {self._logging_manager.audit_path}")

    async def stop(self) -> None:
        if self._subscription_id is None:
            return
        # Completions published before shutdown are still written
        await self._event_bus.wait_until_idle()
        await self._event_bus.unsubscribe(self._subscription_id)
        self._subscription_id = None

    async def check_health(self) -> Dict[str, Any]:
        return {
            "healthy": self._subscription_id is not None,
            "status": "running" if self._subscription_id else "stopped",
            "details": {
                "audit_file": str(self._logging_manager.audit_path),
                "records_written": self._records_written,
            }
        }

    async def handle_completed(self, event: Event) -> None:
        data: Dict[str, Any] = event.data or {}
        line = format_audit_line(data.get("filename"), event.timestamp)
        self._logging_manager.log_audit(
            line, upload_id=data.get("upload_id"), key=data.get("key")
        )
        self._records_written += 1
