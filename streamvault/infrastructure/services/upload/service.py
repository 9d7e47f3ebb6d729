"""
Upload service implementation.

This module issues destination keys, opens one multipart session per
upload, and keeps a bounded history of coordinators for reporting.
"""

import logging
import re
import time
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ....core.domain.events import UploadEvents
from ....core.domain.upload import CoordinatorState
from ....core.exceptions import UploadError
from ....core.interfaces.messaging import IEventBus
from ....core.interfaces.storage import IStorageBackend
from ....core.interfaces.upload import IUploadService
from ....core.services.coordinator import UploadCoordinator
from ....core.services.part_uploader import PartUploader
from ....core.services.session import UploadSession
from ...config.models import UploadConfig

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
MAX_FILENAME_LENGTH = 200
DEFAULT_FILENAME = "upload"


def sanitize_filename(name: Optional[str]) -> str:
    """
    Reduce a client-supplied file name to a safe key segment.

    Directory components are dropped, runs of unsafe characters become a
    single underscore and leading dots are removed.
    """
    if not name:
        return DEFAULT_FILENAME

    base = re.split(r"[\\/]", name)[-1]
    safe = _UNSAFE_CHARS.sub("_", base).lstrip(".")
    safe = safe[:MAX_FILENAME_LENGTH].strip("_")
    return safe or DEFAULT_FILENAME


class UploadService(IUploadService):
    """
    Upload service.

    Creates an ``UploadCoordinator`` for every upload and remembers the most
    recent ``history_size`` of them. Finished uploads beyond that limit are
    forgotten; their outcome stays counted in the statistics.
    """

    def __init__(
        self,
        backend: IStorageBackend,
        config: Optional[UploadConfig] = None,
        event_bus: Optional[IEventBus] = None
    ):
        """
        Initialize the upload service.

        Args:
            backend: Storage backend receiving the parts
            config: Upload configuration
            event_bus: Event bus for publishing upload events
        """
        self._backend = backend
        self._config = config or UploadConfig()
        self._event_bus = event_bus
        self._uploader = PartUploader(
            backend,
            max_retries=self._config.max_part_retries,
            retry_backoff=self._config.retry_backoff
        )

        configured = self._config.min_part_size_bytes
        if configured < backend.min_part_size:
            logger.warning(
                f"Configured part size {configured} is below the backend minimum "
                f"{backend.min_part_size}; using the backend minimum"
            )
        self._min_part_size = max(configured, backend.min_part_size)

        self._uploads: "OrderedDict[str, UploadCoordinator]" = OrderedDict()
        self._running = False

        self._stats = {
            "total_uploads": 0,
            "initiate_failures": 0,
            "forgotten_completed": 0,
            "forgotten_failed": 0,
            "forgotten_bytes": 0,
        }

    @property
    def name(self) -> str:
        return "UploadService"

    @property
    def min_part_size(self) -> int:
        return self._min_part_size

    async def start(self) -> None:
        """Start the upload service."""
        if self._running:
            return

        self._running = True
        logger.info(
            f"Upload service started (part size {self._min_part_size} bytes, "
            f"retries {self._config.max_part_retries})"
        )

    async def stop(self) -> None:
        """Stop the upload service, aborting uploads still in progress."""
        if not self._running:
            return

        self._running = False

        active = self.list_uploads(CoordinatorState.RECEIVING) + \
            self.list_uploads(CoordinatorState.FINALIZING)
        for coordinator in active:
            await coordinator.abort("Upload service stopped")

        if active:
            logger.warning(f"Aborted {len(active)} unfinished uploads on shutdown")
        logger.info("Upload service stopped")

    async def check_health(self) -> Dict[str, Any]:
        backend_health = await self._backend.check_health()
        return {
            "healthy": self._running and backend_health.get("healthy", False),
            "status": "running" if self._running else "stopped",
            "details": {
                "backend": self._backend.name,
                "backend_status": backend_health.get("status"),
                "min_part_size": self._min_part_size,
                "statistics": self.get_upload_statistics(),
            }
        }

    async def start_upload(self, destination_key_hint: Optional[str] = None) -> UploadCoordinator:
        """
        Open a new multipart upload.

        Args:
            destination_key_hint: Client-supplied file name

        Returns:
            Coordinator ready to receive chunks

        Raises:
            RuntimeError: If the service is not running
            UploadError: If the backend refuses to open the session
        """
        if not self._running:
            raise RuntimeError("Upload service is not running")

        upload_id = uuid.uuid4().hex
        key = self.build_destination_key(upload_id, destination_key_hint)
        self._stats["total_uploads"] += 1

        try:
            session = await UploadSession.initiate(self._backend, key)
        except UploadError as e:
            e.upload_id = upload_id
            self._stats["initiate_failures"] += 1
            logger.error(f"Could not open upload {upload_id} for {key}: {e.message}")
            await self._publish(UploadEvents.FAILED, {
                "upload_id": upload_id,
                "key": key,
                "error": e.to_dict(),
            }, upload_id)
            raise

        coordinator = UploadCoordinator(
            upload_id=upload_id,
            session=session,
            uploader=self._uploader,
            min_part_size=self._min_part_size,
            event_bus=self._event_bus,
            filename=destination_key_hint
        )
        self._track(coordinator)

        logger.info(f"Started upload {upload_id}: {key}")
        await self._publish(UploadEvents.STARTED, {
            "upload_id": upload_id,
            "filename": destination_key_hint,
            "key": key,
        }, upload_id)

        return coordinator

    def build_destination_key(self, upload_id: str, hint: Optional[str] = None) -> str:
        """Build ``<prefix><YYYY/MM/DD>/<upload id>/<file name>``."""
        day = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        return f"{self._config.key_prefix}{day}/{upload_id}/{sanitize_filename(hint)}"

    def get_upload(self, upload_id: str) -> Optional[UploadCoordinator]:
        return self._uploads.get(upload_id)

    def list_uploads(self, state: Optional[CoordinatorState] = None) -> List[UploadCoordinator]:
        """List tracked uploads with optional state filtering."""
        return [
            coordinator for coordinator in self._uploads.values()
            if state is None or coordinator.state is state
        ]

    def get_upload_statistics(self) -> Dict[str, Any]:
        """Get upload statistics and metrics."""
        tracked = list(self._uploads.values())
        completed = [c for c in tracked if c.state is CoordinatorState.COMPLETED]
        failed = [c for c in tracked if c.state is CoordinatorState.FAILED]
        active = [c for c in tracked if not c.state.is_terminal]

        return {
            "total_uploads": self._stats["total_uploads"],
            "initiate_failures": self._stats["initiate_failures"],
            "completed_uploads": len(completed) + self._stats["forgotten_completed"],
            "failed_uploads": len(failed) + self._stats["forgotten_failed"],
            "active_uploads": len(active),
            "tracked_uploads": len(tracked),
            "total_bytes_stored": (
                sum(c.result.size for c in completed if c.result is not None)
                + self._stats["forgotten_bytes"]
            ),
            "bytes_in_flight": sum(c.bytes_received for c in active),
            "timestamp": time.time(),
        }

    def _track(self, coordinator: UploadCoordinator) -> None:
        self._uploads[coordinator.upload_id] = coordinator

        limit = self._config.history_size
        if len(self._uploads) <= limit:
            return

        # Only finished uploads are forgotten, oldest first
        for upload_id in list(self._uploads):
            if len(self._uploads) <= limit:
                break
            old = self._uploads[upload_id]
            if not old.state.is_terminal:
                continue
            if old.state is CoordinatorState.COMPLETED:
                self._stats["forgotten_completed"] += 1
                if old.result is not None:
                    self._stats["forgotten_bytes"] += old.result.size
            else:
                self._stats["forgotten_failed"] += 1
            del self._uploads[upload_id]

    async def _publish(self, event_name: str, data: Dict[str, Any], upload_id: str) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(event_name, data, correlation_id=upload_id)
        except RuntimeError as e:
            logger.warning(f"Could not publish {event_name} for upload {upload_id}: {e}")
