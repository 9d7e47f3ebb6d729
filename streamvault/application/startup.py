"""
Application startup and configuration logic.

This module builds every application component from configuration and
manages the startup sequence.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.interfaces.lifecycle import IComponent
from ..core.interfaces.storage import IStorageBackend
from ..core.services.event_bus import EventBus
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.logging.setup import LoggingManager
from ..infrastructure.services.upload.audit import UploadAuditLog
from ..infrastructure.services.upload.service import UploadService
from ..infrastructure.storage import create_storage_backend

logger = logging.getLogger(__name__)


class ApplicationStartup:
    """
    Manages application startup and service configuration.

    Components are created by ``configure_services()`` and started in
    ``STARTUP_ORDER``; they are stopped in reverse order.
    """

    STARTUP_ORDER = [
        'logging_manager',
        'event_bus',
        'storage_backend',
        'upload_audit_log',
        'upload_service',
    ]

    def __init__(self, config: ApplicationConfig,
                 storage_backend: Optional[IStorageBackend] = None) -> None:
        """
        Args:
            config: Application configuration
            storage_backend: Prebuilt backend used instead of the configured one
        """
        self._config = config
        self._storage_backend = storage_backend
        self._components: Dict[str, IComponent] = {}
        self._started_components: List[IComponent] = []

    @property
    def config(self) -> ApplicationConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return bool(self._components)

    def configure_services(self) -> None:
        """Create all application components from configuration."""
        if self._components:
            return

        logger.info("Configuring application services...")

        logging_manager = LoggingManager(self._config.logging)
        event_bus = EventBus()
        backend = self._storage_backend or create_storage_backend(
            self._config.storage, self._config.upload.min_part_size_bytes
        )
        upload_service = UploadService(backend, self._config.upload, event_bus)
        audit_log = UploadAuditLog(event_bus, logging_manager)

        self._components = {
            'logging_manager': logging_manager,
            'event_bus': event_bus,
            'storage_backend': backend,
            'upload_service': upload_service,
            'upload_audit_log': audit_log,
        }

        logger.info("Service configuration completed")

    def get_component(self, name: str) -> Optional[IComponent]:
        """Get a configured component by name."""
        return self._components.get(name)

    def components(self) -> Dict[str, IComponent]:
        return dict(self._components)

    async def start_application(self) -> None:
        """
        Start all application components in the correct order.

        If a component fails to start, the components started before it are
        stopped again and the error is raised.
        """
        self.configure_services()
        logger.info("Starting application components...")

        for component_name in self.STARTUP_ORDER:
            component = self._components[component_name]
            try:
                logger.debug(f"Starting component: {component_name}")
                await component.start()
                self._started_components.append(component)
                logger.info(f"Started component: {component.name}")
            except Exception as e:
                logger.error(f"Failed to start component {component_name}: {e}")
                await self.stop_application()
                raise

        logger.info("Application startup completed successfully")

    async def stop_application(self) -> None:
        """Stop all started components in reverse order."""
        logger.info("Stopping application components...")

        for component in reversed(self._started_components):
            try:
                logger.debug(f"Stopping component: {component.name}")
                await component.stop()
                logger.info(f"Stopped component: {component.name}")
            except Exception as e:
                logger.error(f"Error stopping component {component.name}: {e}")
                # Continue stopping other components

        self._started_components.clear()
        logger.info("Application shutdown completed")

    async def check_health(self) -> Dict[str, Any]:
        """Collect the health of every configured component."""
        components: Dict[str, Any] = {}
        for name, component in self._components.items():
            try:
                components[name] = await component.check_health()
            except Exception as e:
                components[name] = {'healthy': False, 'status': 'error', 'details': {'error': str(e)}}

        healthy = bool(components) and all(c.get('healthy', False) for c in components.values())
        return {
            'healthy': healthy,
            'status': 'healthy' if healthy else 'unhealthy',
            'components': components,
        }
