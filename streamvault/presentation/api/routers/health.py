"""
Health check API endpoints.

This module provides health check endpoints for monitoring
application and component status.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....application.startup import ApplicationStartup
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_startup

router = APIRouter()


def _application_info(config: ApplicationConfig) -> Dict[str, Any]:
    return {
        "name": config.name,
        "version": config.version,
        "environment": config.environment
    }


@router.get("")
@router.get("/")
async def health_check(config: ApplicationConfig = Depends(get_config)) -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns overall application health status.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "application": _application_info(config)
    }


@router.get("/detailed")
async def detailed_health_check(
    startup: ApplicationStartup = Depends(get_startup),
    config: ApplicationConfig = Depends(get_config)
) -> Dict[str, Any]:
    """
    Detailed health check with component status.

    Returns health status for all configured components.
    """
    health = await startup.check_health()

    return {
        "status": "healthy" if health["healthy"] else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "application": _application_info(config),
        "components": health["components"]
    }


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness check endpoint.

    Simple endpoint to indicate the application is running.
    """
    return {
        "alive": True,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
