"""
FastAPI dependency injection utilities.

This module provides dependency functions for FastAPI routes to access the
application configuration and components.
"""

from typing import Any, Callable

from fastapi import Depends, HTTPException, Request, status

from ...application.startup import ApplicationStartup
from ...core.interfaces.lifecycle import IComponent
from ...core.interfaces.upload import IUploadService
from ...infrastructure.config.models import ApplicationConfig


def get_startup(request: Request) -> ApplicationStartup:
    """
    Get the application startup manager from the request.

    Raises:
        HTTPException: If the application has not been set up
    """
    if not hasattr(request.app.state, "startup"):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application components not available"
        )

    return request.app.state.startup  # type: ignore[no-any-return]


def get_config(request: Request) -> ApplicationConfig:
    """
    Get the application configuration from the request.

    Raises:
        HTTPException: If configuration is not available
    """
    if not hasattr(request.app.state, "config"):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application configuration not available"
        )

    return request.app.state.config  # type: ignore[no-any-return]


def get_component(name: str) -> Callable[..., Any]:
    """
    Create a dependency function returning the named component.

    Args:
        name: Component name as registered by ``ApplicationStartup``
    """
    def _get_component(startup: ApplicationStartup = Depends(get_startup)) -> IComponent:
        component = startup.get_component(name)
        if component is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Component {name} not available"
            )
        return component

    return _get_component


_get_upload_component = get_component("upload_service")


def get_upload_service(component: IComponent = Depends(_get_upload_component)) -> IUploadService:
    if not isinstance(component, IUploadService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Upload service not available"
        )
    return component
