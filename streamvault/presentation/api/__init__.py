"""
HTTP API components for the presentation layer.

This module contains FastAPI application setup, middleware,
and route definitions.
"""

from .app import create_app
from .dependencies import get_component, get_config, get_startup, get_upload_service

__all__ = [
    "create_app",
    "get_component",
    "get_config",
    "get_startup",
    "get_upload_service",
]
