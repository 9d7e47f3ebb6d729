"""
Configuration management infrastructure.

This module provides configuration loading and validation for the
application.
"""

from .loader import ConfigLoader
from .models import (
    ApplicationConfig, LoggingConfig, S3Config, ServerConfig, StorageConfig, UploadConfig,
    parse_size
)

__all__ = [
    "ApplicationConfig",
    "ConfigLoader",
    "LoggingConfig",
    "S3Config",
    "ServerConfig",
    "StorageConfig",
    "UploadConfig",
    "parse_size",
]
