"""
Logging infrastructure for the application.

This module provides centralized logging configuration and management
capabilities for the entire application.
"""

from .setup import LoggingManager, setup_logging

__all__ = [
    "setup_logging",
    "LoggingManager",
]
