"""
Infrastructure layer containing external dependencies and I/O operations.

This layer handles configuration, logging, the storage backends and the
upload services built on them.
"""

from .config.loader import ConfigLoader
from .logging.setup import LoggingManager

__all__ = [
    "ConfigLoader",
    "LoggingManager",
]
