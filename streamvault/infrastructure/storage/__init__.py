"""
Storage backends.

This module provides the multipart storage backends and a factory that picks
one from configuration.
"""

from ...core.interfaces.storage import IStorageBackend
from ..config.models import StorageConfig
from .memory import InMemoryStorageBackend
from .s3 import S3StorageBackend


def create_storage_backend(config: StorageConfig, min_part_size: int) -> IStorageBackend:
    """
    Create the storage backend selected by configuration.

    Args:
        config: Storage configuration
        min_part_size: Minimum size of non-final parts

    Returns:
        Unstarted storage backend
    """
    if config.backend == "s3":
        return S3StorageBackend(config.s3, min_part_size=min_part_size)
    if config.backend == "memory":
        return InMemoryStorageBackend(min_part_size=min_part_size)
    raise ValueError(f"Unknown storage backend: {config.backend}")


__all__ = [
    "InMemoryStorageBackend",
    "S3StorageBackend",
    "create_storage_backend",
]
