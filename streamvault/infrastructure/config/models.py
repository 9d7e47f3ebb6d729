"""
Configuration models and data structures.

This module defines the configuration models used throughout the application,
providing type safety and validation for configuration values.
"""

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Union

from ...core.domain.upload import DEFAULT_MIN_PART_SIZE

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([a-z]*)\s*$")
_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024, "kb": 1024, "kib": 1024,
    "m": 1024 ** 2, "mb": 1024 ** 2, "mib": 1024 ** 2,
    "g": 1024 ** 3, "gb": 1024 ** 3, "gib": 1024 ** 3,
}

STORAGE_BACKENDS = ("memory", "s3")


def parse_size(value: Union[int, str]) -> int:
    """
    Parse a byte quantity from an integer or unit-suffixed string.

    Units are binary and case-insensitive: ``b``, ``k``/``kb``/``kib``,
    ``m``/``mb``/``mib``, ``g``/``gb``/``gib``.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid byte value: {value!r}")
    if isinstance(value, int):
        return value

    match = _SIZE_PATTERN.match(str(value).lower())
    if not match or match.group(2) not in _SIZE_UNITS:
        raise ValueError(f"Invalid byte value: {value!r}")

    return int(match.group(1)) * _SIZE_UNITS[match.group(2)]


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    access_log: bool = False


@dataclass
class S3Config:
    """S3-compatible object storage configuration."""
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    max_attempts: int = 3
    max_pool_connections: int = 10


@dataclass
class StorageConfig:
    """Storage backend selection."""
    backend: str = "memory"
    s3: S3Config = field(default_factory=S3Config)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StorageConfig':
        values = dict(data)
        s3 = S3Config(**values.pop('s3', {}) or {})
        return cls(s3=s3, **values)


@dataclass
class UploadConfig:
    """Upload pipeline configuration."""
    min_part_size: Union[int, str] = DEFAULT_MIN_PART_SIZE
    max_part_retries: int = 0
    retry_backoff: float = 0.5
    key_prefix: str = "uploads/"
    history_size: int = 1000

    @property
    def min_part_size_bytes(self) -> int:
        return parse_size(self.min_part_size)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = True
    audit_enabled: bool = True
    audit_file: str = "uploads.log"


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "StreamVault"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_server()
        self._validate_storage()
        self._validate_upload()

    def _validate_server(self) -> None:
        if not (1 <= self.server.port <= 65535):
            raise ValueError(
                f"Server port must be between 1 and 65535, got {self.server.port}")

    def _validate_storage(self) -> None:
        if self.storage.backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Storage backend must be one of {STORAGE_BACKENDS}, got {self.storage.backend!r}")

        if self.storage.backend == "s3":
            if not self.storage.s3.bucket:
                raise ValueError("storage.s3.bucket is required for the s3 backend")
            for name in ("connect_timeout", "read_timeout"):
                if getattr(self.storage.s3, name) <= 0:
                    raise ValueError(f"storage.s3.{name} must be positive")

    def _validate_upload(self) -> None:
        min_part_size = parse_size(self.upload.min_part_size)
        if min_part_size < 1:
            raise ValueError(f"Minimum part size must be positive, got {min_part_size}")
        self.upload.min_part_size = min_part_size

        if self.upload.max_part_retries < 0:
            raise ValueError("upload.max_part_retries must not be negative")
        if self.upload.retry_backoff < 0:
            raise ValueError("upload.retry_backoff must not be negative")
        if self.upload.history_size < 0:
            raise ValueError("upload.history_size must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'StreamVault'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            environment=data.get('environment', 'production'),
            server=ServerConfig(**data.get('server', {})),
            storage=StorageConfig.from_dict(data.get('storage', {})),
            upload=UploadConfig(**data.get('upload', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            config_file_path=data.get('config_file_path')
        )
