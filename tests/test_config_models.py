"""
Tests for configuration models.
"""

import pytest

from streamvault.core.domain.upload import MIB
from streamvault.infrastructure.config.models import (
    ApplicationConfig, S3Config, StorageConfig, UploadConfig, parse_size
)


class TestParseSize:
    """Test cases for byte size parsing."""

    @pytest.mark.parametrize("value,expected", [
        (5242880, 5 * MIB),
        ("1024", 1024),
        ("5MB", 5 * MIB),
        ("5 MiB", 5 * MIB),
        ("64k", 64 * 1024),
        ("1GiB", 1024 ** 3),
    ])
    def test_valid_sizes(self, value, expected) -> None:
        assert parse_size(value) == expected

    @pytest.mark.parametrize("value", ["", "five", "5 parsecs", "-1", True])
    def test_invalid_sizes(self, value) -> None:
        with pytest.raises(ValueError):
            parse_size(value)


class TestApplicationConfig:
    """Test cases for ApplicationConfig."""

    def test_defaults(self) -> None:
        config = ApplicationConfig()

        assert config.server.port == 8080
        assert config.storage.backend == "memory"
        assert config.upload.min_part_size == 5 * MIB
        assert config.upload.max_part_retries == 0
        assert config.logging.audit_file == "uploads.log"

    def test_min_part_size_string_is_normalized(self) -> None:
        config = ApplicationConfig(upload=UploadConfig(min_part_size="8MB"))

        assert config.upload.min_part_size == 8 * MIB
        assert config.upload.min_part_size_bytes == 8 * MIB

    @pytest.mark.parametrize("upload", [
        UploadConfig(min_part_size=0),
        UploadConfig(max_part_retries=-1),
        UploadConfig(retry_backoff=-0.5),
        UploadConfig(history_size=-1),
    ])
    def test_invalid_upload_settings(self, upload) -> None:
        with pytest.raises(ValueError):
            ApplicationConfig(upload=upload)

    def test_invalid_port(self) -> None:
        config_data = {"server": {"port": 70000}}

        with pytest.raises(ValueError):
            ApplicationConfig.from_dict(config_data)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            ApplicationConfig(storage=StorageConfig(backend="ftp"))

    def test_s3_backend_requires_bucket(self) -> None:
        with pytest.raises(ValueError):
            ApplicationConfig(storage=StorageConfig(backend="s3"))

        config = ApplicationConfig(storage=StorageConfig(backend="s3", s3=S3Config(bucket="media")))
        assert config.storage.s3.bucket == "media"

    def test_round_trip_through_dict(self) -> None:
        config = ApplicationConfig(
            environment="staging",
            storage=StorageConfig(backend="s3", s3=S3Config(bucket="media", region="eu-west-1")),
            upload=UploadConfig(key_prefix="incoming/", max_part_retries=2),
        )

        restored = ApplicationConfig.from_dict(config.to_dict())

        assert restored == config
