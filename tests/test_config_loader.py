"""
Tests for configuration loading and saving.
"""

import json
from pathlib import Path

import pytest
import yaml

from streamvault.core.domain.upload import MIB
from streamvault.infrastructure.config.loader import ConfigLoader
from streamvault.infrastructure.config.models import ApplicationConfig


class TestConfigLoader:
    """Test cases for ConfigLoader."""

    @pytest.fixture(autouse=True)
    def clean_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import os
        for name in list(os.environ):
            if name.startswith("STREAMVAULT_"):
                monkeypatch.delenv(name)

    def test_defaults_without_file(self) -> None:
        config = ConfigLoader().load_config()

        assert config == ApplicationConfig()

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "environment": "staging",
            "server": {"port": 9000},
            "storage": {"backend": "s3", "s3": {"bucket": "media"}},
            "upload": {"min_part_size": "10MB"},
        }))

        config = ConfigLoader().load_config(str(path))

        assert config.environment == "staging"
        assert config.server.port == 9000
        assert config.storage.s3.bucket == "media"
        assert config.upload.min_part_size == 10 * MIB
        assert config.config_file_path == str(path)

    def test_load_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"upload": {"key_prefix": "in/"}}))

        config = ConfigLoader().load_config(str(path))

        assert config.upload.key_prefix == "in/"

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"server": {"port": 9000}}))
        monkeypatch.setenv("STREAMVAULT_PORT", "9100")
        monkeypatch.setenv("STREAMVAULT_DEBUG", "yes")
        monkeypatch.setenv("STREAMVAULT_STORAGE_BACKEND", "s3")
        monkeypatch.setenv("STREAMVAULT_S3_BUCKET", "uploads-bucket")
        monkeypatch.setenv("STREAMVAULT_MIN_PART_SIZE", "6MiB")
        monkeypatch.setenv("STREAMVAULT_MAX_PART_RETRIES", "3")

        config = ConfigLoader().load_config(str(path))

        assert config.server.port == 9100
        assert config.debug is True
        assert config.storage.backend == "s3"
        assert config.storage.s3.bucket == "uploads-bucket"
        assert config.upload.min_part_size == 6 * MIB
        assert config.upload.max_part_retries == 3

    def test_invalid_environment_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STREAMVAULT_PORT", "eighty")

        with pytest.raises(ValueError):
            ConfigLoader().load_config()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load_config(str(tmp_path / "missing.yaml"))

    def test_unsupported_format(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("")

        with pytest.raises(ValueError):
            ConfigLoader().load_config(str(path))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("server: [unclosed")

        with pytest.raises(ValueError):
            ConfigLoader().load_config(str(path))

    @pytest.mark.parametrize("fmt,suffix", [("yaml", ".yaml"), ("json", ".json")])
    def test_save_and_reload(self, tmp_path: Path, fmt: str, suffix: str) -> None:
        path = tmp_path / f"config{suffix}"
        loader = ConfigLoader()

        loader.save_config(ApplicationConfig(environment="development"), str(path), fmt)
        config = loader.load_config(str(path))

        assert config.environment == "development"
        assert config.upload.min_part_size == 5 * MIB

    def test_save_unknown_format(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ConfigLoader().save_config(ApplicationConfig(), str(tmp_path / "x.ini"), "ini")
