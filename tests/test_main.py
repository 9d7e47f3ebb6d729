"""
Tests for the command-line interface.
"""

from pathlib import Path
from unittest.mock import Mock, patch

import yaml
from typer.testing import CliRunner

from streamvault.infrastructure.config.models import ApplicationConfig
from streamvault.main import cli


class TestMainCLI:
    """CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_cli_help_command(self) -> None:
        result = self.runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "multipart uploads" in result.output

    @patch('streamvault.main.ConfigLoader')
    @patch('streamvault.main.setup_logging')
    @patch('streamvault.main.asyncio.run')
    def test_start_command_basic(self, mock_run: Mock, mock_setup_logging: Mock,
                                 mock_config_loader: Mock) -> None:
        mock_loader = Mock()
        mock_loader.load_config.return_value = ApplicationConfig()
        mock_config_loader.return_value = mock_loader

        result = self.runner.invoke(cli, ["start"])

        assert result.exit_code == 0
        mock_loader.load_config.assert_called_once_with(None)
        mock_setup_logging.assert_called_once()
        mock_run.assert_called_once()
        # The coroutine handed to the mocked asyncio.run is never awaited
        mock_run.call_args.args[0].close()

    @patch('streamvault.main.ConfigLoader')
    @patch('streamvault.main.setup_logging')
    @patch('streamvault.main.asyncio.run')
    def test_start_command_with_options(self, mock_run: Mock, mock_setup_logging: Mock,
                                        mock_config_loader: Mock) -> None:
        mock_loader = Mock()
        mock_config = ApplicationConfig()
        mock_loader.load_config.return_value = mock_config
        mock_config_loader.return_value = mock_loader

        result = self.runner.invoke(cli, [
            "start",
            "--config", "test.yaml",
            "--host", "0.0.0.0",
            "--port", "9000",
            "--log-level", "warning",
        ])

        assert result.exit_code == 0
        mock_loader.load_config.assert_called_once_with("test.yaml")
        assert mock_config.server.host == "0.0.0.0"
        assert mock_config.server.port == 9000
        assert mock_config.logging.level == "WARNING"
        assert mock_config.debug is False
        mock_run.call_args.args[0].close()

    @patch('streamvault.main.ConfigLoader')
    @patch('streamvault.main.setup_logging')
    @patch('streamvault.main.asyncio.run')
    def test_start_command_debug(self, mock_run: Mock, mock_setup_logging: Mock,
                                 mock_config_loader: Mock) -> None:
        mock_loader = Mock()
        mock_config = ApplicationConfig()
        mock_loader.load_config.return_value = mock_config
        mock_config_loader.return_value = mock_loader

        result = self.runner.invoke(cli, ["start", "--debug"])

        assert result.exit_code == 0
        assert mock_config.debug is True
        assert mock_config.logging.level == "DEBUG"
        mock_run.call_args.args[0].close()

    @patch('streamvault.main.ConfigLoader')
    @patch('streamvault.main.setup_logging')
    @patch('streamvault.main.asyncio.run')
    def test_start_command_bad_config(self, mock_run: Mock, mock_setup_logging: Mock,
                                      mock_config_loader: Mock) -> None:
        mock_loader = Mock()
        mock_loader.load_config.side_effect = FileNotFoundError("missing.yaml")
        mock_config_loader.return_value = mock_loader

        result = self.runner.invoke(cli, ["start", "--config", "missing.yaml"])

        assert result.exit_code == 1
        mock_setup_logging.assert_not_called()
        mock_run.assert_not_called()

    def test_init_config_command(self, tmp_path: Path) -> None:
        output = tmp_path / "streamvault.yaml"

        result = self.runner.invoke(cli, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text())
        assert data["storage"]["backend"] == "memory"
        assert data["upload"]["min_part_size"] == 5 * 1024 * 1024

    def test_init_config_unknown_format(self, tmp_path: Path) -> None:
        result = self.runner.invoke(
            cli, ["init-config", "--output", str(tmp_path / "c.toml"), "--format", "toml"]
        )

        assert result.exit_code == 1

    def test_validate_config_command_success(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({"upload": {"min_part_size": "8MiB"}}))

        result = self.runner.invoke(cli, ["validate-config", str(config_file)])

        assert result.exit_code == 0
        assert f"Configuration file {config_file} is valid" in result.output
        assert f"Minimum part size: {8 * 1024 * 1024} bytes" in result.output

    def test_validate_config_command_failure(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({"storage": {"backend": "floppy"}}))

        result = self.runner.invoke(cli, ["validate-config", str(config_file)])

        assert result.exit_code == 1

    def test_validate_config_missing_file(self, tmp_path: Path) -> None:
        result = self.runner.invoke(cli, ["validate-config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1

    def test_health_check_unreachable_server(self) -> None:
        result = self.runner.invoke(
            cli, ["health-check", "--host", "127.0.0.1", "--port", "1", "--timeout", "2"]
        )

        assert result.exit_code == 1
        assert "Health check failed" in result.output
