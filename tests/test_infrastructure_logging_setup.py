"""
Tests for logging setup and the upload audit log sink.
"""

import logging
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from loguru import logger as loguru_logger

from streamvault.infrastructure.config.models import LoggingConfig
from streamvault.infrastructure.logging.setup import (
    InterceptHandler, LoggingManager, setup_logging
)


@pytest.fixture
def log_config(tmp_path: Path) -> LoggingConfig:
    return LoggingConfig(
        level="DEBUG",
        log_directory=str(tmp_path / "logs"),
        console_enabled=False,
        file_enabled=True,
        audit_enabled=True,
    )


@pytest.fixture(autouse=True)
def restore_loguru():
    yield
    loguru_logger.remove()


class TestSetupLogging:
    """Test cases for setup_logging."""

    @patch('streamvault.infrastructure.logging.setup.loguru_logger')
    def test_sinks_follow_configuration(self, mock_loguru: Mock, log_config: LoggingConfig) -> None:
        log_config.console_enabled = True
        log_config.audit_enabled = False

        sink_ids = setup_logging(log_config)

        mock_loguru.remove.assert_called_once()
        assert mock_loguru.add.call_count == 2
        assert len(sink_ids) == 2
        assert Path(log_config.log_directory).is_dir()

    def test_standard_logging_is_intercepted(self, log_config: LoggingConfig) -> None:
        setup_logging(log_config)

        assert any(isinstance(h, InterceptHandler) for h in logging.getLogger().handlers)
        uvicorn_logger = logging.getLogger("uvicorn.error")
        assert isinstance(uvicorn_logger.handlers[0], InterceptHandler)
        assert uvicorn_logger.propagate is False

    def test_application_records_reach_file(self, log_config: LoggingConfig) -> None:
        setup_logging(log_config)

        logging.getLogger("streamvault.test").warning("part upload failed")
        loguru_logger.complete()

        app_log = Path(log_config.log_directory) / "app.log"
        assert "part upload failed" in app_log.read_text()


class TestLoggingManager:
    """Test cases for LoggingManager."""

    async def test_audit_records_go_to_audit_file_only(self, log_config: LoggingConfig) -> None:
        manager = LoggingManager(log_config)
        await manager.start()

        manager.log_audit("User uploaded file report.pdf on Sat, 17 Oct 2026 10:00:00 GMT")
        await manager.stop()

        audit = manager.audit_path.read_text()
        assert audit == "User uploaded file report.pdf on Sat, 17 Oct 2026 10:00:00 GMT\n"
        app_log = Path(log_config.log_directory) / "app.log"
        assert "report.pdf" not in app_log.read_text()

    async def test_audit_disabled(self, log_config: LoggingConfig) -> None:
        log_config.audit_enabled = False
        manager = LoggingManager(log_config)
        await manager.start()

        manager.log_audit("User uploaded file a.txt on today")
        health = await manager.check_health()
        await manager.stop()

        assert health["details"]["audit_records"] == 0
        assert not manager.audit_path.exists()

    async def test_health(self, log_config: LoggingConfig) -> None:
        manager = LoggingManager(log_config)
        assert (await manager.check_health())["status"] == "stopped"

        await manager.start()
        health = await manager.check_health()
        await manager.stop()

        assert health["healthy"] is True
        assert health["status"] == "running"
        assert health["details"]["log_directory_exists"] is True
