"""
Logging setup and configuration utilities.

This module provides centralized logging configuration using loguru with file
rotation, a dedicated upload audit log, and interception of standard library
logging so that ``logging.getLogger(__name__)`` records end up in the same
sinks.
"""

import inspect
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger as loguru_logger

from ...core.interfaces.lifecycle import IComponent
from ..config.models import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"
AUDIT_FORMAT = "{message}"


class InterceptHandler(logging.Handler):
    """Route standard library log records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside of the logging module
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage())


def _is_audit_record(record: Dict[str, Any]) -> bool:
    return bool(record["extra"].get("audit"))


def _is_application_record(record: Dict[str, Any]) -> bool:
    return not record["extra"].get("audit")


def setup_logging(config: LoggingConfig) -> List[int]:
    """
    Setup application logging with the given configuration.

    Args:
        config: Logging configuration

    Returns:
        Ids of the loguru sinks that were added
    """
    loguru_logger.remove()
    sink_ids: List[int] = []

    log_dir = Path(config.log_directory)
    if config.file_enabled or config.audit_enabled:
        log_dir.mkdir(parents=True, exist_ok=True)

    if config.console_enabled:
        sink_ids.append(loguru_logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=config.level,
            colorize=True,
            backtrace=True,
            diagnose=False,
            filter=_is_application_record
        ))

    if config.file_enabled:
        sink_ids.append(loguru_logger.add(
            log_dir / "app.log",
            format=FILE_FORMAT,
            level=config.level,
            rotation=config.max_file_size,
            retention=config.backup_count,
            compression="zip",
            backtrace=True,
            diagnose=False,
            filter=_is_application_record
        ))

    if config.audit_enabled:
        # Audit lines are always written, regardless of the configured level
        sink_ids.append(loguru_logger.add(
            log_dir / config.audit_file,
            format=AUDIT_FORMAT,
            level="INFO",
            filter=_is_audit_record,
            enqueue=True
        ))

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    return sink_ids


class LoggingManager(IComponent):
    """
    Logging manager for runtime logging configuration.

    Owns the loguru sinks for the lifetime of the application and exposes
    the audit log used for completed uploads.
    """

    def __init__(self, config: LoggingConfig) -> None:
        self._config = config
        self._started = False
        self._sink_ids: List[int] = []
        self._audit_count = 0
        self._logger = logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return "LoggingManager"

    @property
    def audit_path(self) -> Path:
        return Path(self._config.log_directory) / self._config.audit_file

    async def start(self) -> None:
        if self._started:
            return

        self._sink_ids = setup_logging(self._config)
        self._started = True

        self._logger.info(f"Log level: {self._config.level}")
        self._logger.info(f"Log directory: {self._config.log_directory}")

    async def stop(self) -> None:
        if not self._started:
            return

        self._logger.info("Logging manager stopped")
        # Flush enqueued audit records before the process exits
        await loguru_logger.complete()
        self._started = False

    async def check_health(self) -> Dict[str, Any]:
        log_dir = Path(self._config.log_directory)

        return {
            'healthy': True,
            'status': 'running' if self._started else 'stopped',
            'details': {
                'log_level': self._config.level,
                'log_directory': str(log_dir),
                'log_directory_exists': log_dir.exists(),
                'console_enabled': self._config.console_enabled,
                'file_enabled': self._config.file_enabled,
                'audit_enabled': self._config.audit_enabled,
                'audit_records': self._audit_count,
            }
        }

    def log_audit(self, message: str, **kwargs: Any) -> None:
        """
        Append a line to the audit log.

        Args:
            message: Audit line
            **kwargs: Additional context bound to the record
        """
        if not self._config.audit_enabled:
            return
        loguru_logger.bind(audit=True, **kwargs).info(message)
        self._audit_count += 1
