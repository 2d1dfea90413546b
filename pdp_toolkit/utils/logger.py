# pdp_toolkit/utils/logger.py
"""Logging utilities for pdp_toolkit package.

This module provides centralized logging configuration for the package
with a structured formatter and optional rotating log files.
"""

import logging
import logging.handlers
import sys
import json
from pathlib import Path
from typing import Optional, Dict, Any, Union
from datetime import datetime
import threading

from .exceptions import ConfigurationError

PACKAGE_LOGGER = 'pdp_toolkit'


class PDPFormatter(logging.Formatter):
    """Custom formatter for pdp_toolkit package logs.

    Provides structured logging with consistent format across
    all package modules, including timestamp, level, module,
    and optional context information.
    """

    def __init__(self, include_context: bool = True) -> None:
        """Initialize formatter.

        Args:
            include_context: Whether to include context fields in output
        """
        self.include_context = include_context
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with pdp_toolkit structure.

        Args:
            record: Log record to format

        Returns:
            Formatted log string
        """
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
        level = record.levelname
        module = record.name
        message = record.getMessage()

        context_str = ""
        if self.include_context and hasattr(record, 'context'):
            context_str = f" | Context: {json.dumps(record.context, default=str)}"

        perf_str = ""
        if hasattr(record, 'duration'):
            perf_str = f" | Duration: {record.duration:.3f}s"

        return f"[{timestamp}] {level:8s} | {module:20s} | {message}{context_str}{perf_str}"


class PDPLogger:
    """Centralized logger management for pdp_toolkit package."""

    _loggers: Dict[str, logging.Logger] = {}
    _configured: bool = False
    _lock = threading.Lock()

    @classmethod
    def configure(
        cls,
        level: Union[str, int] = logging.INFO,
        log_file: Optional[Union[str, Path]] = None,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        format_style: str = "detailed",
        include_console: bool = True
    ) -> None:
        """Configure package-wide logging settings.

        Only the first call has an effect; later calls are ignored until
        the configuration is reset.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional log file path
            max_file_size: Maximum log file size before rotation
            backup_count: Number of backup files to keep
            format_style: Formatting style ('simple' or 'detailed')
            include_console: Whether to include console output
        """
        with cls._lock:
            if cls._configured:
                return

            level = _to_level(level)

            root_logger = logging.getLogger(PACKAGE_LOGGER)
            root_logger.setLevel(level)
            root_logger.handlers.clear()

            formatter = PDPFormatter(include_context=format_style == "detailed")

            if include_console:
                console_handler = logging.StreamHandler(sys.stdout)
                console_handler.setLevel(level)
                console_handler.setFormatter(formatter)
                root_logger.addHandler(console_handler)

            if log_file:
                try:
                    log_path = Path(log_file)
                    log_path.parent.mkdir(parents=True, exist_ok=True)

                    file_handler = logging.handlers.RotatingFileHandler(
                        log_path,
                        maxBytes=max_file_size,
                        backupCount=backup_count,
                        encoding='utf-8'
                    )
                    file_handler.setLevel(level)
                    file_handler.setFormatter(formatter)
                    root_logger.addHandler(file_handler)

                except OSError as e:
                    raise ConfigurationError(
                        f"Failed to create log file handler: {log_file}",
                        error_code="LOG_FILE_SETUP_FAILED",
                        context={'log_file': str(log_file), 'error': str(e)}
                    ) from e

            cls._configured = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger instance for the specified module.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger under the package logger
        """
        if not cls._configured:
            cls.configure()

        # Everything lives under the package logger
        if not name.startswith(PACKAGE_LOGGER):
            if name == '__main__':
                name = f'{PACKAGE_LOGGER}.main'
            else:
                name = f'{PACKAGE_LOGGER}.{name.split(".")[-1]}'

        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)
        return cls._loggers[name]

    @classmethod
    def set_level(cls, level: Union[str, int]) -> None:
        """Change logging level for all package loggers.

        Args:
            level: New logging level
        """
        level = _to_level(level)

        root_logger = logging.getLogger(PACKAGE_LOGGER)
        root_logger.setLevel(level)

        for handler in root_logger.handlers:
            handler.setLevel(level)

    @classmethod
    def reset(cls) -> None:
        """Drop handlers and forget the current configuration."""
        with cls._lock:
            root_logger = logging.getLogger(PACKAGE_LOGGER)
            root_logger.handlers.clear()
            root_logger.filters.clear()
            root_logger.setLevel(logging.NOTSET)
            cls._loggers = {}
            cls._configured = False


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ConfigurationError(
                f"Unknown log level: {level}",
                error_code="LOG_LEVEL_INVALID",
                context={'level': level}
            )
        return resolved
    return level


# Convenience functions
def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance

    Example:
        >>> from pdp_toolkit.utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Grid built")
    """
    return PDPLogger.get_logger(name)


def configure_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    **kwargs: Any
) -> None:
    """Configure package-wide logging settings.

    Args:
        level: Logging level
        log_file: Optional log file path
        **kwargs: Additional configuration options

    Example:
        >>> from pdp_toolkit.utils.logger import configure_logging
        >>> configure_logging(level="DEBUG", log_file="logs/pdp_toolkit.log")
    """
    PDPLogger.configure(level=level, log_file=log_file, **kwargs)


def set_log_level(level: Union[str, int]) -> None:
    """Change logging level for all package loggers.

    Args:
        level: New logging level
    """
    PDPLogger.set_level(level)


class temporary_log_level:
    """Context manager for temporary log level changes.

    Example:
        >>> with temporary_log_level("DEBUG"):
        ...     compute_dependence(model, X, ["x"])
    """

    def __init__(self, level: Union[str, int]) -> None:
        self.temp_level = _to_level(level)
        self.original_level: Optional[int] = None

    def __enter__(self) -> None:
        root_logger = logging.getLogger(PACKAGE_LOGGER)
        self.original_level = root_logger.level
        PDPLogger.set_level(self.temp_level)

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.original_level is not None:
            PDPLogger.set_level(self.original_level)
