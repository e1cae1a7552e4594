"""Logging configuration for mediaforge.

Provides centralized logging setup with proper formatting, rotation and
level management. Only the ``mediaforge`` logger hierarchy is configured;
the root logger belongs to the host application and is never touched.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import threading
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = "mediaforge"


def _normalize_logger_name(name: Optional[str]) -> Optional[str]:
    """Return a clean logger name without forcing a mediaforge prefix."""

    if name is None:
        return None

    normalized = name.strip().lstrip(".")
    return normalized or None


class LogConfig:
    """Centralized logging configuration."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    DEFAULT_LEVEL = INFO
    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    LOG_DIR = Path.cwd() / "mediaforge_logs"
    LOG_FILE = "mediaforge.log"
    MAX_BYTES = 10 * 1024 * 1024
    BACKUP_COUNT = 5

    _initialised = False
    _init_lock = threading.Lock()
    _file_handler: Optional[logging.handlers.RotatingFileHandler] = None

    @classmethod
    def _resolve_level(cls, level: Optional[Union[str, int]]) -> Optional[int]:
        if level is None:
            return cls.DEFAULT_LEVEL
        if isinstance(level, int):
            return level
        text = str(level).strip().upper()
        if not text:
            return cls.DEFAULT_LEVEL
        if text in {"OFF", "NONE", "DISABLED", "DISABLE"}:
            return None
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARN": logging.WARNING,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(text, cls.DEFAULT_LEVEL)

    @classmethod
    def setup_logging(
        cls,
        level: Optional[Union[str, int]] = None,
        log_file: Union[bool, str, Path] = False,
        console: bool = True,
        format_string: Optional[str] = None,
        date_format: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        """Setup logging for the mediaforge logger hierarchy only.

        Args:
            level: Level name or number; ``"OFF"`` disables output
            log_file: ``True`` for the default rotating file, a path for a
                custom one, ``False`` for console only
            console: Whether to attach a stdout handler
            format_string: Record format
            date_format: Timestamp format
            max_bytes: Rotation size for the file handler
            backup_count: Number of rotated files kept
        """
        with cls._init_lock:
            if cls._initialised:
                return

            if level is None:
                if os.environ.get("MEDIAFORGE_LOGGING_DISABLED") == "1":
                    level = logging.CRITICAL
                elif os.environ.get("MEDIAFORGE_LOG_LEVEL"):
                    level = os.environ["MEDIAFORGE_LOG_LEVEL"]

            resolved_level = cls._resolve_level(level)
            formatter = logging.Formatter(
                format_string or cls.DEFAULT_FORMAT,
                date_format or cls.DEFAULT_DATE_FORMAT,
            )

            mf_logger = logging.getLogger(ROOT_LOGGER_NAME)
            mf_logger.setLevel(resolved_level or logging.CRITICAL)
            mf_logger.handlers.clear()
            mf_logger.propagate = True
            cls._file_handler = None
            cls._configure_module_loggers()

            if resolved_level is None:
                mf_logger.addHandler(logging.NullHandler())
                cls._initialised = True
                return

            if console:
                console_handler = logging.StreamHandler(sys.stdout)
                console_handler.setLevel(resolved_level)
                console_handler.setFormatter(formatter)
                mf_logger.addHandler(console_handler)

            log_path = None
            if log_file:
                candidate = Path(log_file) if isinstance(log_file, (str, Path)) else cls.LOG_DIR / cls.LOG_FILE
                try:
                    candidate.parent.mkdir(parents=True, exist_ok=True)
                    file_handler = logging.handlers.RotatingFileHandler(
                        candidate,
                        maxBytes=max_bytes or cls.MAX_BYTES,
                        backupCount=backup_count or cls.BACKUP_COUNT,
                    )
                    file_handler.setLevel(resolved_level)
                    file_handler.setFormatter(formatter)
                    mf_logger.addHandler(file_handler)
                    cls._file_handler = file_handler
                    log_path = candidate
                except OSError as exc:
                    mf_logger.warning("mediaforge.logging file handler disabled: %s", exc)

            mf_logger.debug("mediaforge logging initialized at %s", logging.getLevelName(resolved_level))
            if log_path:
                mf_logger.debug("Log file: %s", log_path)

            cls._initialised = True

    @classmethod
    def _configure_module_loggers(cls) -> None:
        logging.getLogger("PIL").setLevel(logging.WARNING)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        normalized = _normalize_logger_name(name) or ROOT_LOGGER_NAME
        return logging.getLogger(normalized)

    @classmethod
    def set_level(cls, level: int, logger_name: Optional[str] = None) -> None:
        target = logging.getLogger(_normalize_logger_name(logger_name) or ROOT_LOGGER_NAME)
        target.setLevel(level)
        for handler in target.handlers:
            handler.setLevel(level)

    @classmethod
    def reset(cls) -> None:
        """Drop our handlers so the next setup call starts from scratch."""
        with cls._init_lock:
            mf_logger = logging.getLogger(ROOT_LOGGER_NAME)
            for handler in mf_logger.handlers[:]:
                mf_logger.removeHandler(handler)
                handler.close()
            cls._file_handler = None
            cls._initialised = False


def get_logger(name: str) -> logging.Logger:
    if not LogConfig._initialised:
        LogConfig.setup_logging()
    return LogConfig.get_logger(name)


def setup_logging(**kwargs) -> None:
    LogConfig.setup_logging(**kwargs)
