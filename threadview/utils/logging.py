"""Logging utility for the threadview application"""

import json
import logging
import re
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional

from rich.logging import RichHandler

from .paths import LOGS_DIR

ROOT_LOGGER_NAME = "threadview"
DEFAULT_MAX_BYTES = 5_242_880
DEFAULT_BACKUP_COUNT = 5


## Custom JSON Formatter


class JSONFormatter(logging.Formatter):
    """JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_entry["context"] = record.context

        return json.dumps(log_entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter to add contextual information."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        if "extra" not in kwargs:
            kwargs["extra"] = {}

        kwargs["extra"].update(self.extra)
        return msg, kwargs


## Log Masking


class SensitiveDataMasker:
    """Masks credentials in log messages."""

    PATTERNS = {
        "password": re.compile(
            r'(password["\']?\s*[:=]\s*["\']?)([^"\'}\s]+)', re.IGNORECASE
        ),
        "token": re.compile(
            r'(token["\']?\s*[:=]\s*["\']?)([^"\'}\s]+)', re.IGNORECASE
        ),
        "authorization": re.compile(
            r'(authorization["\']?\s*[:=]\s*["\']?(?:basic\s+|bearer\s+)?)([^"\'}\s]+)',
            re.IGNORECASE,
        ),
        "secret": re.compile(
            r'(secret["\']?\s*[:=]\s*["\']?)([^"\'}\s]+)', re.IGNORECASE
        ),
    }

    SENSITIVE_FIELDS = {
        "password",
        "passwd",
        "secret",
        "token",
        "authorization",
        "auth",
        "credential",
        "access_token",
        "cookie",
    }

    def mask_func(self, value: str) -> str:
        return "[REDACTED]"

    def mask_string(self, text: str) -> str:
        """Mask sensitive data in a string message."""

        if not text or not isinstance(text, str):
            return text

        masked = text
        for pattern in self.PATTERNS.values():
            masked = pattern.sub(lambda m: m.group(1) + self.mask_func(m.group(2)), masked)

        return masked

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive data in a dictionary."""

        masked = {}
        for key, value in data.items():
            if str(key).lower() in self.SENSITIVE_FIELDS:
                masked[key] = self.mask_func(str(value))
            elif isinstance(value, dict):
                masked[key] = self.mask_dict(value)
            elif isinstance(value, str):
                masked[key] = self.mask_string(value)
            else:
                masked[key] = value

        return masked


class SensitiveDataFilter(logging.Filter):
    """Logging filter to mask sensitive data in log records."""

    def __init__(self):
        super().__init__()
        self.masker = SensitiveDataMasker()

    def filter(self, record) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.masker.mask_string(record.msg)

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = self.masker.mask_dict(context)

        return True


## Main Log Manager


class LogManager:
    """Manages logging configuration and provides logger instances."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ):
        self.log_level = self._parse_level(log_level)
        self.log_dir = log_dir or LOGS_DIR
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.root_logger.setLevel(logging.DEBUG)
        self.root_logger.propagate = False
        self._setup_handlers()

    @staticmethod
    def _parse_level(level: str) -> int:
        value = logging.getLevelName(str(level).upper())
        if not isinstance(value, int):
            raise ValueError(f"Invalid logging level: {level}")
        return value

    def _setup_handlers(self) -> None:
        """Setup console and file handlers with sensitive data filtering."""

        from .errors import FileSystemError

        sensitive_filter = SensitiveDataFilter()

        self.root_logger.handlers.clear()

        console_handler = RichHandler(
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(max(logging.WARNING, self.log_level))
        console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        console_handler.addFilter(sensitive_filter)
        self.root_logger.addHandler(console_handler)

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            app_handler = RotatingFileHandler(
                self.log_dir / "app.log",
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            raise FileSystemError(
                f"Failed to create app.log handler in {self.log_dir}: {str(e)}"
            ) from e

        app_handler.setLevel(self.log_level)
        app_handler.setFormatter(JSONFormatter())
        app_handler.addFilter(sensitive_filter)
        self.root_logger.addHandler(app_handler)

    def get_logger(
        self, name: Optional[str] = None, **context
    ) -> logging.Logger | ContextAdapter:
        """Get a logger below the package root, optionally wrapped with context."""

        if name and name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        logger = logging.getLogger(name or ROOT_LOGGER_NAME)

        if context:
            return ContextAdapter(logger, context)

        return logger

    def set_level(self, level: str) -> None:
        """Set logging level at runtime."""

        self.log_level = self._parse_level(level)
        for handler in self.root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(max(logging.WARNING, self.log_level))
            else:
                handler.setLevel(self.log_level)

    def close(self) -> None:
        for handler in list(self.root_logger.handlers):
            handler.close()
            self.root_logger.removeHandler(handler)


## Decorators for Logging


def log_call(func):
    """Decorator to log function calls with their duration."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name}")
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


## Module-level LogManager Instance and Helper Functions

_log_manager: Optional[LogManager] = None


def init_logging(log_level: str = "INFO", **kwargs) -> LogManager:
    """Initialize logging system and return LogManager instance."""

    global _log_manager

    if _log_manager is None:
        _log_manager = LogManager(log_level, **kwargs)
    else:
        _log_manager.set_level(log_level)

    return _log_manager


def get_logger(
    name: Optional[str] = None, **context
) -> logging.Logger | ContextAdapter:
    """Get a logger instance with optional context.

    Loggers are plain children of the package root logger, so handlers
    installed later by ``init_logging`` still apply to them.
    """

    if _log_manager is not None:
        return _log_manager.get_logger(name, **context)

    if name and name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name or ROOT_LOGGER_NAME)
    if context:
        return ContextAdapter(logger, context)
    return logger


def reset_logging() -> None:
    """Drop the module-level LogManager (for testing purposes)."""

    global _log_manager
    if _log_manager is not None:
        _log_manager.close()
    _log_manager = None
