# watchrun/utils/logger.py

"""
Logging configuration for watchrun
"""
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

LOG_LEVEL_ENV = "LOG_LEVEL"

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that flood DEBUG output
_NOISY_LOGGERS = ('watchdog', 'asyncio')


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra={'context': {...}}`` is merged in"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc)
                                 .isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.threadName and record.threadName != 'MainThread':
            entry['thread'] = record.threadName
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        context = getattr(record, 'context', None)
        if isinstance(context, dict):
            entry.update(context)

        return json.dumps(entry, default=str)


class ColorFormatter(logging.Formatter):
    """Text formatter that colors the level name, and the whole line from ERROR up"""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[41m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # Other handlers must keep seeing the plain record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        line = super().format(colored)
        if record.levelno >= logging.ERROR:
            line = f"{color}{line}{self.RESET}"
        return line


def _make_formatter(log_format: str, console: bool) -> logging.Formatter:
    log_format = log_format.lower()
    if log_format == "json":
        return JsonFormatter()
    # Escape codes only make sense on a terminal
    if log_format == "color" and console:
        return ColorFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def _level_name(requested: str) -> Optional[str]:
    name = requested.strip().upper()
    if name == "WARN":
        name = "WARNING"
    if not isinstance(logging.getLevelName(name), int):
        return None
    return name


def resolve_log_level(config_level: Optional[str] = None) -> str:
    """
    Pick the effective log level name

    The ``LOG_LEVEL`` environment variable wins over the configured value.
    Unknown names fall back to INFO.
    """
    requested = os.environ.get(LOG_LEVEL_ENV) or config_level or "INFO"
    return _level_name(requested) or "INFO"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: str = "text",  # text, json, or color
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure the root logger for a watchrun process

    Diagnostics go to stderr; a rotating log file is added when
    ``log_file`` is set.

    Args:
        log_level: Level name from the configuration (``LOG_LEVEL`` overrides it)
        log_file: Optional path of a rotating log file
        log_format: ``text``, ``json`` or ``color``
        max_file_size: Size in bytes at which the log file rotates
        backup_count: Number of rotated files to keep
    """
    requested = os.environ.get(LOG_LEVEL_ENV) or log_level or "INFO"
    effective = resolve_log_level(log_level)
    level = logging.getLevelName(effective)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=log_path,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8',
        ))

    for handler in handlers:
        console = not isinstance(handler, RotatingFileHandler)
        handler.setFormatter(_make_formatter(log_format, console))
        handler.setLevel(level)
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if _level_name(requested) is None:
        root_logger.warning(f"Unknown log level '{requested}', using {effective}")
    if log_file:
        root_logger.info(f"Logging to file: {log_path}")
    root_logger.info(f"Logging configured. Level: {effective}, Format: {log_format}")

    return root_logger


def log_exception(logger: logging.Logger, exception: Exception,
                  message: str = "Exception occurred", extra: Optional[Dict] = None):
    """
    Log *exception* with its traceback at ERROR

    Args:
        logger: Logger instance
        exception: Exception to log
        message: Custom message
        extra: Context merged into structured (JSON) output
    """
    exc_info = (type(exception), exception, exception.__traceback__)
    logger.error(message, exc_info=exc_info, extra={'context': extra or {}})


class PerformanceLogger:
    """Times a block and logs the duration at DEBUG on the ``performance`` logger"""

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None,
                 extra: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.logger = logger or logging.getLogger('performance')
        self.extra = extra or {}
        self.duration: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self._started
        context = {'operation': self.operation, 'duration_seconds': self.duration, **self.extra}

        if exc_type is not None:
            context['error'] = str(exc_val)
            outcome = "failed after"
        else:
            outcome = "finished in"
        self.logger.debug(f"{self.operation} {outcome} {self.duration:.3f}s",
                          extra={'context': context})
        return False
