#!/usr/bin/env python3
"""
🔍 Centralized Logging System for SpotiRelay
Console logging with colours in development, structured JSON logging for
production observability and optional rotating log files.
"""

import copy
import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

LOG_LEVEL = logging.INFO
_env_level = os.getenv('SPOTIRELAY_LOG_LEVEL')
if _env_level:
    LOG_LEVEL = getattr(logging, _env_level.upper(), LOG_LEVEL)

ENABLE_JSON_LOGS = os.getenv('SPOTIRELAY_JSON_LOGS', '0') == '1'
MAX_LOG_SIZE = 5 * 1024 * 1024
BACKUP_COUNT = 3

_env_log_dir = os.getenv('SPOTIRELAY_LOG_DIR')
LOG_DIR: Optional[Path] = Path(_env_log_dir) if _env_log_dir else None

FILE_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s'

# LogRecord attributes that are not user supplied ``extra`` fields
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'no_color',
))


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self) -> None:
        super().__init__('%(asctime)s | %(levelname)s | %(name)s | %(message)s', datefmt='%H:%M:%S')

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, 'no_color', False):
            return super().format(record)

        # Work on a copy so other handlers never see the escape codes
        record = copy.copy(record)
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """Structured JSON formatter for production observability.

    Example output:
        {"level": "INFO", "logger": "spotirelay.oauth", "message": "token.refresh.ok",
         "elapsed": 0.231, "timestamp": "2025-11-04T10:30:00.123000Z"}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            'timestamp': created.isoformat(timespec='microseconds').replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_data['source'] = f"{record.filename}:{record.lineno}"
            log_data['function'] = record.funcName

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Fields passed via logger.info("msg", extra={...})
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_data:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=True, sort_keys=True, default=str)


def setup_logging() -> logging.Logger:
    """Initialize logging for the whole ``spotirelay`` package.

    Returns:
        logging.Logger: The package root logger
    """
    return setup_logger("spotirelay")


def setup_logger(name: str) -> logging.Logger:
    """
    Sets up a logger with console (and optionally file) handlers

    Args:
        name: Logger name (usually module name)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(JSONFormatter() if ENABLE_JSON_LOGS else ColoredFormatter())
    logger.addHandler(console_handler)

    if LOG_DIR is not None:
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / "spotirelay.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
        except OSError as exc:
            logger.warning("File logging disabled, %s not writable: %s", LOG_DIR, exc)
        else:
            file_handler.setLevel(LOG_LEVEL)
            file_handler.setFormatter(JSONFormatter() if ENABLE_JSON_LOGS else logging.Formatter(FILE_FORMAT))
            logger.addHandler(file_handler)

    return logger


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log a message with structured context fields.

    In JSON mode, context fields appear as separate JSON keys. With the plain
    formatters they're appended to the message as ``key=value`` pairs.

    Example:
        >>> log_structured(logger, logging.INFO, "playback.play",
        ...                uri="spotify:track:abc123", outcome="success")
    """
    if ENABLE_JSON_LOGS:
        logger.log(level, message, extra=context)
    elif context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        logger.log(level, f"{message} | {context_str}")
    else:
        logger.log(level, message)
