#!/usr/bin/env python3
"""
🔍 Centralized Logging System for Chain Timer
Console logging with colors in development, structured JSON on request,
optional rotating log files
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

IS_DEV_MODE = '--dev' in sys.argv or os.getenv('CHAINTIMER_DEV') == '1'

# JSON logging for log aggregation (journalctl, Loki, ...)
ENABLE_JSON_LOGS = os.getenv('CHAINTIMER_JSON_LOGS', '0') == '1'

LOG_LEVEL = logging.DEBUG if IS_DEV_MODE else logging.INFO
ENABLE_FILE_LOGGING = os.getenv('CHAINTIMER_FILE_LOG', '0') == '1'
MAX_LOG_SIZE = 5 * 1024 * 1024
BACKUP_COUNT = 3


def _get_app_log_dir() -> Path:
    """Get application log directory path-agnostically"""
    env_log_dir = os.getenv('CHAINTIMER_LOG_DIR')
    if env_log_dir:
        return Path(env_log_dir)
    app_name = os.getenv("CHAINTIMER_APP_NAME", "chaintimer")
    return Path.home() / f".{app_name}" / "logs"


LOG_DIR = _get_app_log_dir()

# ---- Environment overrides (systemd friendly) ----
_env_level = os.getenv('CHAINTIMER_LOG_LEVEL')
if _env_level:
    LOG_LEVEL = getattr(logging, _env_level.upper(), LOG_LEVEL)

_RESERVED_RECORD_KEYS = frozenset((
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

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, 'no_color', False):
            return super().format(record)

        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        original = record.levelname
        record.levelname = f"{color}{record.levelname}{reset}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """Structured JSON formatter.

    Example output:
        {"level": "INFO", "logger": "chain.session",
         "message": "Alarm threshold crossed (59s left)",
         "timestamp": "2025-11-04T10:30:00.123456Z"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat().replace('+00:00', 'Z'),
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
            if key in _RESERVED_RECORD_KEYS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=True, sort_keys=True)


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s'
    )


def setup_logger(name: str) -> logging.Logger:
    """
    Sets up a logger with appropriate handlers based on environment

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
    if ENABLE_JSON_LOGS:
        console_handler.setFormatter(JSONFormatter())
    elif sys.stderr.isatty():
        console_handler.setFormatter(ColoredFormatter('%(asctime)s | %(name)s | %(levelname)s | %(message)s'))
    else:
        console_handler.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(message)s'))
    logger.addHandler(console_handler)

    if ENABLE_FILE_LOGGING:
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / "chaintimer.log",
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setLevel(LOG_LEVEL)
            file_handler.setFormatter(JSONFormatter() if ENABLE_JSON_LOGS else _plain_formatter())
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"File logging disabled, {LOG_DIR} not writable: {e}")

    return logger


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Initialize logging for the whole application.

    ``chain.*`` loggers propagate into the ``chain`` logger configured here.

    Args:
        level: Level name from the config file; CHAINTIMER_LOG_LEVEL wins over it

    Returns:
        logging.Logger: The main logger instance
    """
    logger = setup_logger("chain")
    if level and not _env_level:
        numeric = getattr(logging, level.upper(), None)
        if isinstance(numeric, int):
            logger.setLevel(numeric)
            for handler in logger.handlers:
                handler.setLevel(numeric)
    return logger


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log a message with structured context fields.

    In JSON mode, context fields appear as separate JSON keys. Otherwise
    they're appended to the message as key=value pairs.

    Example:
        >>> log_structured(logger, logging.INFO, "Snapshot applied",
        ...                hits=1250, timeout=287, compensated=285)
    """
    if ENABLE_JSON_LOGS:
        logger.log(level, message, extra=context)
    elif context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        logger.log(level, f"{message} | {context_str}")
    else:
        logger.log(level, message)


def log_shutdown(logger: logging.Logger, component_name: str) -> None:
    """Log component shutdown and flush handlers."""
    logger.info(f"🛑 Shutting down {component_name}")
    for handler in logger.handlers:
        handler.flush()
