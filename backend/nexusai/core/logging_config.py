"""
Centralized logging configuration for the NexusAI backend.

Console output is colored and human-readable; the rotating log file gets one
JSON object per line. Structured fields travel on the record as
``extra={"extra_fields": {...}}`` and are merged into the JSON output.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SENSITIVE_KEYS = ('password', 'token', 'secret', 'authorization', 'api_key', 'api-key')

# Chatty third-party loggers
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name with ANSI codes."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        original = record.levelname
        record.levelname = f"{color}{original:8s}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_data.update(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(path: str, level: int, json_format: bool) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # 10 MB per file, 5 backups
    handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Any) -> None:
    """
    Configure the root logger from application settings.

    Args:
        config: Settings object with the log_* options
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if config.log_console_enabled:
        root_logger.addHandler(_console_handler(log_level))

    if config.log_file_enabled:
        root_logger.addHandler(
            _file_handler(config.log_file_path, log_level, config.log_json_format)
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={config.log_level.upper()}, "
        f"console={config.log_console_enabled}, "
        f"file={config.log_file_enabled}"
    )


def filter_sensitive_data(data: Any, sensitive_keys: Optional[Iterable[str]] = None) -> Any:
    """
    Mask values of sensitive keys (passwords, tokens, secrets) in nested data.

    Args:
        data: dict, list, or primitive
        sensitive_keys: Key fragments to mask (default: SENSITIVE_KEYS)

    Returns:
        Copy of data with sensitive values replaced by "***FILTERED***"
    """
    keys = tuple(sensitive_keys) if sensitive_keys is not None else SENSITIVE_KEYS

    if isinstance(data, dict):
        return {
            key: "***FILTERED***" if any(s in str(key).lower() for s in keys)
            else filter_sensitive_data(value, keys)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [filter_sensitive_data(item, keys) for item in data]
    return data


def truncate_large_data(data: str, max_length: int = 5000) -> str:
    """Cut long strings for logging, noting the original length."""
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"
