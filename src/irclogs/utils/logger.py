"""
Logging setup for the IRC log service using Python's standard logging
with JSON formatting for structured logs.

Log destinations:
- Console (stderr): Human-readable format for debugging
- var/logs/events.jsonl: JSON format for ask sessions, tool calls and model usage
- var/logs/errors.jsonl: JSON format for error tracking
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys

from pathlib import Path
from typing import Any, cast

from pythonjsonlogger import json as jsonlogger

from irclogs.core.constants import (
    LOG_BACKUP_COUNT_ERRORS,
    LOG_BACKUP_COUNT_EVENTS,
    LOG_MAX_SIZE,
    LOG_PREVIEW_LENGTH,
    PROJECT_ROOT,
)


class EventFilter(logging.Filter):
    """Filter to allow all INFO level logs for the event log"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.INFO


class ErrorFilter(logging.Filter):
    """Filter to only allow ERROR and CRITICAL logs"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to log levels and standardizes format.
    Format: HH:MM:SS [LEVEL] logger_name - message
    """

    # ANSI color codes
    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        level_fmt = f"[{record.levelname}]"
        if color:
            level_fmt = f"{color}{level_fmt}{self.RESET}"

        record.asctime = self.formatTime(record, "%H:%M:%S")

        # uvicorn access records carry (client_addr, method, full_path, http_version, status_code)
        if record.name == "uvicorn.access" and record.args and len(record.args) == 5:
            client_addr, method, full_path, http_version, status_code = record.args

            status_code_num = int(cast(Any, status_code))
            if status_code_num < 400:
                status_code_fmt = f"{self.GREEN}{status_code}{self.RESET}"
            elif status_code_num < 500:
                status_code_fmt = f"{self.YELLOW}{status_code}{self.RESET}"
            else:
                status_code_fmt = f"{self.RED}{status_code}{self.RESET}"

            method_fmt = f"\x1b[1m{method}\x1b[0m"
            message = f'{client_addr} - "{method_fmt} {full_path} HTTP/{http_version}" {status_code_fmt}'
            return f"{record.asctime} {level_fmt} {record.name} - {message}"

        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{record.asctime} {level_fmt} {record.name} - {message}"


def configure_uvicorn_logging() -> None:
    """
    Configure uvicorn loggers to use our standard colored formatting.
    This ensures uvicorn logs (access, error) match the application log style.
    """
    formatter = ColoredConsoleFormatter()

    main_logger = logging.getLogger("uvicorn")
    main_logger.handlers = []
    main_logger.setLevel(logging.INFO)

    for name in ("uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers = []
        uv_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        uv_logger.addHandler(handler)
        uv_logger.propagate = False


def setup_logging(
    name: str = "irclogs",
    debug: bool | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Set up logging with a console handler and rotating JSON file handlers.

    Args:
        name: Logger name
        debug: Enable debug logging (overrides DEBUG env var)
        log_dir: Directory for the JSONL files (defaults to <project>/var/logs)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level
    logger.handlers = []

    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

    # --- Console Handler (Human-readable) ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    logger.addHandler(console_handler)

    log_dir = log_dir or Path(os.getenv("IRCLOGS_LOG_DIR", str(PROJECT_ROOT / "var" / "logs")))
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"JSON log files disabled, cannot create {log_dir}: {e}")
        return logger

    # --- Event Log Handler (JSON) ---
    event_handler = logging.handlers.RotatingFileHandler(
        log_dir / "events.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_EVENTS,
        encoding="utf-8",
    )
    event_handler.setLevel(logging.INFO)
    event_handler.addFilter(EventFilter())
    event_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(message)s %(session_id)s %(tool)s %(tokens)s",
            timestamp=True,
        )
    )
    logger.addHandler(event_handler)

    # --- Error Log Handler (JSON) ---
    error_handler = logging.handlers.RotatingFileHandler(
        log_dir / "errors.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_ERRORS,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.addFilter(ErrorFilter())
    error_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(name)s %(message)s",
            timestamp=True,
        )
    )
    logger.addHandler(error_handler)

    return logger


def _preview(text: str, limit: int = LOG_PREVIEW_LENGTH) -> str:
    flat = text.replace("\n", " ")
    return flat[:limit] + "..." if len(flat) > limit else flat


class AppLogger:
    """
    High-level logging interface for the IRC log service.
    Wraps standard Python logging with convenience methods.
    """

    def __init__(self, name: str = "irclogs"):
        self.logger = setup_logging(name)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Debug level logging"""
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Info level logging"""
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Warning level logging"""
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Error level logging with optional exception info"""
        self.logger.error(message, extra=kwargs, exc_info=exc_info)

    def log_tool_call(
        self,
        session_id: str,
        tool_name: str,
        summary: str,
        result: str,
        duration_ms: float | None = None,
    ) -> None:
        """Log one dispatched tool call with a short result preview."""
        msg = f"Tool: {tool_name}({_preview(summary)}) → {_preview(result)}"
        extra: dict[str, Any] = {
            "session_id": session_id,
            "tool": tool_name,
            "result_chars": len(result),
        }
        if duration_ms is not None:
            msg += f" [{duration_ms:.0f}ms]"
            extra["ms"] = int(duration_ms)
        self.logger.info(msg, extra=extra)

    def log_session_turn(
        self,
        session_id: str,
        turn: int,
        stop_reason: str,
        input_tokens: int = 0,
        cache_creation_tokens: int = 0,
        cache_read_tokens: int = 0,
        output_tokens: int = 0,
    ) -> None:
        """Log token usage of one model turn."""
        self.logger.info(
            f"Turn {turn} [{stop_reason}] tokens: input={input_tokens} "
            f"cache_create={cache_creation_tokens} cache_read={cache_read_tokens} output={output_tokens}",
            extra={
                "session_id": session_id,
                "turn": turn,
                "stop_reason": stop_reason,
                "tokens": {
                    "input": input_tokens,
                    "cache_creation": cache_creation_tokens,
                    "cache_read": cache_read_tokens,
                    "output": output_tokens,
                },
            },
        )


# Global logger instance
logger = AppLogger()
