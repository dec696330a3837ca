from __future__ import annotations

import logging
import sys
import uuid

from loguru import logger as loguru_logger

# Attributes every LogRecord carries; anything else came in through ``extra=``
_STANDARD_FIELDS = {
    "args",
    "msg",
    "name",
    "levelno",
    "levelname",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "message",
}

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level> {extra}"
)


class InterceptHandler(logging.Handler):
    """Bridge stdlib logging records into loguru, keeping ``extra`` fields."""

    def emit(self, record: logging.LogRecord) -> None:
        level: int | str
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in _STANDARD_FIELDS
        }

        # Walk past the logging module frames so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.bind(logger_name=record.name, **extra).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    *,
    json_logs: bool = False,
    log_file: str | None = None,
    max_file_size: str = "10 MB",
    retention: str = "14 days",
) -> None:
    """Configure loguru sinks and route stdlib logging through them.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Serialize records as JSON lines instead of colored text
        log_file: Optional log file path for persistent logging
        max_file_size: Rotation size per log file (loguru format)
        retention: Log retention period (loguru format)
    """
    level = level.upper()
    loguru_logger.remove()

    if json_logs:
        loguru_logger.add(sys.stderr, level=level, serialize=True, backtrace=True)
    else:
        loguru_logger.add(sys.stderr, level=level, format=_TEXT_FORMAT, backtrace=True)

    if log_file:
        loguru_logger.add(
            log_file,
            level=level,
            serialize=True,
            rotation=max_file_size,
            retention=retention,
            compression="gz",
            enqueue=True,
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.addHandler(InterceptHandler())

    # httpx logs every request at INFO
    for noisy_logger in ("httpx", "httpcore"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    loguru_logger.debug(
        "logging_initialized", json_logs=json_logs, level=level, log_file=log_file
    )


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing one append across log lines."""
    return uuid.uuid4().hex[:12]


def truncate_log_content(content: str | None, max_length: int = 200) -> str | None:
    """Truncate large content for logging and error details."""
    if not content:
        return content
    if len(content) <= max_length:
        return content
    return content[:max_length] + "... [truncated]"


__all__ = [
    "InterceptHandler",
    "generate_correlation_id",
    "setup_logging",
    "truncate_log_content",
]
