"""
Structured logging configuration for MediaVault.

Provides a JSON formatter for log aggregation, a plain-text formatter for
local development, application-wide setup (including Uvicorn and noisy
third-party loggers) and a LoggerAdapter helper that binds request context
such as ``video_id`` and ``user_id`` to every record.

Usage:
    from mediavault.utils.logger import add_log_context, setup_logging

    setup_logging(log_level="info", json_logs=True)
    log = add_log_context(logging.getLogger(__name__), video_id=video_id)
    log.info("Upload started")
"""

import json
import logging
import sys
import traceback

from datetime import UTC, datetime
from typing import Any


LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Libraries whose INFO/DEBUG chatter drowns application logs
THIRD_PARTY_LOGGERS: list[str] = [
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "multipart",
    "python_multipart",
    "asyncio",
]

UVICORN_LOGGERS: list[str] = ["uvicorn", "uvicorn.access", "uvicorn.error"]


class JSONFormatter(logging.Formatter):
    """
    Render each LogRecord as one compact JSON object.

    Output keys: timestamp (ISO 8601, UTC), level, logger, message, plus
    ``exception`` when exc_info is set and ``extra`` for any attributes added
    through ``extra=`` or a LoggerAdapter.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"mediavault.services.ingestion_service",
         "message":"Video ingested","extra":{"video_id":"...","key":"landscape/..."}}
    """

    # Standard LogRecord attributes never reported as extra fields
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }
        if extra:
            entry["extra"] = extra

        # default=str covers datetimes, UUIDs, enums and paths
        return json.dumps(entry, default=str, ensure_ascii=False, separators=(",", ":"))


class StandardFormatter(logging.Formatter):
    """Human-readable ``[time] LEVEL logger: message`` lines for development."""

    DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(self) -> None:
        super().__init__(fmt=self.DEFAULT_FORMAT, datefmt=self.DEFAULT_DATE_FORMAT)


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure the root logger, Uvicorn loggers and third-party log levels.

    Call once at application startup (the FastAPI lifespan does this).

    Args:
        log_level: Application log level name, case-insensitive.
        json_logs: Use JSONFormatter when True, StandardFormatter otherwise.
        third_party_level: Level applied to THIRD_PARTY_LOGGERS.
    """
    level = LOG_LEVEL_MAP.get(log_level.upper(), logging.INFO)

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(include_source_location=level <= logging.DEBUG)
    else:
        formatter = StandardFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Uvicorn installs its own handlers; route them through ours instead
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = True

    third_party = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party)

    logging.getLogger(__name__).info(
        "Logging configured", extra={"level": log_level.upper(), "json": json_logs}
    )


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges bound context into per-call ``extra`` dicts."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **context: Any) -> ContextLoggerAdapter:
    """
    Wrap ``logger`` so every record carries ``context`` as extra fields.

    Per-call ``extra`` values win over bound context on key collisions.

    Example:
        log = add_log_context(logger, video_id="...", user_id="...")
        log.warning("Probe failed", extra={"stage": "inspecting"})
    """
    return ContextLoggerAdapter(logger, context)
