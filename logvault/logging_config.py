"""
Structured JSON logging for archival observability.

Provides structured logging with run IDs for correlating logs across
archival steps, plus context managers for archive steps and cold-store
operations.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variables for run correlation
run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
log_type_var: ContextVar[str | None] = ContextVar("log_type", default=None)
component_var: ContextVar[str | None] = ContextVar("component", default=None)

_EXTRA_FIELDS = (
    "event",
    "duration_ms",
    "operation",
    "key",
    "size_bytes",
    "record_count",
    "archive_date",
    "step",
    "tier",
    "status",
    "retention_until",
)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "run_id": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = run_id_var.get()
        if run_id:
            log_data["run_id"] = run_id

        log_type = log_type_var.get()
        if log_type:
            log_data["log_type"] = log_type

        component = component_var.get()
        if component:
            log_data["component"] = component

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure root logging for the scheduler or local development.

    Args:
        json_format: If True, use JSON format. If False, use human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_archive_step(step: str, log_type: str, archive_date: str):
    """
    Context manager for per-type archive step logging.

    Logs step start and end with duration. The log type is bound to the
    context for the duration of the block.

    Usage:
        with log_archive_step("write", "financial", "2025-01-15"):
            ...
    """
    token = log_type_var.set(log_type)
    start_time = time.time()
    logger = logging.getLogger("logvault.archive")
    extra = {"step": step, "archive_date": archive_date}

    logger.debug(f"Step {step} started for {log_type}/{archive_date}", extra={"event": "step_start", **extra})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Step {step} completed for {log_type}/{archive_date}",
            extra={"event": "step_complete", "duration_ms": duration_ms, **extra},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"Step {step} failed for {log_type}/{archive_date}: {e}",
            extra={"event": "step_failed", "duration_ms": duration_ms, **extra},
        )
        raise
    finally:
        log_type_var.reset(token)


@contextmanager
def log_storage_operation(provider: str, operation: str, key: str):
    """
    Context manager for cold-store operation instrumentation.

    Usage:
        with log_storage_operation("s3", "put", key) as metrics:
            client.put_object(...)
            metrics["size_bytes"] = len(data)
    """
    start_time = time.time()
    logger = logging.getLogger("logvault.storage")
    metrics: dict = {"size_bytes": 0}

    try:
        yield metrics

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"{provider} {operation} completed: {key} ({metrics['size_bytes']} bytes, {duration_ms}ms)",
            extra={
                "event": f"{provider}_{operation}_complete",
                "operation": operation,
                "key": key,
                "duration_ms": duration_ms,
                "size_bytes": metrics["size_bytes"],
            },
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"{provider} {operation} failed: {key} - {e}",
            extra={
                "event": f"{provider}_{operation}_failed",
                "operation": operation,
                "key": key,
                "duration_ms": duration_ms,
            },
        )
        raise
