"""Tests for structured logging helpers."""

import json
import logging

import pytest

from logvault.logging_config import (
    JSONFormatter,
    component_var,
    log_archive_step,
    log_storage_operation,
    run_id_var,
)


def make_record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("logvault.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_includes_context_and_extra(self):
        run_token = run_id_var.set("abc123")
        component_token = component_var.set("archival")
        try:
            output = JSONFormatter().format(make_record(key="system/2025/2025-01-15", record_count=4, ignored="x"))
        finally:
            component_var.reset(component_token)
            run_id_var.reset(run_token)

        data = json.loads(output)
        assert data["message"] == "hello"
        assert data["run_id"] == "abc123"
        assert data["component"] == "archival"
        assert data["key"] == "system/2025/2025-01-15"
        assert data["record_count"] == 4
        assert "ignored" not in data
        assert data["timestamp"].endswith("Z")


class TestLogArchiveStep:
    def test_binds_log_type_and_reraises(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="logvault.archive"):
            with pytest.raises(RuntimeError):
                with log_archive_step("write", "financial", "2025-01-15"):
                    raise RuntimeError("disk full")

        failed = [r for r in caplog.records if getattr(r, "event", None) == "step_failed"]
        assert len(failed) == 1
        assert failed[0].step == "write"


class TestLogStorageOperation:
    def test_records_size(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="logvault.storage"):
            with log_storage_operation("local", "put", "system/2025/2025-01-15") as metrics:
                metrics["size_bytes"] = 42

        [record] = [r for r in caplog.records if getattr(r, "event", None) == "local_put_complete"]
        assert record.size_bytes == 42
