"""Tests for the retention CLI."""

import json
from datetime import date, datetime
from unittest.mock import patch

import pytest

from logvault.cli import retention
from logvault.constants import LogType


def run_cli(monkeypatch, engine, *argv):
    monkeypatch.setattr("sys.argv", ["logvault-retention", *argv])
    with patch.object(retention, "get_engine", return_value=engine):
        retention.main()


class TestParseDate:
    def test_iso_date(self):
        assert retention.parse_date("2025-01-15") == date(2025, 1, 15)

    def test_invalid(self):
        with pytest.raises(Exception, match="expected YYYY-MM-DD"):
            retention.parse_date("15/01/2025")


class TestCommands:
    """Subcommands against the SQLite/local engine."""

    def test_archive(self, monkeypatch, capsys, engine, seed):
        seed(LogType.SYSTEM, datetime(2025, 1, 15, 10))

        run_cli(monkeypatch, engine, "archive", "--date", "2025-01-15")

        out = capsys.readouterr().out
        assert "system: 1 records" in out
        assert "access: 0 records" in out

    def test_archive_failure_exits_nonzero(self, monkeypatch, engine, seed):
        seed(LogType.SYSTEM, datetime(2025, 1, 15, 10))
        engine.hot_store.acquire_lock("archive:system:2025-01-15", "other-run", 3600)

        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, engine, "archive", "--date", "2025-01-15")

        assert exc_info.value.code == 1

    def test_search_prints_json_lines(self, monkeypatch, capsys, engine, seed):
        seed(LogType.FINANCIAL, datetime(2025, 1, 15, 10), datetime(2025, 1, 16, 10))
        run_cli(monkeypatch, engine, "archive", "--date", "2025-01-15")
        run_cli(monkeypatch, engine, "archive", "--date", "2025-01-16")
        capsys.readouterr()

        run_cli(monkeypatch, engine, "search", "--type", "financial", "--start", "2025-01-15", "--end", "2025-01-16")

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["timestamp"][:10] for line in lines] == ["2025-01-15", "2025-01-16"]

    def test_retrieve_missing_exits(self, monkeypatch, engine):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, engine, "retrieve", "--type", "access", "--date", "2025-01-15")

        assert exc_info.value.code == 3

    def test_summary(self, monkeypatch, capsys, engine):
        run_cli(monkeypatch, engine, "summary")

        assert "Total archives: 0" in capsys.readouterr().out

    def test_expiry(self, monkeypatch, capsys, engine):
        run_cli(monkeypatch, engine, "expiry", "--window-days", "10")

        assert "0 archives approaching retention expiry" in capsys.readouterr().out

    def test_unknown_type_rejected(self, monkeypatch, engine):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, engine, "retrieve", "--type", "billing", "--date", "2025-01-15")

        assert exc_info.value.code == 2
