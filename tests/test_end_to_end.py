"""
End-to-end archival through the RetentionEngine facade.

Uses the SQLite hot store and the local cold store from conftest.
"""

from datetime import UTC, date, datetime

import pytest

from logvault.constants import LogType, StorageTier
from logvault.services.retention.archive_service import day_bounds

DAY = date(2025, 1, 15)


def hot_rows(engine, log_type: LogType, day: date = DAY):
    start, end = day_bounds(day)
    return engine.hot_store.query_day(log_type, start, end)


@pytest.fixture
def seeded(engine, seed):
    seed(LogType.AUTHENTICATION, datetime(2025, 1, 15, 7), datetime(2025, 1, 15, 8), datetime(2025, 1, 15, 9))
    seed(LogType.FINANCIAL, datetime(2025, 1, 15, 13, 30), amount=99.9, currency="ILS")
    seed(LogType.SYSTEM, datetime(2025, 1, 15, 0, 0), datetime(2025, 1, 15, 23, 59, 59))
    # Next day, must survive
    seed(LogType.SYSTEM, datetime(2025, 1, 16, 0, 0, 1))
    return engine


class TestDailyArchival:
    """Archive one day of every log type."""

    @pytest.mark.asyncio
    async def test_archive_day(self, seeded, cold_store):
        result = await seeded.archive_day(DAY)

        assert result.success is True
        assert [(r.type.value, r.count) for r in result.archived] == [
            ("authentication", 3),
            ("access", 0),
            ("financial", 1),
            ("system", 2),
        ]

        for log_type in (LogType.AUTHENTICATION, LogType.FINANCIAL, LogType.SYSTEM):
            assert hot_rows(seeded, log_type) == []
        assert len(hot_rows(seeded, LogType.SYSTEM, date(2025, 1, 16))) == 1

        keys = sorted(b.key for b in cold_store.list_by_prefix(""))
        assert keys == [
            "authentication/2025/2025-01-15",
            "financial/2025/2025-01-15",
            "system/2025/2025-01-15",
        ]
        for key in keys:
            blob = cold_store.head(key)
            assert blob.parsed_metadata().retention_until == date(2032, 1, 15)
            assert blob.tier == StorageTier.COLD
        assert not cold_store.exists("access/2025/2025-01-15")

    @pytest.mark.asyncio
    async def test_round_trip(self, seeded):
        before = [r.document for r in hot_rows(seeded, LogType.AUTHENTICATION)]

        await seeded.archive_day(DAY)
        records = await seeded.search_range(LogType.AUTHENTICATION, DAY, DAY)

        assert records == before

    @pytest.mark.asyncio
    async def test_rerun_changes_nothing(self, seeded, cold_store):
        await seeded.archive_day(DAY)
        snapshot = {b.key: cold_store.get(b.key) for b in cold_store.list_by_prefix("")}

        result = await seeded.archive_day(DAY)

        assert result.success is True
        assert {b.key: cold_store.get(b.key) for b in cold_store.list_by_prefix("")} == snapshot

    @pytest.mark.asyncio
    async def test_retrieve_and_fetch(self, seeded):
        await seeded.archive_day(DAY)

        financial = await seeded.retrieve_day(LogType.FINANCIAL, DAY)
        archive = await seeded.fetch_day(LogType.SYSTEM, DAY)

        assert financial[0]["amount"] == 99.9
        assert financial[0]["currency"] == "ILS"
        assert [r["timestamp"] for r in archive.records] == ["2025-01-15T00:00:00", "2025-01-15T23:59:59"]
        assert await seeded.retrieve_day(LogType.ACCESS, DAY) == []


class TestRetentionReporting:
    """Summary and expiry scans after archival."""

    @pytest.mark.asyncio
    async def test_summary(self, seeded):
        await seeded.archive_day(DAY)

        summary = await seeded.summary(now=datetime(2032, 1, 1, tzinfo=UTC))

        assert summary.total_files == 3
        assert summary.oldest_date == DAY
        assert summary.newest_date == DAY
        assert summary.expiring_in_window == 3

    @pytest.mark.asyncio
    async def test_scan_approaching_expiry(self, seeded):
        await seeded.archive_day(DAY)

        assert await seeded.scan_approaching_expiry(now=datetime(2025, 6, 1, tzinfo=UTC)) == 0
        assert await seeded.scan_approaching_expiry(30, now=datetime(2032, 1, 1, tzinfo=UTC)) == 3
