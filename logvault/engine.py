# logvault/engine.py
"""
Public entry point of the log archival and retention engine.

RetentionEngine wires the archival job, retrieval service, and retention
monitor from explicitly injected hot and cold store gateways. Use
RetentionEngine.from_settings() in production and construct it directly
with test doubles in tests.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

from logvault.config import Settings, load_settings
from logvault.constants import LogType
from logvault.database import create_db_engine, create_session_factory, init_db
from logvault.services.hot_store import HotStoreGateway, SqlAlchemyHotStore
from logvault.services.retention.archive_service import ArchivalJob, ArchiveRunResult
from logvault.services.retention.retention_monitor import RetentionMonitor, RetentionSummary
from logvault.services.retention.retrieval_service import DayArchive, RetrievalService
from logvault.storage.base import ColdStore
from logvault.storage.factory import create_cold_store

logger = logging.getLogger(__name__)


class RetentionEngine:
    """
    Facade over archival, retrieval, and monitoring.

    Example:
        >>> engine = RetentionEngine.from_settings()
        >>> result = await engine.archive_day(date(2025, 1, 15))
        >>> records = await engine.search_range(LogType.FINANCIAL, date(2025, 1, 1), date(2025, 1, 31))
    """

    def __init__(self, hot_store: HotStoreGateway, cold_store: ColdStore, settings: Settings):
        self.hot_store = hot_store
        self.cold_store = cold_store
        self.settings = settings

        self.archival = ArchivalJob(
            hot_store,
            cold_store,
            retention_years=settings.RETENTION_YEARS,
            io_timeout_seconds=settings.IO_TIMEOUT_SECONDS,
            lock_ttl_seconds=settings.ARCHIVE_LOCK_TTL_SECONDS,
            conflict_policy=settings.ARCHIVE_CONFLICT_POLICY,
        )
        self.retrieval = RetrievalService(
            cold_store,
            io_timeout_seconds=settings.IO_TIMEOUT_SECONDS,
            max_concurrency=settings.SEARCH_MAX_CONCURRENCY,
        )
        self.monitor = RetentionMonitor(
            cold_store,
            io_timeout_seconds=settings.IO_TIMEOUT_SECONDS,
            default_window_days=settings.EXPIRY_WARNING_DAYS,
            max_concurrency=settings.SEARCH_MAX_CONCURRENCY,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, create_tables: bool = False) -> "RetentionEngine":
        """
        Build gateways from configuration.

        Raises:
            ConfigurationError: Missing or invalid settings
        """
        settings = settings or load_settings()

        cold_store = create_cold_store(settings)

        db_engine = create_db_engine(settings.DATABASE_URL)
        if create_tables:
            init_db(db_engine)

        return cls(SqlAlchemyHotStore(create_session_factory(db_engine)), cold_store, settings)

    async def archive_day(self, day: date) -> ArchiveRunResult:
        return await self.archival.archive_day(day)

    async def retrieve_day(self, log_type: LogType, day: date) -> list[dict[str, Any]]:
        return await self.retrieval.retrieve_day(log_type, day)

    async def fetch_day(self, log_type: LogType, day: date) -> DayArchive:
        return await self.retrieval.fetch_day(log_type, day)

    async def search_range(self, log_type: LogType, start: date, end: date) -> list[dict[str, Any]]:
        return await self.retrieval.search_range(log_type, start, end)

    async def summary(self, window_days: Optional[int] = None, now: Optional[datetime] = None) -> RetentionSummary:
        return await self.monitor.summary(window_days, now=now)

    async def scan_approaching_expiry(self, window_days: Optional[int] = None, now: Optional[datetime] = None) -> int:
        return await self.monitor.scan_approaching_expiry(window_days, now=now)
