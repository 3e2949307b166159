# logvault/services/retention/retrieval_service.py
"""
Retrieval of archived logs for audits and investigations.

Every read re-computes the SHA-256 of the stored bytes and compares it
with the digest recorded at write time. Nothing is cached; each call
re-reads from cold storage.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from logvault.constants import ArchiveDefaults, LogType
from logvault.errors import DataIntegrityError, NotFoundError
from logvault.services.resilience import run_blocking
from logvault.services.retention.codec import decompress, verify_digest
from logvault.storage.base import ColdStore, StoredBlob, as_day, build_archive_key

logger = logging.getLogger(__name__)


@dataclass
class DayArchive:
    """One verified day of archived records."""
    log_type: LogType
    date: date
    key: str
    records: list[dict[str, Any]] = field(default_factory=list)
    blob: Optional[StoredBlob] = None


def iter_days(start: date, end: date):
    """Yield each calendar day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class RetrievalService:
    """
    Reads archived days from the cold store.

    Example:
        >>> service = RetrievalService(cold_store)
        >>> records = await service.search_range(LogType.FINANCIAL, date(2025, 1, 1), date(2025, 1, 31))
    """

    def __init__(
        self,
        cold_store: ColdStore,
        io_timeout_seconds: float = 60,
        max_concurrency: int = ArchiveDefaults.SEARCH_MAX_CONCURRENCY,
    ):
        self.cold_store = cold_store
        self.io_timeout_seconds = io_timeout_seconds
        self.max_concurrency = max_concurrency

    async def _io(self, func, *args, operation: str):
        return await run_blocking(func, *args, timeout_seconds=self.io_timeout_seconds, operation=operation)

    async def fetch_day(self, log_type: LogType, day: date) -> DayArchive:
        """
        Fetch and verify one day's archive.

        Raises:
            NotFoundError: No archive exists for (log_type, day)
            DataIntegrityError: Digest, decode, or count verification failed
            TransientIOError: Cold store unavailable
        """
        day = as_day(day)
        key = build_archive_key(log_type, day)

        blob = await self._io(self.cold_store.head, key, operation="head")
        if blob is None:
            raise NotFoundError(f"No archive for {log_type.value} on {day.isoformat()}", key=key)

        metadata = blob.parsed_metadata()
        if metadata is None:
            raise DataIntegrityError(f"Archive has no integrity metadata: {key}", key=key)

        data = await self._io(self.cold_store.get, key, operation="get")
        verify_digest(data, metadata.sha256, key=key)
        records = decompress(data, key=key)

        if len(records) != metadata.count:
            raise DataIntegrityError(
                f"Record count mismatch for {key}: metadata {metadata.count}, payload {len(records)}",
                key=key,
                expected=str(metadata.count),
                actual=str(len(records)),
            )

        logger.info(f"Retrieved {len(records)} logs from {key}")
        return DayArchive(log_type=log_type, date=day, key=key, records=records, blob=blob)

    async def retrieve_day(self, log_type: LogType, day: date) -> list[dict[str, Any]]:
        """
        Records archived for one day, or [] if nothing was archived.

        An empty result cannot distinguish "no activity" from "never
        archived"; use fetch_day when that matters.
        """
        day = as_day(day)
        try:
            archive = await self.fetch_day(log_type, day)
        except NotFoundError:
            logger.debug(f"No archive for {log_type.value} on {day.isoformat()}")
            return []
        return archive.records

    async def search_range(self, log_type: LogType, start: date, end: date) -> list[dict[str, Any]]:
        """
        Concatenate archived records for every day in [start, end], in day order.

        Days are fetched concurrently; within-day order is preserved and no
        cross-day re-sorting is done.

        Raises:
            ValueError: If start is after end
        """
        start, end = as_day(start), as_day(end)
        if start > end:
            raise ValueError(f"start {start.isoformat()} is after end {end.isoformat()}")

        logger.info(f"Searching archived logs: {log_type.value} from {start.isoformat()} to {end.isoformat()}")

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(day: date) -> list[dict[str, Any]]:
            async with semaphore:
                return await self.retrieve_day(log_type, day)

        # gather returns results in argument order
        per_day = await asyncio.gather(*(fetch(day) for day in iter_days(start, end)))

        results = [record for day_records in per_day for record in day_records]
        logger.info(f"Search complete: found {len(results)} logs")
        return results
