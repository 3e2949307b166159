# logvault/services/retention/retention_monitor.py
"""
Retention monitor for archived logs.

Handles:
- Retention expiry arithmetic
- Detecting archives approaching their retention horizon
- Aggregate summary of the cold store

Expired archives are only reported; deletion is a manual compliance decision.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Optional

from logvault.constants import ArchiveDefaults, RetentionDefaults
from logvault.logging_config import component_var
from logvault.services.resilience import run_blocking
from logvault.storage.base import ColdStore, StoredBlob

logger = logging.getLogger(__name__)


@dataclass
class RetentionSummary:
    """Aggregate view of the cold store."""
    total_files: int = 0
    total_size_bytes: int = 0
    oldest_date: Optional[date] = None
    newest_date: Optional[date] = None
    expiring_in_window: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["oldest_date"] = self.oldest_date.isoformat() if self.oldest_date else None
        data["newest_date"] = self.newest_date.isoformat() if self.newest_date else None
        return data


def compute_expiry(log_date: date, years: int = RetentionDefaults.RETENTION_YEARS) -> date:
    """
    Same month and day, `years` later.

    February 29 maps to February 28 when the target year is not a leap year.
    """
    try:
        return log_date.replace(year=log_date.year + years)
    except ValueError:
        return log_date.replace(year=log_date.year + years, day=28)


def _is_expiring(retention_until: date, today: date, window_days: int) -> bool:
    return today < retention_until <= today + timedelta(days=window_days)


class RetentionMonitor:
    """
    Read-only scans over cold-store metadata.

    Example:
        >>> monitor = RetentionMonitor(cold_store)
        >>> await monitor.scan_approaching_expiry(30)
        2
    """

    def __init__(
        self,
        cold_store: ColdStore,
        io_timeout_seconds: float = 60,
        default_window_days: int = RetentionDefaults.EXPIRY_WARNING_DAYS,
        max_concurrency: int = ArchiveDefaults.SEARCH_MAX_CONCURRENCY,
    ):
        self.cold_store = cold_store
        self.io_timeout_seconds = io_timeout_seconds
        self.default_window_days = default_window_days
        self.max_concurrency = max_concurrency

    async def _list_all(self) -> list[StoredBlob]:
        """
        List every blob with its metadata.

        Each listing page and each per-key head gets its own deadline;
        heads run concurrently up to max_concurrency.
        """
        keys: list[str] = []
        pages = iter(self.cold_store.iter_key_pages(""))
        while True:
            page = await run_blocking(next, pages, None, timeout_seconds=self.io_timeout_seconds, operation="list")
            if page is None:
                break
            keys.extend(page)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def head(key: str) -> Optional[StoredBlob]:
            async with semaphore:
                return await run_blocking(
                    self.cold_store.head, key, timeout_seconds=self.io_timeout_seconds, operation="head"
                )

        blobs = await asyncio.gather(*(head(key) for key in keys))
        # Keys deleted between listing and head come back as None
        return [blob for blob in blobs if blob is not None]

    async def find_approaching_expiry(
        self,
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[StoredBlob]:
        """
        Blobs whose retention ends after now and within window_days.

        Blobs without parseable archive metadata are ignored.
        """
        window = window_days if window_days is not None else self.default_window_days
        today = (now or datetime.now(UTC)).date()

        expiring = []
        for blob in await self._list_all():
            meta = blob.parsed_metadata()
            if meta is None:
                logger.debug(f"Skipping {blob.key}: no archive metadata")
                continue
            if _is_expiring(meta.retention_until, today, window):
                expiring.append(blob)

        return expiring

    async def scan_approaching_expiry(
        self,
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Count and log archives approaching their retention horizon.

        Returns:
            Number of archives expiring within the window
        """
        token = component_var.set("retention_monitor")
        try:
            window = window_days if window_days is not None else self.default_window_days
            logger.info(f"Checking for archives expiring within {window} days")

            expiring = await self.find_approaching_expiry(window, now=now)
            for blob in expiring:
                meta = blob.parsed_metadata()
                logger.warning(
                    f"Archive approaching expiry: {blob.key} (expires: {meta.retention_until.isoformat()})",
                    extra={
                        "event": "archive_expiring",
                        "key": blob.key,
                        "retention_until": meta.retention_until.isoformat(),
                    },
                )

            if expiring:
                logger.info(f"{len(expiring)} archives approaching retention expiry")
            return len(expiring)
        finally:
            component_var.reset(token)

    async def summary(
        self,
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> RetentionSummary:
        """
        Single aggregate pass over the cold-store listing.

        Archive dates come from metadata, falling back to the object's
        creation date for foreign objects.
        """
        window = window_days if window_days is not None else self.default_window_days
        today = (now or datetime.now(UTC)).date()
        result = RetentionSummary()

        for blob in await self._list_all():
            result.total_files += 1
            result.total_size_bytes += blob.size_bytes

            meta = blob.parsed_metadata()
            blob_date = meta.date if meta else blob.created_at.date()

            if result.oldest_date is None or blob_date < result.oldest_date:
                result.oldest_date = blob_date
            if result.newest_date is None or blob_date > result.newest_date:
                result.newest_date = blob_date

            if meta and _is_expiring(meta.retention_until, today, window):
                result.expiring_in_window += 1

        return result
