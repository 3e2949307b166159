# logvault/services/retention/archive_service.py
"""
Archive service for moving a day of logs from the hot store to cold storage.

Process per log type (types run sequentially):
1. Take the (type, date) advisory lock
2. Query the day's entries from the hot store
3. Compress, hash, and write one blob with archive metadata
4. Verify the write (exists + read-back digest)
5. Transition the blob to the cold tier
6. Delete exactly the archived entries from the hot store

Invariants:
    - Hot-store entries are deleted only after their blob is verified
    - An empty day never produces a blob
    - A failing type is recorded and does not stop the remaining types
    - An existing blob is handled by the configured ConflictPolicy
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from enum import Enum
from typing import Any, Optional, Sequence

from logvault.constants import ConflictPolicy, LogType, RetentionDefaults, StorageTier
from logvault.errors import ArchiveLockHeldError, DataIntegrityError, IOTimeoutError, LogVaultError
from logvault.logging_config import component_var, log_archive_step, run_id_var
from logvault.services.hot_store import HotRecord, HotStoreGateway
from logvault.services.resilience import run_blocking
from logvault.services.retention.codec import compress, decompress, digest, verify_digest
from logvault.services.retention.retention_monitor import compute_expiry
from logvault.storage.base import BlobMetadata, ColdStore, StoredBlob, as_day, build_archive_key

logger = logging.getLogger(__name__)


class ArchiveStatus(str, Enum):
    """Outcome of archiving one log type for one day."""
    ARCHIVED = "archived"  # New blob written, entries pruned
    EMPTY = "empty"  # No entries, no blob
    SKIPPED = "skipped"  # Blob existed, left unchanged
    MERGED = "merged"  # Blob existed, rewritten with new entries


@dataclass
class TypeArchiveResult:
    """Result of archiving one log type."""
    type: LogType
    count: int = 0
    size_bytes: int = 0
    status: ArchiveStatus = ArchiveStatus.ARCHIVED
    key: Optional[str] = None
    pruned: int = 0
    unarchived: int = 0  # Entries left in the hot store (skip policy)
    tier_transitioned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "count": self.count,
            "size_bytes": self.size_bytes,
            "status": self.status.value,
            "key": self.key,
            "pruned": self.pruned,
            "unarchived": self.unarchived,
            "tier_transitioned": self.tier_transitioned,
        }


@dataclass
class TypeFailure:
    """A log type that could not be archived."""
    type: LogType
    error: str


@dataclass
class ArchiveRunResult:
    """Result of one archive_day call."""
    success: bool
    date: date
    run_id: str
    archived: list[TypeArchiveResult] = field(default_factory=list)
    failures: list[TypeFailure] = field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        if not self.failures:
            return None
        return "; ".join(f"{f.type.value}: {f.error}" for f in self.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "date": self.date.isoformat(),
            "run_id": self.run_id,
            "archived": [r.to_dict() for r in self.archived],
            "error": self.error,
        }


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Inclusive UTC bounds of a calendar day."""
    day = as_day(day)
    return (
        datetime.combine(day, time.min, tzinfo=UTC),
        datetime.combine(day, time.max, tzinfo=UTC),
    )


def lock_key_for(log_type: LogType, day: date) -> str:
    day = as_day(day)
    return f"archive:{log_type.value}:{day.isoformat()}"


class ArchivalJob:
    """
    Archives one calendar day of every log type.

    Attributes:
        hot_store: Live log store to read and prune
        cold_store: Blob store receiving archives
        conflict_policy: What to do when a blob already exists

    Example:
        >>> job = ArchivalJob(hot_store, cold_store)
        >>> result = await job.archive_day(date(2025, 1, 15))
    """

    def __init__(
        self,
        hot_store: HotStoreGateway,
        cold_store: ColdStore,
        retention_years: int = RetentionDefaults.RETENTION_YEARS,
        io_timeout_seconds: float = 60,
        lock_ttl_seconds: int = 3600,
        conflict_policy: ConflictPolicy = ConflictPolicy.SKIP,
        log_types: Sequence[LogType] = tuple(LogType),
    ):
        self.hot_store = hot_store
        self.cold_store = cold_store
        self.retention_years = retention_years
        self.io_timeout_seconds = io_timeout_seconds
        self.lock_ttl_seconds = lock_ttl_seconds
        self.conflict_policy = conflict_policy
        self.log_types = tuple(log_types)
        # Keys with a backend call still running past its deadline
        self._unsettled_keys: set[str] = set()

    async def _io(self, func, *args, operation: str):
        return await run_blocking(func, *args, timeout_seconds=self.io_timeout_seconds, operation=operation)

    async def archive_day(self, day: date) -> ArchiveRunResult:
        """
        Archive every log type for one day.

        Never raises for per-type failures; they are returned in the result.
        """
        day = as_day(day)
        run_id = uuid.uuid4().hex[:12]
        run_token = run_id_var.set(run_id)
        component_token = component_var.set("archival")
        result = ArchiveRunResult(success=True, date=day, run_id=run_id)

        logger.info(f"Starting daily log archival for {day.isoformat()}")

        try:
            for log_type in self.log_types:
                try:
                    result.archived.append(await self.archive_type(log_type, day, owner=run_id))
                except Exception as e:
                    logger.error(
                        f"Archival failed for {log_type.value}/{day.isoformat()}: {e}",
                        extra={"event": "archive_type_failed", "archive_date": day.isoformat()},
                        exc_info=not isinstance(e, LogVaultError),
                    )
                    result.failures.append(TypeFailure(type=log_type, error=str(e)))

            result.success = not result.failures
            logger.info(
                f"Daily archival {'complete' if result.success else 'finished with failures'} for {day.isoformat()}",
                extra={
                    "event": "archive_day_complete",
                    "archive_date": day.isoformat(),
                    "status": "success" if result.success else "failed",
                    "record_count": sum(r.count for r in result.archived),
                },
            )
            return result
        finally:
            component_var.reset(component_token)
            run_id_var.reset(run_token)

    async def archive_type(self, log_type: LogType, day: date, owner: Optional[str] = None) -> TypeArchiveResult:
        """
        Archive one log type for one day under its advisory lock.

        Raises:
            ArchiveLockHeldError: Another run is archiving the same key
            TransientIOError: A backend call failed
            IOTimeoutError: A backend call timed out; the lock is kept until its TTL
            DataIntegrityError: Post-write or existing-blob verification failed
        """
        day = as_day(day)
        owner = owner or uuid.uuid4().hex[:12]
        lock_key = lock_key_for(log_type, day)

        acquired = await self._io(
            self.hot_store.acquire_lock, lock_key, owner, self.lock_ttl_seconds, operation="lock"
        )
        if not acquired:
            raise ArchiveLockHeldError(f"Archive lock held by another run: {lock_key}", lock_key=lock_key)

        key = build_archive_key(log_type, day)
        try:
            return await self._archive_locked(log_type, day)
        except IOTimeoutError:
            # The timed-out worker may still be writing; the lock must outlive it
            self._unsettled_keys.add(key)
            raise
        finally:
            if key in self._unsettled_keys:
                self._unsettled_keys.discard(key)
                logger.warning(
                    f"Keeping {lock_key} until its TTL expires ({self.lock_ttl_seconds}s): a backend call timed out",
                    extra={"event": "archive_lock_retained", "archive_date": day.isoformat()},
                )
            else:
                try:
                    await self._io(self.hot_store.release_lock, lock_key, owner, operation="unlock")
                except LogVaultError as e:
                    logger.warning(f"Failed to release {lock_key}, it will expire after TTL: {e}")

    async def _archive_locked(self, log_type: LogType, day: date) -> TypeArchiveResult:
        day_str = day.isoformat()
        start, end = day_bounds(day)

        with log_archive_step("query", log_type.value, day_str):
            records: list[HotRecord] = await self._io(
                self.hot_store.query_day, log_type, start, end, operation="query"
            )

        if not records:
            logger.info(f"No {log_type.value} logs to archive for {day_str}")
            return TypeArchiveResult(type=log_type, status=ArchiveStatus.EMPTY)

        key = build_archive_key(log_type, day)
        existing = await self._io(self.cold_store.head, key, operation="head")

        if existing is None:
            return await self._write_and_prune(
                log_type,
                day,
                key,
                documents=[r.document for r in records],
                prune_refs=[r.ref for r in records],
                status=ArchiveStatus.ARCHIVED,
            )

        archived_records = await self._load_existing(existing)
        archived_ids = {r.get("id") for r in archived_records}

        if self.conflict_policy == ConflictPolicy.MERGE:
            new_documents = [r.document for r in records if r.ref not in archived_ids]
            logger.info(
                f"Merging {len(new_documents)} new {log_type.value} logs into existing archive {key}"
            )
            return await self._write_and_prune(
                log_type,
                day,
                key,
                documents=archived_records + new_documents,
                prune_refs=[r.ref for r in records],
                status=ArchiveStatus.MERGED,
            )

        return await self._reconcile_existing(log_type, day, existing, archived_records, archived_ids, records)

    async def _write_and_prune(
        self,
        log_type: LogType,
        day: date,
        key: str,
        documents: list[dict[str, Any]],
        prune_refs: list[str],
        status: ArchiveStatus,
    ) -> TypeArchiveResult:
        day_str = day.isoformat()

        with log_archive_step("compress", log_type.value, day_str):
            data = compress(documents)
        sha256 = digest(data)

        metadata = BlobMetadata(
            log_type=log_type,
            date=day,
            count=len(documents),
            sha256=sha256,
            retention_until=compute_expiry(day, self.retention_years),
        )

        # Phase 1: durable write + verify
        with log_archive_step("write", log_type.value, day_str):
            await self._io(self.cold_store.put, key, data, metadata.to_storage_dict(), operation="put")
        with log_archive_step("verify", log_type.value, day_str):
            await self._verify_write(key, sha256)

        tier_transitioned = await self._transition_tier(key)

        # Phase 2: prune, only reached after a verified write
        with log_archive_step("prune", log_type.value, day_str):
            pruned = await self._io(self.hot_store.delete_batch, log_type, prune_refs, operation="delete")

        logger.info(
            f"Archived {len(documents)} {log_type.value} logs ({len(data)} bytes) to {key}",
            extra={
                "event": "archive_written",
                "key": key,
                "record_count": len(documents),
                "size_bytes": len(data),
                "archive_date": day_str,
                "retention_until": metadata.retention_until.isoformat(),
                "status": status.value,
            },
        )

        return TypeArchiveResult(
            type=log_type,
            count=len(documents),
            size_bytes=len(data),
            status=status,
            key=key,
            pruned=pruned,
            tier_transitioned=tier_transitioned,
        )

    async def _verify_write(self, key: str, expected_sha256: str) -> None:
        """
        Confirm the blob exists and reads back with the expected digest.

        Raises:
            DataIntegrityError: Blob missing or digest mismatch
        """
        if not await self._io(self.cold_store.exists, key, operation="exists"):
            raise DataIntegrityError(f"Archive not found after write: {key}", key=key)
        stored = await self._io(self.cold_store.get, key, operation="get")
        verify_digest(stored, expected_sha256, key=key)

    async def _transition_tier(self, key: str) -> bool:
        """Move the blob to the cold tier. Failure is reported, not fatal."""
        try:
            await self._io(self.cold_store.set_tier, key, StorageTier.COLD, operation="set_tier")
            return True
        except IOTimeoutError as e:
            self._unsettled_keys.add(key)
            logger.warning(
                f"Tier transition timed out for {key}, outcome unknown: {e}",
                extra={"event": "tier_transition_failed", "key": key, "tier": StorageTier.COLD.value},
            )
            return False
        except LogVaultError as e:
            logger.warning(
                f"Tier transition failed for {key}, archive stays in standard tier: {e}",
                extra={"event": "tier_transition_failed", "key": key, "tier": StorageTier.COLD.value},
            )
            return False

    async def _load_existing(self, blob: StoredBlob) -> list[dict[str, Any]]:
        """
        Read and verify an existing archive.

        Raises:
            DataIntegrityError: Missing metadata, digest or count mismatch
        """
        metadata = blob.parsed_metadata()
        if metadata is None:
            raise DataIntegrityError(f"Existing object has no archive metadata: {blob.key}", key=blob.key)

        data = await self._io(self.cold_store.get, blob.key, operation="get")
        verify_digest(data, metadata.sha256, key=blob.key)
        records = decompress(data, key=blob.key)

        if len(records) != metadata.count:
            raise DataIntegrityError(
                f"Record count mismatch for {blob.key}: metadata {metadata.count}, payload {len(records)}",
                key=blob.key,
                expected=str(metadata.count),
                actual=str(len(records)),
            )
        return records

    async def _reconcile_existing(
        self,
        log_type: LogType,
        day: date,
        blob: StoredBlob,
        archived_records: list[dict[str, Any]],
        archived_ids: set,
        records: list[HotRecord],
    ) -> TypeArchiveResult:
        """
        Skip policy: leave the blob untouched and prune only entries it contains.

        Entries already in the blob are left over from a run that wrote but
        did not prune. Entries not in the blob stay in the hot store.
        """
        covered = [r.ref for r in records if r.ref in archived_ids]
        unarchived = len(records) - len(covered)

        pruned = 0
        if covered:
            with log_archive_step("prune", log_type.value, day.isoformat()):
                pruned = await self._io(self.hot_store.delete_batch, log_type, covered, operation="delete")

        if unarchived:
            logger.warning(
                f"{unarchived} {log_type.value} logs for {day.isoformat()} are not in existing archive "
                f"{blob.key}; left in hot store",
                extra={"event": "archive_conflict", "key": blob.key, "record_count": unarchived},
            )
        else:
            logger.info(f"Archive {blob.key} already exists, skipped")

        return TypeArchiveResult(
            type=log_type,
            count=len(archived_records),
            size_bytes=blob.size_bytes,
            status=ArchiveStatus.SKIPPED,
            key=blob.key,
            pruned=pruned,
            unarchived=unarchived,
            tier_transitioned=blob.tier == StorageTier.COLD,
        )
