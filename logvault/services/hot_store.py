# logvault/services/hot_store.py
"""
Hot store gateway over the live log database.

Handles:
- Range queries of one log type for one day
- Batch deletion of archived rows by id
- Inserting new entries (producer side)
- Advisory archive locks with a TTL
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from logvault.constants import ArchiveDefaults, LogType
from logvault.errors import HotStoreError, TransientIOError
from logvault.models import LOG_ENTRY_MODELS, ArchiveLock

logger = logging.getLogger(__name__)


@dataclass
class HotRecord:
    """A live log entry as read for archival."""
    ref: str  # Row id, used for deletion
    document: dict[str, Any]  # JSON-ready record: id, timestamp, payload fields


def to_naive_utc(value: datetime) -> datetime:
    """Normalize to the naive UTC datetimes stored in the hot store."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


class HotStoreGateway(ABC):
    """Abstract interface for the live log store."""

    @abstractmethod
    def query_day(self, log_type: LogType, start: datetime, end: datetime) -> list[HotRecord]:
        """
        Return entries with start <= timestamp <= end, in retrieval order.
        """
        pass

    @abstractmethod
    def delete_batch(self, log_type: LogType, refs: list[str]) -> int:
        """
        Delete entries by ref. Refs that no longer exist are ignored.

        Returns:
            Number of rows actually deleted
        """
        pass

    @abstractmethod
    def insert(self, log_type: LogType, timestamp: datetime, data: dict[str, Any]) -> str:
        """Insert a new entry and return its ref."""
        pass

    @abstractmethod
    def acquire_lock(self, lock_key: str, owner: str, ttl_seconds: int) -> bool:
        """Take the advisory lock. Returns False if another owner holds it."""
        pass

    @abstractmethod
    def release_lock(self, lock_key: str, owner: str) -> None:
        """Release the advisory lock if still held by owner."""
        pass


class SqlAlchemyHotStore(HotStoreGateway):
    """
    Hot store backed by SQLAlchemy (PostgreSQL in production, SQLite in tests).

    Each call opens its own session so calls may run on executor threads.
    """

    def __init__(self, session_factory: sessionmaker, delete_batch_size: int = ArchiveDefaults.DELETE_BATCH_SIZE):
        self._session_factory = session_factory
        self._delete_batch_size = delete_batch_size

    def query_day(self, log_type: LogType, start: datetime, end: datetime) -> list[HotRecord]:
        model = LOG_ENTRY_MODELS[log_type]
        stmt = (
            select(model)
            .where(model.timestamp >= to_naive_utc(start), model.timestamp <= to_naive_utc(end))
            .order_by(model.timestamp.asc(), model.created_at.asc(), model.id.asc())
        )

        try:
            with self._session_factory() as session:
                rows = session.execute(stmt).scalars().all()
        except OperationalError as e:
            raise TransientIOError(f"Hot store query failed for {log_type.value}: {e}", operation="query") from e
        except SQLAlchemyError as e:
            raise HotStoreError(f"Hot store query rejected for {log_type.value}: {e}", operation="query") from e

        return [
            HotRecord(
                ref=str(row.id),
                document={
                    **(row.data or {}),
                    "id": str(row.id),
                    "timestamp": row.timestamp.isoformat(),
                },
            )
            for row in rows
        ]

    def delete_batch(self, log_type: LogType, refs: list[str]) -> int:
        model = LOG_ENTRY_MODELS[log_type]
        ids = [uuid.UUID(ref) for ref in refs]
        deleted = 0

        try:
            with self._session_factory() as session:
                for i in range(0, len(ids), self._delete_batch_size):
                    chunk = ids[i:i + self._delete_batch_size]
                    result = session.execute(delete(model).where(model.id.in_(chunk)))
                    deleted += result.rowcount or 0
                session.commit()
        except OperationalError as e:
            raise TransientIOError(f"Hot store delete failed for {log_type.value}: {e}", operation="delete") from e
        except SQLAlchemyError as e:
            raise HotStoreError(f"Hot store delete rejected for {log_type.value}: {e}", operation="delete") from e

        logger.debug(f"Deleted {deleted}/{len(ids)} {log_type.value} entries from hot store")
        return deleted

    def insert(self, log_type: LogType, timestamp: datetime, data: dict[str, Any]) -> str:
        model = LOG_ENTRY_MODELS[log_type]
        entry = model(id=uuid.uuid4(), timestamp=to_naive_utc(timestamp), data=data)

        try:
            with self._session_factory() as session:
                session.add(entry)
                session.commit()
        except OperationalError as e:
            raise TransientIOError(f"Hot store insert failed for {log_type.value}: {e}", operation="insert") from e
        except SQLAlchemyError as e:
            raise HotStoreError(f"Hot store insert rejected for {log_type.value}: {e}", operation="insert") from e

        return str(entry.id)

    def acquire_lock(self, lock_key: str, owner: str, ttl_seconds: int) -> bool:
        now = to_naive_utc(datetime.now(UTC))

        try:
            with self._session_factory() as session:
                # Reclaim an expired lock left behind by a crashed run
                session.execute(
                    delete(ArchiveLock).where(
                        ArchiveLock.lock_key == lock_key,
                        ArchiveLock.expires_at <= now,
                    )
                )
                session.add(
                    ArchiveLock(
                        lock_key=lock_key,
                        owner=owner,
                        acquired_at=now,
                        expires_at=now + timedelta(seconds=ttl_seconds),
                    )
                )
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    return False
        except OperationalError as e:
            raise TransientIOError(f"Failed to acquire lock {lock_key}: {e}", operation="lock") from e
        except SQLAlchemyError as e:
            raise HotStoreError(f"Lock table rejected acquire of {lock_key}: {e}", operation="lock") from e

        return True

    def release_lock(self, lock_key: str, owner: str) -> None:
        try:
            with self._session_factory() as session:
                session.execute(
                    delete(ArchiveLock).where(
                        ArchiveLock.lock_key == lock_key,
                        ArchiveLock.owner == owner,
                    )
                )
                session.commit()
        except OperationalError as e:
            raise TransientIOError(f"Failed to release lock {lock_key}: {e}", operation="unlock") from e
        except SQLAlchemyError as e:
            raise HotStoreError(f"Lock table rejected release of {lock_key}: {e}", operation="unlock") from e
