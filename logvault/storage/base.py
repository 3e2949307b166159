# logvault/storage/base.py
"""
Cold store interface for compressed log archives.

Design principles:
- One immutable blob per (log type, calendar day)
- Blobs are written already compressed; the store never re-encodes
- Every blob carries user metadata (see BlobMetadata)
- Storage tier is the only attribute that changes after write
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterator, Optional

from logvault.constants import LogType, MetadataKeys, StorageTier


@dataclass
class BlobMetadata:
    """Metadata persisted with every archive blob."""
    log_type: LogType
    date: date
    count: int
    sha256: str
    retention_until: date

    def to_storage_dict(self) -> dict[str, str]:
        """Flatten to string user-metadata (S3 only stores strings)."""
        return {
            MetadataKeys.LOG_TYPE: self.log_type.value,
            MetadataKeys.DATE: self.date.isoformat(),
            MetadataKeys.COUNT: str(self.count),
            MetadataKeys.SHA256: self.sha256,
            MetadataKeys.RETENTION_UNTIL: self.retention_until.isoformat(),
        }

    @classmethod
    def from_storage_dict(cls, raw: dict[str, str]) -> "BlobMetadata":
        """
        Parse user metadata read back from the store.

        Raises:
            ValueError: If a field is missing or malformed
        """
        try:
            return cls(
                log_type=LogType(raw[MetadataKeys.LOG_TYPE]),
                date=date.fromisoformat(raw[MetadataKeys.DATE]),
                count=int(raw[MetadataKeys.COUNT]),
                sha256=raw[MetadataKeys.SHA256],
                retention_until=date.fromisoformat(raw[MetadataKeys.RETENTION_UNTIL][:10]),
            )
        except KeyError as e:
            raise ValueError(f"Missing archive metadata field: {e.args[0]}") from e


@dataclass
class StoredBlob:
    """A listed or written blob (no payload)."""
    key: str
    size_bytes: int
    created_at: datetime
    metadata: dict[str, str] = field(default_factory=dict)
    tier: Optional[StorageTier] = None

    def parsed_metadata(self) -> Optional[BlobMetadata]:
        """Archive metadata, or None if the blob was not written by the engine."""
        try:
            return BlobMetadata.from_storage_dict(self.metadata)
        except ValueError:
            return None


def as_day(value: date) -> date:
    """Calendar day of a date or datetime."""
    return value.date() if isinstance(value, datetime) else value


def build_archive_key(log_type: LogType, day: date) -> str:
    """
    Build the cold-store key for one day of one log type.

    Format: {log_type}/{year}/{YYYY-MM-DD}
    """
    day = as_day(day)
    return f"{log_type.value}/{day.year}/{day.isoformat()}"


class ColdStore(ABC):
    """
    Abstract interface for the tiered archive blob store.

    Implementations must:
    - Overwrite idempotently on put to the same key
    - Report missing keys as False/None from exists/head and NotFoundError from get
    - Raise TransientIOError when the backend is unavailable
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 's3', 'local')."""
        pass

    @abstractmethod
    def put(self, key: str, data: bytes, metadata: dict[str, str]) -> StoredBlob:
        """
        Write blob bytes with user metadata.

        Args:
            key: Object key (e.g., "financial/2025/2025-01-15")
            data: Compressed payload, stored as-is
            metadata: String user metadata

        Returns:
            StoredBlob describing the written object
        """
        pass

    @abstractmethod
    def set_tier(self, key: str, tier: StorageTier) -> None:
        """Transition an existing object to a storage tier."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if object exists."""
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """
        Read blob bytes.

        Raises:
            NotFoundError: If no object exists for key
        """
        pass

    @abstractmethod
    def head(self, key: str) -> Optional[StoredBlob]:
        """Get object description without the payload, or None if missing."""
        pass

    @abstractmethod
    def iter_key_pages(self, prefix: str = "") -> Iterator[list[str]]:
        """Yield keys starting with prefix, one backend listing page at a time."""
        pass

    def list_keys(self, prefix: str = "") -> list[str]:
        """List all keys starting with prefix."""
        return [key for page in self.iter_key_pages(prefix) for key in page]

    def list_by_prefix(self, prefix: str = "") -> list[StoredBlob]:
        """List all objects (with metadata) whose key starts with prefix."""
        blobs = []
        for key in self.list_keys(prefix):
            blob = self.head(key)
            if blob is not None:
                blobs.append(blob)
        return blobs
