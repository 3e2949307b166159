# logvault/storage/local_provider.py
"""
Local filesystem cold store for development and testing.

Mimics S3 behavior but stores files locally, with a JSON sidecar per
object for metadata and tier.
NOT for production use.
"""

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator, Optional

from logvault.constants import StorageTier
from logvault.errors import NotFoundError, TransientIOError
from logvault.logging_config import log_storage_operation
from logvault.storage.base import ColdStore, StoredBlob

logger = logging.getLogger(__name__)


class LocalColdStore(ColdStore):
    """
    Local filesystem cold store.

    Stores files in a directory structure that mirrors the archive keys.

    Configuration:
    - LOCAL_STORAGE_PATH: Base directory (default: ./storage)
    """

    def __init__(self, base_path: str | None = None):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for storage (or LOCAL_STORAGE_PATH env)
        """
        self._base_path = Path(base_path or os.getenv("LOCAL_STORAGE_PATH", "./storage"))
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._metadata_suffix = ".meta.json"

        logger.info(f"Local cold store initialized: {self._base_path}")

    @property
    def name(self) -> str:
        return "local"

    def _get_path(self, key: str) -> Path:
        """Get filesystem path for key, with path traversal protection."""
        resolved = (self._base_path / key).resolve()
        if not resolved.is_relative_to(self._base_path.resolve()):
            raise ValueError("Path traversal detected")
        return resolved

    def _get_metadata_path(self, key: str) -> Path:
        """Get metadata file path for key, with path traversal protection."""
        resolved = (self._base_path / f"{key}{self._metadata_suffix}").resolve()
        if not resolved.is_relative_to(self._base_path.resolve()):
            raise ValueError("Path traversal detected")
        return resolved

    def put(self, key: str, data: bytes, metadata: dict[str, str]) -> StoredBlob:
        """Write blob bytes and sidecar metadata."""
        with log_storage_operation(self.name, "put", key) as metrics:
            file_path = self._get_path(key)
            meta_path = self._get_metadata_path(key)
            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_bytes(data)

                blob = StoredBlob(
                    key=key,
                    size_bytes=len(data),
                    created_at=datetime.now(UTC),
                    metadata=dict(metadata),
                    tier=StorageTier.STANDARD,
                )
                self._write_sidecar(meta_path, blob)
            except OSError as e:
                raise TransientIOError(f"Local write failed for {key}: {e}", operation="put") from e
            metrics["size_bytes"] = len(data)

        return blob

    def set_tier(self, key: str, tier: StorageTier) -> None:
        """Record the new tier in the sidecar."""
        with log_storage_operation(self.name, "set_tier", key):
            blob = self.head(key)
            if blob is None:
                raise NotFoundError(f"Cannot set tier, object not found: {key}", key=key)
            blob.tier = tier
            self._write_sidecar(self._get_metadata_path(key), blob)

    def exists(self, key: str) -> bool:
        """Check if object exists."""
        return self._get_path(key).is_file()

    def get(self, key: str) -> bytes:
        """Read blob bytes."""
        with log_storage_operation(self.name, "get", key) as metrics:
            file_path = self._get_path(key)
            if not file_path.is_file():
                raise NotFoundError(f"Object not found: {key}", key=key)
            try:
                data = file_path.read_bytes()
            except OSError as e:
                raise TransientIOError(f"Local read failed for {key}: {e}", operation="get") from e
            metrics["size_bytes"] = len(data)
        return data

    def head(self, key: str) -> Optional[StoredBlob]:
        """Get object description without downloading content."""
        if not self.exists(key):
            return None
        return self._load_sidecar(key)

    def iter_key_pages(self, prefix: str = "") -> Iterator[list[str]]:
        """Yield all keys starting with prefix as a single page."""
        keys = []
        for meta_file in sorted(self._base_path.rglob(f"*{self._metadata_suffix}")):
            key = meta_file.relative_to(self._base_path).as_posix()[: -len(self._metadata_suffix)]
            if key.startswith(prefix) and self.exists(key):
                keys.append(key)
        yield keys

    def _write_sidecar(self, meta_path: Path, blob: StoredBlob) -> None:
        meta_dict = {
            "key": blob.key,
            "size_bytes": blob.size_bytes,
            "created_at": blob.created_at.isoformat(),
            "tier": blob.tier.value if blob.tier else None,
            "metadata": blob.metadata,
        }
        meta_path.write_text(json.dumps(meta_dict, indent=2))

    def _load_sidecar(self, key: str) -> Optional[StoredBlob]:
        """Load metadata from sidecar, falling back to file stats."""
        meta_path = self._get_metadata_path(key)
        file_path = self._get_path(key)

        try:
            meta_dict = json.loads(meta_path.read_text())
            return StoredBlob(
                key=meta_dict["key"],
                size_bytes=meta_dict["size_bytes"],
                created_at=datetime.fromisoformat(meta_dict["created_at"]),
                metadata=meta_dict.get("metadata", {}),
                tier=StorageTier(meta_dict["tier"]) if meta_dict.get("tier") else None,
            )
        except (OSError, json.JSONDecodeError, KeyError) as e:
            logger.warning(f"Failed to load metadata for {key}: {e}")
            if not file_path.is_file():
                return None
            stat = file_path.stat()
            return StoredBlob(
                key=key,
                size_bytes=stat.st_size,
                created_at=datetime.fromtimestamp(stat.st_mtime, UTC),
            )
