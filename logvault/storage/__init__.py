# logvault/storage/__init__.py
"""
Cold store abstraction for compressed log archives.

Archives are stored in object storage (S3) as one gzip blob per log type
per day. This module provides a clean interface for write/read/tier/list.
"""

from logvault.storage.base import (
    BlobMetadata,
    ColdStore,
    StoredBlob,
    build_archive_key,
)
from logvault.storage.factory import create_cold_store
from logvault.storage.local_provider import LocalColdStore
from logvault.storage.s3_provider import S3ColdStore

__all__ = [
    "ColdStore",
    "StoredBlob",
    "BlobMetadata",
    "build_archive_key",
    "S3ColdStore",
    "LocalColdStore",
    "create_cold_store",
]
