"""
logvault: compliance log archival and retention engine.
"""

from logvault.constants import LogType, StorageTier
from logvault.engine import RetentionEngine
from logvault.errors import (
    ArchiveLockHeldError,
    ConfigurationError,
    DataIntegrityError,
    LogVaultError,
    NotFoundError,
    TransientIOError,
)

__all__ = [
    "RetentionEngine",
    "LogType",
    "StorageTier",
    "LogVaultError",
    "TransientIOError",
    "DataIntegrityError",
    "ConfigurationError",
    "NotFoundError",
    "ArchiveLockHeldError",
]
