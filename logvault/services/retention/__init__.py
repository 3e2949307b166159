# logvault/services/retention/__init__.py
"""
Log archival and retention services.

Archive lifecycle:
- Hot: live entries in the log database, queryable
- Archived: one gzip blob per (log type, day) in cold storage
- Expiring: archives within the warning window of their 7-year horizon

Services:
- codec: Compression and integrity digests
- archive_service: Hot-to-cold archival with verify-before-prune
- retrieval_service: Verified single-day and range retrieval
- retention_monitor: Expiry arithmetic, expiry scans, summary
"""

from logvault.services.retention.archive_service import (
    ArchivalJob,
    ArchiveRunResult,
    ArchiveStatus,
    TypeArchiveResult,
    TypeFailure,
)
from logvault.services.retention.codec import compress, decompress, digest, verify_digest
from logvault.services.retention.retention_monitor import (
    RetentionMonitor,
    RetentionSummary,
    compute_expiry,
)
from logvault.services.retention.retrieval_service import DayArchive, RetrievalService

__all__ = [
    # Codec
    "compress",
    "decompress",
    "digest",
    "verify_digest",
    # Archive
    "ArchivalJob",
    "ArchiveRunResult",
    "ArchiveStatus",
    "TypeArchiveResult",
    "TypeFailure",
    # Retrieval
    "RetrievalService",
    "DayArchive",
    # Monitor
    "RetentionMonitor",
    "RetentionSummary",
    "compute_expiry",
]
