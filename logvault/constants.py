# logvault/constants.py
"""
Centralized constants organized by domain.

Log types, storage tiers, and retention defaults used throughout the
engine are defined here.
"""

from enum import Enum


class LogType(str, Enum):
    """Compliance log categories. Declaration order is processing order."""

    AUTHENTICATION = "authentication"
    ACCESS = "access"
    FINANCIAL = "financial"
    SYSTEM = "system"


class StorageTier(str, Enum):
    """Cold store tiers an archive blob may live in."""

    STANDARD = "standard"
    COLD = "cold"


class ConflictPolicy(str, Enum):
    """What archival does when a blob already exists for (type, date)."""

    SKIP = "skip"  # Keep existing blob, prune only records it contains
    MERGE = "merge"  # Rewrite blob with existing + new records


class RetentionDefaults:
    """Data retention and lifecycle constants."""

    RETENTION_YEARS = 7                 # Israeli Tax Ordinance / Privacy Protection Law
    EXPIRY_WARNING_DAYS = 30            # Look-ahead window for expiry alerts
    COLD_STORAGE_CLASS = "GLACIER_IR"   # Instant-retrieval archive class


class ArchiveDefaults:
    """Default values for archival runs."""

    IO_TIMEOUT_SECONDS = 60             # Deadline for a single backend call
    LOCK_TTL_SECONDS = 3600             # Advisory lock lifetime
    DELETE_BATCH_SIZE = 500             # Hot-store rows per delete statement
    SEARCH_MAX_CONCURRENCY = 8          # Parallel day fetches in range search
    GZIP_LEVEL = 6

    # boto3 client limits
    S3_CONNECT_TIMEOUT_SECONDS = 5
    S3_READ_TIMEOUT_SECONDS = 30
    S3_MAX_ATTEMPTS = 3
    # Longest a call can keep running after its deadline fires
    MAX_BACKEND_CALL_SECONDS = S3_MAX_ATTEMPTS * (S3_CONNECT_TIMEOUT_SECONDS + S3_READ_TIMEOUT_SECONDS)


class MetadataKeys:
    """User-metadata keys stored on every archive blob (S3 lowercases keys)."""

    LOG_TYPE = "log-type"
    DATE = "date"
    COUNT = "count"
    SHA256 = "sha256"
    RETENTION_UNTIL = "retention-until"
