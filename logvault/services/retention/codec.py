# logvault/services/retention/codec.py
"""
Compression and integrity codec for archive blobs.

Records are serialized as a canonical JSON array (sorted keys, compact
separators, UTF-8) and gzip-compressed with a fixed mtime, so equal record
sets produce byte-identical blobs. The digest is SHA-256 over the
compressed bytes.
"""

import gzip
import hashlib
import json
import zlib
from typing import Any, Sequence

from logvault.constants import ArchiveDefaults
from logvault.errors import DataIntegrityError


def compress(records: Sequence[dict[str, Any]]) -> bytes:
    """Serialize records in order and gzip them."""
    payload = json.dumps(
        list(records),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return gzip.compress(payload, compresslevel=ArchiveDefaults.GZIP_LEVEL, mtime=0)


def decompress(data: bytes, key: str | None = None) -> list[dict[str, Any]]:
    """
    Inverse of compress.

    Raises:
        DataIntegrityError: If the bytes are not a gzip'd JSON array
    """
    try:
        records = json.loads(gzip.decompress(data).decode("utf-8"))
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DataIntegrityError(f"Archive payload could not be decoded: {e}", key=key) from e

    if not isinstance(records, list):
        raise DataIntegrityError("Archive payload is not a record list", key=key)
    return records


def digest(data: bytes) -> str:
    """SHA-256 hex digest of (compressed) bytes."""
    return hashlib.sha256(data).hexdigest()


def verify_digest(data: bytes, expected: str, key: str | None = None) -> None:
    """
    Recompute the digest and compare with the recorded one.

    Raises:
        DataIntegrityError: On mismatch
    """
    actual = digest(data)
    if actual != expected:
        raise DataIntegrityError(
            f"Integrity check failed for {key or 'archive'}: expected sha256 {expected}, got {actual}",
            key=key,
            expected=expected,
            actual=actual,
        )
