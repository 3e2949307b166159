# logvault/storage/s3_provider.py
"""
S3 cold store implementation using boto3.

Supports:
- AWS S3 (storage class transitions for the cold tier)
- S3-compatible services (MinIO, etc.)
"""

import logging
import os
from datetime import UTC, datetime
from typing import Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from logvault.constants import ArchiveDefaults, RetentionDefaults, StorageTier
from logvault.errors import ConfigurationError, NotFoundError, TransientIOError
from logvault.logging_config import log_storage_operation
from logvault.storage.base import ColdStore, StoredBlob

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


class S3ColdStore(ColdStore):
    """
    S3/S3-compatible cold store.

    Configuration via environment:
    - S3_BUCKET: Bucket name (required)
    - S3_ENDPOINT_URL: Custom endpoint for S3-compatible services
    - S3_REGION: AWS region (default: us-east-1)
    - COLD_STORAGE_CLASS: Storage class for the cold tier (default: GLACIER_IR)
    - AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY: AWS credentials
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        cold_storage_class: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client=None,
    ):
        """
        Initialize S3 provider.

        Args:
            bucket: S3 bucket name (or S3_BUCKET env var)
            endpoint_url: Custom endpoint for S3-compatible services
            region: AWS region
            cold_storage_class: S3 storage class used for StorageTier.COLD
            access_key_id: Explicit credentials (default: boto3 credential chain)
            secret_access_key: Explicit credentials
            client: Pre-built boto3 S3 client (used by tests)

        Raises:
            ConfigurationError: If no bucket is configured
        """
        self._bucket = bucket or os.getenv("S3_BUCKET")
        if not self._bucket:
            raise ConfigurationError(
                "S3 bucket required. Set S3_BUCKET env var or pass bucket.",
                setting="S3_BUCKET",
            )

        self._endpoint_url = endpoint_url or os.getenv("S3_ENDPOINT_URL")
        self._region = region or os.getenv("S3_REGION", "us-east-1")
        self._storage_classes = {
            StorageTier.STANDARD: "STANDARD",
            StorageTier.COLD: cold_storage_class or RetentionDefaults.COLD_STORAGE_CLASS,
        }

        if client is None:
            config = Config(
                retries={"max_attempts": ArchiveDefaults.S3_MAX_ATTEMPTS, "mode": "adaptive"},
                connect_timeout=ArchiveDefaults.S3_CONNECT_TIMEOUT_SECONDS,
                read_timeout=ArchiveDefaults.S3_READ_TIMEOUT_SECONDS,
            )
            client_kwargs = {
                "endpoint_url": self._endpoint_url,
                "region_name": self._region,
                "config": config,
            }
            if access_key_id:
                client_kwargs["aws_access_key_id"] = access_key_id
                client_kwargs["aws_secret_access_key"] = secret_access_key
            client = boto3.client("s3", **client_kwargs)
        self._client = client

        logger.info(f"S3 cold store initialized: bucket={self._bucket}")

    @property
    def name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    def _tier_for_class(self, storage_class: Optional[str]) -> StorageTier:
        # S3 omits StorageClass for STANDARD objects
        if not storage_class or storage_class == "STANDARD":
            return StorageTier.STANDARD
        return StorageTier.COLD

    def put(self, key: str, data: bytes, metadata: dict[str, str]) -> StoredBlob:
        """Upload already-compressed archive bytes."""
        with log_storage_operation(self.name, "put", key) as metrics:
            try:
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=key,
                    Body=data,
                    ContentType="application/json",
                    ContentEncoding="gzip",
                    Metadata=dict(metadata),
                )
            except (ClientError, BotoCoreError) as e:
                raise TransientIOError(f"S3 upload failed for {key}: {e}", operation="put") from e
            metrics["size_bytes"] = len(data)

        return StoredBlob(
            key=key,
            size_bytes=len(data),
            created_at=datetime.now(UTC),
            metadata=dict(metadata),
            tier=StorageTier.STANDARD,
        )

    def set_tier(self, key: str, tier: StorageTier) -> None:
        """Rewrite the object onto itself with a new storage class."""
        with log_storage_operation(self.name, "set_tier", key):
            try:
                self._client.copy_object(
                    Bucket=self._bucket,
                    Key=key,
                    CopySource={"Bucket": self._bucket, "Key": key},
                    StorageClass=self._storage_classes[tier],
                    MetadataDirective="COPY",
                )
            except ClientError as e:
                if _error_code(e) in _NOT_FOUND_CODES:
                    raise NotFoundError(f"Cannot set tier, object not found: {key}", key=key) from e
                raise TransientIOError(f"S3 tier transition failed for {key}: {e}", operation="set_tier") from e
            except BotoCoreError as e:
                raise TransientIOError(f"S3 tier transition failed for {key}: {e}", operation="set_tier") from e

    def exists(self, key: str) -> bool:
        """Check if object exists in S3."""
        return self.head(key) is not None

    def get(self, key: str) -> bytes:
        """Download raw archive bytes (no decompression)."""
        with log_storage_operation(self.name, "get", key) as metrics:
            try:
                response = self._client.get_object(Bucket=self._bucket, Key=key)
                data = response["Body"].read()
            except ClientError as e:
                if _error_code(e) in _NOT_FOUND_CODES:
                    raise NotFoundError(f"Object not found: {key}", key=key) from e
                raise TransientIOError(f"S3 download failed for {key}: {e}", operation="get") from e
            except BotoCoreError as e:
                raise TransientIOError(f"S3 download failed for {key}: {e}", operation="get") from e
            metrics["size_bytes"] = len(data)
        return data

    def head(self, key: str) -> Optional[StoredBlob]:
        """Get object metadata without downloading content."""
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise TransientIOError(f"S3 head failed for {key}: {e}", operation="head") from e
        except BotoCoreError as e:
            raise TransientIOError(f"S3 head failed for {key}: {e}", operation="head") from e

        return StoredBlob(
            key=key,
            size_bytes=response.get("ContentLength", 0),
            created_at=response.get("LastModified", datetime.now(UTC)),
            metadata=response.get("Metadata", {}),
            tier=self._tier_for_class(response.get("StorageClass")),
        )

    def iter_key_pages(self, prefix: str = "") -> Iterator[list[str]]:
        """
        Yield one list_objects_v2 page of keys at a time.

        Listing omits user metadata; callers head each key for it.
        """
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                yield [obj["Key"] for obj in page.get("Contents", [])]
        except (ClientError, BotoCoreError) as e:
            raise TransientIOError(f"S3 listing failed for prefix '{prefix}': {e}", operation="list") from e
