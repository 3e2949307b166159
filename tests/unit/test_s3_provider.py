"""Tests for S3ColdStore against a mocked boto3 client."""

import io
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from logvault.constants import StorageTier
from logvault.errors import ConfigurationError, NotFoundError, TransientIOError
from logvault.storage.s3_provider import S3ColdStore

KEY = "financial/2025/2025-01-15"
META = {"log-type": "financial", "date": "2025-01-15", "count": "1", "sha256": "ab", "retention-until": "2032-01-15"}


def client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return S3ColdStore(bucket="compliance-logs", client=client)


class TestConfiguration:
    """Constructor validation."""

    def test_bucket_required(self, client, monkeypatch):
        monkeypatch.delenv("S3_BUCKET", raising=False)
        with pytest.raises(ConfigurationError) as exc_info:
            S3ColdStore(client=client)
        assert exc_info.value.setting == "S3_BUCKET"

    def test_bucket_from_env(self, client, monkeypatch):
        monkeypatch.setenv("S3_BUCKET", "from-env")
        assert S3ColdStore(client=client).bucket == "from-env"


class TestPut:
    """Tests for put()."""

    def test_uploads_with_metadata(self, store, client):
        blob = store.put(KEY, b"gzipped", META)

        client.put_object.assert_called_once_with(
            Bucket="compliance-logs",
            Key=KEY,
            Body=b"gzipped",
            ContentType="application/json",
            ContentEncoding="gzip",
            Metadata=META,
        )
        assert blob.size_bytes == 7
        assert blob.tier == StorageTier.STANDARD

    def test_client_error_is_transient(self, store, client):
        client.put_object.side_effect = client_error("SlowDown", "PutObject")
        with pytest.raises(TransientIOError):
            store.put(KEY, b"x", META)

    def test_connection_error_is_transient(self, store, client):
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.example")
        with pytest.raises(TransientIOError):
            store.put(KEY, b"x", META)


class TestSetTier:
    """Tests for set_tier()."""

    def test_copies_with_cold_storage_class(self, store, client):
        store.set_tier(KEY, StorageTier.COLD)

        client.copy_object.assert_called_once_with(
            Bucket="compliance-logs",
            Key=KEY,
            CopySource={"Bucket": "compliance-logs", "Key": KEY},
            StorageClass="GLACIER_IR",
            MetadataDirective="COPY",
        )

    def test_custom_cold_class(self, client):
        store = S3ColdStore(bucket="b", cold_storage_class="DEEP_ARCHIVE", client=client)
        store.set_tier(KEY, StorageTier.COLD)
        assert client.copy_object.call_args.kwargs["StorageClass"] == "DEEP_ARCHIVE"

    def test_missing_key(self, store, client):
        client.copy_object.side_effect = client_error("NoSuchKey", "CopyObject")
        with pytest.raises(NotFoundError):
            store.set_tier(KEY, StorageTier.COLD)


class TestReads:
    """Tests for get(), head(), exists()."""

    def test_get_reads_body(self, store, client):
        client.get_object.return_value = {"Body": io.BytesIO(b"payload")}
        assert store.get(KEY) == b"payload"

    def test_get_missing(self, store, client):
        client.get_object.side_effect = client_error("NoSuchKey", "GetObject")
        with pytest.raises(NotFoundError):
            store.get(KEY)

    def test_get_access_denied_is_transient(self, store, client):
        client.get_object.side_effect = client_error("AccessDenied", "GetObject")
        with pytest.raises(TransientIOError):
            store.get(KEY)

    def test_head(self, store, client):
        modified = datetime(2025, 1, 16, 2, 0, tzinfo=UTC)
        client.head_object.return_value = {
            "ContentLength": 321,
            "LastModified": modified,
            "Metadata": META,
            "StorageClass": "GLACIER_IR",
        }

        blob = store.head(KEY)

        assert blob.size_bytes == 321
        assert blob.created_at == modified
        assert blob.tier == StorageTier.COLD
        assert blob.parsed_metadata().sha256 == "ab"

    def test_head_standard_class_omitted(self, store, client):
        client.head_object.return_value = {"ContentLength": 1, "Metadata": {}}
        assert store.head(KEY).tier == StorageTier.STANDARD

    def test_head_missing(self, store, client):
        client.head_object.side_effect = client_error("404")
        assert store.head(KEY) is None
        assert store.exists(KEY) is False


class TestListing:
    """Tests for iter_key_pages() and list_by_prefix()."""

    def test_yields_one_page_per_response(self, store, client):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "system/2025/2025-01-15"}, {"Key": "system/2025/2025-01-16"}]},
            {"Contents": [{"Key": "system/2025/2025-01-17"}]},
        ]
        client.get_paginator.return_value = paginator

        pages = list(store.iter_key_pages("system/"))

        assert pages == [
            ["system/2025/2025-01-15", "system/2025/2025-01-16"],
            ["system/2025/2025-01-17"],
        ]
        client.head_object.assert_not_called()

    def test_heads_every_listed_key(self, store, client):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "system/2025/2025-01-15"}]},
            {"Contents": [{"Key": "system/2025/2025-01-16"}]},
            {},
        ]
        client.get_paginator.return_value = paginator
        client.head_object.side_effect = lambda Bucket, Key: {"ContentLength": 10, "Metadata": {}}

        blobs = store.list_by_prefix("system/")

        paginator.paginate.assert_called_once_with(Bucket="compliance-logs", Prefix="system/")
        assert [b.key for b in blobs] == ["system/2025/2025-01-15", "system/2025/2025-01-16"]

    def test_listing_failure_is_transient(self, store, client):
        client.get_paginator.return_value.paginate.side_effect = client_error("InternalError", "ListObjectsV2")
        with pytest.raises(TransientIOError):
            store.list_by_prefix("")
