"""Tests for settings loading and the cold store factory."""

import pytest
from pydantic import ValidationError

from logvault.config import Settings, get_settings, load_settings
from logvault.constants import ConflictPolicy
from logvault.errors import ConfigurationError
from logvault.storage.factory import create_cold_store
from logvault.storage.local_provider import LocalColdStore
from logvault.storage.s3_provider import S3ColdStore


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        settings = Settings(DATABASE_URL="sqlite:///:memory:")

        assert settings.RETENTION_YEARS == 7
        assert settings.EXPIRY_WARNING_DAYS == 30
        assert settings.COLD_STORAGE_CLASS == "GLACIER_IR"
        assert settings.ARCHIVE_CONFLICT_POLICY == ConflictPolicy.SKIP

    def test_postgres_url_rewritten(self):
        settings = Settings(DATABASE_URL="postgresql://u:p@db/logs")
        assert settings.DATABASE_URL == "postgresql+psycopg2://u:p@db/logs"

    def test_provider_normalized(self):
        settings = Settings(DATABASE_URL="sqlite://", STORAGE_PROVIDER=" Local ")
        assert settings.STORAGE_PROVIDER == "local"

    def test_conflict_policy_from_env(self, monkeypatch):
        monkeypatch.setenv("ARCHIVE_CONFLICT_POLICY", "merge")
        settings = Settings(DATABASE_URL="sqlite://")
        assert settings.ARCHIVE_CONFLICT_POLICY == ConflictPolicy.MERGE

    def test_lock_ttl_must_outlive_backend_calls(self):
        with pytest.raises(ValidationError, match="ARCHIVE_LOCK_TTL_SECONDS"):
            Settings(DATABASE_URL="sqlite://", IO_TIMEOUT_SECONDS=60, ARCHIVE_LOCK_TTL_SECONDS=120)

    def test_lock_ttl_above_floor_accepted(self):
        settings = Settings(DATABASE_URL="sqlite://", IO_TIMEOUT_SECONDS=5, ARCHIVE_LOCK_TTL_SECONDS=600)
        assert settings.ARCHIVE_LOCK_TTL_SECONDS == 600


class TestLoadSettings:
    """Tests for load_settings()."""

    def setup_method(self):
        get_settings.cache_clear()

    def teardown_method(self):
        get_settings.cache_clear()

    def test_invalid_value_raises_configuration_error(self, monkeypatch):
        monkeypatch.setenv("RETENTION_YEARS", "0")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.setting == "RETENTION_YEARS"

    def test_missing_database_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.chdir("/")

        with pytest.raises(ConfigurationError, match="DATABASE_URL"):
            load_settings()


class TestCreateColdStore:
    """Tests for create_cold_store()."""

    def test_local(self, tmp_path):
        settings = Settings(DATABASE_URL="sqlite://", STORAGE_PROVIDER="local", LOCAL_STORAGE_PATH=str(tmp_path))
        assert isinstance(create_cold_store(settings), LocalColdStore)

    def test_s3_requires_bucket(self, monkeypatch):
        monkeypatch.delenv("S3_BUCKET", raising=False)
        settings = Settings(DATABASE_URL="sqlite://", STORAGE_PROVIDER="s3")

        with pytest.raises(ConfigurationError):
            create_cold_store(settings)

    def test_s3(self):
        settings = Settings(DATABASE_URL="sqlite://", STORAGE_PROVIDER="s3", S3_BUCKET="logs", S3_REGION="eu-west-1")

        store = create_cold_store(settings)

        assert isinstance(store, S3ColdStore)
        assert store.bucket == "logs"

    def test_unknown_provider(self):
        settings = Settings(DATABASE_URL="sqlite://", STORAGE_PROVIDER="gcs")

        with pytest.raises(ConfigurationError) as exc_info:
            create_cold_store(settings)
        assert exc_info.value.setting == "STORAGE_PROVIDER"
