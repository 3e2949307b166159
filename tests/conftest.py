# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import os
from datetime import datetime

import pytest

# Set test environment
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from logvault.config import Settings  # noqa: E402
from logvault.constants import LogType  # noqa: E402
from logvault.database import create_db_engine, create_session_factory, init_db  # noqa: E402
from logvault.engine import RetentionEngine  # noqa: E402
from logvault.errors import TransientIOError  # noqa: E402
from logvault.services.hot_store import SqlAlchemyHotStore  # noqa: E402
from logvault.storage.local_provider import LocalColdStore  # noqa: E402


# -----------------------------------------------------------------------------
# Fault-injecting cold stores
# -----------------------------------------------------------------------------


class FlakyColdStore(LocalColdStore):
    """LocalColdStore whose listed operations raise TransientIOError."""

    def __init__(self, base_path: str, fail_on: set[str] | None = None):
        super().__init__(base_path)
        self.fail_on = set(fail_on or ())
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if operation in self.fail_on:
            raise TransientIOError(f"injected {operation} failure for {key}", operation=operation)

    def put(self, key, data, metadata):
        self._maybe_fail("put", key)
        return super().put(key, data, metadata)

    def set_tier(self, key, tier):
        self._maybe_fail("set_tier", key)
        return super().set_tier(key, tier)

    def get(self, key):
        self._maybe_fail("get", key)
        return super().get(key)


class LossyColdStore(LocalColdStore):
    """Accepts writes but silently drops them."""

    def put(self, key, data, metadata):
        blob = super().put(key, data, metadata)
        self._get_path(key).unlink()
        return blob


class TamperingColdStore(LocalColdStore):
    """Flips one byte of every blob it writes, after reporting success."""

    def put(self, key, data, metadata):
        blob = super().put(key, data, metadata)
        tamper_blob(self, key)
        return blob


def tamper_blob(store: LocalColdStore, key: str) -> None:
    """Corrupt a stored blob in place without touching its metadata."""
    path = store._get_path(key)
    data = bytearray(path.read_bytes())
    data[-1] ^= 0xFF
    path.write_bytes(bytes(data))


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def hot_store():
    """Fresh in-memory SQLite hot store."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield SqlAlchemyHotStore(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def cold_path(tmp_path):
    return str(tmp_path / "cold")


@pytest.fixture
def cold_store(cold_path):
    return LocalColdStore(base_path=cold_path)


@pytest.fixture
def settings(cold_path):
    return Settings(
        DATABASE_URL="sqlite:///:memory:",
        STORAGE_PROVIDER="local",
        LOCAL_STORAGE_PATH=cold_path,
        IO_TIMEOUT_SECONDS=10,
    )


@pytest.fixture
def engine(hot_store, cold_store, settings):
    return RetentionEngine(hot_store, cold_store, settings)


@pytest.fixture
def seed(hot_store):
    """Insert entries for one log type at the given naive-UTC timestamps."""

    def _seed(log_type: LogType, *timestamps: datetime, **data) -> list[str]:
        return [
            hot_store.insert(log_type, ts, {"seq": i, **data})
            for i, ts in enumerate(timestamps)
        ]

    return _seed
