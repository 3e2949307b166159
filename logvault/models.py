# logvault/models.py
"""
Hot log store database models

Tables:
- authentication_logs, access_logs, financial_logs, system_logs:
  live log entries, one table per log type
- archive_locks: advisory locks serializing archival runs per (type, date)
"""

from datetime import UTC, datetime
import uuid

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    String,
    Uuid,
)

from logvault.constants import LogType
from logvault.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


# -----------------------------------------------------------------------------
# Log entries
# -----------------------------------------------------------------------------

class LogEntryMixin:
    """
    Columns shared by every log table.

    The payload is opaque to the archival engine; only timestamp is queried.
    Timestamps are naive UTC.
    """
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime, nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class AuthenticationLogEntry(LogEntryMixin, Base):
    """Logins, logouts, passkey and password events."""
    __tablename__ = "authentication_logs"


class AccessLogEntry(LogEntryMixin, Base):
    """Reads and writes of protected resources."""
    __tablename__ = "access_logs"


class FinancialLogEntry(LogEntryMixin, Base):
    """Purchases, refunds, voucher redemptions."""
    __tablename__ = "financial_logs"


class SystemLogEntry(LogEntryMixin, Base):
    """Service-level events."""
    __tablename__ = "system_logs"


LOG_ENTRY_MODELS = {
    LogType.AUTHENTICATION: AuthenticationLogEntry,
    LogType.ACCESS: AccessLogEntry,
    LogType.FINANCIAL: FinancialLogEntry,
    LogType.SYSTEM: SystemLogEntry,
}


# -----------------------------------------------------------------------------
# Archive locks
# -----------------------------------------------------------------------------

class ArchiveLock(Base):
    """
    Advisory lock row for one (log type, date) archival.

    Primary key uniqueness makes acquisition atomic; expired rows may be
    reclaimed by a later run.
    """
    __tablename__ = "archive_locks"

    lock_key = Column(String(128), primary_key=True)  # archive:{type}:{date}
    owner = Column(String(64), nullable=False)  # run id
    acquired_at = Column(DateTime, default=_utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
