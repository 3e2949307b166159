# logvault/services/log_recorder.py
"""
Producer-side helpers that write compliance log entries to the hot store.

Recording failures are logged and reported as None so that a logging
outage never breaks the calling request.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from logvault.errors import LogVaultError
from logvault.schemas.logs import AccessLog, AuthenticationLog, FinancialLog, LogEntryBase, SystemLog
from logvault.services.hot_store import HotStoreGateway

logger = logging.getLogger(__name__)


def record_log(hot_store: HotStoreGateway, entry: LogEntryBase) -> Optional[str]:
    """
    Insert a validated log entry.

    Returns:
        The new entry id, or None if the hot store rejected the write
    """
    try:
        return hot_store.insert(entry.log_type, entry.timestamp, entry.payload())
    except (LogVaultError, SQLAlchemyError) as e:
        logger.error(f"Failed to record {entry.log_type.value} log: {e}")
        return None


def record_authentication(hot_store: HotStoreGateway, entry: AuthenticationLog) -> Optional[str]:
    return record_log(hot_store, entry)


def record_access(hot_store: HotStoreGateway, entry: AccessLog) -> Optional[str]:
    return record_log(hot_store, entry)


def record_financial(hot_store: HotStoreGateway, entry: FinancialLog) -> Optional[str]:
    return record_log(hot_store, entry)


def record_system(hot_store: HotStoreGateway, entry: SystemLog) -> Optional[str]:
    return record_log(hot_store, entry)
