# logvault/services/__init__.py
"""
Hot store gateway, producer helpers, and retention services.
"""

from logvault.services.hot_store import HotRecord, HotStoreGateway, SqlAlchemyHotStore
from logvault.services.log_recorder import (
    record_access,
    record_authentication,
    record_financial,
    record_log,
    record_system,
)

__all__ = [
    "HotStoreGateway",
    "HotRecord",
    "SqlAlchemyHotStore",
    "record_log",
    "record_authentication",
    "record_access",
    "record_financial",
    "record_system",
]
