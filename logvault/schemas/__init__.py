"""
Pydantic schemas for logvault.
"""

from logvault.schemas.logs import (
    AccessLog,
    AuthenticationLog,
    FinancialLog,
    LogEntryBase,
    SystemLog,
)

__all__ = [
    "LogEntryBase",
    "AuthenticationLog",
    "AccessLog",
    "FinancialLog",
    "SystemLog",
]
