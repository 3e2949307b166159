# logvault/errors.py
"""
Error types for the log archival engine.

- LogVaultError: Base exception
- TransientIOError: Hot/cold store temporarily unavailable
  - IOTimeoutError: A backend call missed its deadline (outcome unknown)
- HotStoreError: Hot store rejected a statement
- DataIntegrityError: Stored bytes do not match their recorded digest
- ConfigurationError: Engine cannot be constructed from settings
- NotFoundError: No archive blob exists for a (log type, date)
- ArchiveLockHeldError: Another run holds the archive lock for a key

Transient errors are retry-worthy at the scheduler level. Configuration
errors are fatal.
"""

from typing import Any


class LogVaultError(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "LOGVAULT_ERROR"
        self.details = details or {}


class TransientIOError(LogVaultError):
    """A backend call failed in a way that may succeed on retry."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message, code="TRANSIENT_IO", details={"operation": operation})
        self.operation = operation


class IOTimeoutError(TransientIOError):
    """
    A backend call missed its deadline.

    The worker thread running the call may still complete after this is
    raised, so the outcome of the call is unknown.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)
        self.code = "IO_TIMEOUT"


class HotStoreError(LogVaultError):
    """The hot store rejected a statement (schema, constraint, or driver error)."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message, code="HOT_STORE", details={"operation": operation})
        self.operation = operation


class DataIntegrityError(LogVaultError):
    """Archive bytes failed digest, decode, or count verification."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        expected: str | None = None,
        actual: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code="DATA_INTEGRITY",
            details={"key": key, "expected": expected, "actual": actual},
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class ConfigurationError(LogVaultError):
    """Required settings are missing or invalid."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message, code="CONFIGURATION", details={"setting": setting})
        self.setting = setting


class NotFoundError(LogVaultError):
    """No archive blob exists for the requested key."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message, code="NOT_FOUND", details={"key": key})
        self.key = key


class ArchiveLockHeldError(LogVaultError):
    """The advisory lock for a (log type, date) is held by another run."""

    def __init__(self, message: str, lock_key: str | None = None) -> None:
        super().__init__(message, code="LOCK_HELD", details={"lock_key": lock_key})
        self.lock_key = lock_key
