# logvault/schemas/logs.py
"""
Schemas for compliance log entries written by producers.

One schema per log type. The archival engine never reads these; it
treats stored entries as opaque JSON with a timestamp.
"""

from datetime import UTC, datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from logvault.constants import LogType


class LogEntryBase(BaseModel):
    """Fields common to every log entry."""

    log_type: ClassVar[LogType]

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the event happened (UTC)",
    )

    def payload(self) -> dict[str, Any]:
        """JSON-ready fields stored in the hot store, excluding the timestamp."""
        return self.model_dump(mode="json", exclude={"timestamp"}, exclude_none=True)


class AuthenticationLog(LogEntryBase):
    """Login, logout, and credential events."""

    log_type: ClassVar[LogType] = LogType.AUTHENTICATION

    user_id: str = Field(..., description="Authenticated user ID")
    email: str = Field(..., description="User email")
    action: Literal[
        "login", "logout", "passkey_register", "passkey_auth", "password_change", "failed_login"
    ]
    method: Literal["password", "passkey", "google", "facebook", "apple"]
    ip_address: str
    user_agent: str
    success: bool
    error_message: str | None = None
    device_id: str | None = None


class AccessLog(LogEntryBase):
    """Access to a protected resource."""

    log_type: ClassVar[LogType] = LogType.ACCESS

    user_id: str
    email: str
    resource: str = Field(..., description="Resource identifier or path")
    action: Literal["view", "create", "update", "delete", "download"]
    resource_type: Literal["document", "user_data", "financial_record", "pet_data", "voucher"]
    granted: bool
    denial_reason: str | None = None
    ip_address: str
    user_agent: str


class FinancialLog(LogEntryBase):
    """Money movement subject to tax-record retention."""

    log_type: ClassVar[LogType] = LogType.FINANCIAL

    transaction_id: str
    user_id: str
    type: Literal["purchase", "refund", "voucher_redeem", "payment_method_change"]
    amount: float
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code")
    payment_method: str
    invoice_number: str | None = None
    tax_id: str | None = None


class SystemLog(LogEntryBase):
    """Service-level event."""

    log_type: ClassVar[LogType] = LogType.SYSTEM

    level: Literal["info", "warn", "error", "critical"]
    service: str
    message: str
    details: dict[str, Any] | None = None
    user_id: str | None = None
    request_id: str | None = None
