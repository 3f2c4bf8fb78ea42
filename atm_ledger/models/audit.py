"""
Audit Models for the ATM Ledger

Every change to the ledger and every authentication attempt produces an
audit event. Audit events are append-only: they are never modified or
deleted once written.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Account lifecycle
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    TRANSACTION_APPLIED = "transaction_applied"
    ACCOUNT_REMOVED = "account_removed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"

    # Rejections and failures
    OPERATION_REJECTED = "operation_rejected"
    NOTIFICATION_FAILED = "notification_failed"
    STORE_ERROR = "store_error"

    # Users
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    `actor` is the name of the user who triggered the event, and
    `account_number` the account it concerns, when there is one.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    actor: Optional[str] = Field(
        default=None,
        description="Name of the user who triggered the event"
    )
    record_id: Optional[int] = None
    account_number: Optional[int] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor": self.actor,
            "record_id": self.record_id,
            "account_number": self.account_number,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_json_line(self) -> str:
        """Serialize as a single line of JSON, without the newline."""
        return json.dumps(self.to_log_dict(), default=str)

    @classmethod
    def from_json_line(cls, line: str) -> "AuditEvent":
        return cls.model_validate_json(line)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_created("alice", 3, 100, "saving")
        event = AuditEventBuilder.login_failed("mallory")
    """

    @staticmethod
    def account_created(
        actor: str,
        record_id: int,
        account_number: int,
        account_type: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            actor=actor,
            record_id=record_id,
            account_number=account_number,
            description=f"Account {account_number} created",
            details={"account_type": account_type},
        )

    @staticmethod
    def account_updated(
        actor: str,
        account_number: int,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            actor=actor,
            account_number=account_number,
            description=f"Account {account_number} updated: {', '.join(fields)}",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_applied(
        actor: str,
        account_number: int,
        kind: str,
        amount: str,
        balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_APPLIED,
            actor=actor,
            account_number=account_number,
            description=f"{kind.capitalize()} of {amount} on account {account_number}",
            details={"kind": kind, "amount": amount, "balance": balance},
        )

    @staticmethod
    def account_removed(actor: str, account_number: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REMOVED,
            actor=actor,
            account_number=account_number,
            description=f"Account {account_number} removed",
        )

    @staticmethod
    def ownership_transferred(
        actor: str,
        account_number: int,
        new_owner: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNERSHIP_TRANSFERRED,
            actor=actor,
            account_number=account_number,
            description=f"Account {account_number} transferred to {new_owner}",
            details={"new_owner": new_owner},
        )

    @staticmethod
    def operation_rejected(
        actor: str,
        operation: str,
        reason: str,
        account_number: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            account_number=account_number,
            description=f"{operation} rejected",
            details={"operation": operation, "reason": reason},
        )

    @staticmethod
    def notification_failed(
        actor: str,
        recipient: str,
        account_number: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_FAILED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            account_number=account_number,
            description=f"Transfer notification to {recipient} not delivered",
            details={"recipient": recipient},
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            actor=actor,
            description=f"Store error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def user_registered(name: str, user_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            actor=name,
            description=f"User registered: {name}",
            details={"user_id": user_id},
        )

    @staticmethod
    def user_logged_in(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            actor=name,
            description=f"User logged in: {name}",
        )

    @staticmethod
    def login_failed(name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            actor=name,
            description=f"Login failed for {name[:50]}",
        )
