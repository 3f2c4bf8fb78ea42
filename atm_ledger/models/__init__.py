"""
Data Models Package

This package contains all Pydantic models used by the ATM ledger.
"""

from atm_ledger.models.account import (
    AccountDetails,
    AccountDraft,
    AccountRecord,
    AccountType,
    InterestQuote,
    TransactionKind,
    User,
    ValidationIssue,
    ValidationResult,
)
from atm_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "AccountDetails",
    "AccountDraft",
    "AccountRecord",
    "AccountType",
    "InterestQuote",
    "TransactionKind",
    "User",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
