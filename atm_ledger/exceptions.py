"""
Exception hierarchy for the ATM ledger.

Recoverable errors (validation, not found, conflict, immutable account)
are reported back to the presentation layer, which decides whether to
retry, return to the menu or exit. Storage errors are fatal for the
current operation.
"""

from pathlib import Path
from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledger errors."""


class ValidationError(LedgerError):
    """One or more input fields failed validation."""

    def __init__(self, issues: list, message: Optional[str] = None):
        self.issues = list(issues)
        if message is None:
            message = "; ".join(issue.message for issue in self.issues) or "Invalid input"
        super().__init__(message)


class NotFoundError(LedgerError):
    """No record (or user) matched the lookup."""


class ConflictError(LedgerError):
    """The owner already has an account with this number."""


class ImmutableAccountError(LedgerError):
    """Operation is not permitted on a fixed-term account."""


class StorageError(LedgerError):
    """Base exception for storage operations."""


class StorageIOError(StorageError):
    """The ledger file could not be opened, read or written."""


class MalformedRecordError(StorageError):
    """A line in a store file could not be decoded."""

    def __init__(
        self,
        reason: str,
        line_number: Optional[int] = None,
        path: Optional[Path] = None,
    ):
        self.reason = reason
        self.line_number = line_number
        self.path = path
        location = ""
        if path is not None:
            location = f"{path}"
        if line_number is not None:
            location = f"{location}:{line_number}" if location else f"line {line_number}"
        super().__init__(f"{location}: {reason}" if location else reason)
