"""
Storage Services Package

Abstract interfaces and the flat-file implementations behind them.
"""

from atm_ledger.services.storage.interface import (
    AuditStorageInterface,
    RecordPredicate,
    RecordStoreInterface,
    RecordTransform,
    UserDirectoryInterface,
)
from atm_ledger.services.storage.audit_file import JsonLinesAuditStorage
from atm_ledger.services.storage.ledger_file import (
    FileRecordStore,
    owned_account,
    owned_by,
)
from atm_ledger.services.storage.users import FileUserDirectory, hash_password

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordPredicate",
    "RecordStoreInterface",
    "RecordTransform",
    "UserDirectoryInterface",
    # File implementations
    "FileRecordStore",
    "FileUserDirectory",
    "JsonLinesAuditStorage",
    "hash_password",
    "owned_account",
    "owned_by",
]
