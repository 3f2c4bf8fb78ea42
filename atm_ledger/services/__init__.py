"""Services package."""

from atm_ledger.services.notify import (
    FifoNotifier,
    NotifierInterface,
    NullNotifier,
)
from atm_ledger.services.storage import (
    AuditStorageInterface,
    FileRecordStore,
    FileUserDirectory,
    JsonLinesAuditStorage,
    RecordStoreInterface,
    UserDirectoryInterface,
)

__all__ = [
    # Notification services
    "FifoNotifier",
    "NotifierInterface",
    "NullNotifier",
    # Storage services
    "AuditStorageInterface",
    "FileRecordStore",
    "FileUserDirectory",
    "JsonLinesAuditStorage",
    "RecordStoreInterface",
    "UserDirectoryInterface",
]
