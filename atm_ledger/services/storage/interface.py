"""
Abstract Storage Interfaces

The account service depends on these interfaces, never on a concrete
file format. This allows us to:
1. Test the service against the real file store in a temp directory
2. Swap the line-oriented ledger for another encoding later
3. Keep the rewrite protocol in one place

The interface is intentionally small: scan, filtered lookup, append,
and one general-purpose selective rewrite.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional

from atm_ledger.models.account import AccountRecord, User
from atm_ledger.models.audit import AuditEvent


RecordPredicate = Callable[[AccountRecord], bool]
RecordTransform = Callable[[AccountRecord], Optional[AccountRecord]]


class RecordStoreInterface(ABC):
    """
    Abstract interface for the account record store.

    Records are never patched in place: every update or delete goes
    through replace_where.
    """

    @abstractmethod
    def scan(self) -> Iterator[AccountRecord]:
        """
        Yield every record in file order, decoding lazily.

        Raises:
            StorageIOError: If the store cannot be read
            MalformedRecordError: If a line cannot be decoded
        """
        pass

    @abstractmethod
    def find_one(self, predicate: RecordPredicate) -> Optional[AccountRecord]:
        """
        Return the first record (in file order) matching the predicate.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    def find_all(self, predicate: RecordPredicate) -> list[AccountRecord]:
        """Return all records matching the predicate, in file order."""
        pass

    @abstractmethod
    def append(self, record: AccountRecord) -> None:
        """
        Write one record at the end of the store.

        Used only to create records.

        Raises:
            StorageIOError: If the write fails
        """
        pass

    @abstractmethod
    def replace_where(
        self,
        predicate: RecordPredicate,
        transform: RecordTransform,
    ) -> int:
        """
        Rewrite the store, transforming every record the predicate matches.

        The transform returns the replacement record, or None to delete
        the record. Unmatched records are kept unchanged and in order.

        Returns:
            Number of records the predicate matched (0 means "not found")

        Raises:
            StorageIOError: If reading, writing or swapping fails; the
                store is left as it was before the call
            MalformedRecordError: If a line cannot be decoded
        """
        pass

    @abstractmethod
    def next_id(self) -> int:
        """Return the id for the next record to be created."""
        pass


class UserDirectoryInterface(ABC):
    """
    Abstract interface for the user directory.

    The account service uses it read-only, to resolve a user name to an
    id during ownership transfer.
    """

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[User]:
        """Return the user with this name, or None."""
        pass

    @abstractmethod
    def register(self, name: str, password: str) -> User:
        """
        Register a new user with the next id.

        Raises:
            ConflictError: If the name is taken
        """
        pass

    @abstractmethod
    def authenticate(self, name: str, password: str) -> Optional[User]:
        """Return the user if the password matches, None otherwise."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_actor(self, actor: str) -> list[AuditEvent]:
        """Get all events triggered by a user, in chronological order."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get the most recent audit events, newest first."""
        pass
