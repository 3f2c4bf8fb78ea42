"""
Shared fixtures for the ATM ledger tests.

Every store lives under pytest's tmp_path; nothing touches the real data
directory or the real notification pipe.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from atm_ledger.audit import AuditLogger
from atm_ledger.config import LimitSettings, get_settings
from atm_ledger.models.account import AccountRecord, User
from atm_ledger.orchestrator import AccountService
from atm_ledger.services.notify import NotifierInterface
from atm_ledger.services.storage import (
    FileRecordStore,
    FileUserDirectory,
    JsonLinesAuditStorage,
)
from atm_ledger.validation import AccountValidator


TODAY = date(2024, 1, 15)


class RecordingNotifier(NotifierInterface):
    """Notifier that remembers every message it was asked to send."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: list[tuple[str, str]] = []

    def notify(self, recipient: User, message: str) -> bool:
        self.sent.append((recipient.name, message))
        return self.deliver


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep the developer's ATM_* environment out of the tests."""
    monkeypatch.setenv("ATM_NOTIFY_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def data_dir(tmp_path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir) -> FileRecordStore:
    record_store = FileRecordStore(data_dir / "records.txt")
    record_store.initialize()
    return record_store


@pytest.fixture
def users(data_dir) -> FileUserDirectory:
    directory = FileUserDirectory(data_dir / "users.txt")
    directory.initialize()
    return directory


@pytest.fixture
def alice(users) -> User:
    return users.register("alice", "wonderland")


@pytest.fixture
def bob(users) -> User:
    return users.register("bob", "builder")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def audit_storage(data_dir) -> JsonLinesAuditStorage:
    return JsonLinesAuditStorage(data_dir / "audit.log")


@pytest.fixture
def validator() -> AccountValidator:
    return AccountValidator(LimitSettings())


@pytest.fixture
def service(store, users, validator, notifier, audit_storage) -> AccountService:
    return AccountService(
        store=store,
        users=users,
        validator=validator,
        notifier=notifier,
        audit_logger=AuditLogger(audit_storage),
        today=lambda: TODAY,
    )


@pytest.fixture
def make_record():
    """Factory for valid records; override any field by keyword."""

    def factory(**overrides) -> AccountRecord:
        fields = {
            "id": 0,
            "owner_id": 0,
            "owner_name": "alice",
            "account_number": 100,
            "country": "france",
            "phone": "0612345678",
            "balance": Decimal("500.00"),
            "account_type": "saving",
            "deposit_date": date(2024, 1, 10),
        }
        fields.update(overrides)
        return AccountRecord(**fields)

    return factory
