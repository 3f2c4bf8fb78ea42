"""
Tests for the account service.

These run the full stack (validator, file store, audit trail) against a
temporary data directory, with a recording notifier in place of the pipe.
"""

from datetime import date
from decimal import Decimal

import pytest

from atm_ledger.config import Settings
from atm_ledger.exceptions import (
    ConflictError,
    ImmutableAccountError,
    NotFoundError,
    ValidationError,
)
from atm_ledger.models.account import AccountDraft, TransactionKind
from atm_ledger.models.audit import AuditEventType
from atm_ledger.orchestrator import create_app_components
from atm_ledger.services.notify import NullNotifier


def make_draft(**overrides) -> AccountDraft:
    fields = {
        "account_number": 100,
        "deposit_date": date(2024, 1, 10),
        "country": "france",
        "phone": "0612345678",
        "balance": Decimal("500.00"),
        "account_type": "saving",
    }
    fields.update(overrides)
    return AccountDraft(**fields)


@pytest.fixture
def savings(service, alice):
    """alice's savings account 100 with 500.00."""
    return service.create_account(alice, make_draft())


@pytest.fixture
def fixed(service, alice):
    """alice's two-year fixed deposit 200 with 1000.00."""
    return service.create_account(alice, make_draft(
        account_number=200,
        balance=Decimal("1000.00"),
        account_type="fixed02",
    ))


class TestCreateAccount:
    """Tests for account creation."""

    def test_create_writes_one_line(self, service, store, alice, savings):
        assert savings.id == 0
        assert savings.owner_id == alice.id
        assert store.path.read_text(encoding="utf-8") == (
            "0 0 alice 100 01/10/2024 france 0612345678 500.00 saving\n"
        )

    def test_ids_are_sequential(self, service, alice, savings):
        second = service.create_account(alice, make_draft(account_number=101))
        assert second.id == 1

    def test_balance_is_stored_in_cents(self, service, alice):
        record = service.create_account(alice, make_draft(balance=Decimal("12.5")))
        assert str(record.balance) == "12.50"

    def test_duplicate_number_conflicts(self, service, store, alice, savings):
        before = store.path.read_bytes()
        with pytest.raises(ConflictError):
            service.create_account(alice, make_draft(account_type="current"))
        assert store.path.read_bytes() == before

    def test_same_number_for_other_owner(self, service, alice, bob, savings):
        record = service.create_account(bob, make_draft())
        assert record.owner_name == "bob"

    def test_invalid_input_never_reaches_store(self, service, store, alice):
        with pytest.raises(ValidationError) as exc_info:
            service.create_account(alice, make_draft(phone="12", account_type="gold"))
        assert {issue.field for issue in exc_info.value.issues} == {"phone", "account_type"}
        assert store.path.read_text(encoding="utf-8") == ""


class TestListAndInspect:
    """Tests for reading accounts back."""

    def test_list_only_own_accounts(self, service, alice, bob, savings):
        service.create_account(bob, make_draft(account_number=7))
        assert [r.account_number for r in service.list_accounts(alice)] == [100]
        assert [r.account_number for r in service.list_accounts(bob)] == [7]

    def test_list_empty(self, service, alice):
        assert service.list_accounts(alice) == []

    def test_inspect_savings(self, service, alice, savings):
        details = service.inspect_account(alice, 100)
        assert details.record == savings
        assert details.interest.amount == Decimal("2.92")
        assert details.interest.next_accrual == date(2024, 2, 10)

    def test_inspect_missing(self, service, alice):
        with pytest.raises(NotFoundError):
            service.inspect_account(alice, 999)

    def test_inspect_other_users_account(self, service, bob, savings):
        with pytest.raises(NotFoundError):
            service.inspect_account(bob, 100)


class TestUpdateAccount:
    """Tests for contact updates."""

    def test_update_country(self, service, alice, savings):
        updated = service.update_account(alice, 100, country="spain")
        assert updated.country == "spain"
        assert updated.phone == savings.phone
        assert service.inspect_account(alice, 100).record.country == "spain"

    def test_update_both(self, service, alice, savings):
        updated = service.update_account(alice, 100, country="spain", phone="34911234567")
        assert (updated.country, updated.phone) == ("spain", "34911234567")

    def test_update_nothing(self, service, alice, savings):
        with pytest.raises(ValidationError):
            service.update_account(alice, 100)

    def test_update_invalid_phone(self, service, store, alice, savings):
        before = store.path.read_bytes()
        with pytest.raises(ValidationError):
            service.update_account(alice, 100, phone="call me")
        assert store.path.read_bytes() == before

    def test_update_missing(self, service, alice):
        with pytest.raises(NotFoundError):
            service.update_account(alice, 100, country="spain")


class TestTransactions:
    """Tests for deposits and withdrawals."""

    def test_overdraw_rejected_and_ledger_untouched(self, service, store, alice, savings):
        before = store.path.read_bytes()
        with pytest.raises(ValidationError) as exc_info:
            service.make_transaction(alice, 100, TransactionKind.WITHDRAW, Decimal("600.00"))
        assert exc_info.value.issues[0].issue_type == "insufficient_funds"
        assert store.path.read_bytes() == before

    def test_unknown_kind_rejected(self, service, store, alice, savings):
        before = store.path.read_bytes()
        with pytest.raises(ValidationError) as exc_info:
            service.make_transaction(alice, 100, "transfer", Decimal("1.00"))
        assert exc_info.value.issues[0].field == "kind"
        assert store.path.read_bytes() == before

    def test_withdraw(self, service, store, alice, savings):
        record = service.make_transaction(
            alice, 100, "withdraw", Decimal("200.00"), on=date(2024, 1, 20)
        )
        assert record.balance == Decimal("300.00")
        assert record.last_withdraw_date == date(2024, 1, 20)
        assert store.path.read_text(encoding="utf-8") == (
            "0 0 alice 100 01/10/2024 france 0612345678 300.00 saving 01/20/2024\n"
        )

    def test_withdraw_defaults_to_today(self, service, alice, savings):
        record = service.make_transaction(alice, 100, "withdraw", Decimal("1"))
        assert record.last_withdraw_date == date(2024, 1, 15)

    def test_withdraw_everything(self, service, alice, savings):
        record = service.make_transaction(alice, 100, "withdraw", Decimal("500.00"))
        assert record.balance == Decimal("0.00")

    def test_deposit(self, service, alice, savings):
        record = service.make_transaction(alice, 100, TransactionKind.DEPOSIT, Decimal("0.5"))
        assert record.balance == Decimal("500.50")
        assert record.last_withdraw_date is None

    def test_deposit_over_ceiling(self, service, alice, savings):
        with pytest.raises(ValidationError):
            service.make_transaction(alice, 100, "deposit", Decimal("999999600.00"))

    def test_other_records_untouched(self, service, store, alice, bob, savings):
        service.create_account(bob, make_draft())
        bob_line = store.path.read_text(encoding="utf-8").splitlines()[1]

        service.make_transaction(alice, 100, "deposit", Decimal("1.00"))

        assert store.path.read_text(encoding="utf-8").splitlines()[1] == bob_line

    def test_legacy_type_is_not_fixed(self, service, store, alice):
        store.path.write_text(
            "0 0 alice 5 03/01/2019 italy 3912345678 80.00 gold\n",
            encoding="utf-8",
        )
        record = service.make_transaction(alice, 5, "deposit", Decimal("20.00"))
        assert record.balance == Decimal("100.00")
        assert record.account_type == "gold"

    def test_account_vanishes_before_rewrite(self, service, store, alice, savings, monkeypatch):
        monkeypatch.setattr(store, "replace_where", lambda predicate, transform: 0)
        with pytest.raises(NotFoundError):
            service.make_transaction(alice, 100, "deposit", Decimal("1.00"))


class TestRemoveAccount:
    """Tests for removing accounts."""

    def test_remove(self, service, alice, savings):
        removed = service.remove_account(alice, 100)
        assert removed == savings
        assert service.list_accounts(alice) == []

    def test_remove_twice(self, service, alice, savings):
        service.remove_account(alice, 100)
        with pytest.raises(NotFoundError):
            service.remove_account(alice, 100)

    def test_remove_keeps_other_ids(self, service, alice, savings):
        service.create_account(alice, make_draft(account_number=101))
        service.remove_account(alice, 100)
        service.create_account(alice, make_draft(account_number=102))
        assert [r.id for r in service.list_accounts(alice)] == [1, 2]


class TestFixedAccounts:
    """Fixed deposits can only change owner."""

    def test_update_refused(self, service, store, alice, fixed):
        before = store.path.read_bytes()
        with pytest.raises(ImmutableAccountError):
            service.update_account(alice, 200, country="spain")
        assert store.path.read_bytes() == before

    def test_update_with_invalid_input_refused(self, service, store, alice, fixed):
        """The account type is checked before the new values."""
        before = store.path.read_bytes()
        with pytest.raises(ImmutableAccountError):
            service.update_account(alice, 200, phone="abc")
        assert store.path.read_bytes() == before

    def test_transaction_refused(self, service, store, alice, fixed):
        before = store.path.read_bytes()
        with pytest.raises(ImmutableAccountError):
            service.make_transaction(alice, 200, "deposit", Decimal("1.00"))
        assert store.path.read_bytes() == before

    def test_unknown_transaction_kind_refused(self, service, store, alice, fixed):
        before = store.path.read_bytes()
        with pytest.raises(ImmutableAccountError):
            service.make_transaction(alice, 200, "transfer", Decimal("1.00"))
        assert store.path.read_bytes() == before

    def test_remove_refused(self, service, store, alice, fixed):
        before = store.path.read_bytes()
        with pytest.raises(ImmutableAccountError):
            service.remove_account(alice, 200)
        assert store.path.read_bytes() == before

    def test_transfer_allowed(self, service, alice, bob, fixed):
        record = service.transfer_ownership(alice, 200, "bob")
        assert record.owner_name == "bob"
        assert record.account_type == "fixed02"

    def test_fixed_interest(self, service, alice, fixed):
        details = service.inspect_account(alice, 200)
        assert details.interest.amount == Decimal("100.00")
        assert details.interest.next_accrual == date(2026, 1, 10)


class TestTransferOwnership:
    """Tests for handing accounts over to another user."""

    def test_unknown_new_owner(self, service, store, notifier, alice, savings):
        before = store.path.read_bytes()
        with pytest.raises(NotFoundError):
            service.transfer_ownership(alice, 100, "bob")
        assert store.path.read_bytes() == before
        assert notifier.sent == []

    def test_transfer(self, service, notifier, alice, bob, savings):
        record = service.transfer_ownership(alice, 100, "bob")

        assert record.owner_name == "bob"
        assert record.owner_id == bob.id
        assert record.id == savings.id
        assert service.list_accounts(alice) == []
        assert service.list_accounts(bob) == [record]
        assert notifier.sent == [("bob", "User alice transferred account 100 to you")]

    def test_transfer_missing_account(self, service, notifier, alice, bob):
        with pytest.raises(NotFoundError):
            service.transfer_ownership(alice, 100, "bob")
        assert notifier.sent == []

    def test_transfer_to_self(self, service, alice, savings):
        with pytest.raises(ValidationError):
            service.transfer_ownership(alice, 100, "alice")

    def test_transfer_conflict(self, service, store, alice, bob, savings):
        service.create_account(bob, make_draft())
        before = store.path.read_bytes()
        with pytest.raises(ConflictError):
            service.transfer_ownership(alice, 100, "bob")
        assert store.path.read_bytes() == before

    def test_undelivered_notification_does_not_fail(
        self, service, notifier, audit_storage, alice, bob, savings
    ):
        notifier.deliver = False
        record = service.transfer_ownership(alice, 100, "bob")
        assert record.owner_name == "bob"

        types = [e.event_type for e in audit_storage.get_events_by_actor("alice")]
        assert AuditEventType.NOTIFICATION_FAILED in types

    def test_broken_notifier_does_not_fail(self, service, notifier, alice, bob, savings, monkeypatch):
        def explode(recipient, message):
            raise RuntimeError("pipe exploded")

        monkeypatch.setattr(notifier, "notify", explode)
        record = service.transfer_ownership(alice, 100, "bob")
        assert record.owner_name == "bob"


class TestAuditTrail:
    """Every change and rejection is audited."""

    def test_changes_are_audited(self, service, audit_storage, alice, savings):
        service.make_transaction(alice, 100, "deposit", Decimal("1.00"))
        service.remove_account(alice, 100)

        types = [e.event_type for e in audit_storage.get_events_by_actor("alice")]
        assert types == [
            AuditEventType.ACCOUNT_CREATED,
            AuditEventType.TRANSACTION_APPLIED,
            AuditEventType.ACCOUNT_REMOVED,
        ]

    def test_rejections_are_audited(self, service, audit_storage, alice, fixed):
        with pytest.raises(ImmutableAccountError):
            service.remove_account(alice, 200)

        event = audit_storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.OPERATION_REJECTED
        assert event.details == {"operation": "remove", "reason": "immutable_account"}


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_creates_store_files(self, tmp_path):
        data_dir = tmp_path / "fresh"
        components = create_app_components(Settings(), data_dir=data_dir)

        assert (data_dir / "records.txt").exists()
        assert (data_dir / "users.txt").exists()
        assert isinstance(components.notifier, NullNotifier)

        user = components.users.register("alice", "wonderland")
        components.service.create_account(user, make_draft())
        assert (data_dir / "audit.log").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
