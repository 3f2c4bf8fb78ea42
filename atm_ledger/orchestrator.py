"""
Account Service for the ATM Ledger

This module ties the components together and defines the seven
user-facing operations:
1. Create an account
2. List the user's accounts
3. Inspect one account (with its interest)
4. Update contact details
5. Deposit or withdraw
6. Remove an account
7. Transfer ownership to another user

Every operation follows the same shape:

    input -> validate -> reject | store operation -> not found | success

Invalid input never reaches the store. Fixed-term accounts are refused
before any mutation is attempted. Recoverable outcomes are raised as the
exceptions in atm_ledger.exceptions; the caller decides whether to retry,
go back to the menu or exit.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, NamedTuple, Optional, Union

import structlog

from atm_ledger.audit import AuditLogger
from atm_ledger.config import Settings, get_settings
from atm_ledger.exceptions import (
    ConflictError,
    ImmutableAccountError,
    NotFoundError,
    ValidationError,
)
from atm_ledger.interest import compute_interest
from atm_ledger.models.account import (
    CENT,
    AccountDetails,
    AccountDraft,
    AccountRecord,
    AccountType,
    TransactionKind,
    User,
    ValidationIssue,
)
from atm_ledger.services.notify import (
    FifoNotifier,
    NotifierInterface,
    NullNotifier,
    transfer_message,
)
from atm_ledger.services.storage import (
    FileRecordStore,
    FileUserDirectory,
    JsonLinesAuditStorage,
    RecordStoreInterface,
    RecordTransform,
    UserDirectoryInterface,
    owned_account,
    owned_by,
)
from atm_ledger.validation import AccountValidator


logger = structlog.get_logger(__name__)


class AccountService:
    """
    Orchestrates the record store, validation and interest policy.

    There is no session state: every operation takes the acting User.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        users: UserDirectoryInterface,
        validator: Optional[AccountValidator] = None,
        notifier: Optional[NotifierInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self._store = store
        self._users = users
        self._validator = validator or AccountValidator()
        self._notifier = notifier or NullNotifier()
        self._audit_logger = audit_logger or AuditLogger()
        self._today = today or date.today

    @property
    def validator(self) -> AccountValidator:
        return self._validator

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _reject_invalid(
        self,
        user: User,
        operation: str,
        issues: list[ValidationIssue],
        account_number: Optional[int] = None,
    ) -> ValidationError:
        error = ValidationError(issues)
        self._audit_logger.log_rejected(user, operation, str(error), account_number)
        return error

    def _require_account(
        self,
        user: User,
        account_number: int,
        operation: str,
    ) -> AccountRecord:
        record = self._store.find_one(owned_account(user.name, account_number))
        if record is None:
            self._audit_logger.log_rejected(user, operation, "not_found", account_number)
            raise NotFoundError(f"Account {account_number} not found for {user.name}")
        return record

    def _require_mutable(
        self,
        user: User,
        record: AccountRecord,
        operation: str,
    ) -> None:
        if record.is_fixed:
            self._audit_logger.log_rejected(
                user, operation, "immutable_account", record.account_number
            )
            raise ImmutableAccountError(
                f"Account {record.account_number} is a fixed deposit "
                f"({record.account_type}); {operation} is not allowed"
            )

    def _rewrite(
        self,
        user: User,
        account_number: int,
        transform: RecordTransform,
        operation: str,
    ) -> None:
        matched = self._store.replace_where(
            owned_account(user.name, account_number),
            transform,
        )
        if matched == 0:
            # The account vanished between lookup and rewrite
            self._audit_logger.log_rejected(user, operation, "not_found", account_number)
            raise NotFoundError(f"Account {account_number} not found for {user.name}")

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create_account(self, user: User, draft: AccountDraft) -> AccountRecord:
        """
        Create a new account for the user.

        Raises:
            ValidationError: If any field is invalid
            ConflictError: If the user already has this account number
        """
        result = self._validator.validate_new_account(draft)
        if result.has_errors:
            raise self._reject_invalid(user, "create", result.issues, draft.account_number)

        existing = self._store.find_one(owned_account(user.name, draft.account_number))
        if existing is not None:
            self._audit_logger.log_rejected(user, "create", "conflict", draft.account_number)
            raise ConflictError(
                f"Account {draft.account_number} already exists for {user.name}"
            )

        record = AccountRecord(
            id=self._store.next_id(),
            owner_id=user.id,
            owner_name=user.name,
            account_number=draft.account_number,
            country=draft.country,
            phone=draft.phone,
            balance=draft.balance.quantize(CENT),
            account_type=AccountType(draft.account_type).value,
            deposit_date=draft.deposit_date,
        )
        self._store.append(record)

        self._audit_logger.log_account_created(user, record)
        return record

    def list_accounts(self, user: User) -> list[AccountRecord]:
        """All accounts owned by the user, in ledger order."""
        return self._store.find_all(owned_by(user.name))

    def inspect_account(
        self,
        user: User,
        account_number: int,
        as_of: Optional[date] = None,
    ) -> AccountDetails:
        """
        One account with its interest quote.

        Raises:
            NotFoundError: If the user has no such account
        """
        record = self._require_account(user, account_number, "inspect")
        interest = compute_interest(
            record.account_type,
            record.balance,
            record.deposit_date,
            as_of=as_of or self._today(),
        )
        return AccountDetails(record=record, interest=interest)

    def update_account(
        self,
        user: User,
        account_number: int,
        country: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> AccountRecord:
        """
        Update the contact details of an account.

        Raises:
            ValidationError: If the new values are invalid
            NotFoundError: If the user has no such account
            ImmutableAccountError: If the account is a fixed deposit
        """
        record = self._require_account(user, account_number, "update")
        self._require_mutable(user, record, "update")

        result = self._validator.validate_contact_update(country, phone)
        if result.has_errors:
            raise self._reject_invalid(user, "update", result.issues, account_number)

        changes = {}
        if country is not None:
            changes["country"] = country
        if phone is not None:
            changes["phone"] = phone

        updated: list[AccountRecord] = []

        def apply(current: AccountRecord) -> AccountRecord:
            replacement = current.model_copy(update=changes)
            updated.append(replacement)
            return replacement

        self._rewrite(user, account_number, apply, "update")

        self._audit_logger.log_account_updated(user, account_number, sorted(changes))
        return updated[0]

    def make_transaction(
        self,
        user: User,
        account_number: int,
        kind: Union[TransactionKind, str],
        amount: Decimal,
        on: Optional[date] = None,
    ) -> AccountRecord:
        """
        Deposit into or withdraw from an account.

        A withdrawal larger than the balance is rejected and the ledger is
        left untouched.

        Raises:
            ValidationError: If the kind or amount is invalid, or the amount
                exceeds the balance
            NotFoundError: If the user has no such account
            ImmutableAccountError: If the account is a fixed deposit
        """
        record = self._require_account(user, account_number, "transaction")
        self._require_mutable(user, record, "transaction")

        try:
            kind = TransactionKind(kind)
        except ValueError:
            raise self._reject_invalid(user, "transaction", [ValidationIssue(
                field="kind",
                issue_type="invalid_value",
                message=f"Unknown transaction kind: {kind!r}",
                suggested_fix="Choose deposit or withdraw",
            )], account_number) from None
        on = on or self._today()

        result = self._validator.validate_transaction(kind, amount, record.balance, on)
        if result.has_errors:
            raise self._reject_invalid(user, "transaction", result.issues, account_number)

        amount = amount.quantize(CENT)
        updated: list[AccountRecord] = []

        def apply(current: AccountRecord) -> AccountRecord:
            # Re-check against the balance actually in the file
            check = self._validator.validate_transaction(kind, amount, current.balance)
            if check.has_errors:
                raise ValidationError(check.issues)

            changes: dict = {}
            if kind == TransactionKind.WITHDRAW:
                changes["balance"] = current.balance - amount
                changes["last_withdraw_date"] = on
            else:
                changes["balance"] = current.balance + amount
            replacement = current.model_copy(update=changes)
            updated.append(replacement)
            return replacement

        self._rewrite(user, account_number, apply, "transaction")

        self._audit_logger.log_transaction(user, updated[0], kind.value, f"{amount:.2f}")
        return updated[0]

    def remove_account(self, user: User, account_number: int) -> AccountRecord:
        """
        Remove an account from the ledger.

        Returns:
            The record as it was before removal

        Raises:
            NotFoundError: If the user has no such account
            ImmutableAccountError: If the account is a fixed deposit
        """
        record = self._require_account(user, account_number, "remove")
        self._require_mutable(user, record, "remove")

        self._rewrite(user, account_number, lambda current: None, "remove")

        self._audit_logger.log_account_removed(user, account_number)
        return record

    def transfer_ownership(
        self,
        user: User,
        account_number: int,
        new_owner_name: str,
    ) -> AccountRecord:
        """
        Hand an account over to another registered user.

        Allowed for every account type. The new owner gets a best-effort
        notification; a failed notification does not fail the transfer.

        Raises:
            NotFoundError: If the account or the new owner does not exist
            ValidationError: If the new owner is the current owner
            ConflictError: If the new owner already has this account number
        """
        self._require_account(user, account_number, "transfer")

        new_owner = self._users.find_by_name(new_owner_name)
        if new_owner is None:
            self._audit_logger.log_rejected(user, "transfer", "unknown_user", account_number)
            raise NotFoundError(f"New owner not found: {new_owner_name}")

        if new_owner.name == user.name:
            raise self._reject_invalid(user, "transfer", [ValidationIssue(
                field="new_owner",
                issue_type="invalid_value",
                message="You already own this account",
            )], account_number)

        if self._store.find_one(owned_account(new_owner.name, account_number)) is not None:
            self._audit_logger.log_rejected(user, "transfer", "conflict", account_number)
            raise ConflictError(
                f"{new_owner.name} already has an account numbered {account_number}"
            )

        updated: list[AccountRecord] = []

        def apply(current: AccountRecord) -> AccountRecord:
            replacement = current.model_copy(update={
                "owner_id": new_owner.id,
                "owner_name": new_owner.name,
            })
            updated.append(replacement)
            return replacement

        self._rewrite(user, account_number, apply, "transfer")
        self._audit_logger.log_ownership_transferred(user, account_number, new_owner)

        self._send_transfer_notification(user, new_owner, account_number)
        return updated[0]

    def _send_transfer_notification(
        self,
        user: User,
        new_owner: User,
        account_number: int,
    ) -> None:
        try:
            delivered = self._notifier.notify(
                new_owner, transfer_message(user, account_number)
            )
        except Exception as e:
            # Notifications are fire-and-forget
            logger.warning(
                "notification_error",
                recipient=new_owner.name,
                account_number=account_number,
                error=str(e),
            )
            delivered = False

        if not delivered:
            self._audit_logger.log_notification_failed(user, new_owner, account_number)


class AppComponents(NamedTuple):
    service: AccountService
    users: FileUserDirectory
    notifier: NotifierInterface
    audit_logger: AuditLogger


def create_app_components(
    settings: Optional[Settings] = None,
    data_dir: Optional[Path] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Creates the data directory and empty store files when missing.
    `data_dir` overrides the configured storage directory.

    Raises:
        StorageIOError: If the store files cannot be created
    """
    settings = settings or get_settings()
    storage = settings.storage
    if data_dir is not None:
        storage = storage.model_copy(update={"data_dir": Path(data_dir)})

    store = FileRecordStore(storage.records_path)
    store.initialize()
    users = FileUserDirectory(storage.users_path)
    users.initialize()

    audit_storage = None
    if storage.audit_path is not None:
        audit_storage = JsonLinesAuditStorage(storage.audit_path)
    audit_logger = AuditLogger(audit_storage)

    notifications = settings.notifications
    notifier: NotifierInterface
    if notifications.enabled:
        notifier = FifoNotifier(notifications.fifo_path)
        notifier.setup()
    else:
        notifier = NullNotifier()

    service = AccountService(
        store=store,
        users=users,
        validator=AccountValidator(settings.limits),
        notifier=notifier,
        audit_logger=audit_logger,
    )

    return AppComponents(
        service=service,
        users=users,
        notifier=notifier,
        audit_logger=audit_logger,
    )
