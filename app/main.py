"""
Terminal Frontend for the ATM Ledger

This is the interactive menu a user works through at the terminal.

DESIGN PRINCIPLES:
1. Every prompt says exactly what it expects
2. Bad input is reported, never silently fixed
3. After a failed operation the user chooses: try again, back to the
   menu, or exit
4. A broken ledger stops the program with a diagnostic

Handlers return a NextAction instead of calling back into the menu, so
the session is a flat loop.
"""

import argparse
import getpass
import sys
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import structlog

from atm_ledger.audit import configure_logging
from atm_ledger.config import get_settings, validate_all_settings
from atm_ledger.exceptions import (
    ConflictError,
    ImmutableAccountError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from atm_ledger.models.account import (
    AccountDraft,
    AccountRecord,
    AccountType,
    TransactionKind,
    User,
    ValidationIssue,
    ValidationResult,
)
from atm_ledger.orchestrator import AppComponents, create_app_components
from atm_ledger.validation.rules import format_date, parse_amount, parse_date


logger = structlog.get_logger(__name__)

RECOVERABLE_ERRORS = (
    ValidationError,
    NotFoundError,
    ConflictError,
    ImmutableAccountError,
)

ACCOUNT_TYPE_MENU = "\n".join(
    [
        "Choose the type of account:",
        *(f"\t-> {account_type.label}" for account_type in AccountType),
        "",
        "\tEnter your choice: ",
    ]
)


class NextAction(Enum):
    """What the session does after an operation."""
    RETRY = "retry"
    MAIN_MENU = "main_menu"
    EXIT = "exit"


def _invalid(field: str, message: str) -> ValidationError:
    return ValidationError([ValidationIssue(
        field=field,
        issue_type="invalid_format",
        message=message,
    )])


def format_record(record: AccountRecord) -> str:
    """Render one account the way the listing shows it."""
    lines = [
        f"Account number: {record.account_number}",
        f"Deposit Date: {format_date(record.deposit_date)}",
        f"Country: {record.country}",
        f"Phone number: {record.phone}",
        f"Amount deposited: ${record.balance:,.2f}",
        f"Type Of Account: {record.account_type}",
    ]
    if record.last_withdraw_date is not None:
        lines.append(f"Last withdrawal: {format_date(record.last_withdraw_date)}")
    return "\n".join(lines)


class LedgerConsole:
    """
    Interactive session over an AccountService.

    Input, output and password prompts are injectable so a session can
    be scripted.
    """

    def __init__(
        self,
        components: AppComponents,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
        password_fn: Callable[[str], str] = getpass.getpass,
        today: Callable[[], date] = date.today,
    ):
        self._service = components.service
        self._users = components.users
        self._notifier = components.notifier
        self._audit_logger = components.audit_logger
        self._input = input_fn
        self._output = output
        self._password = password_fn
        self._today = today

        self._handlers: dict[str, tuple[str, Callable[[User], None]]] = {
            "1": ("Create a new account", self.handle_create),
            "2": ("Update account information", self.handle_update),
            "3": ("Check accounts", self.handle_inspect),
            "4": ("Check list of owned account", self.handle_list),
            "5": ("Make Transaction", self.handle_transaction),
            "6": ("Remove existing account", self.handle_remove),
            "7": ("Transfer ownership", self.handle_transfer),
        }

    # -------------------------------------------------------------------------
    # Prompt helpers
    # -------------------------------------------------------------------------

    def say(self, text: str = "") -> None:
        self._output(text)

    def ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def ask_account_number(self) -> int:
        text = self.ask("\nEnter the account number: ")
        if not text.isascii() or not text.isdigit():
            raise _invalid("account_number", f"Not an account number: {text!r}")
        return int(text)

    def ask_date(self, prompt: str = "\nEnter today's date(mm/dd/yyyy): ") -> date:
        text = self.ask(prompt)
        value = parse_date(text)
        if value is None:
            raise _invalid("date", f"Not a valid mm/dd/yyyy date: {text!r}")
        return value

    def ask_amount(self, prompt: str) -> Decimal:
        text = self.ask(prompt)
        amount = parse_amount(text)
        if amount is None:
            raise _invalid("amount", f"Not an amount: {text!r}")
        return amount

    def ask_choice(self, prompt: str, choices: dict[str, NextAction]) -> NextAction:
        while True:
            choice = self.ask(prompt)
            if choice in choices:
                return choices[choice]
            self.say("Insert a valid operation!")

    def ask_after_failure(self) -> NextAction:
        return self.ask_choice(
            "\nEnter 0 to try again, 1 to return to main menu and 2 to exit: ",
            {"0": NextAction.RETRY, "1": NextAction.MAIN_MENU, "2": NextAction.EXIT},
        )

    def ask_after_success(self) -> NextAction:
        return self.ask_choice(
            "\nEnter 1 to go to the main menu and 0 to exit: ",
            {"1": NextAction.MAIN_MENU, "0": NextAction.EXIT},
        )

    def report_error(self, error: Exception) -> None:
        if isinstance(error, ValidationError):
            summary = self._service.validator.get_user_friendly_summary(
                ValidationResult(issues=error.issues)
            )
            self.say(f"\n{summary}")
        else:
            self.say(f"\n✖ {error}")

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def run(self) -> int:
        """
        Run a full session.

        Returns:
            Process exit status: 0 on a voluntary exit

        A failed login raises SystemExit(1).
        """
        user = self.authenticate()
        if user is None:
            return 0
        self.show_notifications()
        return self.main_menu(user)

    def authenticate(self) -> Optional[User]:
        """
        Login / register menu.

        Returns the logged-in user, or None if the user chose to exit.
        Raises SystemExit(1) on a failed login.
        """
        while True:
            self.say("\n\t\t======= ATM =======")
            self.say("\t\t[1]- login")
            self.say("\t\t[2]- register")
            self.say("\t\t[3]- exit")
            choice = self.ask("\nEnter your choice: ")

            if choice == "1":
                return self.login()
            if choice == "2":
                self.register()
            elif choice == "3":
                return None
            else:
                self.say("Insert a valid operation!")

    def login(self) -> User:
        name = self.ask("\nUser Login: ")
        password = self._password("Enter the password to login: ")
        user = self._users.authenticate(name, password)
        if user is None:
            self._audit_logger.log_login_failed(name)
            self.say("\n✖ Wrong password or user name")
            raise SystemExit(1)
        self._audit_logger.log_user_logged_in(user)
        self.say(f"\nWelcome, {user.name}!")
        return user

    def register(self) -> None:
        name = self.ask("\nEnter your name: ")
        password = self._password("Enter your password: ")
        try:
            user = self._users.register(name, password)
        except (ValidationError, ConflictError) as e:
            self.report_error(e)
            return
        self._audit_logger.log_user_registered(user)
        self.say("Registration successful! You can now log in.")

    def show_notifications(self) -> None:
        for message in self._notifier.read_pending():
            self.say(f"\n🔔 New Notification:\n{message}")

    def main_menu(self, user: User) -> int:
        while True:
            self.say("\n\n\t\t======= ATM =======")
            self.say("\n\t\t-->> Feel free to choose one of the options below <<--")
            for key, (title, _) in self._handlers.items():
                self.say(f"\t\t[{key}]- {title}")
            self.say("\t\t[8]- Exit")
            choice = self.ask("\nEnter your choice: ")

            if choice == "8":
                return 0
            if choice not in self._handlers:
                self.say("Insert a valid operation!")
                continue

            _, handler = self._handlers[choice]
            if self.run_handler(handler, user) == NextAction.EXIT:
                return 0

    def run_handler(self, handler: Callable[[User], None], user: User) -> NextAction:
        """Run one operation, retrying for as long as the user asks to."""
        while True:
            try:
                handler(user)
            except RECOVERABLE_ERRORS as e:
                self.report_error(e)
                action = self.ask_after_failure()
                if action == NextAction.RETRY:
                    continue
                return action
            return self.ask_after_success()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def handle_create(self, user: User) -> None:
        self.say("\t\t\t===== New record =====")
        deposit_date = self.ask_date()
        account_number = self.ask_account_number()
        country = self.ask("\nEnter the country: ")
        phone = self.ask("\nEnter the phone number: ")
        balance = self.ask_amount("\nEnter amount to deposit: $")
        account_type = self.ask(f"\n{ACCOUNT_TYPE_MENU}")

        draft = AccountDraft(
            account_number=account_number,
            deposit_date=deposit_date,
            country=country,
            phone=phone,
            balance=balance,
            account_type=account_type,
        )
        self._service.create_account(user, draft)
        self.say("\n✔ Success!")

    def handle_list(self, user: User) -> None:
        self.say(f"\t\t====== All accounts from user, {user.name} =====\n")
        records = self._service.list_accounts(user)
        if not records:
            self.say("You have no accounts yet.")
        for record in records:
            self.say("_____________________")
            self.say(format_record(record))

    def handle_inspect(self, user: User) -> None:
        self.say("\t\t\t===== Check account details =====")
        account_number = self.ask_account_number()
        details = self._service.inspect_account(user, account_number, as_of=self._today())
        self.say("")
        self.say(format_record(details.record))
        self.say(f"\n{details.interest.description}")

    def handle_update(self, user: User) -> None:
        self.say("\t\t\t===== Update account info =====")
        account_number = self.ask_account_number()
        self.say("\nLeave a field empty to keep its current value.")
        country = self.ask("\nEnter the new country: ") or None
        phone = self.ask("\nEnter the new phone number: ") or None
        self._service.update_account(user, account_number, country=country, phone=phone)
        self.say("\n✔ Success!")

    def handle_transaction(self, user: User) -> None:
        self.say("\t\t\t===== Make a transaction =====")
        account_number = self.ask_account_number()
        choice = self.ask("\nDo you want to:\n\t1-> Deposit\n\t2-> Withdraw\n\n\tEnter your choice: ")
        kinds = {"1": TransactionKind.DEPOSIT, "2": TransactionKind.WITHDRAW}
        if choice not in kinds:
            raise _invalid("kind", f"Not a transaction choice: {choice!r}")
        kind = kinds[choice]

        amount = self.ask_amount(f"\nEnter the amount to {kind.value}: $")
        on = self.ask_date() if kind == TransactionKind.WITHDRAW else self._today()

        record = self._service.make_transaction(user, account_number, kind, amount, on=on)
        self.say(f"\n✔ Success! New balance: ${record.balance:,.2f}")

    def handle_remove(self, user: User) -> None:
        self.say("\t\t\t===== Remove account =====")
        account_number = self.ask_account_number()
        self._service.remove_account(user, account_number)
        self.say("\n✔ Success!")

    def handle_transfer(self, user: User) -> None:
        self.say("\t\t\t===== Transfer ownership =====")
        account_number = self.ask_account_number()
        new_owner = self.ask("\nEnter the new owner name: ")
        self._service.transfer_ownership(user, account_number, new_owner)
        self.say("\n✔ Success!")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="atm-ledger",
        description="Terminal ATM ledger manager",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the ledger and user files",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured log level",
    )
    return parser.parse_args(argv)


def main(
    argv: Optional[list[str]] = None,
    input_fn: Callable[[str], str] = input,
    password_fn: Callable[[str], str] = getpass.getpass,
) -> int:
    """Main application entry point."""
    args = parse_args(argv)

    status = validate_all_settings()
    failed = [name for name, ok in status.items() if ok is False]
    if failed:
        for name in failed:
            print(f"✖ Invalid {name} settings: {status[f'{name}_error']}", file=sys.stderr)
        return 1

    settings = get_settings()
    app_settings = settings.app

    log_file = app_settings.log_file
    if args.data_dir is not None and log_file is not None and not log_file.is_absolute():
        log_file = args.data_dir / log_file.name
    configure_logging(
        level=args.log_level or app_settings.log_level,
        json_logs=app_settings.json_logs,
        log_file=log_file,
    )

    components = None
    try:
        components = create_app_components(settings, data_dir=args.data_dir)
        console = LedgerConsole(components, input_fn=input_fn, password_fn=password_fn)
        return console.run()
    except StorageError as e:
        logger.error("storage_failure", error=str(e))
        if components is not None:
            components.audit_logger.log_store_error("session", str(e))
        print(f"✖ Storage error: {e}", file=sys.stderr)
        return 1
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    except EOFError:
        return 0


if __name__ == "__main__":
    sys.exit(main())
