"""
Account Input Validation

Every operation that writes to the ledger validates its input first.
Invalid input never reaches the record store.

The validator collects ALL issues for an operation rather than stopping
at the first one, so the terminal can show the user everything that
needs fixing in one go. It NEVER silently fixes a value.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from atm_ledger.config import LimitSettings, get_settings
from atm_ledger.models.account import (
    AccountDraft,
    AccountType,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)
from atm_ledger.validation import rules


class AccountValidator:
    """
    Validates account input against the rules and configured limits.
    """

    def __init__(self, limits: Optional[LimitSettings] = None):
        """
        Initialize validator.

        Args:
            limits: Bounds for amounts, phone numbers and country names.
                    Loaded from the environment if None.
        """
        self._limits = limits or get_settings().limits

    @property
    def limits(self) -> LimitSettings:
        return self._limits

    def _check_country(self, country: str) -> list[ValidationIssue]:
        if rules.is_valid_free_text(country, self._limits.max_country_length):
            return []
        return [ValidationIssue(
            field="country",
            issue_type="invalid_format",
            message=f"Country must be letters only ({self._limits.max_country_length} at most)",
            suggested_fix="Type the country name without spaces, digits or symbols",
        )]

    def _check_phone(self, phone: str) -> list[ValidationIssue]:
        if rules.is_valid_phone(
            phone,
            self._limits.min_phone_length,
            self._limits.max_phone_length,
        ):
            return []
        return [ValidationIssue(
            field="phone",
            issue_type="invalid_format",
            message=(
                f"Phone number must be {self._limits.min_phone_length}"
                f"-{self._limits.max_phone_length} digits"
            ),
        )]

    def _check_amount(self, field: str, amount: Decimal) -> list[ValidationIssue]:
        if rules.is_valid_amount(amount, self._limits.max_amount):
            return []
        return [ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=(
                f"Amount must be greater than 0 and at most "
                f"{self._limits.max_amount:,.2f}, with at most 2 decimals"
            ),
        )]

    def _check_date(self, field: str, value: date) -> list[ValidationIssue]:
        if rules.is_valid_date(value.month, value.day, value.year):
            return []
        return [ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"Date must be between {rules.MIN_YEAR} and {rules.MAX_YEAR}",
        )]

    def validate_new_account(self, draft: AccountDraft) -> ValidationResult:
        """
        Validate the input for a new account.

        Checks account number, deposit date, country, phone, opening
        balance and account type.
        """
        issues = []

        if not rules.is_valid_account_number(draft.account_number):
            issues.append(ValidationIssue(
                field="account_number",
                issue_type="invalid_value",
                message="Account number must be a non-negative whole number",
            ))

        issues.extend(self._check_date("deposit_date", draft.deposit_date))
        issues.extend(self._check_country(draft.country))
        issues.extend(self._check_phone(draft.phone))
        issues.extend(self._check_amount("balance", draft.balance))

        if not rules.is_valid_account_type(draft.account_type):
            choices = ", ".join(t.value for t in AccountType)
            issues.append(ValidationIssue(
                field="account_type",
                issue_type="unknown_value",
                message=f"Unknown account type '{draft.account_type}'",
                suggested_fix=f"Choose one of: {choices}",
            ))

        return ValidationResult(issues=issues)

    def validate_contact_update(
        self,
        country: Optional[str],
        phone: Optional[str],
    ) -> ValidationResult:
        """Validate new contact details. At least one must be given."""
        issues = []

        if country is None and phone is None:
            issues.append(ValidationIssue(
                field="update",
                issue_type="missing",
                message="Nothing to update: give a new country or phone number",
            ))
        if country is not None:
            issues.extend(self._check_country(country))
        if phone is not None:
            issues.extend(self._check_phone(phone))

        return ValidationResult(issues=issues)

    def validate_transaction(
        self,
        kind: TransactionKind,
        amount: Decimal,
        balance: Decimal,
        on: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate a deposit or withdrawal against the current balance.

        A withdrawal that would make the balance negative is rejected,
        never clamped. A deposit may not push the balance over the ceiling.
        """
        issues = self._check_amount("amount", amount)

        if on is not None:
            issues.extend(self._check_date("date", on))

        if not issues:
            if kind == TransactionKind.WITHDRAW and amount > balance:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="insufficient_funds",
                    message=f"Cannot withdraw {amount:,.2f}: balance is {balance:,.2f}",
                ))
            elif kind == TransactionKind.DEPOSIT and balance + amount > self._limits.max_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="limit_exceeded",
                    message=(
                        f"Deposit would take the balance over "
                        f"{self._limits.max_amount:,.2f}"
                    ),
                ))

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a summary of validation results for the terminal.
        """
        if result.is_valid and not result.warnings:
            return "✔ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("✖ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     → {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
