"""
Core Data Models for the ATM Ledger

These models define the schemas for everything that flows between the
terminal, the account service and the record store:
1. The identity of the logged-in user
2. Account records as persisted in the ledger file
3. Drafts of new accounts, before validation
4. Interest quotes and validation results shown to the user

Account types are stored on disk as short codes. The record keeps the raw
code rather than the enum so that records written with codes this version
does not know still load and rewrite unchanged.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


MIN_YEAR = 1900
MAX_YEAR = 2100

CENT = Decimal("0.01")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Supported account types, by their on-disk code.

    Fixed-term accounts lock the balance and contact details for the
    length of the term. Only ownership can change.
    """
    SAVING = "saving"
    CURRENT = "current"
    FIXED_1Y = "fixed01"
    FIXED_2Y = "fixed02"
    FIXED_3Y = "fixed03"

    @property
    def is_fixed(self) -> bool:
        return self.term_years > 0

    @property
    def term_years(self) -> int:
        return {
            AccountType.FIXED_1Y: 1,
            AccountType.FIXED_2Y: 2,
            AccountType.FIXED_3Y: 3,
        }.get(self, 0)

    @property
    def label(self) -> str:
        return {
            AccountType.SAVING: "saving",
            AccountType.CURRENT: "current",
            AccountType.FIXED_1Y: "fixed01 (for 1 year)",
            AccountType.FIXED_2Y: "fixed02 (for 2 years)",
            AccountType.FIXED_3Y: "fixed03 (for 3 years)",
        }[self]

    @classmethod
    def from_code(cls, code: str) -> Optional["AccountType"]:
        """Return the enum member for a code, or None for unknown codes."""
        try:
            return cls(code)
        except ValueError:
            return None


class TransactionKind(str, Enum):
    """Direction of a balance change."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


# =============================================================================
# IDENTITY
# =============================================================================

class User(BaseModel):
    """
    A registered user.

    The account service only ever sees a User by value. How the user
    logged in is not its concern.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        ge=0,
        description="Unique user id, assigned at registration"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique, immutable user name"
    )
    password_hash: str = Field(
        default="",
        repr=False,
        description="Credential hash, owned by the user directory"
    )


# =============================================================================
# ACCOUNT RECORD
# =============================================================================

class AccountRecord(BaseModel):
    """
    One account as persisted in the ledger file.

    CRITICAL: (owner_name, account_number) is unique among live records.
    `id` is stable and never renumbered.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        ge=0,
        description="Store-unique record id, assigned sequentially"
    )
    owner_id: int = Field(
        ...,
        ge=0,
        description="Id of the owning user"
    )
    owner_name: str = Field(
        ...,
        min_length=1,
        description="Denormalized copy of the owner's name"
    )
    account_number: int = Field(
        ...,
        ge=0,
        description="Account number, unique per owner"
    )
    country: str = Field(
        ...,
        min_length=1,
    )
    phone: str = Field(
        ...,
        min_length=1,
    )
    balance: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Current balance"
    )
    account_type: str = Field(
        ...,
        min_length=1,
        description="On-disk account type code"
    )
    deposit_date: date
    last_withdraw_date: Optional[date] = None

    @field_validator("deposit_date", "last_withdraw_date")
    @classmethod
    def validate_year_range(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and not MIN_YEAR <= v.year <= MAX_YEAR:
            raise ValueError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
        return v

    @property
    def kind(self) -> Optional[AccountType]:
        """The known account type, or None for a legacy code."""
        return AccountType.from_code(self.account_type)

    @property
    def is_fixed(self) -> bool:
        kind = self.kind
        return kind is not None and kind.is_fixed

    def is_owned_by(self, user: User) -> bool:
        return self.owner_name == user.name


class AccountDraft(BaseModel):
    """
    Input for a new account, as typed by the user.

    Nothing here is constrained: the validator reports every problem at
    once instead of failing on the first bad field.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    account_number: int
    deposit_date: date
    country: str
    phone: str
    balance: Decimal
    account_type: str


# =============================================================================
# INTEREST
# =============================================================================

class InterestQuote(BaseModel):
    """Interest an account earns and when it is paid."""

    account_type: str
    rate: Decimal = Field(
        ...,
        description="Annual rate as a fraction (0.07 for 7%)"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount paid at the next accrual"
    )
    next_accrual: Optional[date] = Field(
        default=None,
        description="Date of the next payment, None if the account earns nothing"
    )
    description: str

    @property
    def earns_interest(self) -> bool:
        return self.amount > 0


class AccountDetails(BaseModel):
    """An account together with its interest quote."""

    record: AccountRecord
    interest: InterestQuote


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'insufficient_funds')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one operation's input."""

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
