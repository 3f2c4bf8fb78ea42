"""
Validation Rules

Pure predicates over user input. None of them perform I/O, and none of
them raise: they answer yes or no, and the validator turns the answers
into issues the user can read.
"""

import calendar
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from atm_ledger.models.account import MAX_YEAR, MIN_YEAR, AccountType


DATE_PATTERN = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")
USERNAME_PATTERN = re.compile(r"^\S{1,50}$")

MAX_ACCOUNT_NUMBER = 10 ** 19 - 1


def is_valid_date(month: int, day: int, year: int) -> bool:
    """Check a calendar date, including month lengths and leap years."""
    if not MIN_YEAR <= year <= MAX_YEAR:
        return False
    if not 1 <= month <= 12:
        return False
    return 1 <= day <= calendar.monthrange(year, month)[1]


def parse_date(text: str) -> Optional[date]:
    """Parse "mm/dd/yyyy" into a date, or None if it is not a valid date."""
    match = DATE_PATTERN.match(text or "")
    if match is None:
        return None
    month, day, year = (int(part) for part in match.groups())
    if not is_valid_date(month, day, year):
        return None
    return date(year, month, day)


def format_date(value: date) -> str:
    """Format a date as "mm/dd/yyyy"."""
    return f"{value.month:02d}/{value.day:02d}/{value.year:04d}"


def is_valid_phone(phone: str, min_length: int = 7, max_length: int = 15) -> bool:
    """Digits only, with a length between the bounds."""
    if not phone or not phone.isascii() or not phone.isdigit():
        return False
    return min_length <= len(phone) <= max_length


def parse_amount(text: str) -> Optional[Decimal]:
    """Parse a monetary amount, or None if the text is not a finite number."""
    try:
        amount = Decimal(text.strip().lstrip("$"))
    except (InvalidOperation, AttributeError):
        return None
    if not amount.is_finite():
        return None
    return amount


def is_valid_amount(
    amount: Union[Decimal, int, str],
    maximum: Decimal = Decimal("1000000000.00"),
) -> bool:
    """Strictly positive, at most the maximum, at most two decimal places."""
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        return False
    if not value.is_finite():
        return False
    if value <= 0 or value > maximum:
        return False
    return value.as_tuple().exponent >= -2 or value == value.quantize(Decimal("0.01"))


def is_valid_account_type(code: str) -> bool:
    """Membership in the fixed set of account type codes."""
    return AccountType.from_code(code) is not None


def is_valid_free_text(text: str, max_length: int = 100) -> bool:
    """Alphabetic only, used for country names."""
    if not text or len(text) > max_length:
        return False
    return text.isalpha()


def is_valid_account_number(number: int) -> bool:
    return 0 <= number <= MAX_ACCOUNT_NUMBER


def is_valid_username(name: str) -> bool:
    """Non-empty and free of whitespace, so it survives the line format."""
    return bool(USERNAME_PATTERN.match(name or ""))
