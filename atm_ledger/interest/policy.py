"""
Interest Policy

Fixed annual rates per account type:

    saving    7% a year, paid monthly on the deposit day
    fixed01   4% a year, paid once at maturity (1 year)
    fixed02   5% a year x 2, paid once at maturity (2 years)
    fixed03   8% a year x 3, paid once at maturity (3 years)
    current   no interest

Codes this version does not know are treated as current accounts, so
records written by older versions still display.
"""

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from atm_ledger.models.account import CENT, AccountType, InterestQuote

ANNUAL_RATES = {
    AccountType.SAVING: Decimal("0.07"),
    AccountType.FIXED_1Y: Decimal("0.04"),
    AccountType.FIXED_2Y: Decimal("0.05"),
    AccountType.FIXED_3Y: Decimal("0.08"),
}


def _clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def add_years(start: date, years: int) -> date:
    """Same calendar day `years` later; Feb 29 falls back to Feb 28."""
    return _clamp_day(start.year + years, start.month, start.day)


def next_monthly_accrual(deposit_date: date, as_of: date) -> date:
    """
    The next deposit-day anniversary on or after `as_of`.

    Months shorter than the deposit day pay on their last day.
    """
    start = max(as_of, deposit_date)
    candidate = _clamp_day(start.year, start.month, deposit_date.day)
    if candidate >= start:
        return candidate
    if start.month == 12:
        return _clamp_day(start.year + 1, 1, deposit_date.day)
    return _clamp_day(start.year, start.month + 1, deposit_date.day)


def compute_interest(
    account_type: str,
    balance: Decimal,
    deposit_date: date,
    as_of: Optional[date] = None,
) -> InterestQuote:
    """
    Compute the interest an account earns and when it is paid.

    Args:
        account_type: On-disk account type code
        balance: Current balance
        deposit_date: Date the account was opened
        as_of: Reference date for the next monthly payment (today if None)

    Returns:
        InterestQuote with the amount of the next payment
    """
    kind = AccountType.from_code(account_type)
    rate = ANNUAL_RATES.get(kind)

    if rate is None:
        return InterestQuote(
            account_type=account_type,
            rate=Decimal("0"),
            amount=Decimal("0.00"),
            next_accrual=None,
            description="You will not get interests because the account is of type current",
        )

    if kind == AccountType.SAVING:
        amount = (balance * rate / 12).quantize(CENT, rounding=ROUND_HALF_UP)
        next_accrual = next_monthly_accrual(deposit_date, as_of or date.today())
        return InterestQuote(
            account_type=account_type,
            rate=rate,
            amount=amount,
            next_accrual=next_accrual,
            description=(
                f"You will get ${amount:,.2f} as interest on day "
                f"{deposit_date.day} of every month"
            ),
        )

    years = kind.term_years
    amount = (balance * rate * years).quantize(CENT, rounding=ROUND_HALF_UP)
    maturity = add_years(deposit_date, years)
    period = "1 year" if years == 1 else f"{years} years"
    return InterestQuote(
        account_type=account_type,
        rate=rate,
        amount=amount,
        next_accrual=maturity,
        description=(
            f"You will get ${amount:,.2f} as interest after {period} "
            f"on {maturity.month:02d}/{maturity.day:02d}/{maturity.year}"
        ),
    )
