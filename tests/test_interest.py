"""
Tests for the interest policy.
"""

from datetime import date
from decimal import Decimal

import pytest

from atm_ledger.interest import (
    ANNUAL_RATES,
    add_years,
    compute_interest,
    next_monthly_accrual,
)
from atm_ledger.models.account import AccountType


class TestRates:
    """Tests for the rate table."""

    def test_rates(self):
        assert ANNUAL_RATES[AccountType.SAVING] == Decimal("0.07")
        assert ANNUAL_RATES[AccountType.FIXED_1Y] == Decimal("0.04")
        assert ANNUAL_RATES[AccountType.FIXED_2Y] == Decimal("0.05")
        assert ANNUAL_RATES[AccountType.FIXED_3Y] == Decimal("0.08")
        assert AccountType.CURRENT not in ANNUAL_RATES


class TestSavingInterest:
    """Tests for monthly interest on savings accounts."""

    def test_monthly_amount(self):
        quote = compute_interest(
            "saving", Decimal("1200.00"), date(2024, 1, 10), as_of=date(2024, 1, 15)
        )
        assert quote.amount == Decimal("7.00")
        assert quote.rate == Decimal("0.07")
        assert quote.description == "You will get $7.00 as interest on day 10 of every month"

    def test_rounds_half_up_to_cents(self):
        quote = compute_interest(
            "saving", Decimal("500.00"), date(2024, 1, 10), as_of=date(2024, 1, 10)
        )
        # 500 * 0.07 / 12 = 2.91666...
        assert quote.amount == Decimal("2.92")

    def test_next_accrual_same_month(self):
        quote = compute_interest(
            "saving", Decimal("100.00"), date(2023, 6, 20), as_of=date(2024, 1, 15)
        )
        assert quote.next_accrual == date(2024, 1, 20)

    def test_next_accrual_following_month(self):
        assert next_monthly_accrual(date(2023, 6, 10), date(2024, 1, 15)) == date(2024, 2, 10)

    def test_next_accrual_rolls_over_year(self):
        assert next_monthly_accrual(date(2023, 6, 10), date(2024, 12, 11)) == date(2025, 1, 10)

    def test_next_accrual_short_month(self):
        """Accounts opened on the 31st are paid on the last day of short months."""
        assert next_monthly_accrual(date(2024, 1, 31), date(2024, 2, 1)) == date(2024, 2, 29)

    def test_next_accrual_before_deposit(self):
        assert next_monthly_accrual(date(2024, 3, 5), date(2024, 1, 1)) == date(2024, 3, 5)


class TestFixedInterest:
    """Tests for fixed-term interest, paid at maturity."""

    @pytest.mark.parametrize(
        "code,amount,maturity,period",
        [
            ("fixed01", Decimal("40.00"), date(2025, 3, 1), "1 year"),
            ("fixed02", Decimal("100.00"), date(2026, 3, 1), "2 years"),
            ("fixed03", Decimal("240.00"), date(2027, 3, 1), "3 years"),
        ],
    )
    def test_fixed_terms(self, code, amount, maturity, period):
        quote = compute_interest(code, Decimal("1000.00"), date(2024, 3, 1))
        assert quote.amount == amount
        assert quote.next_accrual == maturity
        assert quote.description == (
            f"You will get ${amount:,.2f} as interest after {period} "
            f"on {maturity.month:02d}/{maturity.day:02d}/{maturity.year}"
        )

    def test_leap_day_maturity(self):
        assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
        assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


class TestNoInterest:
    """Tests for accounts that earn nothing."""

    def test_current_account(self):
        quote = compute_interest("current", Decimal("5000.00"), date(2024, 1, 1))
        assert quote.amount == Decimal("0.00")
        assert quote.next_accrual is None
        assert not quote.earns_interest
        assert "type current" in quote.description

    def test_unknown_code_earns_nothing(self):
        quote = compute_interest("fixed04", Decimal("5000.00"), date(2024, 1, 1))
        assert quote.account_type == "fixed04"
        assert quote.amount == Decimal("0.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
