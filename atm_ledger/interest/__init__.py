"""Interest policy package."""

from atm_ledger.interest.policy import (
    ANNUAL_RATES,
    add_years,
    compute_interest,
    next_monthly_accrual,
)

__all__ = ["ANNUAL_RATES", "add_years", "compute_interest", "next_monthly_accrual"]
