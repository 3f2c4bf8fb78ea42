"""Input validation package."""

from atm_ledger.validation.validator import AccountValidator

__all__ = ["AccountValidator"]
