"""Notification services package."""

from atm_ledger.services.notify.fifo import (
    FifoNotifier,
    NotifierInterface,
    NullNotifier,
    transfer_message,
)

__all__ = [
    "FifoNotifier",
    "NotifierInterface",
    "NullNotifier",
    "transfer_message",
]
