"""
Audit Logger

Every change to the ledger and every login attempt is logged:
1. Locally, through structlog, for debugging
2. To the audit trail file, when one is configured

The audit logger never raises on a storage failure. The ledger operation
has already happened by the time it is audited.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from atm_ledger.models.account import AccountRecord, User
from atm_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from atm_ledger.services.storage import AuditStorageInterface


def configure_logging(
    level: str = "INFO",
    json_logs: bool = True,
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines instead of console key=value output
        log_file: Write logs to this file instead of stderr
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Audit trail backend. If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("atm_ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if the storage write succeeded (or no storage is
        configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            return self._storage.append_event(event)

        return True

    def log_account_created(self, user: User, record: AccountRecord) -> None:
        self.log(AuditEventBuilder.account_created(
            actor=user.name,
            record_id=record.id,
            account_number=record.account_number,
            account_type=record.account_type,
        ))

    def log_account_updated(
        self,
        user: User,
        account_number: int,
        fields: list[str],
    ) -> None:
        self.log(AuditEventBuilder.account_updated(
            actor=user.name,
            account_number=account_number,
            fields=fields,
        ))

    def log_transaction(
        self,
        user: User,
        record: AccountRecord,
        kind: str,
        amount: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_applied(
            actor=user.name,
            account_number=record.account_number,
            kind=kind,
            amount=amount,
            balance=f"{record.balance:.2f}",
        ))

    def log_account_removed(self, user: User, account_number: int) -> None:
        self.log(AuditEventBuilder.account_removed(
            actor=user.name,
            account_number=account_number,
        ))

    def log_ownership_transferred(
        self,
        user: User,
        account_number: int,
        new_owner: User,
    ) -> None:
        self.log(AuditEventBuilder.ownership_transferred(
            actor=user.name,
            account_number=account_number,
            new_owner=new_owner.name,
        ))

    def log_rejected(
        self,
        user: User,
        operation: str,
        reason: str,
        account_number: Optional[int] = None,
    ) -> None:
        self.log(AuditEventBuilder.operation_rejected(
            actor=user.name,
            operation=operation,
            reason=reason,
            account_number=account_number,
        ))

    def log_notification_failed(
        self,
        user: User,
        recipient: User,
        account_number: int,
    ) -> None:
        self.log(AuditEventBuilder.notification_failed(
            actor=user.name,
            recipient=recipient.name,
            account_number=account_number,
        ))

    def log_store_error(
        self,
        operation: str,
        error_message: str,
        user: Optional[User] = None,
    ) -> None:
        self.log(AuditEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            actor=user.name if user else None,
        ))

    def log_user_registered(self, user: User) -> None:
        self.log(AuditEventBuilder.user_registered(user.name, user.id))

    def log_user_logged_in(self, user: User) -> None:
        self.log(AuditEventBuilder.user_logged_in(user.name))

    def log_login_failed(self, name: str) -> None:
        self.log(AuditEventBuilder.login_failed(name))
