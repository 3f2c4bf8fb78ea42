"""
Transfer Notifications

When an account changes owner, the new owner gets a short message over an
out-of-band channel. Delivery is best-effort and fire-and-forget: a
missing channel, or nobody listening on it, means "not delivered", never
an error for the transfer itself.

The default channel is a named pipe opened non-blocking, so a writer with
no reader fails fast instead of hanging the terminal.
"""

import errno
import os
import stat
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from atm_ledger.models.account import User


logger = structlog.get_logger(__name__)

MAX_MESSAGE_BYTES = 256


def transfer_message(sender: User, account_number: int) -> str:
    return f"User {sender.name} transferred account {account_number} to you"


class NotifierInterface(ABC):
    """Abstract interface for best-effort user notifications."""

    @abstractmethod
    def notify(self, recipient: User, message: str) -> bool:
        """
        Send a message to a user.

        Returns:
            True if the message was handed to the channel. Never raises
            for delivery failures.
        """
        pass

    def read_pending(self) -> list[str]:
        """Messages waiting for the current session. None by default."""
        return []


class NullNotifier(NotifierInterface):
    """Notifier that drops every message."""

    def notify(self, recipient: User, message: str) -> bool:
        return False


class FifoNotifier(NotifierInterface):
    """
    Notifier writing to a named pipe.

    Any terminal session can drain the pipe with read_pending().
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def setup(self) -> bool:
        """
        Create the named pipe if it does not exist.

        Returns False where the platform has no named pipes or the path
        is taken by something that is not a pipe.
        """
        if not hasattr(os, "mkfifo"):
            return False
        try:
            if self._path.exists():
                return stat.S_ISFIFO(self._path.stat().st_mode)
            os.mkfifo(self._path, 0o666)
            return True
        except OSError as e:
            logger.warning("fifo_setup_failed", path=str(self._path), error=str(e))
            return False

    def notify(self, recipient: User, message: str) -> bool:
        payload = (message.rstrip("\n") + "\n").encode("utf-8")[:MAX_MESSAGE_BYTES]
        try:
            fd = os.open(self._path, os.O_WRONLY | os.O_NONBLOCK)
        except OSError as e:
            # ENXIO: pipe exists but nobody is reading it
            reason = "no_reader" if e.errno == errno.ENXIO else "unavailable"
            logger.info(
                "notification_not_delivered",
                path=str(self._path),
                recipient=recipient.name,
                reason=reason,
            )
            return False

        try:
            os.write(fd, payload)
        except OSError as e:
            logger.warning(
                "notification_write_failed",
                path=str(self._path),
                recipient=recipient.name,
                error=str(e),
            )
            return False
        finally:
            os.close(fd)

        logger.info("notification_sent", recipient=recipient.name)
        return True

    def read_pending(self) -> list[str]:
        """Drain and return any messages waiting in the pipe."""
        try:
            fd = os.open(self._path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError:
            return []

        chunks = []
        try:
            while True:
                try:
                    chunk = os.read(fd, MAX_MESSAGE_BYTES)
                except BlockingIOError:
                    break
                if not chunk:
                    break
                chunks.append(chunk)
        finally:
            os.close(fd)

        text = b"".join(chunks).decode("utf-8", errors="replace")
        return [line for line in text.splitlines() if line.strip()]
