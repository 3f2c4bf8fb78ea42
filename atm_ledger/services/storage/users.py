"""
File-Backed User Directory

One user per line: `id name password_hash`. Same read contract as the
ledger: sequential scan, blank lines ignored, undecodable lines reported
as MalformedRecordError.
"""

import hashlib
import os
from pathlib import Path
from typing import Iterator, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from atm_ledger.exceptions import (
    ConflictError,
    MalformedRecordError,
    StorageIOError,
    ValidationError,
)
from atm_ledger.models.account import User, ValidationIssue
from atm_ledger.services.storage.interface import UserDirectoryInterface
from atm_ledger.validation.rules import is_valid_username


logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    """Hex SHA-256 of the password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class FileUserDirectory(UserDirectoryInterface):
    """User directory stored in a text file."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """Create the users file if missing."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Cannot create user directory {self._path}: {e}") from e

    def _decode(self, line: str, line_number: int) -> User:
        parts = line.split()
        if len(parts) != 3:
            raise MalformedRecordError(
                f"expected 3 fields, found {len(parts)}",
                line_number,
                self._path,
            )
        user_id, name, password_hash = parts
        if not user_id.isascii() or not user_id.isdigit():
            raise MalformedRecordError(
                f"user id is not a number: {user_id!r}",
                line_number,
                self._path,
            )
        try:
            return User(id=int(user_id), name=name, password_hash=password_hash)
        except PydanticValidationError as e:
            raise MalformedRecordError(str(e), line_number, self._path) from None

    def scan(self) -> Iterator[User]:
        try:
            handle = open(self._path, "r", encoding="utf-8")
        except OSError as e:
            raise StorageIOError(f"Cannot open user directory {self._path}: {e}") from e

        line_number = 0
        with handle:
            try:
                for line in handle:
                    line_number += 1
                    if line.strip():
                        yield self._decode(line, line_number)
            except UnicodeDecodeError as e:
                raise MalformedRecordError(
                    f"not valid UTF-8 text ({e.reason})",
                    line_number + 1,
                    self._path,
                ) from e
            except OSError as e:
                raise StorageIOError(f"Cannot read user directory {self._path}: {e}") from e

    def find_by_name(self, name: str) -> Optional[User]:
        for user in self.scan():
            if user.name == name:
                return user
        return None

    def next_id(self) -> int:
        return max((user.id for user in self.scan()), default=-1) + 1

    def register(self, name: str, password: str) -> User:
        if not is_valid_username(name):
            raise ValidationError([ValidationIssue(
                field="name",
                issue_type="invalid_format",
                message="User name must be 1-50 characters with no spaces",
            )])
        if not password or any(ch.isspace() for ch in password):
            raise ValidationError([ValidationIssue(
                field="password",
                issue_type="invalid_format",
                message="Password must be non-empty and contain no spaces",
            )])
        if self.find_by_name(name) is not None:
            raise ConflictError(f"User name already taken: {name}")

        user = User(id=self.next_id(), name=name, password_hash=hash_password(password))
        line = f"{user.id} {user.name} {user.password_hash}\n"
        try:
            with open(self._path, "a", encoding="utf-8") as handle:
                handle.write(line)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as e:
            raise StorageIOError(f"Cannot write user directory {self._path}: {e}") from e

        logger.info("user_registered", user_id=user.id, name=user.name)
        return user

    def authenticate(self, name: str, password: str) -> Optional[User]:
        user = self.find_by_name(name)
        if user is None or user.password_hash != hash_password(password):
            return None
        return user
