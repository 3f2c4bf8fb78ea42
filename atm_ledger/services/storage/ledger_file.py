"""
Flat-File Record Store

The ledger is a plain text file, one account per line (see codec.py).
There is no header, no index and no checksum, so the only safe way to
change a record is to rewrite the whole file.

SELECTIVE REWRITE PROTOCOL (replace_where):
1. Open the ledger for reading and a fresh staging file beside it
2. Copy every line across; matched records go through the transform
   (replaced, or dropped when the transform returns None)
3. Flush and fsync the staging file, copy the ledger's permission bits
4. Atomically rename the staging file over the ledger

A failure at any point before step 4 discards the staging file and
leaves the ledger exactly as it was. Unmatched lines are copied
byte-for-byte, so a rewrite never reformats records it did not touch.

Single-writer only: there is no locking between processes.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import IO, Iterator, Optional

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from atm_ledger.exceptions import MalformedRecordError, StorageIOError
from atm_ledger.models.account import AccountRecord
from atm_ledger.services.storage.codec import decode, encode
from atm_ledger.services.storage.interface import (
    RecordPredicate,
    RecordStoreInterface,
    RecordTransform,
)


logger = structlog.get_logger(__name__)


def owned_by(owner_name: str) -> RecordPredicate:
    """Predicate matching every record of one owner."""
    return lambda record: record.owner_name == owner_name


def owned_account(owner_name: str, account_number: int) -> RecordPredicate:
    """Predicate matching one owner's account by number."""
    return lambda record: (
        record.owner_name == owner_name
        and record.account_number == account_number
    )


class FileRecordStore(RecordStoreInterface):
    """
    Record store backed by a single line-oriented text file.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """Create the data directory and an empty ledger if missing."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Cannot create ledger {self._path}: {e}") from e

    def _open_for_read(self) -> IO[str]:
        # newline="" keeps line endings intact for byte-for-byte copies
        try:
            return open(self._path, "r", encoding="utf-8", newline="")
        except OSError as e:
            raise StorageIOError(f"Cannot open ledger {self._path}: {e}") from e

    def _iter_lines(
        self,
        handle: IO[str],
    ) -> Iterator[tuple[str, Optional[AccountRecord]]]:
        """Yield (raw_line, record) pairs; record is None for blank lines."""
        line_number = 0
        try:
            for line in handle:
                line_number += 1
                if not line.strip():
                    yield line, None
                    continue
                try:
                    record = decode(line, line_number)
                except MalformedRecordError as e:
                    raise MalformedRecordError(e.reason, line_number, self._path) from None
                yield line, record
        except UnicodeDecodeError as e:
            raise MalformedRecordError(
                f"not valid UTF-8 text ({e.reason})",
                line_number + 1,
                self._path,
            ) from e
        except OSError as e:
            raise StorageIOError(f"Cannot read ledger {self._path}: {e}") from e

    def scan(self) -> Iterator[AccountRecord]:
        with self._open_for_read() as handle:
            for _, record in self._iter_lines(handle):
                if record is not None:
                    yield record

    def find_one(self, predicate: RecordPredicate) -> Optional[AccountRecord]:
        for record in self.scan():
            if predicate(record):
                return record
        return None

    def find_all(self, predicate: RecordPredicate) -> list[AccountRecord]:
        return [record for record in self.scan() if predicate(record)]

    def next_id(self) -> int:
        return max((record.id for record in self.scan()), default=-1) + 1

    def append(self, record: AccountRecord) -> None:
        line = encode(record).encode("utf-8")
        try:
            with open(self._path, "a+b") as handle:
                handle.seek(0, os.SEEK_END)
                if handle.tell() > 0:
                    handle.seek(-1, os.SEEK_END)
                    if handle.read(1) != b"\n":
                        line = b"\n" + line
                handle.write(line)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as e:
            raise StorageIOError(f"Cannot append to ledger {self._path}: {e}") from e

        logger.info(
            "record_appended",
            path=str(self._path),
            record_id=record.id,
            account_number=record.account_number,
        )

    def replace_where(
        self,
        predicate: RecordPredicate,
        transform: RecordTransform,
    ) -> int:
        if not self._path.exists():
            raise StorageIOError(f"Ledger not found: {self._path}")

        try:
            fd, staging_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".staging",
                dir=self._path.parent,
            )
        except OSError as e:
            raise StorageIOError(f"Cannot create staging file for {self._path}: {e}") from e

        staging_path = Path(staging_name)
        matched = 0
        swapped = False
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as target:
                with self._open_for_read() as source:
                    for line, record in self._iter_lines(source):
                        if record is not None and predicate(record):
                            matched += 1
                            replacement = transform(record)
                            if replacement is not None:
                                target.write(encode(replacement))
                        else:
                            target.write(line if line.endswith("\n") else line + "\n")
                target.flush()
                os.fsync(target.fileno())

            shutil.copymode(self._path, staging_path)
            self._swap(staging_path)
            swapped = True
        except OSError as e:
            raise StorageIOError(f"Rewrite of {self._path} failed: {e}") from e
        finally:
            if not swapped:
                self._discard(staging_path)

        logger.info("ledger_rewritten", path=str(self._path), matched=matched)
        return matched

    @retry(
        retry=retry_if_exception_type(PermissionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        reraise=True,
    )
    def _swap(self, staging_path: Path) -> None:
        """Atomically replace the ledger with the staging file."""
        os.replace(staging_path, self._path)

    def _discard(self, staging_path: Path) -> None:
        try:
            staging_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "staging_cleanup_failed",
                path=str(staging_path),
                error=str(e),
            )
