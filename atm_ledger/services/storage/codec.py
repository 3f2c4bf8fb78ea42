"""
Ledger Line Codec

One account record per line, fields separated by a single space:

    id owner_id owner_name account_number mm/dd/yyyy country phone balance account_type [mm/dd/yyyy]

The trailing date is the last withdrawal, written only once the account
has had one. Lines with the nine leading fields alone are the older
format and still decode.

decode() is the exact left inverse of encode() for every valid record.
Anything that does not decode raises MalformedRecordError so the store can
report a corrupt ledger instead of crashing on it.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from atm_ledger.exceptions import MalformedRecordError, ValidationError
from atm_ledger.models.account import AccountRecord, ValidationIssue
from atm_ledger.validation.rules import format_date, parse_date


DELIMITER = " "

INTEGER_PATTERN = re.compile(r"-?[0-9]+")

RECORD_FIELDS = [
    "id",
    "owner_id",
    "owner_name",
    "account_number",
    "deposit_date",
    "country",
    "phone",
    "balance",
    "account_type",
    "last_withdraw_date",
]

REQUIRED_FIELD_COUNT = len(RECORD_FIELDS) - 1

TEXT_FIELDS = ("owner_name", "country", "phone", "account_type")


def _check_text_fields(record: AccountRecord) -> None:
    issues = []
    for name in TEXT_FIELDS:
        value = getattr(record, name)
        if not value or any(ch.isspace() for ch in value):
            issues.append(ValidationIssue(
                field=name,
                issue_type="invalid_format",
                message=f"{name} must be non-empty and contain no whitespace: {value!r}",
            ))
    if issues:
        raise ValidationError(issues)


def encode(record: AccountRecord) -> str:
    """
    Encode a record as one newline-terminated ledger line.

    Raises:
        ValidationError: If a text field is empty or contains whitespace.
    """
    _check_text_fields(record)

    fields = [
        str(record.id),
        str(record.owner_id),
        record.owner_name,
        str(record.account_number),
        format_date(record.deposit_date),
        record.country,
        record.phone,
        f"{record.balance:.2f}",
        record.account_type,
    ]
    if record.last_withdraw_date is not None:
        fields.append(format_date(record.last_withdraw_date))

    return DELIMITER.join(fields) + "\n"


def _parse_int(name: str, text: str, line_number: Optional[int]) -> int:
    if not INTEGER_PATTERN.fullmatch(text):
        raise MalformedRecordError(f"{name} is not a number: {text!r}", line_number)
    return int(text)


def _parse_date(name: str, text: str, line_number: Optional[int]) -> date:
    value = parse_date(text)
    if value is None:
        raise MalformedRecordError(f"{name} is not a valid mm/dd/yyyy date: {text!r}", line_number)
    return value


def decode(line: str, line_number: Optional[int] = None) -> AccountRecord:
    """
    Decode one ledger line into a record.

    Args:
        line: The line, with or without its trailing newline
        line_number: 1-based position in the file, for error messages

    Raises:
        MalformedRecordError: If the line has the wrong number of fields,
            a non-numeric value in a numeric field, a bad date, or a value
            the record model rejects.
    """
    parts = line.split()
    if len(parts) not in (REQUIRED_FIELD_COUNT, REQUIRED_FIELD_COUNT + 1):
        raise MalformedRecordError(
            f"expected {REQUIRED_FIELD_COUNT} or {REQUIRED_FIELD_COUNT + 1} fields, "
            f"found {len(parts)}",
            line_number,
        )

    try:
        balance = Decimal(parts[7])
    except InvalidOperation:
        raise MalformedRecordError(f"balance is not a number: {parts[7]!r}", line_number)
    if not balance.is_finite():
        raise MalformedRecordError(f"balance is not a number: {parts[7]!r}", line_number)

    last_withdraw = None
    if len(parts) > REQUIRED_FIELD_COUNT:
        last_withdraw = _parse_date("last_withdraw_date", parts[9], line_number)

    try:
        return AccountRecord(
            id=_parse_int("id", parts[0], line_number),
            owner_id=_parse_int("owner_id", parts[1], line_number),
            owner_name=parts[2],
            account_number=_parse_int("account_number", parts[3], line_number),
            deposit_date=_parse_date("deposit_date", parts[4], line_number),
            country=parts[5],
            phone=parts[6],
            balance=balance,
            account_type=parts[8],
            last_withdraw_date=last_withdraw,
        )
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedRecordError(errors, line_number)
