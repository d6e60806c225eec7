"""Record parser: one raw CSV row in, one transaction or one error out.

The parser is a pure function of its inputs. It expects ``row`` keys to be
already normalized to :class:`~spend_analytics.headers.CanonicalColumn`
values and never raises for malformed data; problems come back as an
:class:`~spend_analytics.issues.IngestError` on the outcome.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from .headers import CanonicalColumn
from .issues import IngestError, IngestErrorKind, IngestWarning, IngestWarningKind
from .models import UNCATEGORIZED, Transaction

LARGE_TRANSACTION_THRESHOLD = Decimal("10000")

# Tried in order after ``datetime.fromisoformat``. The long forms cover the
# READABLE export style so our own exports re-ingest.
_HUMAN_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%Y/%m/%d")
_US_FORMATS = ("%m/%d/%Y", "%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M")
_DAY_FIRST_FORMATS = ("%d-%m-%Y",)

_CURRENCY_SYMBOLS = "$€£¥"

_REQUIRED_TEXT_FIELDS: tuple[CanonicalColumn, ...] = (
    CanonicalColumn.TYPE,
    CanonicalColumn.DESCRIPTION,
    CanonicalColumn.STATUS,
    CanonicalColumn.CARD,
    CanonicalColumn.CARD_HOLDER_NAME,
)


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse a timestamp cell into an aware UTC ``datetime``.

    Order: ISO 8601 (date or date-time, optional offset), long human dates,
    ``MM/DD/YYYY`` (optionally with a time), then ``DD-MM-YYYY``. The first
    format that matches wins. Naive values are taken to be UTC.
    """

    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        return _as_utc(datetime.fromisoformat(s))
    except ValueError:
        pass
    for fmt in (*_HUMAN_FORMATS, *_US_FORMATS, *_DAY_FIRST_FORMATS):
        try:
            return _as_utc(datetime.strptime(s, fmt))
        except ValueError:
            continue
    return None


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a money cell such as ``"$1,234.50"``, ``"-4.50"`` or ``"(12.00)"``.

    Currency symbols, thousands separators and whitespace are dropped; a
    leading minus or surrounding parentheses make the value negative.
    Returns ``None`` when nothing numeric remains or the value is not finite.
    """

    if raw is None:
        return None
    s = "".join(raw.split())
    if not s:
        return None
    negative = False

    # Peel sign, currency symbol and parentheses in any order, e.g. "-($1.00)".
    while True:
        changed = False
        if s[:1] in ("+", "-"):
            negative = negative or s[0] == "-"
            s = s[1:]
            changed = True
        if s[:1] and s[0] in _CURRENCY_SYMBOLS:
            s = s[1:]
            changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1]
            changed = True
        if not changed or not s:
            break

    s = s.replace(",", "")
    for symbol in _CURRENCY_SYMBOLS:
        s = s.replace(symbol, "")
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return -abs(d) if negative else d


# ---------------------------------------------------------------------------
# Row parser
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    """Result of parsing one row.

    Exactly one of ``transaction`` / ``error`` is set. ``warning`` is only
    ever set alongside a transaction.
    """

    transaction: Transaction | None = None
    error: IngestError | None = None
    warning: IngestWarning | None = None


def _cell(row: Mapping[str, str | None], column: CanonicalColumn) -> str:
    value = row.get(column.value)
    return value.strip() if isinstance(value, str) else ""


def _fail(kind: IngestErrorKind, message: str, row_number: int, column: str) -> RecordOutcome:
    return RecordOutcome(
        error=IngestError(kind=kind, message=message, row=row_number, column=column)
    )


def parse_record(
    row: Mapping[str, str | None],
    row_number: int,
    *,
    large_transaction_threshold: Decimal = LARGE_TRANSACTION_THRESHOLD,
) -> RecordOutcome:
    """Convert one normalized CSV row into a :class:`Transaction`.

    ``row_number`` is the 1-based line in the source file and is echoed in
    every error and warning. Checks run in a fixed order (timestamp, amount,
    required text, optional numerics, category) and the first failure wins.
    """

    raw_ts = row.get(CanonicalColumn.TIMESTAMP.value) or ""
    timestamp = parse_timestamp(raw_ts)
    if timestamp is None:
        return _fail(
            IngestErrorKind.INVALID_DATA_TYPE,
            f'Invalid date format in row {row_number}: "{raw_ts}"',
            row_number,
            CanonicalColumn.TIMESTAMP.value,
        )

    raw_amount = row.get(CanonicalColumn.AMOUNT_USD.value) or ""
    amount = parse_amount(raw_amount)
    if amount is None:
        return _fail(
            IngestErrorKind.INVALID_DATA_TYPE,
            f'Invalid amount value in row {row_number}: "{raw_amount}"',
            row_number,
            CanonicalColumn.AMOUNT_USD.value,
        )

    for field_name in _REQUIRED_TEXT_FIELDS:
        if not _cell(row, field_name):
            return _fail(
                IngestErrorKind.VALIDATION_FAILED,
                f'Required field "{field_name.value}" is empty in row {row_number}',
                row_number,
                field_name.value,
            )

    # Unparseable optional numerics degrade to "absent".
    original_amount = parse_amount(_cell(row, CanonicalColumn.ORIGINAL_AMOUNT))
    original_currency = _cell(row, CanonicalColumn.ORIGINAL_CURRENCY) or None
    cashback = parse_amount(_cell(row, CanonicalColumn.CASHBACK_EARNED))
    if cashback is not None and cashback < 0:
        cashback = None
    category = _cell(row, CanonicalColumn.CATEGORY)

    transaction = Transaction(
        timestamp=timestamp,
        type=_cell(row, CanonicalColumn.TYPE),
        description=_cell(row, CanonicalColumn.DESCRIPTION),
        status=_cell(row, CanonicalColumn.STATUS),
        amount_usd=amount,
        card=_cell(row, CanonicalColumn.CARD),
        card_holder_name=_cell(row, CanonicalColumn.CARD_HOLDER_NAME),
        original_amount=original_amount,
        original_currency=original_currency,
        cashback_earned=cashback,
        category=category or UNCATEGORIZED,
    )

    # At most one warning per row, in precedence order.
    warning: IngestWarning | None = None
    if not category:
        warning = IngestWarning(
            kind=IngestWarningKind.MISSING_CATEGORY,
            message=f'Row {row_number}: Missing category, assigned to "{UNCATEGORIZED}"',
            row=row_number,
        )
    elif abs(amount) > large_transaction_threshold:
        warning = IngestWarning(
            kind=IngestWarningKind.LARGE_TRANSACTION,
            message=f"Row {row_number}: Large transaction amount (${amount:,.2f})",
            row=row_number,
        )
    elif (original_amount is None) != (original_currency is None):
        present, absent = (
            ("original currency", "original amount")
            if original_amount is None
            else ("original amount", "original currency")
        )
        warning = IngestWarning(
            kind=IngestWarningKind.MISSING_OPTIONAL_FIELD,
            message=f'Row {row_number}: "{present}" is set but "{absent}" is missing',
            row=row_number,
        )

    return RecordOutcome(transaction=transaction, warning=warning)


__all__ = [
    "LARGE_TRANSACTION_THRESHOLD",
    "RecordOutcome",
    "parse_amount",
    "parse_record",
    "parse_timestamp",
]
