"""Ingestion pipeline: uploaded CSV bytes to validated transactions.

:func:`ingest` never raises for bad input. File-level problems (too large,
not text, empty, missing columns) abort with an empty transaction list.
Row-level problems exclude only the offending row. Advisories ride along
as warnings. Parsing follows RFC 4180 via the stdlib :mod:`csv` module
(quoted fields, embedded commas/newlines, doubled quotes).
"""

from __future__ import annotations

import csv
import hashlib
import json
from collections.abc import Iterator, Sequence
from io import StringIO
from os import PathLike
from pathlib import Path

from .config import IngestConfig
from .export import format_file_size
from .headers import missing_required_columns, normalize_headers
from .issues import (
    IngestError,
    IngestErrorKind,
    IngestResult,
    IngestWarning,
    IngestWarningKind,
)
from .logging_setup import get_logger
from .models import Transaction
from .parsing import parse_record

logger = get_logger(__name__)

# The header is row 1 and data rows are 1-based.
_ROW_OFFSET = 2


def _reject(kind: IngestErrorKind, message: str, *, column: str | None = None) -> IngestResult:
    logger.warning("upload rejected: %s", message)
    return IngestResult(errors=(IngestError(kind=kind, message=message, column=column),))


def _decode(file_bytes: bytes) -> str | None:
    # ``utf-8-sig`` strips a leading BOM when present.
    try:
        text = file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return None
    if "\x00" in text:
        return None
    return text


def _non_blank_rows(text: str) -> Iterator[list[str]]:
    with StringIO(text, newline="") as f:
        for cells in csv.reader(f):
            if all(c.strip() == "" for c in cells):
                continue
            yield cells


def _row_mapping(headers: Sequence[str], cells: Sequence[str]) -> dict[str, str]:
    # First occurrence of a column wins when synonyms collide (e.g. "date"
    # and "timestamp"). Short rows simply lack the trailing keys.
    row: dict[str, str] = {}
    for name, value in zip(headers, cells, strict=False):
        if name:
            row.setdefault(name, value)
    return row


def transaction_fingerprint(tx: Transaction) -> str:
    """Stable SHA-256 over the fields that identify a card charge."""

    payload = {
        "timestamp": tx.timestamp.isoformat(),
        "amount": f"{tx.amount_usd:f}",
        "description": tx.description.casefold(),
        "card": tx.card,
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def ingest(
    file_bytes: bytes,
    filename: str | None = None,
    config: IngestConfig | None = None,
) -> IngestResult:
    """Validate and parse an uploaded CSV.

    Parameters
    ----------
    file_bytes:
        Entire file content. UTF-8, with or without a byte-order mark.
    filename:
        Name hint from the upload. When given it must end in ``.csv``.
    config:
        Limits and switches; defaults to :class:`IngestConfig`.

    Returns
    -------
    IngestResult
        Parsed transactions plus every error and warning collected on the way.
    """

    cfg = config or IngestConfig()

    size = len(file_bytes)
    if size > cfg.max_file_size_bytes:
        return _reject(
            IngestErrorKind.VALIDATION_FAILED,
            f"File size ({format_file_size(size)}) exceeds maximum allowed size "
            f"({format_file_size(cfg.max_file_size_bytes)})",
        )

    if filename is not None and not filename.strip().lower().endswith(".csv"):
        return _reject(
            IngestErrorKind.VALIDATION_FAILED,
            "File must be a CSV file with .csv extension",
        )

    text = _decode(file_bytes)
    if text is None:
        return _reject(
            IngestErrorKind.VALIDATION_FAILED,
            "File is not UTF-8 delimited text",
        )

    try:
        rows = list(_non_blank_rows(text))
    except csv.Error as e:
        return _reject(IngestErrorKind.VALIDATION_FAILED, f"Failed to parse CSV: {e}")

    if len(rows) < 2:
        return _reject(IngestErrorKind.EMPTY_FILE, "CSV file contains no data rows")

    headers = normalize_headers(rows[0])
    missing = missing_required_columns(headers)
    if missing:
        errors = tuple(
            IngestError(
                kind=IngestErrorKind.MISSING_COLUMN,
                message=f'Required column "{col.value}" is missing from CSV',
                column=col.value,
            )
            for col in missing
        )
        logger.warning(
            "upload rejected: missing columns %s", ", ".join(c.value for c in missing)
        )
        return IngestResult(errors=errors)

    data_rows = rows[1:]
    transactions: list[Transaction] = []
    errors_acc: list[IngestError] = []
    warnings_acc: list[IngestWarning] = []
    seen: dict[str, int] = {}

    for index, cells in enumerate(data_rows):
        row_number = index + _ROW_OFFSET
        try:
            outcome = parse_record(
                _row_mapping(headers, cells),
                row_number,
                large_transaction_threshold=cfg.large_transaction_threshold,
            )
        except Exception as e:  # reported against this row only
            logger.debug("row %d raised during parsing", row_number, exc_info=True)
            errors_acc.append(
                IngestError(
                    kind=IngestErrorKind.VALIDATION_FAILED,
                    message=f"Failed to parse row {row_number}: {e}",
                    row=row_number,
                )
            )
            continue

        if outcome.error is not None:
            errors_acc.append(outcome.error)
            continue
        if outcome.transaction is None:
            continue
        transactions.append(outcome.transaction)
        if outcome.warning is not None:
            warnings_acc.append(outcome.warning)

        if cfg.detect_duplicates:
            fp = transaction_fingerprint(outcome.transaction)
            first_row = seen.setdefault(fp, row_number)
            if first_row != row_number:
                warnings_acc.append(
                    IngestWarning(
                        kind=IngestWarningKind.DUPLICATE_TRANSACTION,
                        message=f"Row {row_number}: Possible duplicate of row {first_row}",
                        row=row_number,
                    )
                )

    if len(transactions) > cfg.max_transactions:
        warnings_acc.append(
            IngestWarning(
                kind=IngestWarningKind.LARGE_TRANSACTION,
                message=(
                    f"Transaction count ({len(transactions)}) exceeds recommended maximum "
                    f"({cfg.max_transactions}). Performance may be affected."
                ),
                row=0,
            )
        )

    logger.info(
        "ingested %d of %d rows (%d errors, %d warnings)",
        len(transactions),
        len(data_rows),
        len(errors_acc),
        len(warnings_acc),
    )

    if cfg.strict_mode and warnings_acc:
        promoted = [
            IngestError(kind=IngestErrorKind.VALIDATION_FAILED, message=w.message, row=w.row)
            for w in warnings_acc
        ]
        logger.warning(
            "strict mode: discarding %d transactions (%d errors, %d warnings)",
            len(transactions),
            len(errors_acc),
            len(warnings_acc),
        )
        return IngestResult(errors=(*errors_acc, *promoted), rows_read=len(data_rows))

    return IngestResult(
        transactions=tuple(transactions),
        errors=tuple(errors_acc),
        warnings=tuple(warnings_acc),
        rows_read=len(data_rows),
    )


def ingest_path(csv_path: str | PathLike[str], config: IngestConfig | None = None) -> IngestResult:
    """Read ``csv_path`` from disk and run :func:`ingest` on its bytes.

    Read failures (missing file, permissions) are reported as a
    ``VALIDATION_FAILED`` error rather than raised.
    """

    p = Path(csv_path)
    try:
        data = p.read_bytes()
    except OSError as e:
        return _reject(IngestErrorKind.VALIDATION_FAILED, f"Could not read {p}: {e}")
    return ingest(data, p.name, config)


__all__ = ["ingest", "ingest_path", "transaction_fingerprint"]
