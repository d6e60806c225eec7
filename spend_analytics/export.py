"""Export serializer: transactions back to delimited text.

Output uses the canonical header names, so an export re-ingests cleanly via
:func:`spend_analytics.ingest.ingest`. Quoting follows RFC 4180 (fields with
commas, quotes or newlines are quoted; inner quotes are doubled) through the
stdlib :mod:`csv` writer.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from io import StringIO
from os import PathLike
from pathlib import Path

from .config import DateStyle, ExportConfig
from .headers import CanonicalColumn
from .logging_setup import get_logger
from .models import Transaction, Transactions

logger = get_logger(__name__)

BOM = "\ufeff"

ESSENTIAL_COLUMNS: tuple[CanonicalColumn, ...] = (
    CanonicalColumn.TIMESTAMP,
    CanonicalColumn.DESCRIPTION,
    CanonicalColumn.AMOUNT_USD,
    CanonicalColumn.CATEGORY,
)

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_timestamp(ts: datetime, style: DateStyle) -> str:
    """Render ``ts`` as ``2024-01-15T08:30:00+00:00``, ``1/15/2024`` or ``January 15, 2024``."""

    match style:
        case DateStyle.ISO:
            return ts.isoformat()
        case DateStyle.US:
            return f"{ts.month}/{ts.day}/{ts.year}"
        case DateStyle.READABLE:
            return f"{_MONTH_NAMES[ts.month - 1]} {ts.day}, {ts.year}"
    raise ValueError(f"unsupported date style: {style!r}")


def _cell(tx: Transaction, column: CanonicalColumn, style: DateStyle) -> str:
    # Canonical column names map 1:1 onto Transaction attributes.
    value = getattr(tx, column.name.lower())
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_timestamp(value, style)
    if isinstance(value, Decimal):
        # Fixed-point: ``10000`` rather than ``1E+4``.
        return format(value, "f")
    return str(value)


def serialize(transactions: Iterable[Transaction], config: ExportConfig | None = None) -> str:
    """Render ``transactions`` as CSV text (no BOM), one line per record."""

    cfg = config or ExportConfig()
    buf = StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    if cfg.include_headers:
        writer.writerow([col.value for col in cfg.columns])
    count = 0
    for tx in transactions:
        writer.writerow([_cell(tx, col, cfg.date_format) for col in cfg.columns])
        count += 1
    logger.debug("serialized %d transactions (%d columns)", count, len(cfg.columns))
    return buf.getvalue()


def to_export_bytes(
    transactions: Iterable[Transaction], config: ExportConfig | None = None
) -> bytes:
    """UTF-8 bytes with a leading BOM so spreadsheet tools detect the encoding."""

    return (BOM + serialize(transactions, config)).encode("utf-8")


def write_export(
    transactions: Iterable[Transaction],
    directory: str | PathLike[str],
    config: ExportConfig | None = None,
) -> Path:
    """Write the export under ``directory`` using ``config.filename``."""

    cfg = config or ExportConfig()
    target = Path(directory) / cfg.filename
    data = to_export_bytes(transactions, cfg)
    target.write_bytes(data)
    logger.info("wrote %s (%s)", target, format_file_size(len(data)))
    return target


def estimate_export_size(transactions: Transactions) -> int:
    """Rough byte estimate: header plus the first row's length times the count."""

    if not transactions:
        return 0
    header = len(serialize(()))
    row = len(serialize(transactions[:1])) - header
    return header + row * len(transactions)


def format_file_size(n_bytes: int) -> str:
    """Human-readable size, e.g. ``"1.50 KB"``; ``0`` renders as ``"0 Bytes"``."""

    if n_bytes <= 0:
        return "0 Bytes"
    i = 0
    while n_bytes >= 1024 ** (i + 1) and i < len(_SIZE_UNITS) - 1:
        i += 1
    return f"{n_bytes / 1024**i:.2f} {_SIZE_UNITS[i]}"


__all__ = [
    "BOM",
    "ESSENTIAL_COLUMNS",
    "estimate_export_size",
    "format_file_size",
    "format_timestamp",
    "serialize",
    "to_export_bytes",
    "write_export",
]
