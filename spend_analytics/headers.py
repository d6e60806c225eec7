"""Canonical column names and the header synonym table.

Uploads come from different card issuers and spreadsheet edits, so header
spelling varies. Each raw header is lowercased, trimmed and looked up in
:data:`HEADER_SYNONYMS`; unknown headers pass through unchanged and are
ignored by the record parser. Resolution happens once per file.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from types import MappingProxyType


class CanonicalColumn(StrEnum):
    TIMESTAMP = "timestamp"
    TYPE = "type"
    DESCRIPTION = "description"
    STATUS = "status"
    AMOUNT_USD = "amount USD"
    CARD = "card"
    CARD_HOLDER_NAME = "card holder name"
    ORIGINAL_AMOUNT = "original amount"
    ORIGINAL_CURRENCY = "original currency"
    CASHBACK_EARNED = "cashback earned"
    CATEGORY = "category"


REQUIRED_COLUMNS: tuple[CanonicalColumn, ...] = (
    CanonicalColumn.TIMESTAMP,
    CanonicalColumn.TYPE,
    CanonicalColumn.DESCRIPTION,
    CanonicalColumn.STATUS,
    CanonicalColumn.AMOUNT_USD,
    CanonicalColumn.CARD,
    CanonicalColumn.CARD_HOLDER_NAME,
)

OPTIONAL_COLUMNS: tuple[CanonicalColumn, ...] = (
    CanonicalColumn.ORIGINAL_AMOUNT,
    CanonicalColumn.ORIGINAL_CURRENCY,
    CanonicalColumn.CASHBACK_EARNED,
    CanonicalColumn.CATEGORY,
)

# Keys are lowercased, trimmed header spellings.
HEADER_SYNONYMS: Mapping[str, CanonicalColumn] = MappingProxyType(
    {
        "timestamp": CanonicalColumn.TIMESTAMP,
        "date": CanonicalColumn.TIMESTAMP,
        "time": CanonicalColumn.TIMESTAMP,
        "type": CanonicalColumn.TYPE,
        "transaction type": CanonicalColumn.TYPE,
        "description": CanonicalColumn.DESCRIPTION,
        "merchant": CanonicalColumn.DESCRIPTION,
        "status": CanonicalColumn.STATUS,
        "transaction status": CanonicalColumn.STATUS,
        "amount usd": CanonicalColumn.AMOUNT_USD,
        "amount": CanonicalColumn.AMOUNT_USD,
        "card": CanonicalColumn.CARD,
        "card number": CanonicalColumn.CARD,
        "card holder name": CanonicalColumn.CARD_HOLDER_NAME,
        "cardholder": CanonicalColumn.CARD_HOLDER_NAME,
        "cardholder name": CanonicalColumn.CARD_HOLDER_NAME,
        "original amount": CanonicalColumn.ORIGINAL_AMOUNT,
        "original currency": CanonicalColumn.ORIGINAL_CURRENCY,
        "currency": CanonicalColumn.ORIGINAL_CURRENCY,
        "cashback earned": CanonicalColumn.CASHBACK_EARNED,
        "cashback": CanonicalColumn.CASHBACK_EARNED,
        "rewards": CanonicalColumn.CASHBACK_EARNED,
        "category": CanonicalColumn.CATEGORY,
    }
)


def normalize_header(raw: str) -> str:
    """Map ``raw`` to its canonical column name, or return it unchanged."""

    canonical = HEADER_SYNONYMS.get(raw.strip().lower())
    return canonical.value if canonical is not None else raw


def normalize_headers(raw_headers: Iterable[str | None]) -> list[str]:
    """Normalize a header row; ``None`` entries become empty strings."""

    return [normalize_header(h) if h is not None else "" for h in raw_headers]


def missing_required_columns(headers: Iterable[str]) -> list[CanonicalColumn]:
    """Return required columns absent from already-normalized ``headers``.

    Order follows :data:`REQUIRED_COLUMNS` so error lists are deterministic.
    """

    present = set(headers)
    return [col for col in REQUIRED_COLUMNS if col.value not in present]


__all__ = [
    "CanonicalColumn",
    "REQUIRED_COLUMNS",
    "OPTIONAL_COLUMNS",
    "HEADER_SYNONYMS",
    "normalize_header",
    "normalize_headers",
    "missing_required_columns",
]
