"""Typed configuration for ingestion and export.

Both models are immutable pydantic models so a config can be shared between
calls without one caller's tweak leaking into another's. Invalid values are
rejected at construction time with :class:`pydantic.ValidationError`.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .headers import CanonicalColumn, normalize_header

DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_TRANSACTIONS = 10_000

# Attribute-style aliases (``amount_usd``) for the canonical header names.
_COLUMN_BY_ATTRIBUTE: dict[str, CanonicalColumn] = {c.name.lower(): c for c in CanonicalColumn}


class DateStyle(StrEnum):
    ISO = "ISO"
    US = "US"
    READABLE = "READABLE"


def default_export_filename(today: date | None = None) -> str:
    """Return the date-stamped default, e.g. ``transactions-2024-03-01.csv``."""

    return f"transactions-{(today or date.today()).isoformat()}.csv"


class IngestConfig(BaseModel):
    """Limits and switches for :func:`spend_analytics.ingest.ingest`.

    ``max_transactions`` is advisory: exceeding it adds a warning, nothing
    is dropped. ``strict_mode`` discards every transaction once any warning is raised.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_file_size_bytes: int = Field(default=DEFAULT_MAX_FILE_SIZE_BYTES, gt=0)
    max_transactions: int = Field(default=DEFAULT_MAX_TRANSACTIONS, gt=0)
    strict_mode: bool = False
    detect_duplicates: bool = False
    large_transaction_threshold: Decimal = Field(default=Decimal("10000"), ge=0)


class ExportConfig(BaseModel):
    """Shape of a CSV export.

    ``columns`` accepts canonical header names (``"amount USD"``), any known
    header synonym (``"amount"``) or attribute names (``"amount_usd"``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    columns: tuple[CanonicalColumn, ...] = tuple(CanonicalColumn)
    include_headers: bool = True
    date_format: DateStyle = DateStyle.ISO
    filename: str = Field(default_factory=default_export_filename, min_length=1)

    @field_validator("columns", mode="before")
    @classmethod
    def _resolve_column_names(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        if not isinstance(v, (list, tuple)):
            return v
        resolved: list[Any] = []
        for item in v:
            if isinstance(item, str) and not isinstance(item, CanonicalColumn):
                key = item.strip()
                item = _COLUMN_BY_ATTRIBUTE.get(key.lower(), normalize_header(key))
            resolved.append(item)
        return tuple(resolved)

    @field_validator("columns")
    @classmethod
    def _columns_non_empty_unique(
        cls, v: tuple[CanonicalColumn, ...]
    ) -> tuple[CanonicalColumn, ...]:
        if not v:
            raise ValueError("at least one export column is required")
        if len(set(v)) != len(v):
            raise ValueError("export columns must not repeat")
        return v


__all__ = [
    "DEFAULT_MAX_FILE_SIZE_BYTES",
    "DEFAULT_MAX_TRANSACTIONS",
    "DateStyle",
    "ExportConfig",
    "IngestConfig",
    "default_export_filename",
]
