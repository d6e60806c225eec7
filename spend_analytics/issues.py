"""Error and warning taxonomy reported by ingestion.

Every problem found while reading an upload is data, not an exception. The
kinds below are closed sets; callers may switch on them exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from .models import Transaction


class IngestErrorKind(StrEnum):
    MISSING_COLUMN = "MISSING_COLUMN"
    INVALID_DATA_TYPE = "INVALID_DATA_TYPE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    EMPTY_FILE = "EMPTY_FILE"


class IngestWarningKind(StrEnum):
    MISSING_CATEGORY = "MISSING_CATEGORY"
    MISSING_OPTIONAL_FIELD = "MISSING_OPTIONAL_FIELD"
    LARGE_TRANSACTION = "LARGE_TRANSACTION"
    # Only emitted when ``IngestConfig.detect_duplicates`` is enabled.
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"


@dataclass(frozen=True, slots=True)
class IngestError:
    """A file-level or row-level failure.

    ``row`` is the 1-based line number in the source file (the header is line
    1) and is ``None`` for file-level errors. ``column`` names the canonical
    column involved, when there is one.
    """

    kind: IngestErrorKind
    message: str
    row: int | None = None
    column: str | None = None


@dataclass(frozen=True, slots=True)
class IngestWarning:
    """A non-blocking notice. ``row`` is 0 for file-level advisories."""

    kind: IngestWarningKind
    message: str
    row: int = 0


@dataclass(frozen=True, slots=True)
class IngestResult:
    transactions: tuple[Transaction, ...] = ()
    errors: tuple[IngestError, ...] = ()
    warnings: tuple[IngestWarning, ...] = ()
    rows_read: int = field(default=0, compare=False)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def rejected(self) -> bool:
        """True when nothing usable came out of the upload."""

        return bool(self.errors) and not self.transactions


__all__ = [
    "IngestErrorKind",
    "IngestWarningKind",
    "IngestError",
    "IngestWarning",
    "IngestResult",
]
