"""Filter engine: declarative selection over a transaction collection.

A :class:`FilterSpec` holds up to four independent criteria. Active criteria
combine with AND; an empty spec selects everything. Every function returns a
new list and leaves its input untouched, so applying the same spec twice is
the same as applying it once.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, time
from decimal import Decimal
from typing import Any, NamedTuple, TypeAlias

from .logging_setup import get_logger
from .models import Transaction, Transactions

logger = get_logger(__name__)

DateBound: TypeAlias = date | datetime


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Inclusion criteria for :func:`apply_filters`.

    Attributes
    ----------
    search_term:
        Case-insensitive substring of ``description``. Empty means unset.
        A whitespace-only term still filters but is not counted by
        :func:`calculate_active_filter_count`.
    selected_categories:
        Categories to keep. Empty means no restriction, not "exclude all".
    date_range_start, date_range_end:
        Inclusive bounds. A ``date`` (or the date part of a ``datetime``) end
        bound covers the whole calendar day in UTC.
    """

    search_term: str | None = None
    selected_categories: tuple[str, ...] = field(default=())
    date_range_start: DateBound | None = None
    date_range_end: DateBound | None = None

    def __post_init__(self) -> None:
        cats = self.selected_categories
        if isinstance(cats, str):
            cats = (cats,)
        # Deduplicate while keeping the caller's order for display.
        object.__setattr__(self, "selected_categories", tuple(dict.fromkeys(cats or ())))

    @property
    def active_filter_count(self) -> int:
        return calculate_active_filter_count(self)

    @property
    def has_active_filters(self) -> bool:
        return self.active_filter_count > 0


class DateBounds(NamedTuple):
    earliest: datetime | None
    latest: datetime | None


# ---------------------------------------------------------------------------
# Bound helpers
# ---------------------------------------------------------------------------


def _start_of(bound: DateBound) -> datetime:
    if isinstance(bound, datetime):
        return bound.replace(tzinfo=UTC) if bound.tzinfo is None else bound.astimezone(UTC)
    return datetime.combine(bound, time.min, tzinfo=UTC)


def _end_of_day(bound: DateBound) -> datetime:
    if isinstance(bound, datetime):
        bound = _start_of(bound).date()
    return datetime.combine(bound, time.max, tzinfo=UTC)


def _has_search(term: str | None) -> bool:
    return bool(term and term.strip())


# ---------------------------------------------------------------------------
# Core operations
# ---------------------------------------------------------------------------


def apply_filters(transactions: Transactions, spec: FilterSpec) -> list[Transaction]:
    """Return the transactions matching every active criterion of ``spec``.

    Input order is preserved. With no active criteria the result is a
    shallow copy of ``transactions``.
    """

    needle = spec.search_term.casefold() if spec.search_term else None
    categories = frozenset(spec.selected_categories)
    start = _start_of(spec.date_range_start) if spec.date_range_start is not None else None
    end = _end_of_day(spec.date_range_end) if spec.date_range_end is not None else None

    def keep(tx: Transaction) -> bool:
        if needle is not None and needle not in tx.description.casefold():
            return False
        if categories and tx.category not in categories:
            return False
        if start is not None and tx.timestamp < start:
            return False
        if end is not None and tx.timestamp > end:
            return False
        return True

    result = [tx for tx in transactions if keep(tx)]
    logger.debug("filter kept %d of %d transactions", len(result), len(transactions))
    return result


def calculate_active_filter_count(spec: FilterSpec) -> int:
    """Count the criteria that actually restrict the selection."""

    return sum(
        (
            _has_search(spec.search_term),
            bool(spec.selected_categories),
            spec.date_range_start is not None,
            spec.date_range_end is not None,
        )
    )


def _us_date(bound: DateBound) -> str:
    d = bound.date() if isinstance(bound, datetime) else bound
    return f"{d.month}/{d.day}/{d.year}"


def describe_filters(spec: FilterSpec) -> str:
    """One-line summary for display, e.g. ``Search: "uber" | Date: 1/1/2024 - now``."""

    parts: list[str] = []
    if spec.search_term:
        parts.append(f'Search: "{spec.search_term}"')
    if spec.selected_categories:
        parts.append(f"Categories: {', '.join(spec.selected_categories)}")
    if spec.date_range_start is not None or spec.date_range_end is not None:
        start = _us_date(spec.date_range_start) if spec.date_range_start is not None else "beginning"
        end = _us_date(spec.date_range_end) if spec.date_range_end is not None else "now"
        parts.append(f"Date: {start} - {end}")
    return " | ".join(parts) if parts else "No filters applied"


def clear_filters() -> FilterSpec:
    return FilterSpec()


def update_filters(spec: FilterSpec, **changes: Any) -> FilterSpec:
    """Return a copy of ``spec`` with ``changes`` applied.

    ``active_filter_count`` is derived and cannot be passed here.
    """

    if "active_filter_count" in changes:
        raise TypeError("active_filter_count is derived and cannot be set")
    return replace(spec, **changes)


def unique_categories(transactions: Iterable[Transaction]) -> list[str]:
    """Sorted distinct categories, for populating a category selector."""

    return sorted({tx.category for tx in transactions})


def date_range_bounds(transactions: Transactions) -> DateBounds:
    if not transactions:
        return DateBounds(None, None)
    return DateBounds(
        earliest=min(tx.timestamp for tx in transactions),
        latest=max(tx.timestamp for tx in transactions),
    )


# ---------------------------------------------------------------------------
# Standalone predicates and narrow filters
# ---------------------------------------------------------------------------


def matches_search_term(tx: Transaction, term: str | None) -> bool:
    """Broader search used by quick-find: description *or* category."""

    if not _has_search(term):
        return True
    needle = term.casefold()  # type: ignore[union-attr]
    return needle in tx.description.casefold() or needle in tx.category.casefold()


def is_within_date_range(
    tx: Transaction, start: DateBound | None = None, end: DateBound | None = None
) -> bool:
    if start is not None and tx.timestamp < _start_of(start):
        return False
    if end is not None and tx.timestamp > _end_of_day(end):
        return False
    return True


def filter_by_type(transactions: Iterable[Transaction], types: Iterable[str]) -> list[Transaction]:
    wanted = {t.casefold() for t in types}
    if not wanted:
        return list(transactions)
    return [tx for tx in transactions if tx.type.casefold() in wanted]


def filter_by_status(
    transactions: Iterable[Transaction], statuses: Iterable[str]
) -> list[Transaction]:
    wanted = {s.casefold() for s in statuses}
    if not wanted:
        return list(transactions)
    return [tx for tx in transactions if tx.status.casefold() in wanted]


def filter_by_amount_range(
    transactions: Iterable[Transaction],
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
) -> list[Transaction]:
    """Keep transactions with ``min_amount <= amount_usd <= max_amount``."""

    return [
        tx
        for tx in transactions
        if (min_amount is None or tx.amount_usd >= min_amount)
        and (max_amount is None or tx.amount_usd <= max_amount)
    ]


def refunds_only(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in transactions if tx.amount_usd < 0]


def purchases_only(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [tx for tx in transactions if tx.amount_usd >= 0]


__all__ = [
    "DateBounds",
    "FilterSpec",
    "apply_filters",
    "calculate_active_filter_count",
    "clear_filters",
    "date_range_bounds",
    "describe_filters",
    "filter_by_amount_range",
    "filter_by_status",
    "filter_by_type",
    "is_within_date_range",
    "matches_search_term",
    "purchases_only",
    "refunds_only",
    "unique_categories",
    "update_filters",
]
