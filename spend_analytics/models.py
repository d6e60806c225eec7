"""Data models and type aliases for ``spend_analytics``.

``Transaction`` is the canonical record produced by ingestion. Everything
downstream (aggregates, filtered views, exports) is derived from a sequence of
transactions and never mutates it.

Money is carried as :class:`~decimal.Decimal` end to end so that sums stay
exact to the cent; ratios (percent of total, month-over-month change) are
plain ``float``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TypeAlias

UNCATEGORIZED = "Uncategorized"
"""Category assigned at parse time when the source row has none."""


# ---------------------------------------------------------------------------
# Core record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single validated card transaction.

    Attributes
    ----------
    timestamp:
        Timezone-aware UTC datetime. Date-only inputs land at midnight UTC.
    amount_usd:
        Amount in the reporting currency. Negative values are refunds or
        credits; there is no upper bound.
    original_amount, original_currency:
        Foreign-currency details when the card was charged in another
        currency. Either may be present without the other.
    cashback_earned:
        Rewards credited for the purchase; ``None`` counts as zero.
    category:
        Never blank. Missing source categories become :data:`UNCATEGORIZED`.
    """

    timestamp: datetime
    type: str
    description: str
    status: str
    amount_usd: Decimal
    card: str
    card_holder_name: str
    original_amount: Decimal | None = None
    original_currency: str | None = None
    cashback_earned: Decimal | None = None
    category: str = UNCATEGORIZED

    @property
    def cashback_or_zero(self) -> Decimal:
        return self.cashback_earned if self.cashback_earned is not None else Decimal(0)


Transactions: TypeAlias = Sequence[Transaction]
"""Any ordered, re-iterable collection of transactions."""


# ---------------------------------------------------------------------------
# Derived aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    """Aggregate amount for one category within a single aggregation call.

    ``percentage_of_total`` is relative to the signed sum passed to the
    aggregator, so refunds can push it above 100 or below 0.
    """

    name: str
    total_amount: Decimal
    transaction_count: int
    percentage_of_total: float

    @property
    def average_transaction(self) -> Decimal:
        return self.total_amount / self.transaction_count


@dataclass(frozen=True, slots=True)
class SummaryStatistics:
    total_transactions: int
    date_range_start: datetime | None
    date_range_end: datetime | None
    total_spending: Decimal
    total_cashback: Decimal
    net_spending: Decimal
    unique_categories: int


@dataclass(frozen=True, slots=True)
class TimePeriod:
    """One calendar-month bucket.

    ``period_start``/``period_end`` are the earliest and latest timestamps
    actually observed in the month, not the calendar boundaries.
    """

    period_label: str
    period_start: datetime
    period_end: datetime
    total_spending: Decimal
    transaction_count: int
    average_transaction: Decimal
    category_breakdown: tuple[CategoryTotal, ...] | None = None


@dataclass(frozen=True, slots=True)
class SpendingTrend:
    """A monthly period paired with its change versus the previous month."""

    period: TimePeriod
    month_over_month_change: float

    @property
    def period_label(self) -> str:
        return self.period.period_label

    @property
    def total_spending(self) -> Decimal:
        return self.period.total_spending


__all__ = [
    "UNCATEGORIZED",
    "Transaction",
    "Transactions",
    "CategoryTotal",
    "SummaryStatistics",
    "TimePeriod",
    "SpendingTrend",
]
