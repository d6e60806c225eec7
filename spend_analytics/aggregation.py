"""Aggregation engine: pure reducers over a transaction collection.

Every function here reads its input once or twice, never mutates it, and
returns fresh objects, so repeated calls on the same input give equal
results. Empty input is valid and yields empty/zero results.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from decimal import Decimal

from .logging_setup import get_logger
from .models import (
    CategoryTotal,
    SpendingTrend,
    SummaryStatistics,
    TimePeriod,
    Transaction,
    Transactions,
)

logger = get_logger(__name__)

# English month abbreviations for period labels.
_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_ZERO = Decimal(0)


def _percent(part: Decimal, whole: Decimal) -> float:
    if whole == 0:
        return 0.0
    return float(part / whole * 100)


def _group_by_category(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    # dicts keep first-encounter order, which breaks sort ties downstream.
    groups: dict[str, list[Transaction]] = {}
    for tx in transactions:
        groups.setdefault(tx.category, []).append(tx)
    return groups


def _ranked_totals(
    groups: dict[str, list[Transaction]],
    value: Callable[[Transaction], Decimal],
) -> list[CategoryTotal]:
    totals = {name: sum((value(tx) for tx in txs), _ZERO) for name, txs in groups.items()}
    base = sum(totals.values(), _ZERO)
    rows = [
        CategoryTotal(
            name=name,
            total_amount=total,
            transaction_count=len(groups[name]),
            percentage_of_total=_percent(total, base),
        )
        for name, total in totals.items()
        if total != 0
    ]
    # ``sorted`` is stable with ``reverse=True``: ties keep encounter order.
    return sorted(rows, key=lambda c: c.total_amount, reverse=True)


# ---------------------------------------------------------------------------
# Category views
# ---------------------------------------------------------------------------


def calculate_categories(transactions: Transactions) -> list[CategoryTotal]:
    """Sum ``amount_usd`` per category, largest first.

    Percentages are relative to the signed sum of *all* input amounts, so a
    refund-heavy dataset can produce values above 100 or below 0. Categories
    whose amounts sum to exactly zero are omitted.
    """

    result = _ranked_totals(_group_by_category(transactions), lambda tx: tx.amount_usd)
    logger.debug("aggregated %d transactions into %d categories", len(transactions), len(result))
    return result


def calculate_net_spending_by_category(transactions: Transactions) -> list[CategoryTotal]:
    """Like :func:`calculate_categories` but each value is spending minus cashback."""

    return _ranked_totals(
        _group_by_category(transactions),
        lambda tx: tx.amount_usd - tx.cashback_or_zero,
    )


def top_categories(transactions: Transactions, limit: int = 5) -> list[CategoryTotal]:
    if limit < 0:
        raise ValueError("limit must be non-negative")
    return calculate_categories(transactions)[:limit]


def calculate_average_by_category(transactions: Transactions) -> dict[str, Decimal]:
    """Mean ``amount_usd`` per category, including zero-sum categories."""

    return {
        name: sum((tx.amount_usd for tx in txs), _ZERO) / len(txs)
        for name, txs in _group_by_category(transactions).items()
    }


def calculate_cashback_by_category(transactions: Transactions) -> dict[str, Decimal]:
    return {
        name: sum((tx.cashback_or_zero for tx in txs), _ZERO)
        for name, txs in _group_by_category(transactions).items()
    }


# ---------------------------------------------------------------------------
# Dataset summary
# ---------------------------------------------------------------------------


def calculate_summary_statistics(transactions: Transactions) -> SummaryStatistics:
    if not transactions:
        return SummaryStatistics(
            total_transactions=0,
            date_range_start=None,
            date_range_end=None,
            total_spending=_ZERO,
            total_cashback=_ZERO,
            net_spending=_ZERO,
            unique_categories=0,
        )

    total_spending = sum((tx.amount_usd for tx in transactions), _ZERO)
    total_cashback = sum((tx.cashback_or_zero for tx in transactions), _ZERO)
    return SummaryStatistics(
        total_transactions=len(transactions),
        date_range_start=min(tx.timestamp for tx in transactions),
        date_range_end=max(tx.timestamp for tx in transactions),
        total_spending=total_spending,
        total_cashback=total_cashback,
        net_spending=total_spending - total_cashback,
        unique_categories=len({tx.category for tx in transactions}),
    )


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


def calculate_time_periods(
    transactions: Transactions, *, include_breakdown: bool = False
) -> list[TimePeriod]:
    """Bucket transactions by calendar month (UTC), oldest month first.

    When ``include_breakdown`` is set each period also carries
    :func:`calculate_categories` for just that month.
    """

    buckets: dict[tuple[int, int], list[Transaction]] = {}
    for tx in transactions:
        buckets.setdefault((tx.timestamp.year, tx.timestamp.month), []).append(tx)

    periods: list[TimePeriod] = []
    for (year, month), txs in buckets.items():
        total = sum((tx.amount_usd for tx in txs), _ZERO)
        count = len(txs)
        periods.append(
            TimePeriod(
                period_label=f"{_MONTH_ABBR[month - 1]} {year}",
                period_start=min(tx.timestamp for tx in txs),
                period_end=max(tx.timestamp for tx in txs),
                total_spending=total,
                transaction_count=count,
                average_transaction=total / count if count else _ZERO,
                category_breakdown=tuple(calculate_categories(txs)) if include_breakdown else None,
            )
        )
    periods.sort(key=lambda p: p.period_start)
    logger.debug("bucketed %d transactions into %d months", len(transactions), len(periods))
    return periods


def calculate_spending_trends(transactions: Transactions) -> list[SpendingTrend]:
    """Monthly periods with percent change versus the previous month.

    The first month, and any month following a zero-total month, reports 0.
    """

    trends: list[SpendingTrend] = []
    previous: TimePeriod | None = None
    for period in calculate_time_periods(transactions):
        change = 0.0
        if previous is not None and previous.total_spending != 0:
            change = float(
                (period.total_spending - previous.total_spending) / previous.total_spending * 100
            )
        trends.append(SpendingTrend(period=period, month_over_month_change=change))
        previous = period
    return trends


__all__ = [
    "calculate_average_by_category",
    "calculate_cashback_by_category",
    "calculate_categories",
    "calculate_net_spending_by_category",
    "calculate_spending_trends",
    "calculate_summary_statistics",
    "calculate_time_periods",
    "top_categories",
]
