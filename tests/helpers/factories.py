"""Builders for transactions and CSV snippets used across the test suite."""

from __future__ import annotations

import textwrap
from datetime import UTC, datetime
from decimal import Decimal

from spend_analytics import Transaction

HEADER = (
    "timestamp,type,description,status,amount USD,card,card holder name,"
    "original amount,original currency,cashback earned,category"
)


def dedent_csv(s: str) -> str:
    # Keep internal newlines, but normalize indentation for readability.
    return textwrap.dedent(s).lstrip("\n")


def make_tx(
    day: str = "2024-01-15",
    amount: str = "10.00",
    *,
    category: str = "Dining",
    description: str = "Coffee Shop",
    cashback: str | None = None,
    card: str = "1234",
) -> Transaction:
    ts = datetime.fromisoformat(day)
    return Transaction(
        timestamp=ts.replace(tzinfo=UTC) if ts.tzinfo is None else ts.astimezone(UTC),
        type="purchase",
        description=description,
        status="completed",
        amount_usd=Decimal(amount),
        card=card,
        card_holder_name="Jane Doe",
        cashback_earned=Decimal(cashback) if cashback is not None else None,
        category=category,
    )
