"""Summaries over collections of normalized transactions.

All functions are pure: they accept any iterable of
:class:`~ledger_analysis.models.Transaction`, never mutate it, and return new
value records. Money is summed as ``Decimal``; only category percentages are
floats.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, TypeAlias

from .models import (
    FALLBACK_CATEGORY,
    Category,
    CategorySummary,
    DateRange,
    DateRangeFilter,
    MonthlySummary,
    Summary,
    Transaction,
    TransactionType,
)

_ZERO = Decimal("0")

FilterLike: TypeAlias = DateRangeFilter | Mapping[str, Any] | None


@dataclass(slots=True)
class _Bucket:
    income: Decimal = _ZERO
    expense: Decimal = _ZERO
    count: int = 0

    def add(self, tx: Transaction) -> None:
        if tx.type is TransactionType.INCOME:
            self.income += tx.amount
        else:
            self.expense += tx.amount
        self.count += 1


def _as_filter(value: FilterLike) -> DateRangeFilter | None:
    if value is None or isinstance(value, DateRangeFilter):
        return value
    return DateRangeFilter.model_validate(dict(value))


def _category_key(tx: Transaction) -> str:
    cat = tx.category or FALLBACK_CATEGORY
    return cat.value if isinstance(cat, Category) else cat


def _month_key(tx: Transaction) -> str:
    return f"{tx.date.year:04d}-{tx.date.month:02d}"


def summarize(transactions: Iterable[Transaction]) -> Summary:
    """Totals, net balance, count and date range of ``transactions``."""

    bucket = _Bucket()
    start = end = None
    for tx in transactions:
        bucket.add(tx)
        if start is None or tx.date < start:
            start = tx.date
        if end is None or tx.date > end:
            end = tx.date

    return Summary(
        total_income=bucket.income,
        total_expense=bucket.expense,
        net_balance=bucket.income - bucket.expense,
        transaction_count=bucket.count,
        date_range=DateRange(start=start, end=end),
    )


def filter_by_date_range(
    transactions: Iterable[Transaction], date_filter: FilterLike
) -> list[Transaction]:
    """Keep transactions dated within the inclusive bounds of ``date_filter``.

    A missing bound is open on that side; a filter with no bounds keeps
    everything in the original order.
    """

    items = list(transactions)
    flt = _as_filter(date_filter)
    if flt is None or flt.is_empty:
        return items
    return [
        tx
        for tx in items
        if (flt.start is None or tx.date >= flt.start) and (flt.end is None or tx.date <= flt.end)
    ]


def group_by_category(transactions: Iterable[Transaction]) -> list[CategorySummary]:
    """Per-category expense totals, largest first.

    Income is ignored. Transactions without a category are counted under the
    fallback category. Ties keep first-seen order.
    """

    buckets: dict[str, _Bucket] = {}
    for tx in transactions:
        if tx.type is not TransactionType.EXPENSE:
            continue
        buckets.setdefault(_category_key(tx), _Bucket()).add(tx)

    total = sum((b.expense for b in buckets.values()), _ZERO)
    rows = [
        CategorySummary(
            category=name,
            amount=b.expense,
            percentage=float(b.expense / total * 100) if total > 0 else 0.0,
            transaction_count=b.count,
        )
        for name, b in buckets.items()
    ]
    rows.sort(key=lambda r: r.amount, reverse=True)
    return rows


def group_by_month(transactions: Iterable[Transaction]) -> list[MonthlySummary]:
    """Income, expense and balance per ``YYYY-MM``, oldest month first."""

    buckets: dict[str, _Bucket] = {}
    for tx in transactions:
        buckets.setdefault(_month_key(tx), _Bucket()).add(tx)

    return [
        MonthlySummary(
            month=month,
            income=b.income,
            expense=b.expense,
            balance=b.income - b.expense,
            transaction_count=b.count,
        )
        for month, b in sorted(buckets.items())
    ]


def top_categories(transactions: Iterable[Transaction], limit: int = 5) -> list[CategorySummary]:
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return group_by_category(transactions)[:limit]


def summarize_filtered(
    transactions: Iterable[Transaction], date_filter: FilterLike = None
) -> Summary:
    """:func:`summarize` after :func:`filter_by_date_range`."""

    return summarize(filter_by_date_range(transactions, date_filter))


__all__ = [
    "summarize",
    "filter_by_date_range",
    "group_by_category",
    "group_by_month",
    "top_categories",
    "summarize_filtered",
]
