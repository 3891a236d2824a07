"""Value records shared across ingestion, categorization and aggregation.

Records produced by parsing and categorization (``Transaction``,
``CategorizationResult``, ``IngestionResult``) are frozen dataclasses so they
stay cheap to build in the per-row hot path. Aggregation outputs (``Summary``,
``CategorySummary``, ``MonthlySummary``) and the ``DateRangeFilter`` input are
frozen pydantic models: they cross the boundary to the presentation layer and
are serialized with ``model_dump(mode="json")``.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class BankSource(StrEnum):
    """Bank export a transaction was parsed from."""

    NUBANK = "nubank"
    INTER = "inter"


class MatchType(StrEnum):
    EXACT = "exact"
    PARTIAL = "partial"
    NONE = "none"


class Category(StrEnum):
    """Closed set of spending categories. ``OUTROS`` is the fallback."""

    ALIMENTACAO = "Alimentação"
    TRANSPORTE = "Transporte"
    MORADIA = "Moradia"
    LAZER = "Lazer"
    SAUDE = "Saúde"
    EDUCACAO = "Educação"
    COMPRAS = "Compras"
    SERVICOS = "Serviços"
    TRANSFERENCIAS = "Transferências"
    OUTROS = "Outros"


FALLBACK_CATEGORY = Category.OUTROS


# ---------------------------------------------------------------------------
# Ingestion records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single normalized ledger entry.

    ``amount`` is never negative; the direction of money lives only in
    ``type``. ``category`` is ``None`` only before categorization has run.
    """

    id: str
    date: dt.date
    description: str
    amount: Decimal
    type: TransactionType
    source: BankSource
    category: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("Transaction.id must be a non-empty string")
        # datetime is a date subclass; a time component has no meaning here.
        if not isinstance(self.date, dt.date) or isinstance(self.date, dt.datetime):
            raise ValueError("Transaction.date must be a datetime.date")
        if not isinstance(self.description, str) or not self.description.strip():
            raise ValueError("Transaction.description must be non-empty")
        if self.description != self.description.strip():
            raise ValueError("Transaction.description must be trimmed")
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise ValueError("Transaction.amount must be a finite Decimal")
        if self.amount < 0:
            raise ValueError("Transaction.amount must be >= 0")
        if not isinstance(self.type, TransactionType):
            raise ValueError(f"Transaction.type must be a TransactionType, got {self.type!r}")
        if not isinstance(self.source, BankSource):
            raise ValueError(f"Transaction.source must be a BankSource, got {self.source!r}")

    def with_category(self, category: str | None) -> Transaction:
        return replace(self, category=category)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": str(self.amount),
            "type": self.type.value,
            "category": self.category,
            "source": self.source.value,
        }


def validate_transaction(obj: object) -> bool:
    """Return True when ``obj`` is a well-formed :class:`Transaction`.

    Construction already enforces the invariants; this predicate exists for
    callers holding objects of unknown provenance.
    """

    if not isinstance(obj, Transaction):
        return False
    try:
        Transaction.__post_init__(obj)
    except ValueError:
        return False
    return True


@dataclass(frozen=True, slots=True)
class CategorizationResult:
    category: Category
    confidence: float
    match_type: MatchType
    matched_keyword: str | None = None


@dataclass(frozen=True, slots=True)
class IngestionResult:
    """Outcome of one ingestion pass.

    ``transactions`` keeps input row order. Every offered row is either a
    success or a skip, so ``total_rows == len(transactions) + skipped_rows``.
    """

    transactions: tuple[Transaction, ...] = ()
    errors: tuple[str, ...] = ()
    skipped_rows: int = 0
    total_rows: int = 0
    dialect: str | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "errors": list(self.errors),
            "skippedRows": self.skipped_rows,
            "totalRows": self.total_rows,
            "dialect": self.dialect,
        }


# ---------------------------------------------------------------------------
# Aggregation DTOs
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    start: dt.date | None = None
    end: dt.date | None = None


class DateRangeFilter(BaseModel):
    """Inclusive date bounds; an omitted bound leaves that side open."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: dt.date | None = None
    end: dt.date | None = None

    @model_validator(mode="after")
    def _ordered(self) -> DateRangeFilter:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


class Summary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    transaction_count: int
    date_range: DateRange


class CategorySummary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str
    amount: Decimal
    # Share of total expense, 0-100.
    percentage: float
    transaction_count: int


class MonthlySummary(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # "YYYY-MM"
    month: str
    income: Decimal
    expense: Decimal
    balance: Decimal
    transaction_count: int


__all__ = [
    "TransactionType",
    "BankSource",
    "MatchType",
    "Category",
    "FALLBACK_CATEGORY",
    "Transaction",
    "validate_transaction",
    "CategorizationResult",
    "IngestionResult",
    "DateRange",
    "DateRangeFilter",
    "Summary",
    "CategorySummary",
    "MonthlySummary",
]
