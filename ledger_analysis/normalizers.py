"""Row parsers turning raw CSV rows into :class:`~ledger_analysis.models.Transaction`.

One parser per bank dialect:

- :class:`NubankRowParser`: ``data,descricao,valor,tipo``. ISO dates only,
  direction taken from the ``tipo`` column (``receita``/``despesa``), amount
  sign ignored.
- :class:`InterRowParser`: ``Data,Descrição,Valor``. ``DD/MM/YYYY`` dates with
  an ISO fallback, Brazilian number grouping (``1.234,56``), direction taken
  from the amount sign.

Contract shared by both: a row missing a required value returns ``None`` (a
silent skip); a row with a present but malformed value raises
:class:`~ledger_analysis.errors.RowParseError`. Rows are expected to carry
header keys already folded by :func:`~ledger_analysis.dialects.header_key`.
"""

from __future__ import annotations

import abc
import datetime as dt
import re
import uuid
from collections.abc import Callable, Mapping
from typing import TypeAlias
from decimal import Decimal, InvalidOperation

from .categorization import CategorizationEngine
from .dialects import (
    AMOUNT,
    DATE,
    INTER_DESCRIPTION,
    INTER_FIELDS,
    NUBANK_DESCRIPTION,
    NUBANK_FIELDS,
    TYPE,
    Dialect,
    FieldSpec,
)
from .errors import RowParseError, UnknownDialectError
from .models import BankSource, Transaction, TransactionType
from .text import normalize_text

RawRow: TypeAlias = Mapping[str, str | None]

# ---------------------------------------------------------------------------
# Helpers (amount/date normalization)
# ---------------------------------------------------------------------------

_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_BR_DATE_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
# "1.234" or "12.345.678": dots used only as thousands separators.
_DOT_GROUPED_RE = re.compile(r"\d{1,3}(\.\d{3})+")
_CURRENCY_PREFIXES = ("R$", "$")


def _build_date(year: str, month: str, day: str) -> dt.date | None:
    try:
        return dt.date(int(year), int(month), int(day))
    except ValueError:
        # Shape matched but the calendar rejects it (e.g. 2024-02-30).
        return None


def _parse_iso_date(text: str) -> dt.date | None:
    m = _ISO_DATE_RE.fullmatch(text)
    if not m:
        return None
    year, month, day = m.groups()
    return _build_date(year, month, day)


def _parse_br_date(text: str) -> dt.date | None:
    m = _BR_DATE_RE.fullmatch(text)
    if m:
        day, month, year = m.groups()
        parsed = _build_date(year, month, day)
        if parsed is not None:
            return parsed
    return _parse_iso_date(text)


def _split_sign(raw: str) -> tuple[bool, str]:
    """Strip sign, currency symbol and accounting parentheses from ``raw``.

    Markers may appear in any order (``-R$ 50,00``, ``R$ -50,00``,
    ``(50,00)``); parentheses mean negative.
    """

    s = raw.replace("\u00a0", " ").strip()
    negative = False
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        for prefix in _CURRENCY_PREFIXES:
            if s.upper().startswith(prefix):
                s = s[len(prefix):].lstrip()
                changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break
    return negative, s.replace(" ", "")


def _to_decimal(raw: str, *, dot_grouping: bool) -> Decimal:
    """Parse a signed decimal accepting either ``,`` or ``.`` as the decimal mark.

    When both characters appear, the rightmost one is the decimal mark and the
    other is grouping. With ``dot_grouping`` a dot-only value shaped like
    ``1.234`` is read as thousands grouping.
    """

    negative, s = _split_sign(raw)
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")
    elif dot_grouping and _DOT_GROUPED_RE.fullmatch(s):
        s = s.replace(".", "")

    try:
        d = Decimal(s)
    except InvalidOperation:
        raise RowParseError(f"Invalid amount: {raw}") from None
    if not d.is_finite():
        raise RowParseError(f"Invalid amount: {raw}")
    return -d if negative else d


_TYPE_VOCABULARY: Mapping[str, TransactionType] = {
    "receita": TransactionType.INCOME,
    "despesa": TransactionType.EXPENSE,
}


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Dialect parsers
# ---------------------------------------------------------------------------


class RowParser(abc.ABC):
    """Base class: required-field extraction and transaction assembly."""

    source: BankSource
    fields: tuple[FieldSpec, ...] = ()

    def __init__(
        self,
        engine: CategorizationEngine | None = None,
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.engine = engine if engine is not None else CategorizationEngine()
        self._id_factory = id_factory or _new_id

    def _required(self, row: RawRow) -> dict[str, str] | None:
        values: dict[str, str] = {}
        for spec in self.fields:
            value = spec.lookup(row)
            if value is None:
                return None
            values[spec.name] = value
        return values

    def _build(
        self,
        *,
        date: dt.date,
        description: str,
        amount: Decimal,
        kind: TransactionType,
    ) -> Transaction:
        result = self.engine.categorize(description)
        return Transaction(
            id=self._id_factory(),
            date=date,
            description=description,
            amount=abs(amount),
            type=kind,
            source=self.source,
            category=result.category,
        )

    @abc.abstractmethod
    def parse_row(self, row: RawRow) -> Transaction | None:
        """Return a transaction, ``None`` for a silent skip, or raise ``RowParseError``."""


class NubankRowParser(RowParser):
    source = BankSource.NUBANK
    fields = NUBANK_FIELDS

    def parse_row(self, row: RawRow) -> Transaction | None:
        values = self._required(row)
        if values is None:
            return None

        raw_date = values[DATE.name]
        date = _parse_iso_date(raw_date)
        if date is None:
            raise RowParseError(f"Invalid date format: {raw_date}")

        amount = _to_decimal(values[AMOUNT.name], dot_grouping=False)

        raw_type = values[TYPE.name]
        kind = _TYPE_VOCABULARY.get(normalize_text(raw_type))
        if kind is None:
            raise RowParseError(f"Invalid type: {raw_type}")

        return self._build(
            date=date,
            description=values[NUBANK_DESCRIPTION.name],
            amount=amount,
            kind=kind,
        )


class InterRowParser(RowParser):
    source = BankSource.INTER
    fields = INTER_FIELDS

    def parse_row(self, row: RawRow) -> Transaction | None:
        values = self._required(row)
        if values is None:
            return None

        raw_date = values[DATE.name]
        date = _parse_br_date(raw_date)
        if date is None:
            raise RowParseError(f"Invalid date format: {raw_date}")

        amount = _to_decimal(values[AMOUNT.name], dot_grouping=True)
        kind = TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE

        return self._build(
            date=date,
            description=values[INTER_DESCRIPTION.name],
            amount=amount,
            kind=kind,
        )


PARSERS: Mapping[Dialect, type[RowParser]] = {
    Dialect.NUBANK: NubankRowParser,
    Dialect.INTER: InterRowParser,
}


def parser_for(
    dialect: Dialect | str,
    engine: CategorizationEngine | None = None,
    *,
    id_factory: Callable[[], str] | None = None,
) -> RowParser:
    """Instantiate the row parser for ``dialect``.

    ``unknown`` (or any unsupported tag) raises :class:`UnknownDialectError`.
    """

    try:
        cls = PARSERS[Dialect(dialect)]
    except (KeyError, ValueError):
        raise UnknownDialectError(f"unsupported dialect: {dialect!r}") from None
    return cls(engine, id_factory=id_factory)


__all__ = [
    "RowParser",
    "NubankRowParser",
    "InterRowParser",
    "PARSERS",
    "parser_for",
]
