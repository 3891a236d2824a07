"""Bank export dialects and header-based detection.

Each dialect declares the logical fields it needs as :class:`FieldSpec`
entries. A field lists its accepted column spellings in priority order, so a
row lookup is a tagged search over known synonyms rather than a chain of
optional accesses.

Header keys are compared after :func:`header_key` folding (NFC, trimmed,
quotes removed, lower-cased). Accents are kept: ``descrição`` and
``descricao`` are distinct spellings and both are listed where accepted.
"""

from __future__ import annotations

import csv
import unicodedata
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum


class Dialect(StrEnum):
    NUBANK = "nubank"
    INTER = "inter"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """A logical field and the column names accepted for it, best first."""

    name: str
    synonyms: tuple[str, ...]

    def lookup(self, row: Mapping[str, str | None]) -> str | None:
        """Return the first non-blank value among the synonyms, trimmed."""

        for key in self.synonyms:
            value = row.get(key)
            if value is None:
                continue
            text = value.strip()
            if text:
                return text
        return None

    def present_in(self, columns: Iterable[str]) -> bool:
        cols = set(columns)
        return any(s in cols for s in self.synonyms)


DATE = FieldSpec("date", ("data",))
AMOUNT = FieldSpec("amount", ("valor",))
NUBANK_DESCRIPTION = FieldSpec("description", ("descricao",))
INTER_DESCRIPTION = FieldSpec("description", ("descrição", "descricao"))
TYPE = FieldSpec("type", ("tipo",))

NUBANK_FIELDS: tuple[FieldSpec, ...] = (DATE, NUBANK_DESCRIPTION, AMOUNT, TYPE)
INTER_FIELDS: tuple[FieldSpec, ...] = (DATE, INTER_DESCRIPTION, AMOUNT)

# Checked in order; the first complete signature wins.
SIGNATURES: tuple[tuple[Dialect, tuple[FieldSpec, ...]], ...] = (
    (Dialect.NUBANK, NUBANK_FIELDS),
    (Dialect.INTER, INTER_FIELDS),
)


def header_key(name: str | None) -> str:
    if name is None:
        return ""
    return unicodedata.normalize("NFC", name.lstrip("\ufeff")).replace('"', "").strip().lower()


def _first_line(csv_text: str) -> str:
    text = csv_text.lstrip("\ufeff").strip()
    if not text:
        return ""
    return text.splitlines()[0]


def header_columns(csv_text: str) -> list[str]:
    """Return the folded column names of the first line of ``csv_text``."""

    line = _first_line(csv_text)
    if not line:
        return []
    fields = next(csv.reader([line]), [])
    return [header_key(f) for f in fields]


def detect_dialect(csv_text: str) -> Dialect:
    """Classify ``csv_text`` by its header line alone.

    Data rows are never inspected. A header satisfying more than one
    signature resolves to the first in :data:`SIGNATURES` (Nubank).
    """

    columns = header_columns(csv_text)
    if not columns:
        return Dialect.UNKNOWN
    for dialect, fields in SIGNATURES:
        if all(f.present_in(columns) for f in fields):
            return dialect
    return Dialect.UNKNOWN


__all__ = [
    "Dialect",
    "FieldSpec",
    "NUBANK_FIELDS",
    "INTER_FIELDS",
    "SIGNATURES",
    "header_key",
    "header_columns",
    "detect_dialect",
]
