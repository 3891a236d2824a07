"""Category keyword table.

The built-in table maps each category of the closed set to an ordered list
of pre-normalized keywords, plus a fixed priority rank used to break ties
between equally specific matches (higher wins).

:class:`KeywordTable` is the owned, mutable configuration object handed to
:class:`~ledger_analysis.categorization.CategorizationEngine`. Registration
mutates the table in place; the read accessors return copies. The table does
no locking, so concurrent writers must be serialized by the caller.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import UnknownCategoryError
from .logging_setup import get_logger
from .models import Category
from .text import normalize_text

logger = get_logger("ledger_analysis.categories")

# ---------------------------
# Built-in table
# ---------------------------

CATEGORY_PRIORITY: Mapping[Category, int] = {
    Category.ALIMENTACAO: 10,
    Category.TRANSPORTE: 9,
    Category.SAUDE: 8,
    Category.MORADIA: 7,
    Category.LAZER: 6,
    Category.EDUCACAO: 5,
    Category.COMPRAS: 4,
    Category.SERVICOS: 3,
    Category.TRANSFERENCIAS: 2,
    Category.OUTROS: 1,
}

DEFAULT_KEYWORDS: Mapping[Category, tuple[str, ...]] = {
    Category.ALIMENTACAO: (
        # delivery
        "uber eats", "ifood", "rappi",
        # restaurants
        "restaurante", "lanchonete", "padaria", "cafeteria",
        "burger", "pizza", "sushi",
        # groceries
        "carrefour", "extra", "atta", "dia", "gleba",
        "supermercado", "mercado",
        "loja de conveniencia",
    ),
    Category.TRANSPORTE: (
        "99 taxi", "cabify", "uber", "taxi",
        "posto", "gasolina", "alcool", "combustivel",
        "shell", "ipiranga", "petrobras",
        "estacionamento", "parking",
        "onibus", "metro", "trem", "bilhete",
    ),
    Category.MORADIA: (
        "eletropaulo", "sabesp",
        "luz", "agua", "esgoto",
        "energia", "energia eletrica", "conta de luz",
        "aluguel", "condominio",
        "net fibra", "vivo fibra", "claro fibra", "tim fibra",
        "reparo", "manutencao", "encanador", "eletricista",
    ),
    Category.LAZER: (
        "cinema", "teatro", "show", "concerto",
        "jogo", "game", "psn", "xbox", "steam",
        "prime video", "disney plus", "hbo max", "hbo",
        "youtube premium",
        "academia", "personal", "crossfit",
    ),
    Category.SAUDE: (
        "hospital", "clinica", "consultorio",
        "medico", "doutor",
        "exame", "consulta",
        "drogasil", "droga raia", "raia",
        "farmacia", "drogaria",
        "plano de saude", "unimed", "bradesco saude",
        "amil", "sulamerica",
    ),
    Category.EDUCACAO: (
        "escola", "faculdade", "universidade",
        "curso online", "udemy", "coursera", "alura", "rocketseat",
        "livraria cultura", "livraria leitura",
    ),
    Category.COMPRAS: (
        "mercado livre",
        "magazine luiza", "magazine",
        "amazon", "shopee", "aliexpress",
        "zara", "h&m", "centenario", "riachuelo",
        "renner", "c&a",
        "loja", "shopping",
    ),
    Category.SERVICOS: (
        "assinatura", "mensalidade",
        "juros", "tarifa", "anuidade", "iof",
        "advogado", "contador", "consultoria",
    ),
    Category.TRANSFERENCIAS: (
        "pix transferencia", "pix para",
        "ted", "doc",
        "transferencia", "deposito", "saque",
    ),
    # Filled only by runtime registration.
    Category.OUTROS: (),
}


def resolve_category(name: str | Category) -> Category:
    """Map a category label to a :class:`Category` member.

    Accepts the exact label, the member name (``"SAUDE"``) or any spelling
    that normalizes to the same text as a label (``"saude"``, ``"SAÚDE"``).
    """

    if isinstance(name, Category):
        return name
    try:
        return Category(name)
    except ValueError:
        pass
    member = Category.__members__.get(str(name).strip().upper())
    if member is not None:
        return member
    wanted = normalize_text(str(name))
    for cat in Category:
        if normalize_text(cat.value) == wanted:
            return cat
    raise UnknownCategoryError(f"unknown category: {name!r}")


# ---------------------------
# Override file schema
# ---------------------------


class KeywordOverrides(BaseModel):
    """Schema for a JSON keyword file: ``{"keywords": {"<category>": [...]}}``."""

    model_config = ConfigDict(strict=True, extra="forbid")

    keywords: dict[str, list[str]]

    @field_validator("keywords")
    @classmethod
    def _known_categories(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for name in v:
            resolve_category(name)
        return v


# ---------------------------
# Owned table
# ---------------------------


class KeywordTable:
    """Per-category keyword lists with a derived exact-match index."""

    __slots__ = ("_keywords", "_exact", "_priority")

    def __init__(
        self,
        keywords: Mapping[Category, Iterable[str]],
        priority: Mapping[Category, int] = CATEGORY_PRIORITY,
    ) -> None:
        self._priority: dict[Category, int] = {cat: int(priority.get(cat, 0)) for cat in Category}
        self._keywords: dict[Category, list[str]] = {cat: [] for cat in Category}
        self._exact: dict[Category, set[str]] = {cat: set() for cat in Category}
        for cat, words in keywords.items():
            for word in words:
                self._add(resolve_category(cat), word)

    @classmethod
    def default(cls) -> KeywordTable:
        """Return a fresh table seeded with the built-in keywords."""

        return cls(DEFAULT_KEYWORDS, CATEGORY_PRIORITY)

    def _add(self, category: Category, keyword: str) -> str | None:
        normalized = normalize_text(keyword)
        if not normalized:
            raise ValueError("keyword must contain at least one non-space character")
        if normalized in self._exact[category]:
            return None
        self._keywords[category].append(normalized)
        self._exact[category].add(normalized)
        return normalized

    def register_keyword(self, category: str | Category, keyword: str) -> None:
        """Normalize ``keyword`` and append it to ``category``.

        Takes effect for subsequent lookups only. Keywords already present in
        the category are ignored.
        """

        cat = resolve_category(category)
        added = self._add(cat, keyword)
        if added is not None:
            logger.debug("registered keyword %r for %s", added, cat.value)

    def load_overrides(self, path: str | PathLike[str]) -> int:
        """Register every keyword from a JSON override file.

        Returns the number of keywords read. Missing, unreadable or malformed
        files raise ``ValueError`` naming the path.
        """

        p = Path(path)
        try:
            payload = json.loads(p.read_text(encoding="utf-8"))
            overrides = KeywordOverrides.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise ValueError(f"invalid keyword file {p}: {exc}") from exc

        count = 0
        for name, words in overrides.keywords.items():
            for word in words:
                self.register_keyword(name, word)
                count += 1
        logger.info("loaded %d keyword(s) from %s", count, p)
        return count

    # ---- read side ----

    def categories(self) -> tuple[Category, ...]:
        return tuple(self._keywords)

    def priority(self, category: Category) -> int:
        return self._priority[category]

    def is_exact(self, category: Category, text: str) -> bool:
        return text in self._exact[category]

    def iter_keywords(self) -> Iterable[tuple[Category, str]]:
        for cat, words in self._keywords.items():
            for word in words:
                yield cat, word

    def get_keywords(self, category: str | Category) -> list[str]:
        return list(self._keywords[resolve_category(category)])

    def get_all_mappings(self) -> dict[Category, list[str]]:
        return {cat: list(words) for cat, words in self._keywords.items()}


__all__ = [
    "CATEGORY_PRIORITY",
    "DEFAULT_KEYWORDS",
    "KeywordOverrides",
    "KeywordTable",
    "resolve_category",
]
