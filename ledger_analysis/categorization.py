"""Keyword categorization engine.

Decision procedure for one description:

1. Empty/blank input -> fallback category, confidence 0, ``none``.
2. Normalize. Every category whose exact-match set contains the normalized
   text is an *exact* candidate.
3. Only when there is no exact candidate, every keyword occurring as a
   substring of the normalized text yields a *partial* candidate.
4. Candidates are ranked: exact before partial, then longer keyword first,
   then higher category priority. The first one wins.

Confidence comes from :class:`ConfidencePolicy`; by default an exact match
scores 100 and a partial match ``60 + min(2 * len(keyword), 35)``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .categories import KeywordTable
from .models import (
    FALLBACK_CATEGORY,
    CategorizationResult,
    Category,
    MatchType,
    Transaction,
)
from .pmap import p_map
from .text import normalize_text

# Highest score a partial match may reach.
PARTIAL_CEILING = 95.0


@dataclass(frozen=True, slots=True)
class ConfidencePolicy:
    """Scoring constants for categorization decisions.

    The partial-match score is ``partial_base + min(per_char * len(keyword),
    max_bonus)``. It never exceeds :data:`PARTIAL_CEILING` and stays strictly
    below ``exact``.
    """

    exact: float = 100.0
    partial_base: float = 60.0
    per_char: float = 2.0
    max_bonus: float = 35.0

    def __post_init__(self) -> None:
        if not 0 <= self.exact <= 100:
            raise ValueError("exact confidence must be within [0, 100]")
        if self.partial_base < 0 or self.per_char < 0 or self.max_bonus < 0:
            raise ValueError("partial confidence parameters must be non-negative")
        if self.partial_base + self.max_bonus > PARTIAL_CEILING:
            raise ValueError(f"partial confidence must not exceed {PARTIAL_CEILING:g}")
        if self.partial_base + self.max_bonus >= self.exact:
            raise ValueError("partial confidence must stay below exact confidence")

    def score(self, match_type: MatchType, keyword_length: int = 0) -> float:
        if match_type is MatchType.EXACT:
            return self.exact
        if match_type is MatchType.PARTIAL:
            return self.partial_base + min(keyword_length * self.per_char, self.max_bonus)
        return 0.0


@dataclass(frozen=True, slots=True)
class _Candidate:
    category: Category
    match_type: MatchType
    keyword: str
    priority: int

    def rank_key(self) -> tuple[int, int, int]:
        # Sorted ascending, so negate the "bigger is better" components.
        return (
            0 if self.match_type is MatchType.EXACT else 1,
            -len(self.keyword),
            -self.priority,
        )


_NO_MATCH = CategorizationResult(
    category=FALLBACK_CATEGORY, confidence=0.0, match_type=MatchType.NONE
)


class CategorizationEngine:
    """Assign categories to free-text descriptions using a :class:`KeywordTable`.

    The engine owns no state besides the table and policy it was built with;
    registering keywords on the engine forwards to that table.
    """

    def __init__(
        self,
        table: KeywordTable | None = None,
        policy: ConfidencePolicy | None = None,
    ) -> None:
        self.table = table if table is not None else KeywordTable.default()
        self.policy = policy if policy is not None else ConfidencePolicy()

    def _candidates(self, normalized: str) -> list[_Candidate]:
        table = self.table
        exact = [
            _Candidate(cat, MatchType.EXACT, normalized, table.priority(cat))
            for cat in table.categories()
            if table.is_exact(cat, normalized)
        ]
        if exact:
            return exact
        return [
            _Candidate(cat, MatchType.PARTIAL, keyword, table.priority(cat))
            for cat, keyword in table.iter_keywords()
            if keyword in normalized
        ]

    def categorize(self, description: str | None) -> CategorizationResult:
        if not description or not description.strip():
            return _NO_MATCH

        candidates = self._candidates(normalize_text(description))
        if not candidates:
            return _NO_MATCH

        best = min(candidates, key=_Candidate.rank_key)
        return CategorizationResult(
            category=best.category,
            confidence=self.policy.score(best.match_type, len(best.keyword)),
            match_type=best.match_type,
            matched_keyword=best.keyword,
        )

    def categorize_batch(
        self, descriptions: Iterable[str], *, concurrency: int = 1
    ) -> list[CategorizationResult]:
        """Categorize each description, preserving input order.

        With ``concurrency > 1`` the calls are spread over a thread pool; the
        results are identical to the serial path.
        """

        if concurrency <= 1:
            return [self.categorize(d) for d in descriptions]
        return p_map(descriptions, self.categorize, concurrency=concurrency)

    def categorize_transactions(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Return copies of ``transactions`` with ``category`` assigned."""

        return [t.with_category(self.categorize(t.description).category) for t in transactions]

    # Delegates to the owned table.

    def register_keyword(self, category: str | Category, keyword: str) -> None:
        self.table.register_keyword(category, keyword)

    def get_keywords(self, category: str | Category) -> list[str]:
        return self.table.get_keywords(category)

    def get_all_mappings(self) -> dict[Category, list[str]]:
        return self.table.get_all_mappings()


__all__ = ["ConfidencePolicy", "CategorizationEngine"]
