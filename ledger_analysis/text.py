"""Text normalization used for keyword matching and header detection."""

from __future__ import annotations

import re
import unicodedata

_WS_RE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Lower-case ``text``, strip diacritics, and collapse whitespace.

    ``"  Energia   Elétrica "`` becomes ``"energia eletrica"``. The function
    is idempotent and returns ``""`` for empty or ``None`` input.
    """

    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WS_RE.sub(" ", stripped).strip()


__all__ = ["normalize_text"]
