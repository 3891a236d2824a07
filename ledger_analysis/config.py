"""Runtime settings read from ``LEDGER_ANALYSIS_*`` environment variables.

Entrypoints load a local ``.env`` (``python-dotenv``) before calling
:meth:`Settings.from_env`; library code takes a :class:`Settings` instance
or falls back to the defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .logging_setup import get_logger

logger = get_logger("ledger_analysis.config")

_PREFIX = "LEDGER_ANALYSIS_"


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    """Read a positive integer from the environment.

    Unset, non-numeric, or out-of-range values fall back to ``default``.
    """

    raw = os.getenv(_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("ignoring non-integer %s%s=%r", _PREFIX, name, raw)
        return default
    if value < minimum:
        logger.warning("ignoring out-of-range %s%s=%r", _PREFIX, name, raw)
        return default
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    # File acquisition: largest accepted payload, in bytes.
    max_file_bytes: int = 10 * 1024 * 1024
    # Progress is reported every ``progress_interval`` rows as a fraction of
    # ``expected_rows``, never above ``progress_cap`` until the pass ends.
    progress_interval: int = 100
    expected_rows: int = 5000
    progress_cap: int = 90
    keywords_file: Path | None = None
    categorize_workers: int = 1

    def __post_init__(self) -> None:
        for name in ("max_file_bytes", "progress_interval", "expected_rows", "categorize_workers"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if not 0 <= self.progress_cap < 100:
            raise ValueError("progress_cap must be within [0, 100)")

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        kw = os.getenv(_PREFIX + "KEYWORDS_FILE")
        cap = _env_int("PROGRESS_CAP", defaults.progress_cap, minimum=0)
        return cls(
            max_file_bytes=_env_int("MAX_FILE_BYTES", defaults.max_file_bytes),
            progress_interval=_env_int("PROGRESS_INTERVAL", defaults.progress_interval),
            expected_rows=_env_int("EXPECTED_ROWS", defaults.expected_rows),
            progress_cap=cap if cap < 100 else defaults.progress_cap,
            keywords_file=Path(kw) if kw and kw.strip() else None,
            categorize_workers=min(_env_int("CATEGORIZE_WORKERS", 1), 32),
        )


__all__ = ["Settings"]
