"""Ingestion orchestrator: CSV text in, :class:`IngestionResult` out.

A single synchronous pass over the data rows in textual order. Every row
offered to the parser ends up either in ``transactions`` or counted in
``skipped_rows``; rows that raised also leave a ``"Row <n>: <message>"``
entry in ``errors`` (``n`` is 1-based over data rows). Blank lines are not
offered to the parser.

Whole-file failures are raised instead of returned:

- an undecodable payload or a CSV stream the reader cannot tokenize raises
  :class:`~ledger_analysis.errors.IngestionError`;
- a header matching no dialect raises
  :class:`~ledger_analysis.errors.UnknownDialectError` before any row is read.
"""

from __future__ import annotations

import csv
from collections.abc import Callable, Iterator
from typing import TypeAlias
from io import StringIO
from os import PathLike
from pathlib import Path

from .categorization import CategorizationEngine
from .config import Settings
from .dialects import Dialect, detect_dialect, header_key
from .errors import FileValidationError, IngestionError, UnknownDialectError
from .logging_setup import get_logger
from .models import IngestionResult, Transaction
from .normalizers import parser_for

logger = get_logger("ledger_analysis.ingest")

ProgressCallback: TypeAlias = Callable[[float], None]


class _Progress:
    """Heuristic progress for a scan whose total length is unknown.

    Reports ``min(cap, rows / expected_rows * 100)`` every ``interval`` rows
    and exactly one final ``100`` from :meth:`finish`.
    """

    __slots__ = ("_callback", "_interval", "_expected", "_cap", "_last")

    def __init__(self, callback: ProgressCallback | None, settings: Settings) -> None:
        self._callback = callback
        self._interval = settings.progress_interval
        self._expected = settings.expected_rows
        self._cap = float(settings.progress_cap)
        self._last = 0.0

    def row_done(self, rows: int) -> None:
        if self._callback is None or rows % self._interval:
            return
        value = max(self._last, min(self._cap, rows / self._expected * 100))
        self._last = value
        self._callback(value)

    def finish(self) -> None:
        if self._callback is not None:
            self._callback(100.0)


def _iter_rows(csv_text: str) -> Iterator[dict[str, str | None]]:
    """Yield data rows keyed by folded header names.

    Columns beyond the header (``DictReader``'s ``None`` key) are dropped.
    """

    reader = csv.DictReader(StringIO(csv_text.lstrip("\ufeff").lstrip()))
    if reader.fieldnames is None:
        return
    reader.fieldnames = [header_key(f) for f in reader.fieldnames]
    for row in reader:
        yield {k: v for k, v in row.items() if k is not None}


def decode_payload(data: bytes) -> str:
    """Decode a UTF-8 payload (a leading BOM is tolerated)."""

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise IngestionError(f"file is not valid UTF-8 text: {exc}") from exc


def ingest(
    csv_text: str,
    on_progress: ProgressCallback | None = None,
    *,
    dialect: Dialect | str | None = None,
    engine: CategorizationEngine | None = None,
    settings: Settings | None = None,
    id_factory: Callable[[], str] | None = None,
) -> IngestionResult:
    """Parse, normalize, and categorize every data row of ``csv_text``.

    ``dialect`` skips detection when given. ``engine`` defaults to a fresh
    engine over the built-in keyword table.
    """

    settings = settings or Settings()
    if dialect is None:
        dialect = detect_dialect(csv_text)
        if dialect is Dialect.UNKNOWN:
            raise UnknownDialectError(
                "Unrecognized file format: expected a Nubank or Inter CSV export"
            )
    parser = parser_for(dialect, engine, id_factory=id_factory)
    logger.info("ingesting %s export", parser.source.value)

    transactions: list[Transaction] = []
    errors: list[str] = []
    skipped = 0
    total = 0
    progress = _Progress(on_progress, settings)

    try:
        for row in _iter_rows(csv_text):
            total += 1
            try:
                tx = parser.parse_row(row)
            except ValueError as exc:
                skipped += 1
                errors.append(f"Row {total}: {exc}")
                logger.debug("row %d rejected: %s", total, exc)
            else:
                if tx is None:
                    skipped += 1
                else:
                    transactions.append(tx)
            progress.row_done(total)
    except csv.Error as exc:
        raise IngestionError(f"CSV stream could not be read near row {total + 1}: {exc}") from exc

    progress.finish()
    logger.info(
        "ingested %d of %d row(s): %d skipped, %d error(s)",
        len(transactions),
        total,
        skipped,
        len(errors),
    )
    return IngestionResult(
        transactions=tuple(transactions),
        errors=tuple(errors),
        skipped_rows=skipped,
        total_rows=total,
        dialect=Dialect(dialect).value,
    )


def ingest_bytes(
    data: bytes,
    on_progress: ProgressCallback | None = None,
    **kwargs,
) -> IngestionResult:
    """Decode ``data`` and :func:`ingest` it. Decoding failures are fatal."""

    return ingest(decode_payload(data), on_progress, **kwargs)


def validate_csv_file(path: str | PathLike[str], *, max_bytes: int) -> Path:
    """Reject files a user should not have been able to submit.

    Checks the ``.csv`` extension, that the file exists and is non-empty, and
    that it is at most ``max_bytes`` long.
    """

    p = Path(path)
    if p.suffix.lower() != ".csv":
        raise FileValidationError(f"Invalid file type: expected a .csv file, got {p.name!r}")
    try:
        size = p.stat().st_size
    except FileNotFoundError:
        raise FileValidationError(f"File not found: {p}") from None
    if size == 0:
        raise FileValidationError(f"File is empty: {p}")
    if size > max_bytes:
        raise FileValidationError(f"File too large: {size} bytes (max {max_bytes})")
    return p


def load_csv_file(
    path: str | PathLike[str],
    on_progress: ProgressCallback | None = None,
    *,
    engine: CategorizationEngine | None = None,
    settings: Settings | None = None,
) -> IngestionResult:
    """Validate, read, decode and ingest a CSV file from disk."""

    settings = settings or Settings()
    p = validate_csv_file(path, max_bytes=settings.max_file_bytes)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise IngestionError(f"could not read {p}: {exc}") from exc
    return ingest_bytes(data, on_progress, engine=engine, settings=settings)


__all__ = [
    "ProgressCallback",
    "decode_payload",
    "ingest",
    "ingest_bytes",
    "validate_csv_file",
    "load_csv_file",
]
