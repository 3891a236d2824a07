"""CLI for the ``ledger_analysis`` package.

Command handlers (``cmd_*``) return a process exit code and write results to
stdout and errors to stderr; the Typer app below is a thin wrapper around
them. Settings are read from the environment after a local ``.env`` has been
loaded with ``python-dotenv``.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .aggregation import (
    filter_by_date_range,
    group_by_month,
    summarize,
    summarize_filtered,
    top_categories,
)
from .categories import KeywordTable
from .categorization import CategorizationEngine
from .config import Settings
from .dialects import Dialect, detect_dialect
from .errors import FileValidationError, IngestionError
from .ingest import decode_payload, load_csv_file, validate_csv_file
from .logging_setup import configure_logging
from .models import DateRangeFilter, IngestionResult, Summary

# Failures reported as "Error: ..." with exit code 1. Validation, dialect and
# file errors are all ValueError subclasses.
_USER_ERRORS = (ValueError, IngestionError)


# ---- Small module-level helpers used by CLI commands -------------------------


def _fmt_money(value: Decimal) -> str:
    return f"{value:,.2f}"


def _build_engine(settings: Settings, keywords: Path | None) -> CategorizationEngine:
    """Default keyword table plus the configured and per-invocation overrides."""

    table = KeywordTable.default()
    for path in (settings.keywords_file, keywords):
        if path is not None:
            table.load_overrides(path)
    return CategorizationEngine(table)


def _print_summary(summary: Summary) -> None:
    rng = summary.date_range
    period = f"{rng.start} .. {rng.end}" if rng.start is not None else "-"
    print(f"Period:       {period}")
    print(f"Transactions: {summary.transaction_count}")
    print(f"Income:       {_fmt_money(summary.total_income)}")
    print(f"Expense:      {_fmt_money(summary.total_expense)}")
    print(f"Net balance:  {_fmt_money(summary.net_balance)}")


def _print_ingestion(result: IngestionResult) -> None:
    print(f"Dialect:      {result.dialect}")
    print(
        f"Rows:         {result.total_rows} read, {len(result.transactions)} imported, "
        f"{result.skipped_rows} skipped"
    )
    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for msg in result.errors:
            print(f"  {msg}")


# ---- Command handlers --------------------------------------------------------


def cmd_detect(csv_path: Path, *, settings: Settings) -> int:
    """Print the dialect tag of ``csv_path``; ``unknown`` exits with 1."""

    try:
        p = validate_csv_file(csv_path, max_bytes=settings.max_file_bytes)
        dialect = detect_dialect(decode_payload(p.read_bytes()))
    except (FileValidationError, IngestionError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(dialect.value)
    return 0 if dialect is not Dialect.UNKNOWN else 1


def cmd_ingest(
    csv_path: Path,
    *,
    settings: Settings,
    keywords: Path | None = None,
    as_json: bool = False,
) -> int:
    try:
        engine = _build_engine(settings, keywords)
        result = load_csv_file(csv_path, engine=engine, settings=settings)
    except _USER_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    summary = summarize(result.transactions)
    if as_json:
        payload = result.to_dict()
        payload["summary"] = summary.model_dump(mode="json")
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    _print_ingestion(result)
    _print_summary(summary)
    return 0


def cmd_report(
    csv_path: Path,
    *,
    settings: Settings,
    start: str | None = None,
    end: str | None = None,
    top: int = 5,
    keywords: Path | None = None,
) -> int:
    """Summary, top expense categories and monthly trend for a date window."""

    try:
        date_filter = DateRangeFilter.model_validate({"start": start, "end": end})
        engine = _build_engine(settings, keywords)
        result = load_csv_file(csv_path, engine=engine, settings=settings)
    except _USER_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_summary(summarize_filtered(result.transactions, date_filter))
    window = filter_by_date_range(result.transactions, date_filter)

    print()
    print("Top categories:")
    for row in top_categories(window, limit=top):
        print(
            f"  {row.category:<16} {_fmt_money(row.amount):>14} "
            f"{row.percentage:5.1f}%  ({row.transaction_count})"
        )

    print()
    print("Monthly:")
    for m in group_by_month(window):
        print(
            f"  {m.month}  income {_fmt_money(m.income):>12}  "
            f"expense {_fmt_money(m.expense):>12}  balance {_fmt_money(m.balance):>12}"
        )
    return 0


def cmd_categorize(
    descriptions: Sequence[str],
    *,
    settings: Settings,
    keywords: Path | None = None,
) -> int:
    """Print ``category<TAB>confidence<TAB>match_type`` per description."""

    try:
        engine = _build_engine(settings, keywords)
    except _USER_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    results = engine.categorize_batch(descriptions, concurrency=settings.categorize_workers)
    for res in results:
        print(f"{res.category.value}\t{res.confidence:g}\t{res.match_type.value}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Ingest Nubank/Inter CSV exports, categorize transactions, and summarize them.",
)

KeywordsOption = Annotated[
    Path | None,
    typer.Option(
        "--keywords",
        help='JSON file of extra keywords: {"keywords": {"<category>": ["kw", ...]}}.',
        exists=True,
        dir_okay=False,
    ),
]


def _settings() -> Settings:
    return Settings.from_env()


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (overrides LEDGER_ANALYSIS_LOG_LEVEL)."),
    ] = None,
) -> None:
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from None


@app.command("detect")
def detect_cmd(csv_path: Annotated[Path, typer.Argument(help="CSV export to inspect.")]) -> None:
    """Print which bank dialect a CSV export uses."""

    raise typer.Exit(cmd_detect(csv_path, settings=_settings()))


@app.command("ingest")
def ingest_cmd(
    csv_path: Annotated[Path, typer.Argument(help="CSV export to ingest.")],
    keywords: KeywordsOption = None,
    as_json: Annotated[bool, typer.Option("--json", help="Emit the full result as JSON.")] = False,
) -> None:
    """Parse and categorize a CSV export, then print counts and totals."""

    raise typer.Exit(
        cmd_ingest(csv_path, settings=_settings(), keywords=keywords, as_json=as_json)
    )


@app.command("report")
def report_cmd(
    csv_path: Annotated[Path, typer.Argument(help="CSV export to summarize.")],
    start: Annotated[str | None, typer.Option(help="First day included (YYYY-MM-DD).")] = None,
    end: Annotated[str | None, typer.Option(help="Last day included (YYYY-MM-DD).")] = None,
    top: Annotated[int, typer.Option(min=0, help="Number of expense categories to list.")] = 5,
    keywords: KeywordsOption = None,
) -> None:
    """Print summary, top expense categories and monthly trend."""

    raise typer.Exit(
        cmd_report(
            csv_path,
            settings=_settings(),
            start=start,
            end=end,
            top=top,
            keywords=keywords,
        )
    )


@app.command("categorize")
def categorize_cmd(
    descriptions: Annotated[list[str], typer.Argument(help="Transaction descriptions.")],
    keywords: KeywordsOption = None,
) -> None:
    """Categorize free-text descriptions with the keyword table."""

    raise typer.Exit(cmd_categorize(descriptions, settings=_settings(), keywords=keywords))


if __name__ == "__main__":  # pragma: no cover
    app()
