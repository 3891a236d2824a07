"""Public interface for the ``ledger_analysis`` package.

Re-exports the ingestion, categorization and aggregation entry points and the
value records they exchange. No runtime logic lives here.
"""

from .aggregation import (
    filter_by_date_range,
    group_by_category,
    group_by_month,
    summarize,
    summarize_filtered,
    top_categories,
)
from .categories import KeywordTable
from .categorization import CategorizationEngine, ConfidencePolicy
from .config import Settings
from .dialects import Dialect, detect_dialect
from .errors import (
    FileValidationError,
    IngestionError,
    RowParseError,
    UnknownCategoryError,
    UnknownDialectError,
)
from .ingest import decode_payload, ingest, ingest_bytes, load_csv_file, validate_csv_file
from .models import (
    FALLBACK_CATEGORY,
    BankSource,
    CategorizationResult,
    Category,
    CategorySummary,
    DateRange,
    DateRangeFilter,
    IngestionResult,
    MatchType,
    MonthlySummary,
    Summary,
    Transaction,
    TransactionType,
    validate_transaction,
)
from .normalizers import InterRowParser, NubankRowParser, parser_for
from .text import normalize_text

__all__ = [
    # Ingestion
    "detect_dialect",
    "Dialect",
    "ingest",
    "ingest_bytes",
    "decode_payload",
    "load_csv_file",
    "validate_csv_file",
    "parser_for",
    "NubankRowParser",
    "InterRowParser",
    # Categorization
    "normalize_text",
    "KeywordTable",
    "CategorizationEngine",
    "ConfidencePolicy",
    # Aggregation
    "summarize",
    "filter_by_date_range",
    "group_by_category",
    "group_by_month",
    "top_categories",
    "summarize_filtered",
    # Models / types
    "Transaction",
    "TransactionType",
    "BankSource",
    "Category",
    "FALLBACK_CATEGORY",
    "MatchType",
    "CategorizationResult",
    "IngestionResult",
    "Summary",
    "DateRange",
    "DateRangeFilter",
    "CategorySummary",
    "MonthlySummary",
    "validate_transaction",
    # Config / errors
    "Settings",
    "RowParseError",
    "UnknownDialectError",
    "IngestionError",
    "FileValidationError",
    "UnknownCategoryError",
]
