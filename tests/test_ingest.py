import datetime as dt
from decimal import Decimal

import pytest

from ledger_analysis import (
    CategorizationEngine,
    Category,
    FileValidationError,
    IngestionError,
    Settings,
    TransactionType,
    UnknownDialectError,
    ingest,
    ingest_bytes,
    load_csv_file,
)

NUBANK_HEADER = "data,descricao,valor,tipo\n"
INTER_HEADER = "Data,Descrição,Valor\n"


def test_nubank_export():
    result = ingest(NUBANK_HEADER + "2024-01-15,Uber Eats,-50.00,despesa")
    assert result.total_rows == 1
    assert result.skipped_rows == 0
    assert result.errors == ()
    assert result.dialect == "nubank"

    (tx,) = result.transactions
    assert tx.type is TransactionType.EXPENSE
    assert tx.amount == Decimal("50.00")
    assert tx.description == "Uber Eats"
    assert tx.category == Category.ALIMENTACAO


def test_inter_export_matches_nubank_equivalent():
    result = ingest(INTER_HEADER + "15/01/2024,Uber Eats,-50.00")
    (tx,) = result.transactions
    assert result.dialect == "inter"
    assert tx.date == dt.date(2024, 1, 15)
    assert tx.type is TransactionType.EXPENSE
    assert tx.amount == Decimal("50.00")
    assert tx.category == Category.ALIMENTACAO


def test_malformed_row_is_reported_and_skipped():
    text = NUBANK_HEADER + "2024-01-15,Uber,10.00,despesa\ninvalid,Uber,10.00,despesa\n"
    result = ingest(text)
    assert len(result.transactions) == 1
    assert result.skipped_rows == 1
    assert result.errors == ("Row 2: Invalid date format: invalid",)


def test_missing_field_is_skipped_without_error():
    text = NUBANK_HEADER + "2024-01-15,,10.00,despesa\n2024-01-16,Uber,10.00,despesa\n"
    result = ingest(text)
    assert result.total_rows == 2
    assert result.skipped_rows == 1
    assert result.errors == ()
    assert [t.date.day for t in result.transactions] == [16]


def test_row_accounting_invariant():
    text = (
        NUBANK_HEADER
        + "2024-01-15,Uber,10.00,despesa\n"
        + "2024-01-16,,10.00,despesa\n"
        + "2024-01-17,Uber,abc,despesa\n"
        + "2024-01-18,Uber,5,outro\n"
        + "2024-01-19,Salario,3000,receita\n"
    )
    result = ingest(text)
    assert result.total_rows == 5
    assert result.total_rows == len(result.transactions) + result.skipped_rows
    assert len(result.errors) == 2
    assert result.errors[0].startswith("Row 3: ")
    assert result.errors[1].startswith("Row 4: ")


def test_quoted_field_with_delimiter():
    result = ingest(NUBANK_HEADER + '2024-01-15,"Restaurante, Bar",80.00,despesa\n')
    assert result.transactions[0].description == "Restaurante, Bar"


def test_blank_lines_and_crlf():
    text = "data,descricao,valor,tipo\r\n\r\n2024-01-15,Uber,10.00,despesa\r\n\r\n"
    result = ingest(text)
    assert result.total_rows == 1
    assert len(result.transactions) == 1


def test_rows_keep_input_order():
    text = NUBANK_HEADER + "".join(
        f"2024-01-{day:02d},Uber,{day}.00,despesa\n" for day in (20, 3, 11)
    )
    assert [t.date.day for t in ingest(text).transactions] == [20, 3, 11]


def test_header_only():
    result = ingest(NUBANK_HEADER)
    assert result.transactions == ()
    assert result.total_rows == 0
    assert result.skipped_rows == 0


@pytest.mark.parametrize("text", ["", "foo,bar\n1,2\n"])
def test_unknown_format_raises(text):
    with pytest.raises(UnknownDialectError, match="Unrecognized file format"):
        ingest(text)


def test_explicit_dialect_skips_detection():
    # The header would be detected as Nubank.
    result = ingest(NUBANK_HEADER + "15/01/2024,Uber,-10.00,despesa\n", dialect="inter")
    assert result.dialect == "inter"
    assert result.transactions[0].date == dt.date(2024, 1, 15)
    assert result.transactions[0].amount == Decimal("10.00")


def test_unreadable_csv_stream_raises():
    text = NUBANK_HEADER + '2024-01-15,"' + "a" * 200_000 + '",1.00,despesa\n'
    with pytest.raises(IngestionError):
        ingest(text)


def test_progress_is_capped_then_finishes_at_100():
    seen = []
    text = NUBANK_HEADER + "2024-01-15,Uber,10.00,despesa\n" * 5
    ingest(text, seen.append, settings=Settings(progress_interval=1, expected_rows=2))
    assert seen == [50.0, 90.0, 90.0, 90.0, 90.0, 100.0]


def test_progress_default_interval():
    seen = []
    ingest(NUBANK_HEADER + "2024-01-15,Uber,10.00,despesa\n" * 250, seen.append)
    assert seen == [2.0, 4.0, 100.0]


def test_progress_without_rows_reports_completion_once():
    seen = []
    ingest(NUBANK_HEADER, seen.append)
    assert seen == [100.0]


def test_custom_engine_is_used():
    engine = CategorizationEngine()
    engine.register_keyword(Category.ALIMENTACAO, "padoca")
    result = ingest(NUBANK_HEADER + "2024-01-15,Padoca do Zé,12.00,despesa\n", engine=engine)
    assert result.transactions[0].category == Category.ALIMENTACAO


def test_transaction_ids_are_unique():
    result = ingest(NUBANK_HEADER + "2024-01-15,Uber,10.00,despesa\n" * 20)
    assert len({t.id for t in result.transactions}) == 20


def test_ingest_bytes_strips_bom():
    data = "\ufeff".encode() + (NUBANK_HEADER + "2024-01-15,Uber,10.00,despesa\n").encode()
    result = ingest_bytes(data)
    assert result.dialect == "nubank"
    assert len(result.transactions) == 1


def test_ingest_bytes_rejects_invalid_utf8():
    with pytest.raises(IngestionError, match="UTF-8"):
        ingest_bytes(b"data,descricao,valor,tipo\n\xff\xfe\n")


def test_result_to_dict():
    result = ingest(NUBANK_HEADER + "2024-01-15,Uber,10.00,despesa\nbad,Uber,1,despesa\n")
    payload = result.to_dict()
    assert payload["totalRows"] == 2
    assert payload["skippedRows"] == 1
    assert payload["errors"] == ["Row 2: Invalid date format: bad"]
    assert payload["transactions"][0]["amount"] == "10.00"
    assert payload["transactions"][0]["date"] == "2024-01-15"
    assert payload["transactions"][0]["category"] == "Transporte"


# ---- File acquisition ----


def test_load_csv_file(tmp_path):
    path = tmp_path / "extrato.csv"
    path.write_text(INTER_HEADER + "15/01/2024,Salário,5000.00\n", encoding="utf-8")
    result = load_csv_file(path)
    assert result.dialect == "inter"
    assert result.transactions[0].type is TransactionType.INCOME


def test_load_csv_file_accepts_uppercase_extension(tmp_path):
    path = tmp_path / "EXTRATO.CSV"
    path.write_text(NUBANK_HEADER, encoding="utf-8")
    assert load_csv_file(path).total_rows == 0


def test_load_csv_file_rejects_wrong_extension(tmp_path):
    path = tmp_path / "extrato.txt"
    path.write_text(NUBANK_HEADER, encoding="utf-8")
    with pytest.raises(FileValidationError, match="Invalid file type"):
        load_csv_file(path)


def test_load_csv_file_rejects_missing_file(tmp_path):
    with pytest.raises(FileValidationError, match="File not found"):
        load_csv_file(tmp_path / "missing.csv")


def test_load_csv_file_rejects_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_bytes(b"")
    with pytest.raises(FileValidationError, match="File is empty"):
        load_csv_file(path)


def test_load_csv_file_rejects_large_file(tmp_path):
    path = tmp_path / "big.csv"
    path.write_text(NUBANK_HEADER, encoding="utf-8")
    with pytest.raises(FileValidationError, match="File too large"):
        load_csv_file(path, settings=Settings(max_file_bytes=10))
