import pytest

from ledger_analysis.dialects import (
    INTER_DESCRIPTION,
    Dialect,
    FieldSpec,
    detect_dialect,
    header_columns,
    header_key,
)


@pytest.mark.parametrize(
    ("csv_text", "expected"),
    [
        ("data,descricao,valor,tipo\n2024-01-15,Uber,25.50,despesa\n", Dialect.NUBANK),
        ("Data,Descrição,Valor\n15/01/2024,Uber,-25.50\n", Dialect.INTER),
        ("Data,Descricao,Valor\n15/01/2024,Uber,-25.50\n", Dialect.INTER),
        ('"DATA","DESCRICAO","VALOR","TIPO"\n', Dialect.NUBANK),
        ("\ufeffdata,descricao,valor,tipo\n", Dialect.NUBANK),
        ("  data , descricao , valor , tipo \n", Dialect.NUBANK),
        ("\n\ndata,descricao,valor,tipo\n", Dialect.NUBANK),
        ("date,description,amount\n2024-01-15,Uber,25.50\n", Dialect.UNKNOWN),
        ("data,descricao\n", Dialect.UNKNOWN),
        ("", Dialect.UNKNOWN),
        ("   \n", Dialect.UNKNOWN),
    ],
)
def test_detect_dialect(csv_text, expected):
    assert detect_dialect(csv_text) is expected


def test_detection_reads_header_only():
    text = "date,description,amount\ndata,descricao,valor,tipo\n"
    assert detect_dialect(text) is Dialect.UNKNOWN


def test_header_with_both_signatures_prefers_nubank():
    assert detect_dialect("data,descrição,descricao,valor,tipo\n") is Dialect.NUBANK


def test_extra_columns_do_not_prevent_detection():
    assert detect_dialect("Data,Descrição,Valor,Saldo\n") is Dialect.INTER


def test_header_key_folds_case_quotes_and_bom():
    assert header_key('\ufeff "Descrição" ') == "descrição"
    assert header_key(None) == ""


def test_header_key_composes_decomposed_accents():
    decomposed = "Descric\u0327a\u0303o"
    assert header_key(decomposed) == "descrição"


def test_header_columns_handles_quoted_commas():
    assert header_columns('"data","descricao, longa",valor\n') == ["data", "descricao, longa", "valor"]


def test_field_lookup_prefers_first_non_blank_synonym():
    row = {"descrição": "  ", "descricao": " Mercado "}
    assert INTER_DESCRIPTION.lookup(row) == "Mercado"
    assert INTER_DESCRIPTION.lookup({"descrição": "A", "descricao": "B"}) == "A"
    assert INTER_DESCRIPTION.lookup({"descricao": None}) is None


def test_field_present_in():
    spec = FieldSpec("x", ("a", "b"))
    assert spec.present_in(["c", "b"])
    assert not spec.present_in(["c"])
