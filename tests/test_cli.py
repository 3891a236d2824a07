import json

import pytest
from typer.testing import CliRunner

from ledger_analysis.cli import app

runner = CliRunner()

NUBANK_CSV = (
    "data,descricao,valor,tipo\n"
    "2024-01-05,Salario,3000.00,receita\n"
    "2024-01-15,Uber Eats,-50.00,despesa\n"
    "2024-02-03,Posto Ipiranga,120.00,despesa\n"
    "invalid,Uber,10.00,despesa\n"
)


@pytest.fixture
def nubank_file(tmp_path):
    path = tmp_path / "nubank.csv"
    path.write_text(NUBANK_CSV, encoding="utf-8")
    return path


def test_detect(nubank_file):
    result = runner.invoke(app, ["detect", str(nubank_file)])
    assert result.exit_code == 0
    assert result.output.strip() == "nubank"


def test_detect_unknown_exits_1(tmp_path):
    path = tmp_path / "other.csv"
    path.write_text("date,description,amount\n", encoding="utf-8")
    result = runner.invoke(app, ["detect", str(path)])
    assert result.exit_code == 1
    assert result.output.strip() == "unknown"


def test_ingest_text(nubank_file):
    result = runner.invoke(app, ["ingest", str(nubank_file)])
    assert result.exit_code == 0, result.output
    assert "Dialect:      nubank" in result.output
    assert "4 read, 3 imported, 1 skipped" in result.output
    assert "Row 4: Invalid date format: invalid" in result.output
    assert "Net balance:  2,830.00" in result.output


def test_ingest_json(nubank_file):
    result = runner.invoke(app, ["ingest", str(nubank_file), "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["dialect"] == "nubank"
    assert payload["totalRows"] == 4
    assert payload["skippedRows"] == 1
    assert [t["category"] for t in payload["transactions"]] == [
        "Outros",
        "Alimentação",
        "Transporte",
    ]
    assert payload["summary"]["net_balance"] == "2830.00"


def test_ingest_rejects_wrong_extension(tmp_path):
    path = tmp_path / "nubank.txt"
    path.write_text(NUBANK_CSV, encoding="utf-8")
    result = runner.invoke(app, ["ingest", str(path)])
    assert result.exit_code == 1
    assert "Error: Invalid file type" in result.output


def test_ingest_unknown_format(tmp_path):
    path = tmp_path / "other.csv"
    path.write_text("foo,bar\n1,2\n", encoding="utf-8")
    result = runner.invoke(app, ["ingest", str(path)])
    assert result.exit_code == 1
    assert "Error: Unrecognized file format" in result.output


def test_report_with_date_window(nubank_file):
    result = runner.invoke(app, ["report", str(nubank_file), "--start", "2024-02-01"])
    assert result.exit_code == 0, result.output
    assert "Transactions: 1" in result.output
    assert "Top categories:" in result.output
    assert "Transporte" in result.output
    assert "2024-02" in result.output
    assert "2024-01" not in result.output.split("Monthly:")[1]


def test_report_rejects_inverted_window(nubank_file):
    result = runner.invoke(
        app, ["report", str(nubank_file), "--start", "2024-02-01", "--end", "2024-01-01"]
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_categorize():
    result = runner.invoke(app, ["categorize", "uber eats", "XYZ Unknown Company"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "Alimentação\t100\texact",
        "Outros\t0\tnone",
    ]


def test_categorize_with_keyword_file(tmp_path):
    kw = tmp_path / "keywords.json"
    kw.write_text(json.dumps({"keywords": {"Alimentação": ["padoca"]}}), encoding="utf-8")
    result = runner.invoke(app, ["categorize", "Padoca", "--keywords", str(kw)])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["Alimentação\t100\texact"]


def test_keyword_file_from_dotenv(tmp_path):
    kw = tmp_path / "keywords.json"
    kw.write_text(json.dumps({"keywords": {"Lazer": ["clube xyz"]}}), encoding="utf-8")
    (tmp_path / ".env").write_text(f"LEDGER_ANALYSIS_KEYWORDS_FILE={kw}\n", encoding="utf-8")
    result = runner.invoke(app, ["categorize", "clube xyz"])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("Lazer\t100\texact")


def test_invalid_keyword_file(tmp_path):
    kw = tmp_path / "keywords.json"
    kw.write_text(json.dumps({"keywords": {"Food": ["x"]}}), encoding="utf-8")
    result = runner.invoke(app, ["categorize", "x", "--keywords", str(kw)])
    assert result.exit_code == 1
    assert "Error: invalid keyword file" in result.output


def test_invalid_log_level():
    result = runner.invoke(app, ["--log-level", "loud", "categorize", "uber"])
    assert result.exit_code == 2
    assert "unknown log level" in result.output


def test_missing_keyword_file_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("LEDGER_ANALYSIS_KEYWORDS_FILE", str(tmp_path / "nope.json"))
    result = runner.invoke(app, ["categorize", "uber"])
    assert result.exit_code == 1
    assert "Error: invalid keyword file" in result.output
    assert not isinstance(result.exception, FileNotFoundError)
