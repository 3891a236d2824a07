"""Pytest configuration for test isolation.

Settings and logging both read ``LEDGER_ANALYSIS_*`` environment variables,
and the CLI loads a ``.env`` from the working directory. Each test runs in its
own temporary directory with those variables cleared, and the package logger
is returned to its unconfigured state afterwards.
"""

from __future__ import annotations

import datetime as dt
import itertools
import logging
import os
from collections.abc import Callable, Iterator
from decimal import Decimal
from pathlib import Path

import pytest

from ledger_analysis import logging_setup
from ledger_analysis.models import BankSource, Category, Transaction, TransactionType


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for key in list(os.environ):
        if key.startswith("LEDGER_ANALYSIS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)

    yield

    pkg_logger = logging.getLogger("ledger_analysis")
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_tx() -> Callable[..., Transaction]:
    """Factory for transactions with sensible defaults; override any field."""

    counter = itertools.count(1)

    def _make(**overrides) -> Transaction:
        fields = {
            "id": f"test-{next(counter)}",
            "date": dt.date(2024, 1, 15),
            "description": "Test Transaction",
            "amount": Decimal("100"),
            "type": TransactionType.EXPENSE,
            "source": BankSource.NUBANK,
            "category": Category.OUTROS.value,
        }
        fields.update(overrides)
        if not isinstance(fields["amount"], Decimal):
            fields["amount"] = Decimal(str(fields["amount"]))
        return Transaction(**fields)

    return _make
