"""Pytest configuration for test isolation.

Sessions persist to ``~/.spendlite/state.json`` by default and read rules
from ``./rules.txt``. Every test gets its own state file and rules path so
nothing leaks between tests or into the developer's home directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

import psycopg2
import pytest

from spendlite import logging_setup
from spendlite.config import Settings
from spendlite.core.models import Transaction
from spendlite.utils.storage import MemoryStore, StateRepository


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point every SPENDLITE_* setting at the test's temporary directory."""
    for name in list(os.environ):
        if name.startswith("SPENDLITE_") or name == "ANTHROPIC_API_KEY":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPENDLITE_STATE_PATH", os.fspath(tmp_path / "state" / "state.json"))
    monkeypatch.setenv("SPENDLITE_RULES_FILE", os.fspath(tmp_path / "rules.txt"))


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch):
    """Undo configure_logging() calls made by CLI tests so caplog keeps working."""
    pkg_logger = logging.getLogger("spendlite")
    handlers, propagate, level = list(pkg_logger.handlers), pkg_logger.propagate, pkg_logger.level
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    pkg_logger.handlers[:] = handlers
    pkg_logger.propagate = propagate
    pkg_logger.setLevel(level)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        page_size=10,
        storage="memory",
        state_path=tmp_path / "state.json",
        rules_file=tmp_path / "missing-rules.txt",
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(store: MemoryStore) -> StateRepository:
    return StateRepository(store)


def statement_row(date: str, amount: str, description: str) -> str:
    """One 10-column statement line with the given date, amount and description."""
    fields = ["ACC1", "BSB1", date, "", "", amount, "", "", "", description]
    return ",".join(f'"{f}"' if "," in f else f for f in fields)


HEADER = "Account,BSB,Effective Date,Entered Date,Tran Type,Amount,Balance,Ref,Serial,Long Description"


@pytest.fixture
def statement_csv() -> str:
    lines = [
        HEADER,
        statement_row("3 March 2024", "-45.00", "COLES 1234 SYDNEY"),
        statement_row("05/03/2024", "-60.50", "SHELL COLES EXPRESS"),
        statement_row("10:30 am Fri 15 March, 2024", "-12.99", "PAYPAL NETFLIX.COM 4029357733"),
        statement_row("2024-03-20", "2,500.00", "SALARY ACME PTY LTD"),
        statement_row("1 April 2024", "-30.00", "VISA-UBER TRIP HELP.UBER.COM"),
        statement_row("not a date", "-5.00", "MYSTERY CHARGE"),
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def march_transactions() -> List[Transaction]:
    return [
        Transaction(date="3 March 2024", amount=-45.00, description="COLES 1234 SYDNEY"),
        Transaction(date="05/03/2024", amount=-60.50, description="SHELL COLES EXPRESS"),
        Transaction(date="2024-03-20", amount=2500.00, description="SALARY ACME PTY LTD"),
    ]


@pytest.fixture
def make_row():
    return statement_row


class FakeCursor:
    def __init__(self, db):
        self.db = db
        self.result = []

    def execute(self, sql, params=()):
        sql = " ".join(sql.split())
        self.db.executed.append(sql)
        if self.db.fail:
            raise psycopg2.OperationalError("server closed the connection")
        if sql.startswith("SELECT value"):
            value = self.db.rows.get(params[0])
            self.result = [] if value is None else [(value,)]
        elif sql.startswith("SELECT key"):
            self.result = [(k,) for k in sorted(self.db.rows)]
        elif sql.startswith("INSERT"):
            self.db.rows[params[0]] = params[1]
        elif sql.startswith("DELETE"):
            self.db.rows.pop(params[0], None)

    def fetchone(self):
        return self.result[0] if self.result else None

    def fetchall(self):
        return list(self.result)

    def close(self):
        pass


class FakeConnection:
    def __init__(self):
        self.rows = {}
        self.executed = []
        self.fail = False
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = 1


@pytest.fixture
def fake_db():
    return FakeConnection()
