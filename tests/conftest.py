"""Shared fixtures: temp DuckDB, controllable clock, initialized ledger."""

import shutil
import tempfile
from pathlib import Path

import pytest

from predledger.engine import MarketLedger
from predledger.storage.db import get_connection, init_schema

T0 = 1_700_000_000
HOUR = 3600


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def temp_db():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    conn = get_connection(path)
    init_schema(conn)
    yield conn
    conn.close()
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(temp_db, clock):
    return MarketLedger(temp_db, clock=clock)


@pytest.fixture
def platform(ledger):
    """Ledger with the platform initialized: authority 'admin', 2% fee to 'treasury'."""
    ledger.initialize("admin", 200, "treasury")
    return ledger


def make_market(ledger, market_id=1, outcomes=("Yes", "No"), min_bet=100, duration=2 * HOUR, oracle="oracle"):
    return ledger.create_market(
        "creator",
        market_id,
        "Will it rain tomorrow?",
        list(outcomes),
        ledger.clock() + duration,
        oracle,
        min_bet,
    )


def fund(ledger, *accounts, amount=10_000):
    for account in accounts:
        ledger.transfer.deposit(account, amount)
