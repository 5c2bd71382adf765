"""DuckDB connection, schema init and transaction boundary."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS ledger_event_seq START 1;

-- Platform config (single row, keyed by the config namespace)
CREATE TABLE IF NOT EXISTS global_config (
    config_key      VARCHAR PRIMARY KEY,
    authority       VARCHAR NOT NULL,
    fee_bps         INTEGER NOT NULL,
    fee_recipient   VARCHAR NOT NULL,
    total_markets   UBIGINT NOT NULL,
    initialized_at  BIGINT
);

-- Markets (append-only: never deleted)
CREATE TABLE IF NOT EXISTS markets (
    market_key      VARCHAR PRIMARY KEY,
    market_id       UBIGINT NOT NULL UNIQUE,
    creator         VARCHAR NOT NULL,
    question        VARCHAR NOT NULL,
    outcomes        JSON NOT NULL,
    end_time        BIGINT NOT NULL,
    oracle          VARCHAR NOT NULL,
    min_bet         UBIGINT NOT NULL,
    status          VARCHAR NOT NULL,
    total_pool      UBIGINT NOT NULL,
    outcome_pools   JSON NOT NULL,
    winning_outcome INTEGER,
    created_at      BIGINT NOT NULL,
    fees_collected  BOOLEAN NOT NULL DEFAULT FALSE
);

-- Per (user, market) stakes
CREATE TABLE IF NOT EXISTS user_positions (
    position_key    VARCHAR PRIMARY KEY,
    user_id         VARCHAR NOT NULL,
    market_id       UBIGINT NOT NULL,
    bets            JSON NOT NULL,
    total_bet       UBIGINT NOT NULL,
    claimed         BOOLEAN NOT NULL DEFAULT FALSE
);

-- Value-holding accounts (user wallets, market escrows, fee recipient)
CREATE TABLE IF NOT EXISTS balances (
    account         VARCHAR PRIMARY KEY,
    amount          HUGEINT NOT NULL
);

-- Notification events (append-only, audit / replay source)
CREATE TABLE IF NOT EXISTS ledger_events (
    id              BIGINT PRIMARY KEY DEFAULT nextval('ledger_event_seq'),
    event_type      VARCHAR NOT NULL,
    market_id       UBIGINT,
    created_at      BIGINT NOT NULL,
    payload         JSON NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    ':memory:' opens a private in-memory database."""
    if str(db_path) == ":memory:":
        return duckdb.connect(":memory:")
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise


@contextmanager
def transaction(conn: DuckDBPyConnection) -> Iterator[DuckDBPyConnection]:
    """Run the block as one atomic unit: commit on success, roll back on any exception."""
    conn.execute("BEGIN TRANSACTION")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")
