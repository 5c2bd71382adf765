"""Ledger event append and query - append-only notification log."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Iterator

from predledger.models import LedgerEvent, parse_event

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def append_event(conn: DuckDBPyConnection, event: LedgerEvent, created_at: int) -> None:
    """Append a single event. Runs inside the emitting operation's transaction."""
    conn.execute(
        """
        INSERT INTO ledger_events (event_type, market_id, created_at, payload)
        VALUES (?, ?, ?, ?)
        """,
        [event.event_type, event.market_id, created_at, event.model_dump_json()],
    )


def stream_events(
    conn: DuckDBPyConnection,
    market_id: int | None = None,
    event_type: str | None = None,
) -> Iterator[tuple[LedgerEvent, int]]:
    """Yield (event, created_at) in append order, optionally filtered by market and type."""
    conditions = []
    params: list[Any] = []
    if market_id is not None:
        conditions.append("market_id = ?")
        params.append(market_id)
    if event_type:
        conditions.append("event_type = ?")
        params.append(event_type)
    where = " AND ".join(conditions) if conditions else "1=1"
    rows = conn.execute(
        f"SELECT payload, created_at FROM ledger_events WHERE {where} ORDER BY id ASC",
        params,
    ).fetchall()
    for payload_json, created_at in rows:
        payload = json.loads(payload_json) if isinstance(payload_json, str) else payload_json
        yield parse_event(payload), created_at


def list_events(
    conn: DuckDBPyConnection,
    market_id: int | None = None,
    event_type: str | None = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """Most recent events first, as plain dicts (id, event_type, market_id, created_at, payload)."""
    conditions = []
    params: list[Any] = []
    if market_id is not None:
        conditions.append("market_id = ?")
        params.append(market_id)
    if event_type:
        conditions.append("event_type = ?")
        params.append(event_type)
    where = " AND ".join(conditions) if conditions else "1=1"
    params.append(limit)
    rows = conn.execute(
        f"""
        SELECT id, event_type, market_id, created_at, payload
        FROM ledger_events
        WHERE {where}
        ORDER BY id DESC
        LIMIT ?
        """,
        params,
    ).fetchall()
    cols = ["id", "event_type", "market_id", "created_at", "payload"]
    out = []
    for r in rows:
        item = dict(zip(cols, r))
        if isinstance(item["payload"], str):
            item["payload"] = json.loads(item["payload"])
        out.append(item)
    return out


def log_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Return event log statistics: total count, min/max created_at, count by type and by market."""
    total = conn.execute("SELECT COUNT(*) FROM ledger_events").fetchone()[0]
    range_row = conn.execute("SELECT MIN(created_at), MAX(created_at) FROM ledger_events").fetchone()
    by_type = conn.execute(
        "SELECT event_type, COUNT(*) AS cnt FROM ledger_events GROUP BY event_type ORDER BY cnt DESC"
    ).fetchall()
    by_market = conn.execute(
        """
        SELECT market_id, COUNT(*) AS cnt FROM ledger_events
        WHERE market_id IS NOT NULL
        GROUP BY market_id ORDER BY cnt DESC LIMIT 20
        """
    ).fetchall()
    return {
        "total_events": total,
        "min_created_at": range_row[0],
        "max_created_at": range_row[1],
        "by_type": [{"event_type": r[0], "count": r[1]} for r in by_type],
        "by_market": [{"market_id": r[0], "count": r[1]} for r in by_market],
    }
