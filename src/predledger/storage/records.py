"""GlobalConfig, Market and UserPosition persistence."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from predledger.errors import ConfigError, ErrorCode, MarketValidationError
from predledger.models import GlobalConfig, Market, MarketStatus, UserPosition
from predledger.storage.keys import config_key, market_key, position_key

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_MARKET_COLUMNS = [
    "market_id",
    "creator",
    "question",
    "outcomes",
    "end_time",
    "oracle",
    "min_bet",
    "status",
    "total_pool",
    "outcome_pools",
    "winning_outcome",
    "created_at",
    "fees_collected",
]
_POSITION_COLUMNS = ["user_id", "market_id", "bets", "total_bet", "claimed"]


def _load_json(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


# --- GlobalConfig ---


def create_global_config(conn: DuckDBPyConnection, config: GlobalConfig) -> None:
    """Create-if-absent. A second initialization is rejected."""
    key = config_key()
    exists = conn.execute("SELECT 1 FROM global_config WHERE config_key = ?", [key]).fetchone()
    if exists:
        raise ConfigError(ErrorCode.ALREADY_INITIALIZED, "platform is already initialized")
    conn.execute(
        """
        INSERT INTO global_config (config_key, authority, fee_bps, fee_recipient, total_markets, initialized_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [key, config.authority, config.fee_bps, config.fee_recipient, config.total_markets, config.initialized_at],
    )


def get_global_config(conn: DuckDBPyConnection) -> GlobalConfig | None:
    row = conn.execute(
        "SELECT authority, fee_bps, fee_recipient, total_markets, initialized_at FROM global_config WHERE config_key = ?",
        [config_key()],
    ).fetchone()
    if not row:
        return None
    return GlobalConfig(
        authority=row[0],
        fee_bps=row[1],
        fee_recipient=row[2],
        total_markets=row[3],
        initialized_at=row[4],
    )


def save_total_markets(conn: DuckDBPyConnection, total_markets: int) -> None:
    conn.execute(
        "UPDATE global_config SET total_markets = ? WHERE config_key = ?",
        [total_markets, config_key()],
    )


# --- Market ---


def _market_from_row(row: tuple) -> Market:
    r = dict(zip(_MARKET_COLUMNS, row))
    return Market(
        market_id=r["market_id"],
        creator=r["creator"],
        question=r["question"],
        outcomes=_load_json(r["outcomes"]),
        end_time=r["end_time"],
        oracle=r["oracle"],
        min_bet=r["min_bet"],
        status=MarketStatus(r["status"]),
        total_pool=r["total_pool"],
        outcome_pools=[int(p) for p in _load_json(r["outcome_pools"])],
        winning_outcome=r["winning_outcome"],
        created_at=r["created_at"],
        fees_collected=bool(r["fees_collected"]),
    )


def insert_market(conn: DuckDBPyConnection, market: Market) -> None:
    """Allocate a new market record. Fails if the market's key is taken."""
    key = market_key(market.market_id)
    exists = conn.execute("SELECT 1 FROM markets WHERE market_key = ?", [key]).fetchone()
    if exists:
        raise MarketValidationError(ErrorCode.DUPLICATE_MARKET, f"market {market.market_id} already exists")
    conn.execute(
        """
        INSERT INTO markets (market_key, market_id, creator, question, outcomes, end_time, oracle, min_bet,
                             status, total_pool, outcome_pools, winning_outcome, created_at, fees_collected)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            key,
            market.market_id,
            market.creator,
            market.question,
            json.dumps(market.outcomes),
            market.end_time,
            market.oracle,
            market.min_bet,
            market.status.value,
            market.total_pool,
            json.dumps(market.outcome_pools),
            market.winning_outcome,
            market.created_at,
            market.fees_collected,
        ],
    )


def save_market(conn: DuckDBPyConnection, market: Market) -> None:
    """Write back the mutable market fields (status, pools, winner, fee latch)."""
    conn.execute(
        """
        UPDATE markets SET
            status = ?,
            total_pool = ?,
            outcome_pools = ?,
            winning_outcome = ?,
            fees_collected = ?
        WHERE market_key = ?
        """,
        [
            market.status.value,
            market.total_pool,
            json.dumps(market.outcome_pools),
            market.winning_outcome,
            market.fees_collected,
            market_key(market.market_id),
        ],
    )


def get_market(conn: DuckDBPyConnection, market_id: int) -> Market | None:
    row = conn.execute(
        f"SELECT {', '.join(_MARKET_COLUMNS)} FROM markets WHERE market_key = ?",
        [market_key(market_id)],
    ).fetchone()
    return _market_from_row(row) if row else None


def list_markets(
    conn: DuckDBPyConnection,
    status: MarketStatus | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Market]:
    """List markets ordered by creation time (newest first), optionally by status."""
    sql = f"SELECT {', '.join(_MARKET_COLUMNS)} FROM markets"
    params: list[Any] = []
    if status is not None:
        sql += " WHERE status = ?"
        params.append(status.value)
    sql += " ORDER BY created_at DESC, market_id DESC"
    if limit is not None:
        sql += " LIMIT ? OFFSET ?"
        params.extend([limit, offset])
    rows = conn.execute(sql, params).fetchall()
    return [_market_from_row(r) for r in rows]


def count_markets(conn: DuckDBPyConnection, status: MarketStatus | None = None) -> int:
    if status is None:
        return conn.execute("SELECT COUNT(*) FROM markets").fetchone()[0]
    return conn.execute("SELECT COUNT(*) FROM markets WHERE status = ?", [status.value]).fetchone()[0]


# --- UserPosition ---


def _position_from_row(row: tuple) -> UserPosition:
    r = dict(zip(_POSITION_COLUMNS, row))
    return UserPosition(
        user=r["user_id"],
        market_id=r["market_id"],
        bets=[int(b) for b in _load_json(r["bets"])],
        total_bet=r["total_bet"],
        claimed=bool(r["claimed"]),
    )


def get_position(conn: DuckDBPyConnection, user: str, market_id: int) -> UserPosition | None:
    row = conn.execute(
        f"SELECT {', '.join(_POSITION_COLUMNS)} FROM user_positions WHERE position_key = ?",
        [position_key(user, market_id)],
    ).fetchone()
    return _position_from_row(row) if row else None


def save_position(conn: DuckDBPyConnection, position: UserPosition) -> None:
    """Insert or replace a user position."""
    conn.execute(
        """
        INSERT INTO user_positions (position_key, user_id, market_id, bets, total_bet, claimed)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT (position_key) DO UPDATE SET
            bets = excluded.bets,
            total_bet = excluded.total_bet,
            claimed = excluded.claimed
        """,
        [
            position_key(position.user, position.market_id),
            position.user,
            position.market_id,
            json.dumps(position.bets),
            position.total_bet,
            position.claimed,
        ],
    )


def list_positions(
    conn: DuckDBPyConnection,
    market_id: int | None = None,
    user: str | None = None,
) -> list[UserPosition]:
    """List positions for a market and/or a user."""
    conditions = []
    params: list[Any] = []
    if market_id is not None:
        conditions.append("market_id = ?")
        params.append(market_id)
    if user is not None:
        conditions.append("user_id = ?")
        params.append(user)
    where = " AND ".join(conditions) if conditions else "1=1"
    rows = conn.execute(
        f"SELECT {', '.join(_POSITION_COLUMNS)} FROM user_positions WHERE {where} ORDER BY market_id, user_id",
        params,
    ).fetchall()
    return [_position_from_row(r) for r in rows]
