"""FastAPI front for ledger operations and queries."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Iterator

import structlog
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from predledger.api.schemas import (
    AuditResponse,
    BalanceResponse,
    ClaimResponse,
    CreateMarketRequest,
    DepositRequest,
    ErrorResponse,
    EventItem,
    EventsStatsResponse,
    FeesResponse,
    HealthResponse,
    InitializeRequest,
    MarketDetailResponse,
    MarketsListResponse,
    PlaceBetRequest,
    PlatformResponse,
    PositionResponse,
    ResolveRequest,
)
from predledger.config import get_settings
from predledger.engine import MarketLedger
from predledger.errors import (
    AuthorizationError,
    ConfigError,
    ErrorCode,
    LedgerError,
    NotFoundError,
    StateError,
)
from predledger.models import Market, MarketStatus, UserPosition
from predledger.replay.audit import audit_market
from predledger.storage import records
from predledger.storage.db import get_connection, init_schema
from predledger.storage.event_log import list_events, log_stats

log = structlog.get_logger(__name__)

# Set by run_api() so request handlers open the configured database.
_config_profile: str | None = None
_config_dir: Path | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings(_config_profile, _config_dir)
    conn = get_connection(settings.db_path)
    try:
        init_schema(conn)
    finally:
        conn.close()
    log.info("api_started", db_path=settings.db_path)
    yield


app = FastAPI(title="predledger API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def get_ledger() -> Iterator[MarketLedger]:
    """One connection and ledger per request."""
    settings = get_settings(_config_profile, _config_dir)
    conn = get_connection(settings.db_path)
    try:
        yield MarketLedger(conn)
    finally:
        conn.close()


def _status_for(exc: LedgerError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, StateError):
        return 409
    if isinstance(exc, ConfigError) and exc.code is ErrorCode.ALREADY_INITIALIZED:
        return 409
    return 400


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Return consistent error JSON: { detail, code, kind }."""
    return JSONResponse(status_code=_status_for(exc), content=exc.to_dict())


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


# --- Platform ---


@app.get("/platform", response_model=PlatformResponse, responses=_ERROR_RESPONSES)
def platform(ledger: MarketLedger = Depends(get_ledger)) -> PlatformResponse:
    return PlatformResponse(**ledger.get_global_config().model_dump())


@app.post("/platform/initialize", response_model=PlatformResponse, status_code=201, responses=_ERROR_RESPONSES)
def initialize(
    body: InitializeRequest,
    x_caller: str = Header(..., description="Identity that becomes the platform authority"),
    ledger: MarketLedger = Depends(get_ledger),
) -> PlatformResponse:
    config = ledger.initialize(x_caller, body.fee_bps, body.fee_recipient)
    return PlatformResponse(**config.model_dump())


# --- Markets ---


def _market_detail(ledger: MarketLedger, market: Market) -> MarketDetailResponse:
    return MarketDetailResponse(**market.model_dump(), escrow_balance=ledger.escrow_balance(market.market_id))


@app.get("/markets", response_model=MarketsListResponse)
def markets_list(
    status: MarketStatus | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    ledger: MarketLedger = Depends(get_ledger),
) -> MarketsListResponse:
    """List markets, newest first, with optional status filter and limit/offset."""
    markets = records.list_markets(ledger.conn, status=status, limit=limit, offset=offset)
    return MarketsListResponse(markets=markets, total=records.count_markets(ledger.conn, status=status))


@app.post("/markets", response_model=MarketDetailResponse, status_code=201, responses=_ERROR_RESPONSES)
def create_market(
    body: CreateMarketRequest,
    x_caller: str = Header(..., description="Market creator"),
    ledger: MarketLedger = Depends(get_ledger),
) -> MarketDetailResponse:
    market = ledger.create_market(
        x_caller, body.market_id, body.question, body.outcomes, body.end_time, body.oracle, body.min_bet
    )
    return _market_detail(ledger, market)


@app.get("/markets/{market_id}", response_model=MarketDetailResponse, responses=_ERROR_RESPONSES)
def market_detail(market_id: int, ledger: MarketLedger = Depends(get_ledger)) -> MarketDetailResponse:
    return _market_detail(ledger, ledger.get_market(market_id))


@app.post("/markets/{market_id}/bets", response_model=PositionResponse, responses=_ERROR_RESPONSES)
def place_bet(
    market_id: int,
    body: PlaceBetRequest,
    x_caller: str = Header(..., description="Bettor; stake is debited from this account"),
    ledger: MarketLedger = Depends(get_ledger),
) -> PositionResponse:
    position = ledger.place_bet(x_caller, market_id, body.outcome_index, body.amount)
    return PositionResponse(**position.model_dump())


@app.post("/markets/{market_id}/resolve", response_model=MarketDetailResponse, responses=_ERROR_RESPONSES)
def resolve_market(
    market_id: int,
    body: ResolveRequest,
    x_caller: str = Header(..., description="Oracle or platform authority"),
    ledger: MarketLedger = Depends(get_ledger),
) -> MarketDetailResponse:
    return _market_detail(ledger, ledger.resolve_market(x_caller, market_id, body.winning_outcome))


@app.post("/markets/{market_id}/claim", response_model=ClaimResponse, responses=_ERROR_RESPONSES)
def claim_winnings(
    market_id: int,
    x_caller: str = Header(..., description="Position owner"),
    ledger: MarketLedger = Depends(get_ledger),
) -> ClaimResponse:
    event = ledger.claim_winnings(x_caller, market_id)
    return ClaimResponse(market_id=event.market_id, user=event.user, stake=event.stake, amount=event.amount)


@app.post("/markets/{market_id}/collect-fees", response_model=FeesResponse, responses=_ERROR_RESPONSES)
def collect_fees(
    market_id: int,
    x_caller: str = Header(..., description="Platform authority"),
    ledger: MarketLedger = Depends(get_ledger),
) -> FeesResponse:
    event = ledger.collect_fees(x_caller, market_id)
    if event is None:
        return FeesResponse(market_id=market_id, amount=0)
    return FeesResponse(market_id=market_id, amount=event.amount, recipient=event.recipient)


@app.post("/markets/{market_id}/close", response_model=MarketDetailResponse, responses=_ERROR_RESPONSES)
def close_market(
    market_id: int,
    x_caller: str = Header(..., description="Platform authority"),
    ledger: MarketLedger = Depends(get_ledger),
) -> MarketDetailResponse:
    return _market_detail(ledger, ledger.close_market(x_caller, market_id))


@app.get("/markets/{market_id}/positions", response_model=list[UserPosition], responses=_ERROR_RESPONSES)
def market_positions(market_id: int, ledger: MarketLedger = Depends(get_ledger)) -> list[UserPosition]:
    ledger.get_market(market_id)
    return records.list_positions(ledger.conn, market_id=market_id)


@app.get("/markets/{market_id}/positions/{user}", response_model=PositionResponse, responses=_ERROR_RESPONSES)
def market_position(market_id: int, user: str, ledger: MarketLedger = Depends(get_ledger)) -> PositionResponse:
    """A user's stakes; includes the payout once the market is resolved."""
    market = ledger.get_market(market_id)
    position = ledger.get_position(user, market_id)
    if position is None:
        raise NotFoundError(ErrorCode.POSITION_NOT_FOUND, f"{user} has no position in market {market_id}")
    payout = ledger.quote(user, market_id).payout if market.is_resolved else None
    return PositionResponse(**position.model_dump(), payout=payout)


@app.get("/markets/{market_id}/audit", response_model=AuditResponse, responses=_ERROR_RESPONSES)
def market_audit(market_id: int, ledger: MarketLedger = Depends(get_ledger)) -> AuditResponse:
    """Replay the market's events and reconcile with stored records and escrow."""
    ledger.get_market(market_id)
    return AuditResponse(**audit_market(ledger.conn, market_id, ledger.transfer).to_dict())


# --- Accounts ---


@app.get("/accounts/{account}", response_model=BalanceResponse)
def account_balance(account: str, ledger: MarketLedger = Depends(get_ledger)) -> BalanceResponse:
    return BalanceResponse(account=account, balance=ledger.transfer.balance_of(account))


@app.post("/accounts/{account}/deposit", response_model=BalanceResponse, responses=_ERROR_RESPONSES)
def account_deposit(
    account: str,
    body: DepositRequest,
    ledger: MarketLedger = Depends(get_ledger),
) -> BalanceResponse:
    return BalanceResponse(account=account, balance=ledger.transfer.deposit(account, body.amount))


# --- Events ---


@app.get("/events", response_model=list[EventItem])
def events_list(
    market_id: int | None = None,
    event_type: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    ledger: MarketLedger = Depends(get_ledger),
) -> list[EventItem]:
    rows = list_events(ledger.conn, market_id=market_id, event_type=event_type, limit=limit)
    return [EventItem(**r) for r in rows]


@app.get("/events/stats", response_model=EventsStatsResponse)
def events_stats(ledger: MarketLedger = Depends(get_ledger)) -> EventsStatsResponse:
    return EventsStatsResponse(**log_stats(ledger.conn))


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    config_dir: Path | None = None,
) -> None:
    global _config_profile, _config_dir
    _config_profile = profile
    _config_dir = config_dir
    import uvicorn

    uvicorn.run("predledger.api.main:app", host=host, port=port, reload=False)
