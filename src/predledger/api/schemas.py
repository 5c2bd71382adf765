"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from predledger.models import GlobalConfig, Market, UserPosition


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str = Field(..., description="Machine-readable code, e.g. BetTooSmall, Unauthorized")
    kind: str | None = Field(None, description="Error kind: config, validation, state, authorization, ...")


# --- Platform ---
class InitializeRequest(BaseModel):
    fee_bps: int = Field(..., ge=0)
    fee_recipient: str = Field(..., min_length=1)


class PlatformResponse(GlobalConfig):
    pass


# --- Markets ---
class CreateMarketRequest(BaseModel):
    market_id: int = Field(..., ge=0)
    question: str
    outcomes: list[str]
    end_time: int = Field(..., description="Betting close, unix seconds")
    oracle: str = Field(..., min_length=1)
    min_bet: int


class MarketDetailResponse(Market):
    escrow_balance: int | None = None


class MarketsListResponse(BaseModel):
    markets: list[Market]
    total: int


class PlaceBetRequest(BaseModel):
    outcome_index: int
    amount: int


class ResolveRequest(BaseModel):
    winning_outcome: int


# --- Positions / settlement ---
class PositionResponse(UserPosition):
    payout: int | None = Field(None, description="Claimable amount once the market is resolved")


class ClaimResponse(BaseModel):
    market_id: int
    user: str
    stake: int
    amount: int


class FeesResponse(BaseModel):
    market_id: int
    amount: int
    recipient: str | None = None


# --- Accounts ---
class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0)


class BalanceResponse(BaseModel):
    account: str
    balance: int


# --- Events / audit ---
class EventsStatsResponse(BaseModel):
    total_events: int
    min_created_at: int | None
    max_created_at: int | None
    by_type: list[dict[str, Any]]
    by_market: list[dict[str, Any]]


class EventItem(BaseModel):
    id: int
    event_type: str
    market_id: int | None = None
    created_at: int
    payload: dict[str, Any]


class AuditResponse(BaseModel):
    market_id: int
    ok: bool
    events_replayed: int
    discrepancies: list[str] = Field(default_factory=list)
