"""Notification events emitted by ledger operations, persisted to ledger_events."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class LedgerEvent(BaseModel):
    event_type: str
    market_id: int | None = None


class PlatformInitialized(LedgerEvent):
    event_type: Literal["platform_initialized"] = "platform_initialized"
    authority: str
    fee_bps: int
    fee_recipient: str


class MarketCreated(LedgerEvent):
    event_type: Literal["market_created"] = "market_created"
    market_id: int
    creator: str
    question: str
    outcomes: list[str]
    end_time: int
    oracle: str
    min_bet: int
    created_at: int


class BetPlaced(LedgerEvent):
    event_type: Literal["bet_placed"] = "bet_placed"
    market_id: int
    user: str
    outcome_index: int
    amount: int
    total_pool: int  # running pool after this bet


class MarketResolved(LedgerEvent):
    event_type: Literal["market_resolved"] = "market_resolved"
    market_id: int
    winning_outcome: int
    resolver: str
    total_pool: int
    winning_pool: int


class WinningsClaimed(LedgerEvent):
    event_type: Literal["winnings_claimed"] = "winnings_claimed"
    market_id: int
    user: str
    stake: int
    amount: int


class FeesCollected(LedgerEvent):
    event_type: Literal["fees_collected"] = "fees_collected"
    market_id: int
    recipient: str
    amount: int


class MarketClosed(LedgerEvent):
    event_type: Literal["market_closed"] = "market_closed"
    market_id: int
    authority: str


AnyLedgerEvent = Annotated[
    Union[
        PlatformInitialized,
        MarketCreated,
        BetPlaced,
        MarketResolved,
        WinningsClaimed,
        FeesCollected,
        MarketClosed,
    ],
    Field(discriminator="event_type"),
]

_event_adapter: TypeAdapter[Any] = TypeAdapter(AnyLedgerEvent)


def parse_event(payload: dict[str, Any]) -> LedgerEvent:
    """Rebuild a typed event from its stored JSON payload."""
    return _event_adapter.validate_python(payload)
