"""Ledger records (Pydantic) - GlobalConfig, Market, UserPosition, events."""

from predledger.models.events import (
    BetPlaced,
    FeesCollected,
    LedgerEvent,
    MarketClosed,
    MarketCreated,
    MarketResolved,
    PlatformInitialized,
    WinningsClaimed,
    parse_event,
)
from predledger.models.market import Market, MarketStatus
from predledger.models.platform import GlobalConfig
from predledger.models.position import UserPosition

__all__ = [
    "GlobalConfig",
    "Market",
    "MarketStatus",
    "UserPosition",
    "LedgerEvent",
    "PlatformInitialized",
    "MarketCreated",
    "BetPlaced",
    "MarketResolved",
    "WinningsClaimed",
    "FeesCollected",
    "MarketClosed",
    "parse_event",
]
