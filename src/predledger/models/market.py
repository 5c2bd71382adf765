"""Market and MarketStatus."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class MarketStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class Market(BaseModel):
    """Pari-mutuel market: one pool per outcome, escrowed until settlement."""

    market_id: int
    creator: str
    question: str
    outcomes: list[str]
    end_time: int  # unix seconds
    oracle: str
    min_bet: int
    status: MarketStatus = MarketStatus.ACTIVE
    total_pool: int = 0
    outcome_pools: list[int] = Field(default_factory=list)
    winning_outcome: int | None = None
    created_at: int
    fees_collected: bool = False

    @property
    def is_active(self) -> bool:
        return self.status is MarketStatus.ACTIVE

    @property
    def is_resolved(self) -> bool:
        return self.status is MarketStatus.RESOLVED

    @property
    def winning_pool(self) -> int:
        if self.winning_outcome is None:
            return 0
        return self.outcome_pools[self.winning_outcome]

    def has_outcome(self, index: int) -> bool:
        return 0 <= index < len(self.outcomes)
