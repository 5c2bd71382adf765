"""UserPosition - one user's cumulative stakes in one market."""

from __future__ import annotations

from pydantic import BaseModel, Field


class UserPosition(BaseModel):
    user: str
    market_id: int
    bets: list[int] = Field(default_factory=list)  # parallel to Market.outcomes
    total_bet: int = 0
    claimed: bool = False

    @classmethod
    def empty(cls, user: str, market_id: int, outcome_count: int) -> UserPosition:
        """Zero position, created lazily on the user's first bet."""
        return cls(user=user, market_id=market_id, bets=[0] * outcome_count)

    def stake_on(self, index: int) -> int:
        if 0 <= index < len(self.bets):
            return self.bets[index]
        return 0
