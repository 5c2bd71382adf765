"""Bet accounting: pool totals and per-user stakes."""

from __future__ import annotations

from predledger.engine.arithmetic import checked_add
from predledger.errors import ErrorCode, MarketValidationError, StateError
from predledger.models import Market, UserPosition


def apply_bet(
    market: Market,
    position: UserPosition,
    outcome_index: int,
    amount: int,
    now: int,
) -> tuple[Market, UserPosition]:
    """Validate a bet and return the updated (market, position). Inputs are not mutated."""
    if not market.is_active:
        raise StateError(ErrorCode.MARKET_NOT_ACTIVE, f"market {market.market_id} is {market.status.value}")
    if now >= market.end_time:
        raise StateError(ErrorCode.MARKET_EXPIRED, f"betting closed at {market.end_time}")
    if not market.has_outcome(outcome_index):
        raise MarketValidationError(
            ErrorCode.INVALID_OUTCOME,
            f"outcome index {outcome_index} not in [0, {len(market.outcomes)})",
        )
    if amount < market.min_bet:
        raise MarketValidationError(ErrorCode.BET_TOO_SMALL, f"minimum bet is {market.min_bet}, got {amount}")

    pools = list(market.outcome_pools)
    pools[outcome_index] = checked_add(pools[outcome_index], amount)
    total_pool = checked_add(market.total_pool, amount)

    bets = list(position.bets)
    bets[outcome_index] = checked_add(bets[outcome_index], amount)
    total_bet = checked_add(position.total_bet, amount)

    return (
        market.model_copy(update={"total_pool": total_pool, "outcome_pools": pools}),
        position.model_copy(update={"bets": bets, "total_bet": total_bet}),
    )
