"""Settlement and fees: resolution, pro-rata payouts net of the platform fee, fee withdrawal.

Payout for a winning stake ``s`` on a market with total pool ``T``, fee
``f`` bps and winning pool ``W``::

    fee        = floor(T * f / 10000)
    prize_pool = T - fee
    payout     = floor(s * prize_pool / W)

Summed over all winners this never exceeds ``prize_pool``; the rounding
remainder stays in escrow.
"""

from __future__ import annotations

from dataclasses import dataclass

from predledger.engine.arithmetic import bps_of, checked_sub, mul_div
from predledger.engine.lifecycle import require_active
from predledger.errors import (
    AuthorizationError,
    ErrorCode,
    MarketValidationError,
    PayoutError,
    StateError,
)
from predledger.models import GlobalConfig, Market, MarketStatus, UserPosition


@dataclass(frozen=True)
class PayoutQuote:
    stake: int
    fee: int
    prize_pool: int
    winning_pool: int
    payout: int


def resolve(market: Market, config: GlobalConfig, caller: str, winning_outcome: int, now: int) -> Market:
    """Oracle or authority settles an expired, active market. One-shot."""
    if caller != market.oracle and caller != config.authority:
        raise AuthorizationError(ErrorCode.UNAUTHORIZED, "only the market oracle or platform authority may resolve")
    require_active(market)
    if now < market.end_time:
        raise StateError(ErrorCode.TOO_EARLY, f"market ends at {market.end_time}")
    if not market.has_outcome(winning_outcome):
        raise MarketValidationError(
            ErrorCode.INVALID_OUTCOME,
            f"outcome index {winning_outcome} not in [0, {len(market.outcomes)})",
        )
    # An outcome nobody backed may win; its pool then stays in escrow.
    return market.model_copy(update={"status": MarketStatus.RESOLVED, "winning_outcome": winning_outcome})


def platform_fee(market: Market, fee_bps: int) -> int:
    return bps_of(market.total_pool, fee_bps)


def quote_payout(market: Market, position: UserPosition, fee_bps: int) -> PayoutQuote:
    """Compute the payout for a position on a resolved market without checking claim state."""
    if market.status is not MarketStatus.RESOLVED or market.winning_outcome is None:
        raise StateError(ErrorCode.NOT_RESOLVED, f"market {market.market_id} is {market.status.value}")
    winner = market.winning_outcome
    stake = position.stake_on(winner)
    fee = platform_fee(market, fee_bps)
    prize_pool = checked_sub(market.total_pool, fee)
    winning_pool = market.outcome_pools[winner]
    payout = mul_div(stake, prize_pool, winning_pool) if stake else 0
    if payout > prize_pool:
        raise PayoutError(ErrorCode.INVALID_PAYOUT, f"payout {payout} exceeds prize pool {prize_pool}")
    return PayoutQuote(stake=stake, fee=fee, prize_pool=prize_pool, winning_pool=winning_pool, payout=payout)


def claim(
    market: Market,
    position: UserPosition,
    config: GlobalConfig,
    caller: str,
) -> tuple[UserPosition, PayoutQuote]:
    """Validate a claim; return the latched position and the payout to transfer."""
    if market.status is not MarketStatus.RESOLVED:
        raise StateError(ErrorCode.NOT_RESOLVED, f"market {market.market_id} is {market.status.value}")
    if position.claimed:
        raise StateError(ErrorCode.ALREADY_CLAIMED, f"{position.user} already claimed market {market.market_id}")
    if caller != position.user:
        raise AuthorizationError(ErrorCode.UNAUTHORIZED, "only the position owner may claim")
    quote = quote_payout(market, position, config.fee_bps)
    if quote.stake == 0:
        raise StateError(ErrorCode.NO_WINNING_BET, f"{position.user} has no stake on the winning outcome")
    return position.model_copy(update={"claimed": True}), quote


def collect(market: Market, config: GlobalConfig, caller: str) -> tuple[Market, int]:
    """Validate a fee withdrawal; return the latched market and the fee to transfer."""
    if caller != config.authority:
        raise AuthorizationError(ErrorCode.UNAUTHORIZED, "only the platform authority may collect fees")
    if market.status is not MarketStatus.RESOLVED:
        raise StateError(ErrorCode.NOT_RESOLVED, f"market {market.market_id} is {market.status.value}")
    if market.fees_collected:
        raise StateError(ErrorCode.FEES_ALREADY_COLLECTED, f"fees for market {market.market_id} were already collected")
    fee = platform_fee(market, config.fee_bps)
    return market.model_copy(update={"fees_collected": True}), fee
