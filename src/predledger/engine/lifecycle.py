"""Market lifecycle: platform setup, market creation and validation, emergency close.

Functions here are pure: they take records, validate, and return new
records. MarketLedger persists the results and moves value.
"""

from __future__ import annotations

from predledger.engine.arithmetic import U64_MAX, checked_add
from predledger.errors import AuthorizationError, ConfigError, ErrorCode, MarketValidationError, StateError
from predledger.models import GlobalConfig, Market, MarketStatus

MIN_OUTCOMES = 2
MAX_OUTCOMES = 8
MAX_QUESTION_LEN = 200
MAX_OUTCOME_LEN = 50
MAX_FEE_BPS = 500  # 5%
MIN_DURATION_SEC = 3600  # 1 hour
MAX_DURATION_SEC = 90 * 24 * 3600  # 90 days


def new_global_config(authority: str, fee_bps: int, fee_recipient: str, now: int) -> GlobalConfig:
    if fee_bps < 0 or fee_bps > MAX_FEE_BPS:
        raise ConfigError(ErrorCode.FEE_TOO_HIGH, f"fee_bps must be within [0, {MAX_FEE_BPS}], got {fee_bps}")
    return GlobalConfig(
        authority=authority,
        fee_bps=fee_bps,
        fee_recipient=fee_recipient,
        total_markets=0,
        initialized_at=now,
    )


def validate_market_params(
    market_id: int,
    question: str,
    outcomes: list[str],
    end_time: int,
    min_bet: int,
    now: int,
) -> None:
    """Raise MarketValidationError for the first failing check, in a fixed order."""
    if market_id < 0 or market_id > U64_MAX:
        raise MarketValidationError(ErrorCode.INVALID_MARKET_ID, "market id must fit an unsigned 64-bit integer")
    if not MIN_OUTCOMES <= len(outcomes) <= MAX_OUTCOMES:
        raise MarketValidationError(
            ErrorCode.INVALID_OUTCOMES,
            f"need {MIN_OUTCOMES}-{MAX_OUTCOMES} outcomes, got {len(outcomes)}",
        )
    for i, label in enumerate(outcomes):
        if not label.strip() or len(label) > MAX_OUTCOME_LEN:
            raise MarketValidationError(
                ErrorCode.INVALID_OUTCOME,
                f"outcome {i} must be non-blank and at most {MAX_OUTCOME_LEN} chars",
            )
    if not question.strip() or len(question) > MAX_QUESTION_LEN:
        raise MarketValidationError(
            ErrorCode.INVALID_QUESTION,
            f"question must be non-blank and at most {MAX_QUESTION_LEN} chars",
        )
    duration = end_time - now
    if end_time <= now or duration < MIN_DURATION_SEC:
        raise MarketValidationError(
            ErrorCode.INVALID_END_TIME,
            f"end_time must be at least {MIN_DURATION_SEC}s in the future",
        )
    if duration > MAX_DURATION_SEC:
        raise MarketValidationError(
            ErrorCode.END_TIME_TOO_FAR,
            f"end_time must be at most {MAX_DURATION_SEC}s in the future",
        )
    if min_bet <= 0 or min_bet > U64_MAX:
        raise MarketValidationError(ErrorCode.INVALID_MIN_BET, "min_bet must be positive")


def new_market(
    market_id: int,
    creator: str,
    question: str,
    outcomes: list[str],
    end_time: int,
    oracle: str,
    min_bet: int,
    now: int,
) -> Market:
    validate_market_params(market_id, question, outcomes, end_time, min_bet, now)
    return Market(
        market_id=market_id,
        creator=creator,
        question=question,
        outcomes=list(outcomes),
        end_time=end_time,
        oracle=oracle,
        min_bet=min_bet,
        status=MarketStatus.ACTIVE,
        total_pool=0,
        outcome_pools=[0] * len(outcomes),
        winning_outcome=None,
        created_at=now,
    )


def count_market(config: GlobalConfig) -> GlobalConfig:
    return config.model_copy(update={"total_markets": checked_add(config.total_markets, 1)})


def require_active(market: Market) -> None:
    """AlreadyResolved for resolved markets, MarketNotActive for cancelled ones."""
    if market.status is MarketStatus.RESOLVED:
        raise StateError(ErrorCode.ALREADY_RESOLVED, f"market {market.market_id} is already resolved")
    if market.status is not MarketStatus.ACTIVE:
        raise StateError(ErrorCode.MARKET_NOT_ACTIVE, f"market {market.market_id} is {market.status.value}")


def close(market: Market, config: GlobalConfig, caller: str) -> Market:
    if caller != config.authority:
        raise AuthorizationError(ErrorCode.UNAUTHORIZED, "only the platform authority may close markets")
    require_active(market)
    return market.model_copy(update={"status": MarketStatus.CANCELLED, "winning_outcome": None})
