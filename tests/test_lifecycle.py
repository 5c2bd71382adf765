"""Platform initialization, market creation validation, emergency close."""

import pytest

from conftest import HOUR, fund, make_market
from predledger.errors import (
    AuthorizationError,
    ConfigError,
    ErrorCode,
    MarketValidationError,
    NotFoundError,
    StateError,
)
from predledger.models import MarketStatus
from predledger.storage.event_log import list_events

DAY = 24 * HOUR


def test_initialize_sets_authority_and_fee(ledger):
    config = ledger.initialize("admin", 250, "treasury")
    assert config.authority == "admin"
    assert config.fee_bps == 250
    assert config.total_markets == 0
    stored = ledger.get_global_config()
    assert stored.fee_recipient == "treasury"
    events = list_events(ledger.conn, event_type="platform_initialized")
    assert len(events) == 1
    assert events[0]["payload"]["authority"] == "admin"


def test_initialize_fee_bounds(ledger):
    with pytest.raises(ConfigError) as exc:
        ledger.initialize("admin", 501, "treasury")
    assert exc.value.code is ErrorCode.FEE_TOO_HIGH
    ledger.initialize("admin", 500, "treasury")
    assert ledger.get_global_config().fee_bps == 500


def test_initialize_twice_rejected(platform):
    with pytest.raises(ConfigError) as exc:
        platform.initialize("mallory", 0, "mallory")
    assert exc.value.code is ErrorCode.ALREADY_INITIALIZED
    assert platform.get_global_config().authority == "admin"


def test_create_market_zeroed_pools(platform):
    market = make_market(platform, outcomes=("A", "B", "C"))
    assert market.status is MarketStatus.ACTIVE
    assert market.outcome_pools == [0, 0, 0]
    assert market.total_pool == 0
    assert market.winning_outcome is None
    stored = platform.get_market(1)
    assert stored.model_dump() == market.model_dump()
    assert platform.get_global_config().total_markets == 1
    created = list_events(platform.conn, market_id=1, event_type="market_created")
    assert created[0]["payload"]["outcomes"] == ["A", "B", "C"]


def test_create_market_requires_platform(ledger):
    with pytest.raises(NotFoundError) as exc:
        make_market(ledger)
    assert exc.value.code is ErrorCode.NOT_INITIALIZED


def test_duplicate_market_rejected(platform):
    make_market(platform, market_id=7)
    with pytest.raises(MarketValidationError) as exc:
        make_market(platform, market_id=7)
    assert exc.value.code is ErrorCode.DUPLICATE_MARKET
    assert platform.get_global_config().total_markets == 1


@pytest.mark.parametrize(
    "outcomes, question, offset, min_bet, code",
    [
        (["Yes"], "Q?", 2 * HOUR, 1, ErrorCode.INVALID_OUTCOMES),
        ([str(i) for i in range(9)], "Q?", 2 * HOUR, 1, ErrorCode.INVALID_OUTCOMES),
        (["Yes", "   "], "Q?", 2 * HOUR, 1, ErrorCode.INVALID_OUTCOME),
        (["Yes", "x" * 51], "Q?", 2 * HOUR, 1, ErrorCode.INVALID_OUTCOME),
        (["Yes", "No"], "  ", 2 * HOUR, 1, ErrorCode.INVALID_QUESTION),
        (["Yes", "No"], "q" * 201, 2 * HOUR, 1, ErrorCode.INVALID_QUESTION),
        (["Yes", "No"], "Q?", 0, 1, ErrorCode.INVALID_END_TIME),
        (["Yes", "No"], "Q?", -10, 1, ErrorCode.INVALID_END_TIME),
        (["Yes", "No"], "Q?", HOUR - 1, 1, ErrorCode.INVALID_END_TIME),
        (["Yes", "No"], "Q?", 90 * DAY + 1, 1, ErrorCode.END_TIME_TOO_FAR),
        (["Yes", "No"], "Q?", 2 * HOUR, 0, ErrorCode.INVALID_MIN_BET),
        # outcome count is checked before the question
        (["Yes"], "", 2 * HOUR, 0, ErrorCode.INVALID_OUTCOMES),
    ],
)
def test_create_market_validation(platform, clock, outcomes, question, offset, min_bet, code):
    with pytest.raises(MarketValidationError) as exc:
        platform.create_market("creator", 1, question, outcomes, clock() + offset, "oracle", min_bet)
    assert exc.value.code is code
    assert platform.conn.execute("SELECT COUNT(*) FROM markets").fetchone()[0] == 0
    assert platform.get_global_config().total_markets == 0


def test_create_market_duration_edges(platform, clock):
    platform.create_market("c", 1, "Q?", ["Yes", "No"], clock() + HOUR, "oracle", 1)
    platform.create_market("c", 2, "Q?", ["Yes", "No"], clock() + 90 * DAY, "oracle", 1)
    platform.create_market("c", 3, "q" * 200, ["y" * 50, "n"], clock() + HOUR, "oracle", 1)
    assert platform.get_global_config().total_markets == 3


def test_close_market_by_authority(platform):
    make_market(platform)
    market = platform.close_market("admin", 1)
    assert market.status is MarketStatus.CANCELLED
    assert market.winning_outcome is None
    assert platform.get_market(1).status is MarketStatus.CANCELLED


def test_close_market_unauthorized(platform):
    make_market(platform)
    with pytest.raises(AuthorizationError):
        platform.close_market("oracle", 1)
    assert platform.get_market(1).status is MarketStatus.ACTIVE


def test_cancelled_market_is_terminal(platform, clock):
    make_market(platform)
    fund(platform, "u1")
    platform.close_market("admin", 1)
    with pytest.raises(StateError) as exc:
        platform.place_bet("u1", 1, 0, 100)
    assert exc.value.code is ErrorCode.MARKET_NOT_ACTIVE
    clock.advance(3 * HOUR)
    with pytest.raises(StateError) as exc:
        platform.resolve_market("oracle", 1, 0)
    assert exc.value.code is ErrorCode.MARKET_NOT_ACTIVE
    with pytest.raises(StateError) as exc:
        platform.close_market("admin", 1)
    assert exc.value.code is ErrorCode.MARKET_NOT_ACTIVE


def test_close_resolved_market_rejected(platform, clock):
    make_market(platform)
    clock.advance(2 * HOUR)
    platform.resolve_market("oracle", 1, 0)
    with pytest.raises(StateError) as exc:
        platform.close_market("admin", 1)
    assert exc.value.code is ErrorCode.ALREADY_RESOLVED


def test_unknown_market(platform):
    with pytest.raises(NotFoundError) as exc:
        platform.get_market(99)
    assert exc.value.code is ErrorCode.MARKET_NOT_FOUND
