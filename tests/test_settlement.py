"""Resolution, pro-rata claims net of fee, and fee collection."""

import pytest

from conftest import HOUR, fund, make_market
from predledger.errors import AuthorizationError, ErrorCode, MarketValidationError, StateError
from predledger.models import MarketStatus
from predledger.storage.event_log import list_events


@pytest.fixture
def expired_market(platform, clock):
    """Scenario: Yes/No, min bet 100; u1 100 on Yes, u2 300 on No; window elapsed."""
    make_market(platform)
    fund(platform, "u1", "u2", "u3")
    platform.place_bet("u1", 1, 0, 100)
    platform.place_bet("u2", 1, 1, 300)
    clock.advance(2 * HOUR)
    return platform


def test_pari_mutuel_payout_and_fee(expired_market):
    ledger = expired_market
    ledger.resolve_market("oracle", 1, 0)

    quote = ledger.quote("u1", 1)
    assert (quote.fee, quote.prize_pool, quote.winning_pool, quote.payout) == (8, 392, 100, 392)

    claimed = ledger.claim_winnings("u1", 1)
    assert claimed.amount == 392
    assert claimed.stake == 100
    assert ledger.transfer.balance_of("u1") == 10_000 - 100 + 392
    assert ledger.get_position("u1", 1).claimed

    fees = ledger.collect_fees("admin", 1)
    assert fees.amount == 8
    assert fees.recipient == "treasury"
    assert ledger.transfer.balance_of("treasury") == 8
    assert ledger.escrow_balance(1) == 0


def test_resolve_records_winner_once(expired_market):
    market = expired_market.resolve_market("oracle", 1, 1)
    assert market.status is MarketStatus.RESOLVED
    assert market.winning_outcome == 1
    with pytest.raises(StateError) as exc:
        expired_market.resolve_market("oracle", 1, 0)
    assert exc.value.code is ErrorCode.ALREADY_RESOLVED
    assert expired_market.get_market(1).winning_outcome == 1
    event = list_events(expired_market.conn, event_type="market_resolved")[0]
    assert event["payload"]["winning_pool"] == 300
    assert event["payload"]["resolver"] == "oracle"


def test_authority_may_resolve(expired_market):
    assert expired_market.resolve_market("admin", 1, 0).winning_outcome == 0


def test_resolve_by_stranger_rejected(expired_market):
    with pytest.raises(AuthorizationError) as exc:
        expired_market.resolve_market("u2", 1, 1)
    assert exc.value.code is ErrorCode.UNAUTHORIZED
    market = expired_market.get_market(1)
    assert market.status is MarketStatus.ACTIVE
    assert market.winning_outcome is None


def test_resolve_before_end_time(platform, clock):
    market = make_market(platform)
    clock.now = market.end_time - 1
    with pytest.raises(StateError) as exc:
        platform.resolve_market("oracle", 1, 0)
    assert exc.value.code is ErrorCode.TOO_EARLY
    clock.now = market.end_time
    platform.resolve_market("oracle", 1, 0)


def test_resolve_invalid_outcome(expired_market):
    with pytest.raises(MarketValidationError) as exc:
        expired_market.resolve_market("oracle", 1, 2)
    assert exc.value.code is ErrorCode.INVALID_OUTCOME


def test_claim_exactly_once(expired_market):
    ledger = expired_market
    ledger.resolve_market("oracle", 1, 0)
    ledger.claim_winnings("u1", 1)
    balance = ledger.transfer.balance_of("u1")
    with pytest.raises(StateError) as exc:
        ledger.claim_winnings("u1", 1)
    assert exc.value.code is ErrorCode.ALREADY_CLAIMED
    assert ledger.transfer.balance_of("u1") == balance
    assert len(list_events(ledger.conn, event_type="winnings_claimed")) == 1


def test_claim_without_winning_stake(expired_market):
    ledger = expired_market
    ledger.resolve_market("oracle", 1, 0)
    with pytest.raises(StateError) as exc:
        ledger.claim_winnings("u2", 1)
    assert exc.value.code is ErrorCode.NO_WINNING_BET
    # never bet at all
    with pytest.raises(StateError) as exc:
        ledger.claim_winnings("u3", 1)
    assert exc.value.code is ErrorCode.NO_WINNING_BET
    assert not ledger.get_position("u2", 1).claimed


def test_claim_before_resolution(expired_market):
    with pytest.raises(StateError) as exc:
        expired_market.claim_winnings("u1", 1)
    assert exc.value.code is ErrorCode.NOT_RESOLVED


def test_claim_for_someone_else(expired_market):
    expired_market.resolve_market("oracle", 1, 0)
    with pytest.raises(AuthorizationError):
        expired_market.claim_winnings("u2", 1, user="u1")
    assert not expired_market.get_position("u1", 1).claimed


def test_cancelled_market_never_pays(expired_market):
    expired_market.close_market("admin", 1)
    with pytest.raises(StateError) as exc:
        expired_market.claim_winnings("u1", 1)
    assert exc.value.code is ErrorCode.NOT_RESOLVED
    with pytest.raises(StateError):
        expired_market.collect_fees("admin", 1)
    assert expired_market.escrow_balance(1) == 400


def test_payout_conservation_with_rounding(platform, clock):
    make_market(platform, min_bet=1)
    winners = {"w1": 7, "w2": 11, "w3": 13}
    fund(platform, *winners, "l1", "l2")
    for user, stake in winners.items():
        platform.place_bet(user, 1, 0, stake)
    platform.place_bet("l1", 1, 1, 29)
    platform.place_bet("l2", 1, 1, 17)
    clock.advance(2 * HOUR)
    platform.resolve_market("oracle", 1, 0)

    total = 7 + 11 + 13 + 29 + 17
    fee = total * 200 // 10_000
    paid = sum(platform.claim_winnings(user, 1).amount for user in winners)
    assert paid <= total - fee
    assert paid >= total - fee - len(winners)
    platform.collect_fees("admin", 1)
    assert platform.escrow_balance(1) == total - fee - paid


def test_payout_below_stake_when_everyone_backs_winner(platform, clock):
    make_market(platform)
    fund(platform, "u1", "u2")
    platform.place_bet("u1", 1, 0, 100)
    platform.place_bet("u2", 1, 0, 100)
    clock.advance(2 * HOUR)
    platform.resolve_market("oracle", 1, 0)
    # fee 4 of 200 comes out of the winners' own stakes
    assert platform.claim_winnings("u1", 1).amount == 98
    assert platform.claim_winnings("u2", 1).amount == 98
    assert platform.collect_fees("admin", 1).amount == 4
    assert platform.escrow_balance(1) == 0


def test_resolve_to_unbacked_outcome(platform, clock):
    make_market(platform, outcomes=("A", "B", "C"))
    fund(platform, "u1")
    platform.place_bet("u1", 1, 0, 1_000)
    clock.advance(2 * HOUR)
    market = platform.resolve_market("oracle", 1, 2)
    assert market.winning_pool == 0
    with pytest.raises(StateError) as exc:
        platform.claim_winnings("u1", 1)
    assert exc.value.code is ErrorCode.NO_WINNING_BET
    assert platform.collect_fees("admin", 1).amount == 20
    assert platform.escrow_balance(1) == 980


def test_fees_collected_once(expired_market):
    ledger = expired_market
    ledger.resolve_market("oracle", 1, 1)
    ledger.collect_fees("admin", 1)
    with pytest.raises(StateError) as exc:
        ledger.collect_fees("admin", 1)
    assert exc.value.code is ErrorCode.FEES_ALREADY_COLLECTED
    assert ledger.transfer.balance_of("treasury") == 8
    assert ledger.get_market(1).fees_collected


def test_collect_fees_guards(expired_market):
    with pytest.raises(StateError) as exc:
        expired_market.collect_fees("admin", 1)
    assert exc.value.code is ErrorCode.NOT_RESOLVED
    expired_market.resolve_market("oracle", 1, 0)
    with pytest.raises(AuthorizationError):
        expired_market.collect_fees("oracle", 1)
    assert expired_market.transfer.balance_of("treasury") == 0


def test_zero_fee_collects_nothing(ledger, clock):
    ledger.initialize("admin", 0, "treasury")
    make_market(ledger)
    fund(ledger, "u1")
    ledger.place_bet("u1", 1, 0, 100)
    clock.advance(2 * HOUR)
    ledger.resolve_market("oracle", 1, 0)
    assert ledger.collect_fees("admin", 1) is None
    assert ledger.get_market(1).fees_collected
    assert ledger.claim_winnings("u1", 1).amount == 100
