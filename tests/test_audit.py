"""Event-log replay reconciles with stored records and escrow."""

import pytest

from conftest import HOUR, fund, make_market
from predledger.replay.audit import audit_all, audit_market, replay_market
from predledger.storage.keys import escrow_account, market_key


@pytest.fixture
def settled(platform, clock):
    make_market(platform, market_id=1)
    make_market(platform, market_id=2, outcomes=("A", "B", "C"))
    fund(platform, "u1", "u2")
    platform.place_bet("u1", 1, 0, 100)
    platform.place_bet("u2", 1, 1, 300)
    platform.place_bet("u2", 2, 2, 500)
    clock.advance(2 * HOUR)
    platform.resolve_market("oracle", 1, 0)
    platform.claim_winnings("u1", 1)
    platform.collect_fees("admin", 1)
    platform.close_market("admin", 2)
    return platform


def test_replay_rebuilds_market(settled):
    state = replay_market(settled.conn, 1)
    assert state.outcome_pools == [100, 300]
    assert state.winning_outcome == 0
    assert state.bets == {"u1": [100, 0], "u2": [0, 300]}
    assert state.claimed == {"u1"}
    assert state.paid_out == 392
    assert state.fees_paid == 8


def test_clean_ledger_audits_ok(settled):
    reports = audit_all(settled.conn, settled.transfer)
    assert [r.market_id for r in sorted(reports, key=lambda r: r.market_id)] == [1, 2]
    assert all(r.ok for r in reports), [r.discrepancies for r in reports]


def test_tampered_pool_detected(settled):
    settled.conn.execute(
        "UPDATE markets SET total_pool = total_pool + 1 WHERE market_key = ?", [market_key(2)]
    )
    report = audit_market(settled.conn, 2)
    assert not report.ok
    assert any("total_pool" in issue for issue in report.discrepancies)


def test_drained_escrow_detected(settled):
    settled.conn.execute("UPDATE balances SET amount = amount - 5 WHERE account = ?", [escrow_account(2)])
    report = audit_market(settled.conn, 2, settled.transfer)
    assert report.discrepancies == ["escrow holds 495, expected 500"]


def test_unknown_market_audit(settled):
    report = audit_market(settled.conn, 42)
    assert report.discrepancies == ["market record missing"]
