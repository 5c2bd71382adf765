"""Deterministic replay of the ledger event log and reconciliation against stored records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from predledger.models import (
    BetPlaced,
    FeesCollected,
    MarketClosed,
    MarketCreated,
    MarketResolved,
    MarketStatus,
    WinningsClaimed,
)
from predledger.storage import records
from predledger.storage.event_log import stream_events
from predledger.storage.keys import escrow_account

if TYPE_CHECKING:
    from predledger.transfer import ValueTransfer


@dataclass
class ReplayState:
    """Market state rebuilt purely from events."""

    market_id: int
    outcome_pools: list[int]
    status: MarketStatus = MarketStatus.ACTIVE
    winning_outcome: int | None = None
    bets: dict[str, list[int]] = field(default_factory=dict)
    claimed: set[str] = field(default_factory=set)
    paid_out: int = 0
    fees_paid: int = 0
    events: int = 0

    @property
    def total_pool(self) -> int:
        return sum(self.outcome_pools)


@dataclass
class AuditReport:
    market_id: int
    events_replayed: int = 0
    discrepancies: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.discrepancies

    def to_dict(self) -> dict[str, Any]:
        return {
            "market_id": self.market_id,
            "ok": self.ok,
            "events_replayed": self.events_replayed,
            "discrepancies": list(self.discrepancies),
        }


def replay_market(conn: Any, market_id: int) -> ReplayState | None:
    """Fold the market's events in append order. None if no MarketCreated event exists."""
    state: ReplayState | None = None
    for event, _created_at in stream_events(conn, market_id=market_id):
        if isinstance(event, MarketCreated):
            state = ReplayState(market_id=market_id, outcome_pools=[0] * len(event.outcomes))
        if state is None:
            continue
        state.events += 1
        if isinstance(event, BetPlaced):
            state.outcome_pools[event.outcome_index] += event.amount
            user_bets = state.bets.setdefault(event.user, [0] * len(state.outcome_pools))
            user_bets[event.outcome_index] += event.amount
        elif isinstance(event, MarketResolved):
            state.status = MarketStatus.RESOLVED
            state.winning_outcome = event.winning_outcome
        elif isinstance(event, MarketClosed):
            state.status = MarketStatus.CANCELLED
        elif isinstance(event, WinningsClaimed):
            state.claimed.add(event.user)
            state.paid_out += event.amount
        elif isinstance(event, FeesCollected):
            state.fees_paid += event.amount
    return state


def audit_market(conn: Any, market_id: int, transfer: ValueTransfer | None = None) -> AuditReport:
    """Compare the stored market and its positions with the replayed event log.

    With a ``transfer`` backend, also checks that escrow holds exactly the
    pool minus everything paid out.
    """
    report = AuditReport(market_id=market_id)
    market = records.get_market(conn, market_id)
    state = replay_market(conn, market_id)
    if market is None:
        report.discrepancies.append("market record missing")
        return report
    if state is None:
        report.discrepancies.append("no market_created event")
        return report
    report.events_replayed = state.events
    issues = report.discrepancies

    if market.total_pool != sum(market.outcome_pools):
        issues.append(f"total_pool {market.total_pool} != sum(outcome_pools) {sum(market.outcome_pools)}")
    if market.outcome_pools != state.outcome_pools:
        issues.append(f"outcome_pools {market.outcome_pools} != replayed {state.outcome_pools}")
    if market.status is not state.status:
        issues.append(f"status {market.status.value} != replayed {state.status.value}")
    if market.winning_outcome != state.winning_outcome:
        issues.append(f"winning_outcome {market.winning_outcome} != replayed {state.winning_outcome}")
    if state.fees_paid and not market.fees_collected:
        issues.append("fees were paid but the market is not latched as collected")

    positions = {p.user: p for p in records.list_positions(conn, market_id=market_id)}
    for user in sorted(set(positions) | set(state.bets)):
        position = positions.get(user)
        if position is None:
            issues.append(f"{user}: bets in log but no position record")
            continue
        if position.total_bet != sum(position.bets):
            issues.append(f"{user}: total_bet {position.total_bet} != sum(bets) {sum(position.bets)}")
        replayed = state.bets.get(user)
        if position.bets != replayed:
            issues.append(f"{user}: bets {position.bets} != replayed {replayed}")
        if position.claimed != (user in state.claimed):
            issues.append(f"{user}: claimed={position.claimed} disagrees with log")

    if transfer is not None:
        expected = state.total_pool - state.paid_out - state.fees_paid
        held = transfer.balance_of(escrow_account(market_id))
        if held != expected:
            issues.append(f"escrow holds {held}, expected {expected}")
    return report


def audit_all(conn: Any, transfer: ValueTransfer | None = None) -> list[AuditReport]:
    return [audit_market(conn, m.market_id, transfer) for m in records.list_markets(conn)]
