"""MarketLedger - the operations front: records in, validation, transfer, persist, notify."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator

import duckdb
import structlog

from predledger.engine import betting, lifecycle, settlement
from predledger.engine.settlement import PayoutQuote
from predledger.errors import ErrorCode, LedgerError, NotFoundError, StateError
from predledger.models import (
    BetPlaced,
    FeesCollected,
    GlobalConfig,
    LedgerEvent,
    Market,
    MarketClosed,
    MarketCreated,
    MarketResolved,
    PlatformInitialized,
    UserPosition,
    WinningsClaimed,
)
from predledger.storage import records
from predledger.storage.db import transaction
from predledger.storage.event_log import append_event
from predledger.storage.keys import escrow_account
from predledger.transfer import BalanceBook, UserSignature, ValueTransfer

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


def system_clock() -> int:
    return int(time.time())


class MarketLedger:
    """Runs each ledger operation as one transaction on the given connection.

    Every operation reads its records, validates, computes the new records,
    requests the value transfer, writes the records and appends the event.
    Any failure rolls the whole transaction back, transfer included.
    """

    def __init__(
        self,
        conn: DuckDBPyConnection,
        transfer: ValueTransfer | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.conn = conn
        self.transfer = transfer or BalanceBook(conn)
        self.clock = clock or system_clock
        self._escrow_authority = self.transfer.issue_escrow_authority()

    @contextmanager
    def _operation(self, name: str, **fields: Any) -> Iterator[Any]:
        op_log = log.bind(operation=name, **fields)
        try:
            with transaction(self.conn):
                yield op_log
        except LedgerError as e:
            op_log.warning("operation_rejected", code=e.code.value, kind=e.kind, detail=e.message)
            raise
        except (duckdb.ConstraintException, duckdb.TransactionException) as e:
            # Another connection committed a write to the same rows first.
            conflict = StateError(ErrorCode.CONCURRENT_UPDATE, f"conflicting concurrent update: {e}")
            op_log.warning("operation_rejected", code=conflict.code.value, kind=conflict.kind, detail=str(e))
            raise conflict from e

    def _emit(self, event: LedgerEvent, now: int) -> None:
        append_event(self.conn, event, now)

    def _require_config(self) -> GlobalConfig:
        config = records.get_global_config(self.conn)
        if config is None:
            raise NotFoundError(ErrorCode.NOT_INITIALIZED, "platform is not initialized")
        return config

    def _require_market(self, market_id: int) -> Market:
        market = records.get_market(self.conn, market_id)
        if market is None:
            raise NotFoundError(ErrorCode.MARKET_NOT_FOUND, f"market {market_id} does not exist")
        return market

    # --- operations ---

    def initialize(self, caller: str, fee_bps: int, fee_recipient: str) -> GlobalConfig:
        """Create the platform config; the caller becomes the authority."""
        with self._operation("initialize", caller=caller) as op_log:
            now = self.clock()
            config = lifecycle.new_global_config(caller, fee_bps, fee_recipient, now)
            records.create_global_config(self.conn, config)
            self._emit(
                PlatformInitialized(authority=caller, fee_bps=fee_bps, fee_recipient=fee_recipient),
                now,
            )
            op_log.info("platform_initialized", fee_bps=fee_bps, fee_recipient=fee_recipient)
            return config

    def create_market(
        self,
        caller: str,
        market_id: int,
        question: str,
        outcomes: list[str],
        end_time: int,
        oracle: str,
        min_bet: int,
    ) -> Market:
        with self._operation("create_market", caller=caller, market_id=market_id) as op_log:
            now = self.clock()
            market = lifecycle.new_market(market_id, caller, question, outcomes, end_time, oracle, min_bet, now)
            config = lifecycle.count_market(self._require_config())
            records.insert_market(self.conn, market)
            records.save_total_markets(self.conn, config.total_markets)
            self._emit(
                MarketCreated(
                    market_id=market.market_id,
                    creator=market.creator,
                    question=market.question,
                    outcomes=market.outcomes,
                    end_time=market.end_time,
                    oracle=market.oracle,
                    min_bet=market.min_bet,
                    created_at=market.created_at,
                ),
                now,
            )
            op_log.info("market_created", outcomes=len(outcomes), end_time=end_time, total_markets=config.total_markets)
            return market

    def place_bet(self, caller: str, market_id: int, outcome_index: int, amount: int) -> UserPosition:
        """Stake amount on an outcome; the caller funds it from their own account."""
        with self._operation("place_bet", caller=caller, market_id=market_id) as op_log:
            now = self.clock()
            market = self._require_market(market_id)
            position = records.get_position(self.conn, caller, market_id) or UserPosition.empty(
                caller, market_id, len(market.outcomes)
            )
            market, position = betting.apply_bet(market, position, outcome_index, amount, now)
            self.transfer.transfer(caller, escrow_account(market_id), amount, UserSignature(caller))
            records.save_market(self.conn, market)
            records.save_position(self.conn, position)
            self._emit(
                BetPlaced(
                    market_id=market_id,
                    user=caller,
                    outcome_index=outcome_index,
                    amount=amount,
                    total_pool=market.total_pool,
                ),
                now,
            )
            op_log.info("bet_placed", outcome_index=outcome_index, amount=amount, total_pool=market.total_pool)
            return position

    def resolve_market(self, caller: str, market_id: int, winning_outcome: int) -> Market:
        with self._operation("resolve_market", caller=caller, market_id=market_id) as op_log:
            now = self.clock()
            config = self._require_config()
            market = settlement.resolve(self._require_market(market_id), config, caller, winning_outcome, now)
            records.save_market(self.conn, market)
            self._emit(
                MarketResolved(
                    market_id=market_id,
                    winning_outcome=winning_outcome,
                    resolver=caller,
                    total_pool=market.total_pool,
                    winning_pool=market.winning_pool,
                ),
                now,
            )
            op_log.info("market_resolved", winning_outcome=winning_outcome, winning_pool=market.winning_pool)
            return market

    def claim_winnings(self, caller: str, market_id: int, user: str | None = None) -> WinningsClaimed:
        """Pay out the caller's (or ``user``'s) winning stake. Only the owner may claim."""
        owner = user if user is not None else caller
        with self._operation("claim_winnings", caller=caller, market_id=market_id) as op_log:
            now = self.clock()
            config = self._require_config()
            market = self._require_market(market_id)
            # A user who never bet holds an implicit zero position.
            position = records.get_position(self.conn, owner, market_id) or UserPosition.empty(
                owner, market_id, len(market.outcomes)
            )
            position, quote = settlement.claim(market, position, config, caller)
            if quote.payout > 0:
                self.transfer.transfer(escrow_account(market_id), owner, quote.payout, self._escrow_authority)
            records.save_position(self.conn, position)
            event = WinningsClaimed(market_id=market_id, user=owner, stake=quote.stake, amount=quote.payout)
            self._emit(event, now)
            op_log.info("winnings_claimed", stake=quote.stake, payout=quote.payout)
            return event

    def collect_fees(self, caller: str, market_id: int) -> FeesCollected | None:
        """Withdraw the platform fee to the fee recipient. None when the fee rounds to zero."""
        with self._operation("collect_fees", caller=caller, market_id=market_id) as op_log:
            now = self.clock()
            config = self._require_config()
            market, fee = settlement.collect(self._require_market(market_id), config, caller)
            event = None
            if fee > 0:
                self.transfer.transfer(escrow_account(market_id), config.fee_recipient, fee, self._escrow_authority)
                event = FeesCollected(market_id=market_id, recipient=config.fee_recipient, amount=fee)
                self._emit(event, now)
            records.save_market(self.conn, market)
            op_log.info("fees_collected", amount=fee, recipient=config.fee_recipient)
            return event

    def close_market(self, caller: str, market_id: int) -> Market:
        """Emergency cancel. Stakes stay in escrow; cancelled markets never pay out."""
        with self._operation("close_market", caller=caller, market_id=market_id) as op_log:
            now = self.clock()
            market = lifecycle.close(self._require_market(market_id), self._require_config(), caller)
            records.save_market(self.conn, market)
            self._emit(MarketClosed(market_id=market_id, authority=caller), now)
            op_log.info("market_closed", total_pool=market.total_pool)
            return market

    # --- queries ---

    def get_global_config(self) -> GlobalConfig:
        return self._require_config()

    def get_market(self, market_id: int) -> Market:
        return self._require_market(market_id)

    def get_position(self, user: str, market_id: int) -> UserPosition | None:
        return records.get_position(self.conn, user, market_id)

    def quote(self, user: str, market_id: int) -> PayoutQuote:
        """What ``user`` would receive from a resolved market, ignoring whether they already claimed."""
        market = self._require_market(market_id)
        position = records.get_position(self.conn, user, market_id) or UserPosition.empty(
            user, market_id, len(market.outcomes)
        )
        return settlement.quote_payout(market, position, self._require_config().fee_bps)

    def escrow_balance(self, market_id: int) -> int:
        return self.transfer.balance_of(escrow_account(market_id))
