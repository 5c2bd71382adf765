"""Market lifecycle, bet accounting and settlement engine."""

from predledger.engine.ledger import MarketLedger, system_clock
from predledger.engine.settlement import PayoutQuote

__all__ = ["MarketLedger", "PayoutQuote", "system_clock"]
