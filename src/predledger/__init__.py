"""predledger - prediction market settlement and escrow ledger."""

__version__ = "0.1.0"
