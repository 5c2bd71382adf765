"""Ledger error taxonomy.

Every failure raised by the engine is a ``LedgerError`` subclass carrying a
stable ``ErrorCode``. The subclass names the kind of failure (configuration,
parameter validation, lifecycle state, authorization, arithmetic, payout,
value transfer, missing record); the code names the specific check that
failed. Callers (CLI, API) render ``code`` and ``message`` as-is.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    # config
    FEE_TOO_HIGH = "FeeTooHigh"
    ALREADY_INITIALIZED = "AlreadyInitialized"
    # market parameters
    INVALID_MARKET_ID = "InvalidMarketId"
    INVALID_OUTCOMES = "InvalidOutcomes"
    INVALID_OUTCOME = "InvalidOutcome"
    INVALID_QUESTION = "InvalidQuestion"
    INVALID_END_TIME = "InvalidEndTime"
    END_TIME_TOO_FAR = "EndTimeTooFar"
    INVALID_MIN_BET = "InvalidMinBet"
    BET_TOO_SMALL = "BetTooSmall"
    DUPLICATE_MARKET = "DuplicateMarket"
    # lifecycle state
    MARKET_NOT_ACTIVE = "MarketNotActive"
    MARKET_EXPIRED = "MarketExpired"
    ALREADY_RESOLVED = "AlreadyResolved"
    TOO_EARLY = "TooEarly"
    NOT_RESOLVED = "NotResolved"
    ALREADY_CLAIMED = "AlreadyClaimed"
    NO_WINNING_BET = "NoWinningBet"
    FEES_ALREADY_COLLECTED = "FeesAlreadyCollected"
    CONCURRENT_UPDATE = "ConcurrentUpdate"
    # authorization
    UNAUTHORIZED = "Unauthorized"
    # arithmetic
    ARITHMETIC_OVERFLOW = "ArithmeticOverflow"
    DIVISION_BY_ZERO = "DivisionByZero"
    # payout
    INVALID_PAYOUT = "InvalidPayout"
    # value transfer
    INVALID_AMOUNT = "InvalidAmount"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    TRANSFER_NOT_AUTHORIZED = "TransferNotAuthorized"
    # lookups
    NOT_INITIALIZED = "NotInitialized"
    MARKET_NOT_FOUND = "MarketNotFound"
    POSITION_NOT_FOUND = "PositionNotFound"


class LedgerError(Exception):
    """Base class for all ledger failures."""

    kind = "ledger"

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or code.value
        super().__init__(f"{code.value}: {self.message}")

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "kind": self.kind, "detail": self.message}


class ConfigError(LedgerError):
    kind = "config"


class MarketValidationError(LedgerError):
    """Malformed market or bet parameters."""

    kind = "validation"


class StateError(LedgerError):
    """Operation not valid in the market's current lifecycle state."""

    kind = "state"


class AuthorizationError(LedgerError):
    kind = "authorization"


class LedgerArithmeticError(LedgerError, ArithmeticError):
    """Overflow past the unsigned 64-bit range, or division by a zero pool."""

    kind = "arithmetic"


class PayoutError(LedgerError):
    kind = "payout"


class TransferError(LedgerError):
    kind = "transfer"


class NotFoundError(LedgerError):
    kind = "not_found"
