"""Value transfer between value-holding accounts."""

from predledger.transfer.balances import BalanceBook
from predledger.transfer.base import EscrowAuthority, TransferAuthority, UserSignature, ValueTransfer

__all__ = ["BalanceBook", "EscrowAuthority", "TransferAuthority", "UserSignature", "ValueTransfer"]
