"""Abstract value-transfer protocol and the two kinds of transfer authority."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

# Amounts are unsigned 64-bit token units.
MAX_AMOUNT = (1 << 64) - 1


@dataclass(frozen=True)
class UserSignature:
    """A transfer authorized by the owner of the source account."""

    signer: str


class EscrowAuthority:
    """Capability to move value out of market escrow accounts.

    Instances are minted by a ValueTransfer implementation and handed to the
    settlement engine; no end-user key can produce one.
    """

    __slots__ = ("_issuer",)

    def __init__(self, issuer: object) -> None:
        self._issuer = issuer

    def issued_by(self, transfer: object) -> bool:
        return self._issuer is transfer

    def __repr__(self) -> str:
        return "EscrowAuthority()"


TransferAuthority = Union[UserSignature, EscrowAuthority]


class ValueTransfer(ABC):
    """Moves fungible value between accounts. Implement per settlement backend."""

    @abstractmethod
    def transfer(self, source: str, destination: str, amount: int, authority: TransferAuthority) -> None:
        """Move amount from source to destination, or raise TransferError with no effect."""
        ...

    @abstractmethod
    def balance_of(self, account: str) -> int:
        ...

    @abstractmethod
    def issue_escrow_authority(self) -> EscrowAuthority:
        """Mint the capability that authorizes withdrawals from escrow accounts."""
        ...
