"""DuckDB-backed balance book implementing ValueTransfer."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from predledger.errors import ErrorCode, TransferError
from predledger.storage.keys import is_escrow_account
from predledger.transfer.base import MAX_AMOUNT, EscrowAuthority, TransferAuthority, UserSignature, ValueTransfer

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)


class BalanceBook(ValueTransfer):
    """Account balances in the ``balances`` table.

    Shares the engine's connection, so a transfer commits or rolls back with
    the operation that requested it.
    """

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self.conn = conn

    def issue_escrow_authority(self) -> EscrowAuthority:
        return EscrowAuthority(self)

    def balance_of(self, account: str) -> int:
        row = self.conn.execute("SELECT amount FROM balances WHERE account = ?", [account]).fetchone()
        return int(row[0]) if row else 0

    def deposit(self, account: str, amount: int) -> int:
        """Credit an account from outside the ledger (funding). Returns the new balance."""
        if amount <= 0:
            raise TransferError(ErrorCode.INVALID_AMOUNT, "deposit amount must be positive")
        if amount > MAX_AMOUNT - self.balance_of(account):
            raise TransferError(ErrorCode.INVALID_AMOUNT, f"deposit would take {account} past {MAX_AMOUNT}")
        if is_escrow_account(account):
            raise TransferError(ErrorCode.TRANSFER_NOT_AUTHORIZED, "escrow accounts are funded only by bets")
        self._credit(account, amount)
        balance = self.balance_of(account)
        log.info("deposit", account=account, amount=amount, balance=balance)
        return balance

    def transfer(self, source: str, destination: str, amount: int, authority: TransferAuthority) -> None:
        if amount <= 0:
            raise TransferError(ErrorCode.INVALID_AMOUNT, "transfer amount must be positive")
        if amount > MAX_AMOUNT:
            raise TransferError(ErrorCode.INVALID_AMOUNT, f"transfer amount exceeds {MAX_AMOUNT}")
        self._authorize(source, authority)
        available = self.balance_of(source)
        if available < amount:
            raise TransferError(
                ErrorCode.INSUFFICIENT_FUNDS,
                f"account {source} holds {available}, needs {amount}",
            )
        self.conn.execute("UPDATE balances SET amount = amount - ? WHERE account = ?", [amount, source])
        self._credit(destination, amount)
        log.debug("transfer", source=source, destination=destination, amount=amount)

    def _authorize(self, source: str, authority: TransferAuthority) -> None:
        if is_escrow_account(source):
            if isinstance(authority, EscrowAuthority) and authority.issued_by(self):
                return
            raise TransferError(ErrorCode.TRANSFER_NOT_AUTHORIZED, "escrow withdrawals need the escrow authority")
        if isinstance(authority, UserSignature) and authority.signer == source:
            return
        raise TransferError(ErrorCode.TRANSFER_NOT_AUTHORIZED, f"{source} did not sign this transfer")

    def _credit(self, account: str, amount: int) -> None:
        self.conn.execute(
            """
            INSERT INTO balances (account, amount) VALUES (?, ?)
            ON CONFLICT (account) DO UPDATE SET amount = amount + excluded.amount
            """,
            [account, amount],
        )
