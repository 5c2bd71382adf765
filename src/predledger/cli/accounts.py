"""Accounts subcommand: fund, balance."""

from __future__ import annotations

import typer

from predledger.cli.common import ledger_session
from predledger.storage.keys import escrow_account

app = typer.Typer(help="Value-holding account balances")


@app.command("fund")
def fund(
    ctx: typer.Context,
    account: str = typer.Argument(..., help="Account to credit"),
    amount: int = typer.Option(..., "--amount", "-a"),
) -> None:
    """Credit an account with value from outside the ledger."""
    with ledger_session(ctx) as ledger:
        balance = ledger.transfer.deposit(account, amount)
        typer.echo(f"{account}: {balance}")


@app.command("balance")
def balance(
    ctx: typer.Context,
    account: str | None = typer.Argument(None, help="Account name"),
    market: int | None = typer.Option(None, "--escrow", help="Show the escrow balance of this market instead"),
) -> None:
    """Show an account's (or a market escrow's) balance."""
    if (account is None) == (market is None):
        typer.echo("Pass an account or --escrow MARKET_ID", err=True)
        raise typer.Exit(1)
    with ledger_session(ctx) as ledger:
        name = escrow_account(market) if market is not None else account
        typer.echo(f"{name}: {ledger.transfer.balance_of(name)}")
