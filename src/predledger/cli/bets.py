"""Bets subcommand: place."""

from __future__ import annotations

import typer

from predledger.cli.common import caller_option, ledger_session

app = typer.Typer(help="Place bets")


@app.command("place")
def place(
    ctx: typer.Context,
    market_id: int = typer.Argument(..., help="Market ID"),
    outcome_index: int = typer.Option(..., "--outcome", "-o", help="Outcome index"),
    amount: int = typer.Option(..., "--amount", "-a"),
    caller: str = caller_option("Bettor; the stake is debited from this account"),
) -> None:
    """Stake on an outcome of an active market."""
    with ledger_session(ctx) as ledger:
        position = ledger.place_bet(caller, market_id, outcome_index, amount)
        market = ledger.get_market(market_id)
        typer.echo(f"Bet {amount} on [{outcome_index}] {market.outcomes[outcome_index]}")
        typer.echo(f"Your total in market: {position.total_bet}  Market pool: {market.total_pool}")
