"""Positions subcommand: show, list, claim."""

from __future__ import annotations

import typer

from predledger.cli.common import caller_option, ledger_session
from predledger.errors import StateError
from predledger.storage.records import list_positions

app = typer.Typer(help="User positions and claims")


@app.command("show")
def show(
    ctx: typer.Context,
    market_id: int = typer.Argument(..., help="Market ID"),
    user: str = typer.Option(..., "--user", "-u"),
) -> None:
    """Show a user's stakes in a market and, once resolved, their payout."""
    with ledger_session(ctx) as ledger:
        market = ledger.get_market(market_id)
        position = ledger.get_position(user, market_id)
        if position is None:
            typer.echo(f"{user} has no position in market {market_id}")
            return
        for i, (label, stake) in enumerate(zip(market.outcomes, position.bets)):
            typer.echo(f"  [{i}] {label:<50} {stake}")
        typer.echo(f"Total bet: {position.total_bet}  Claimed: {position.claimed}")
        try:
            quote = ledger.quote(user, market_id)
        except StateError:
            return
        typer.echo(f"Payout: {quote.payout} (stake {quote.stake} of winning pool {quote.winning_pool})")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    market_id: int | None = typer.Option(None, "--market", "-m"),
    user: str | None = typer.Option(None, "--user", "-u"),
) -> None:
    """List positions by market and/or user."""
    with ledger_session(ctx) as ledger:
        rows = list_positions(ledger.conn, market_id=market_id, user=user)
        for p in rows:
            flag = "claimed" if p.claimed else ""
            typer.echo(f"  {p.market_id:>8}  {p.user:<24}  total={p.total_bet:<12}  {flag}")
        typer.echo(f"Total: {len(rows)} positions")


@app.command("claim")
def claim(
    ctx: typer.Context,
    market_id: int = typer.Argument(..., help="Market ID"),
    caller: str = caller_option("Position owner"),
) -> None:
    """Claim winnings from a resolved market."""
    with ledger_session(ctx) as ledger:
        event = ledger.claim_winnings(caller, market_id)
        typer.echo(f"Paid {event.amount} to {event.user} (stake {event.stake})")
