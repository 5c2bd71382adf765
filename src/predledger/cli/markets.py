"""Markets subcommand: create, list, show, resolve, close, collect-fees."""

from __future__ import annotations

import time

import typer

from predledger.cli.common import caller_option, ledger_session
from predledger.models import MarketStatus
from predledger.storage.records import list_markets as storage_list_markets

app = typer.Typer(help="Market lifecycle and settlement")


@app.command("create")
def create(
    ctx: typer.Context,
    market_id: int = typer.Option(..., "--id", help="Caller-chosen unique market ID"),
    question: str = typer.Option(..., "--question", "-q"),
    outcomes: list[str] = typer.Option(..., "--outcome", "-o", help="Outcome label; repeat 2-8 times"),
    oracle: str = typer.Option(..., "--oracle", help="Identity allowed to resolve the market"),
    min_bet: int = typer.Option(..., "--min-bet"),
    end_time: int | None = typer.Option(None, "--end-time", help="Betting close, unix seconds"),
    duration: int | None = typer.Option(None, "--duration", help="Betting window in seconds from now"),
    caller: str = caller_option("Market creator"),
) -> None:
    """Create a market with its own escrow account."""
    if (end_time is None) == (duration is None):
        typer.echo("Pass exactly one of --end-time or --duration", err=True)
        raise typer.Exit(1)
    if end_time is None:
        end_time = int(time.time()) + duration
    with ledger_session(ctx) as ledger:
        market = ledger.create_market(caller, market_id, question, outcomes, end_time, oracle, min_bet)
        typer.echo(f"Created market {market.market_id}: {market.question}")
        typer.echo(f"Outcomes: {', '.join(market.outcomes)}  Ends: {market.end_time}")


@app.command("list")
def list_markets(
    ctx: typer.Context,
    status: MarketStatus | None = typer.Option(None, "--status", help="Filter by lifecycle status"),
) -> None:
    """List markets, newest first."""
    with ledger_session(ctx) as ledger:
        rows = storage_list_markets(ledger.conn, status=status)
        for m in rows:
            typer.echo(f"  {m.market_id:>8}  {m.status.value:<9}  pool={m.total_pool:<12}  {m.question[:60]}")
        typer.echo(f"Total: {len(rows)} markets")


@app.command("show")
def show(ctx: typer.Context, market_id: int = typer.Argument(..., help="Market ID")) -> None:
    """Show one market with its outcome pools."""
    with ledger_session(ctx) as ledger:
        m = ledger.get_market(market_id)
        typer.echo(f"Market {m.market_id}: {m.question}")
        typer.echo(f"Status: {m.status.value}  Creator: {m.creator}  Oracle: {m.oracle}")
        typer.echo(f"Created: {m.created_at}  Ends: {m.end_time}  Min bet: {m.min_bet}")
        for i, (label, pool) in enumerate(zip(m.outcomes, m.outcome_pools)):
            marker = " *" if m.winning_outcome == i else ""
            typer.echo(f"  [{i}] {label:<50} {pool}{marker}")
        typer.echo(f"Total pool: {m.total_pool}  Escrow balance: {ledger.escrow_balance(market_id)}")


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    market_id: int = typer.Argument(..., help="Market ID"),
    winning_outcome: int = typer.Option(..., "--winner", "-w", help="Winning outcome index"),
    caller: str = caller_option("Oracle or platform authority"),
) -> None:
    """Settle a market whose betting window has ended."""
    with ledger_session(ctx) as ledger:
        m = ledger.resolve_market(caller, market_id, winning_outcome)
        typer.echo(f"Market {m.market_id} resolved to [{winning_outcome}] {m.outcomes[winning_outcome]}")


@app.command("close")
def close(
    ctx: typer.Context,
    market_id: int = typer.Argument(..., help="Market ID"),
    caller: str = caller_option("Platform authority"),
) -> None:
    """Emergency-cancel an active market. Cancelled markets never pay out."""
    with ledger_session(ctx) as ledger:
        ledger.close_market(caller, market_id)
        typer.echo(f"Market {market_id} cancelled")


@app.command("collect-fees")
def collect_fees(
    ctx: typer.Context,
    market_id: int = typer.Argument(..., help="Market ID"),
    caller: str = caller_option("Platform authority"),
) -> None:
    """Withdraw the platform fee of a resolved market to the fee recipient."""
    with ledger_session(ctx) as ledger:
        event = ledger.collect_fees(caller, market_id)
        if event is None:
            typer.echo(f"Market {market_id}: fee rounds to zero, nothing transferred")
        else:
            typer.echo(f"Collected {event.amount} to {event.recipient}")
