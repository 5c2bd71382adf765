"""Log subcommand: stats, list, export."""

from __future__ import annotations

import json

import typer

from predledger.cli.common import ledger_session
from predledger.storage.event_log import list_events, log_stats
from predledger.storage.export import export_events_to_parquet

app = typer.Typer(help="Ledger event log")


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show event log statistics (counts, time range, by type and market)."""
    with ledger_session(ctx) as ledger:
        s = log_stats(ledger.conn)
        typer.echo(f"Total events: {s['total_events']}")
        typer.echo(f"First: {s.get('min_created_at')}  Last: {s.get('max_created_at')}")
        for row in s["by_type"]:
            typer.echo(f"  {row['event_type']:<22} {row['count']}")
        if s.get("by_market"):
            typer.echo("By market (top 20):")
            for row in s["by_market"]:
                typer.echo(f"  {row['market_id']}  {row['count']}")


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    market: int | None = typer.Option(None, "--market", "-m", help="Filter by market ID"),
    event_type: str | None = typer.Option(None, "--type", "-t", help="Filter by event type"),
    limit: int = typer.Option(50, "--limit", "-n"),
) -> None:
    """Print recent events, newest first."""
    with ledger_session(ctx) as ledger:
        for e in list_events(ledger.conn, market_id=market, event_type=event_type, limit=limit):
            typer.echo(f"  #{e['id']:<6} {e['created_at']}  {e['event_type']:<22} {json.dumps(e['payload'])}")


@app.command("export")
def export(
    ctx: typer.Context,
    market: int | None = typer.Option(None, "--market", "-m", help="Filter by market ID"),
    output: str = typer.Option("ledger_events.parquet", "--output", "-o", help="Output path"),
) -> None:
    """Export ledger events to Parquet."""
    with ledger_session(ctx) as ledger:
        count = export_events_to_parquet(ledger.conn, output, market_id=market)
        typer.echo(f"Exported {count} events to {output}")
