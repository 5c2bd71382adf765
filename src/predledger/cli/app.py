"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from predledger.cli.common import caller_option, ledger_session
from predledger.config import get_settings
from predledger.config.settings import configure_logging
from predledger.replay.audit import audit_all, audit_market

app = typer.Typer(
    name="predledger",
    help="predledger - Prediction market settlement and escrow ledger.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


@app.command("init")
def init(
    ctx: typer.Context,
    fee_bps: int = typer.Option(..., "--fee-bps", help="Platform fee in basis points (max 500)"),
    fee_recipient: str = typer.Option(..., "--fee-recipient", help="Account receiving collected fees"),
    caller: str = caller_option("Identity that becomes the platform authority"),
) -> None:
    """Initialize the platform config (once)."""
    with ledger_session(ctx) as ledger:
        config = ledger.initialize(caller, fee_bps, fee_recipient)
        typer.echo(f"Platform initialized. Authority: {config.authority}  Fee: {config.fee_bps} bps")


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show the platform config."""
    with ledger_session(ctx) as ledger:
        config = ledger.get_global_config()
        typer.echo(f"Authority: {config.authority}")
        typer.echo(f"Fee: {config.fee_bps} bps -> {config.fee_recipient}")
        typer.echo(f"Markets created: {config.total_markets}")


@app.command("audit")
def audit(
    ctx: typer.Context,
    market: int | None = typer.Option(None, "--market", "-m", help="Audit one market (default: all)"),
) -> None:
    """Replay the event log and reconcile it with stored markets, positions and escrow."""
    with ledger_session(ctx) as ledger:
        if market is not None:
            reports = [audit_market(ledger.conn, market, ledger.transfer)]
        else:
            reports = audit_all(ledger.conn, ledger.transfer)
        failed = 0
        for report in reports:
            mark = "ok" if report.ok else "FAIL"
            typer.echo(f"  market {report.market_id}: {mark} ({report.events_replayed} events)")
            for issue in report.discrepancies:
                typer.echo(f"      {issue}")
            failed += 0 if report.ok else 1
        typer.echo(f"Audited {len(reports)} markets, {failed} with discrepancies")
    if failed:
        raise typer.Exit(2)


# Subcommands registered from other modules
from predledger.cli import accounts, api_cmd, bets, log, markets, positions  # noqa: E402

app.add_typer(markets.app, name="markets")
app.add_typer(bets.app, name="bets")
app.add_typer(positions.app, name="positions")
app.add_typer(accounts.app, name="accounts")
app.add_typer(log.app, name="log")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
