"""Shared CLI plumbing: open the ledger database and render ledger errors."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from predledger.engine import MarketLedger
from predledger.errors import LedgerError
from predledger.storage.db import get_connection, init_schema


@contextmanager
def ledger_session(ctx: typer.Context) -> Iterator[MarketLedger]:
    """Yield a MarketLedger on the configured database; exit 1 on ledger errors."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        yield MarketLedger(conn)
    except LedgerError as e:
        typer.echo(f"Error [{e.code.value}]: {e.message}", err=True)
        raise typer.Exit(1)
    finally:
        conn.close()


def caller_option(help_text: str = "Identity signing this operation") -> str:
    return typer.Option(..., "--as", help=help_text)
