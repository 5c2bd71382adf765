"""CLI wiring against a temp config and database."""

import pytest
from typer.testing import CliRunner

from predledger.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    # keep structlog's global config untouched by the CLI callback
    monkeypatch.setattr("predledger.cli.app.configure_logging", lambda settings: None)
    db_path = (tmp_path / "ledger.duckdb").as_posix()
    (tmp_path / "default.toml").write_text(f'[storage]\ndb_path = "{db_path}"\n')
    return tmp_path


def _run(config_dir, *args):
    return runner.invoke(app, ["--config-dir", str(config_dir), *args])


def test_cli_market_and_bet(config_dir):
    result = _run(config_dir, "init", "--fee-bps", "200", "--fee-recipient", "treasury", "--as", "admin")
    assert result.exit_code == 0, result.output
    result = _run(
        config_dir,
        "markets", "create",
        "--id", "1",
        "--question", "Will it rain tomorrow?",
        "--outcome", "Yes",
        "--outcome", "No",
        "--oracle", "oracle",
        "--min-bet", "100",
        "--duration", "7200",
        "--as", "creator",
    )
    assert result.exit_code == 0, result.output
    assert _run(config_dir, "accounts", "fund", "u1", "--amount", "500").exit_code == 0

    result = _run(config_dir, "bets", "place", "1", "--outcome", "0", "--amount", "150", "--as", "u1")
    assert result.exit_code == 0, result.output
    assert "Market pool: 150" in result.output

    result = _run(config_dir, "markets", "show", "1")
    assert "Total pool: 150  Escrow balance: 150" in result.output
    result = _run(config_dir, "accounts", "balance", "u1")
    assert "u1: 350" in result.output
    assert _run(config_dir, "audit").exit_code == 0


def test_cli_ledger_error_exits_nonzero(config_dir):
    _run(config_dir, "init", "--fee-bps", "200", "--fee-recipient", "treasury", "--as", "admin")
    result = _run(config_dir, "markets", "close", "5", "--as", "admin")
    assert result.exit_code == 1
    result = _run(config_dir, "init", "--fee-bps", "900", "--fee-recipient", "treasury", "--as", "admin")
    assert result.exit_code == 1
