"""CLI commands that only touch the local store."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from starkpay_reconciler.cli import cli


@pytest.fixture
def env(tmp_path, monkeypatch):
    for name in ("STARKPAY_CONTRACT_ADDRESS", "PAYMENT_GATEWAY_ADDRESS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STARKPAY_DB_PATH", str(tmp_path / "state.db"))
    return tmp_path


def test_cursor_set_and_show(env):
    runner = CliRunner()

    result = runner.invoke(cli, ["cursor"])
    assert result.exit_code == 0
    assert "Cursor: (none)" in result.output

    result = runner.invoke(cli, ["cursor", "--set", "1234"])
    assert result.exit_code == 0
    assert "Cursor: 1234" in result.output

    result = runner.invoke(cli, ["cursor"])
    assert "Cursor: 1234" in result.output


def test_cursor_rejects_negative(env):
    result = CliRunner().invoke(cli, ["cursor", "--set", "-5"])
    assert result.exit_code != 0


def test_run_without_contract_address_warns_and_starts(env, monkeypatch):
    started = []

    async def fake_run_daemon(cfg):
        started.append(cfg)

    monkeypatch.setattr("starkpay_reconciler.cli.run_daemon", fake_run_daemon)

    result = CliRunner().invoke(cli, ["run"])

    assert result.exit_code == 0
    assert "contract address" in result.output
    assert len(started) == 1
    assert started[0].contract_address == ""


def test_once_without_contract_address_skips_pass(env):
    result = CliRunner().invoke(cli, ["once"])

    assert result.exit_code == 0
    assert "Status:     skipped_config" in result.output


def test_add_order_then_list_empty_payments(env):
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["add-order", "--on-chain-id", "0xABC123", "--seller", "s1", "--buyer", "b1", "--id", "o-1"],
    )
    assert result.exit_code == 0
    assert "on-chain id abc123" in result.output

    result = runner.invoke(cli, ["payments"])
    assert "No payments recorded." in result.output


def test_status_shows_config(env):
    result = CliRunner().invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "Contract:       (not set)" in result.output
    assert "Chunk size:     10" in result.output
