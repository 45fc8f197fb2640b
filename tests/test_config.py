"""Configuration loading from TOML and environment."""

from __future__ import annotations

import pytest

from starkpay_reconciler.config import load_config

_ENV_VARS = [
    "STARKPAY_RPC_URL", "STARKPAY_CONTRACT_ADDRESS", "STARKPAY_POLL_INTERVAL",
    "STARKPAY_CHUNK_SIZE", "STARKPAY_START_BLOCK", "STARKPAY_DB_PATH",
    "STARKNET_RPC_URL", "PAYMENT_GATEWAY_ADDRESS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_file():
    cfg = load_config(None)

    assert cfg.poll_interval == 10
    assert cfg.chunk_size == 10
    assert cfg.contract_address == ""
    assert cfg.completion_retry_passes == 0
    assert not cfg.db_path.startswith("~")


def test_toml_sections(tmp_path):
    path = tmp_path / "reconciler.toml"
    path.write_text(
        "[reconciler]\n"
        "poll_interval = 3\n"
        "max_blocks_per_pass = 500\n"
        "completion_retry_passes = 2\n"
        "\n"
        "[starknet]\n"
        'rpc_url = "https://starknet-sepolia.example/rpc"\n'
        'contract_address = "0x0123"\n'
        "chunk_size = 50\n"
        "start_block = 1000\n"
        "\n"
        "[storage]\n"
        f'db_path = "{tmp_path / "state.db"}"\n'
    )

    cfg = load_config(path)

    assert cfg.poll_interval == 3
    assert cfg.max_blocks_per_pass == 500
    assert cfg.completion_retry_passes == 2
    assert cfg.rpc_url == "https://starknet-sepolia.example/rpc"
    assert cfg.contract_address == "0x0123"
    assert cfg.chunk_size == 50
    assert cfg.start_block == 1000
    assert cfg.db_path == str(tmp_path / "state.db")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "reconciler.toml"
    path.write_text('[starknet]\ncontract_address = "0xfile"\nchunk_size = 50\n')
    monkeypatch.setenv("STARKPAY_CONTRACT_ADDRESS", "0xenv")
    monkeypatch.setenv("STARKPAY_CHUNK_SIZE", "25")

    cfg = load_config(path)

    assert cfg.contract_address == "0xenv"
    assert cfg.chunk_size == 25


def test_legacy_backend_variables(monkeypatch):
    monkeypatch.setenv("STARKNET_RPC_URL", "http://node:9545")
    monkeypatch.setenv("PAYMENT_GATEWAY_ADDRESS", "0xlegacy")

    cfg = load_config(None)

    assert cfg.rpc_url == "http://node:9545"
    assert cfg.contract_address == "0xlegacy"


def test_prefixed_variables_beat_legacy(monkeypatch):
    monkeypatch.setenv("PAYMENT_GATEWAY_ADDRESS", "0xlegacy")
    monkeypatch.setenv("STARKPAY_CONTRACT_ADDRESS", "0xnew")

    assert load_config(None).contract_address == "0xnew"
