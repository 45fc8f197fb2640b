"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from starkpay_reconciler.models.config import ReconcilerConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "STARKPAY_",
) -> ReconcilerConfig:
    """Load reconciler configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (STARKPAY_RPC_URL, etc.)
        2. Legacy backend variables (STARKNET_RPC_URL, PAYMENT_GATEWAY_ADDRESS)
        3. TOML config file
        4. Defaults from ReconcilerConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ReconcilerConfig()

    # ── Reconciler section ─────────────────────────────────
    section = raw.get("reconciler", {})
    if v := section.get("poll_interval"):
        cfg.poll_interval = int(v)
    if v := section.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := section.get("log_level"):
        cfg.log_level = str(v)
    if v := section.get("max_blocks_per_pass"):
        cfg.max_blocks_per_pass = int(v)
    if v := section.get("completion_retry_passes"):
        cfg.completion_retry_passes = int(v)

    # ── Starknet section ───────────────────────────────────
    starknet = raw.get("starknet", {})
    if v := starknet.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := starknet.get("contract_address"):
        cfg.contract_address = str(v)
    if v := starknet.get("chunk_size"):
        cfg.chunk_size = int(v)
    if v := starknet.get("rpc_timeout"):
        cfg.rpc_timeout = int(v)
    if v := starknet.get("start_block"):
        cfg.start_block = int(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Legacy backend variables ───────────────────────────
    if rpc := os.environ.get("STARKNET_RPC_URL"):
        cfg.rpc_url = rpc
    if addr := os.environ.get("PAYMENT_GATEWAY_ADDRESS"):
        cfg.contract_address = addr

    # ── Environment variable overrides (highest priority) ──
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if addr := os.environ.get(f"{env_prefix}CONTRACT_ADDRESS"):
        cfg.contract_address = addr
    if v := os.environ.get(f"{env_prefix}POLL_INTERVAL"):
        cfg.poll_interval = int(v)
    if v := os.environ.get(f"{env_prefix}CHUNK_SIZE"):
        cfg.chunk_size = int(v)
    if v := os.environ.get(f"{env_prefix}START_BLOCK"):
        cfg.start_block = int(v)
    if v := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = v

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
