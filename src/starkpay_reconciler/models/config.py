"""Configuration model for the reconciler."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ReconcilerConfig:
    """Complete reconciler configuration."""

    # Reconciler
    poll_interval: int = 10  # seconds between passes
    error_backoff: int = 30  # seconds after an unexpected pass failure
    log_level: str = "info"
    max_blocks_per_pass: int = 0  # 0 = up to the chain tip
    completion_retry_passes: int = 0  # 0 = drop unmatched completions

    # Starknet
    rpc_url: str = "http://127.0.0.1:5050/rpc"
    contract_address: str = ""  # payment gateway contract
    chunk_size: int = 10  # starknet_getEvents page size
    rpc_timeout: int = 30  # seconds per RPC call
    start_block: int = 0  # first block scanned when no cursor is stored

    # Storage
    db_path: str = "~/.starkpay_reconciler/state.db"
