"""Starknet integration components."""

from starkpay_reconciler.starknet.ledger import StarknetLedger
from starkpay_reconciler.starknet.fetcher import StarknetEventFetcher

__all__ = ["StarknetLedger", "StarknetEventFetcher"]
