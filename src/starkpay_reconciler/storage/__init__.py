"""State persistence."""

from starkpay_reconciler.storage.sqlite import SQLiteStore

__all__ = ["SQLiteStore"]
