"""Protocol interfaces for the reconciler components."""

from starkpay_reconciler.interfaces.ledger import LedgerReader
from starkpay_reconciler.interfaces.fetcher import EventFetcher
from starkpay_reconciler.interfaces.store import ReconcilerStore

__all__ = ["LedgerReader", "EventFetcher", "ReconcilerStore"]
