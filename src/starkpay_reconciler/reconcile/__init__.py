"""Event reconciliation: cursor, decoder, applier and the pass driver."""

from starkpay_reconciler.reconcile.applier import PaymentEventApplier
from starkpay_reconciler.reconcile.cursor import CursorTracker
from starkpay_reconciler.reconcile.decoder import DecodeError, decode_event
from starkpay_reconciler.reconcile.poller import ReconciliationPoller

__all__ = [
    "PaymentEventApplier",
    "CursorTracker",
    "DecodeError", "decode_event",
    "ReconciliationPoller",
]
