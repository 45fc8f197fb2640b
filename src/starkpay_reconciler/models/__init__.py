"""Data models for the reconciler."""

from starkpay_reconciler.models.events import (
    DomainEvent,
    PaymentCompleted,
    PaymentCreated,
    RawEvent,
    UnknownEvent,
)
from starkpay_reconciler.models.chain import (
    BlockRange,
    BlockRef,
    EventPage,
    FetchResult,
    OnChainPayment,
)
from starkpay_reconciler.models.records import (
    ActivityRecord,
    OrderRecord,
    OrderStatus,
    PassReport,
    PaymentRecord,
    PaymentStatus,
    can_transition,
)
from starkpay_reconciler.models.config import ReconcilerConfig

__all__ = [
    "DomainEvent", "PaymentCompleted", "PaymentCreated", "RawEvent", "UnknownEvent",
    "BlockRange", "BlockRef", "EventPage", "FetchResult", "OnChainPayment",
    "ActivityRecord", "OrderRecord", "OrderStatus", "PassReport",
    "PaymentRecord", "PaymentStatus", "can_transition",
    "ReconcilerConfig",
]
