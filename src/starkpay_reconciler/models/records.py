"""Store record types, lifecycle statuses and pass results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OrderStatus(str, Enum):
    """Lifecycle of a marketplace order."""

    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"


class PaymentStatus(str, Enum):
    """Lifecycle of a gateway payment."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"
    EXPIRED = "EXPIRED"


# Only the poller drives PENDING -> COMPLETED; the other exits belong to
# refund/expiry flows. COMPLETED is terminal.
PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.COMPLETED,
        PaymentStatus.CANCELLED,
        PaymentStatus.EXPIRED,
        PaymentStatus.REFUNDED,
    }),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.EXPIRED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    """True if a payment may move from ``current`` to ``target``."""
    return target in PAYMENT_TRANSITIONS[current]


@dataclass
class OrderRecord:
    """An order row, created by the order API."""

    id: str
    on_chain_id: str  # correlation token embedded in PaymentCreated.metadata
    seller_id: str
    buyer_id: str
    total_amount: str = "0"
    status: OrderStatus = OrderStatus.PENDING
    payment_id: str | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass
class PaymentRecord:
    """A payment row, created and completed by the reconciler."""

    id: str
    on_chain_id: str  # decimal string of the u256 payment id
    merchant_id: str
    customer_id: str
    amount: str  # decimal string, u256 does not fit in INTEGER
    fee: str = "0"
    status: PaymentStatus = PaymentStatus.PENDING
    order_id: str | None = None
    confirmed_at: str | None = None  # ISO 8601
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ActivityRecord:
    """A single activity log entry."""

    id: int
    event_type: str
    message: str
    tx_hash: str | None
    payment_id: str | None
    order_id: str | None
    created_at: str


@dataclass
class PassReport:
    """Outcome of one reconciliation pass.

    status is one of: skipped_busy, skipped_config, idle, fetch_failed, completed.
    """

    status: str
    from_block: int | None = None
    to_block: int | None = None
    events_fetched: int = 0
    applied: int = 0
    duplicates: int = 0
    dropped: int = 0
    deferred: int = 0
    ignored: int = 0
    failed: int = 0
    cursor: int | None = None  # cursor after the pass
    failed_tx_hashes: list[str] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.status == "completed"
