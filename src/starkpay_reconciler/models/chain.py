"""Value types exchanged with the Starknet node."""

from __future__ import annotations

from dataclasses import dataclass, field

from starkpay_reconciler.models.events import RawEvent


@dataclass(frozen=True)
class BlockRef:
    """Block number and hash of the chain tip."""

    block_number: int
    block_hash: str


@dataclass(frozen=True)
class BlockRange:
    """Inclusive block range ``[from_block, to_block]`` for one pass."""

    from_block: int
    to_block: int

    @property
    def size(self) -> int:
        return self.to_block - self.from_block + 1


@dataclass
class EventPage:
    """One chunk of starknet_getEvents output."""

    events: list[RawEvent]
    continuation_token: str | None = None


@dataclass
class FetchResult:
    """Flattened result of paging through a block range.

    ``failed`` is set when the node could not be reached; ``events`` is then
    empty and the range must not be committed.
    """

    events: list[RawEvent] = field(default_factory=list)
    pages: int = 0
    failed: bool = False
    error: str | None = None


@dataclass
class OnChainPayment:
    """Decoded result of the gateway's get_payment view."""

    payment_id: int
    merchant: str
    customer: str
    amount: int
    fee: int
    status: int  # variant index of the contract's PaymentStatus enum
    created_at: int
    paid_at: int
    metadata: str
