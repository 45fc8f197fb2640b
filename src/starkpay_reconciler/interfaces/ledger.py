"""LedgerReader protocol - read access to the Starknet node."""

from __future__ import annotations

from typing import Protocol

from starkpay_reconciler.models.chain import BlockRef, EventPage, OnChainPayment


class LedgerReader(Protocol):
    """Read-only view of the chain used by the reconciler."""

    async def get_latest_block(self) -> BlockRef:
        """Return the current chain tip."""
        ...

    async def get_events(
        self,
        address: str,
        from_block: int,
        to_block: int,
        chunk_size: int,
        continuation_token: str | None = None,
    ) -> EventPage:
        """Fetch one page of events emitted by ``address`` in the block range."""
        ...

    async def get_payment(self, payment_id: int) -> OnChainPayment | None:
        ...

    async def verify_transaction(self, tx_hash: str) -> bool:
        ...
