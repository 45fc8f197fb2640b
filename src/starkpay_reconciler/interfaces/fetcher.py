"""EventFetcher protocol - pages contract events for a block range."""

from __future__ import annotations

from typing import Protocol

from starkpay_reconciler.models.chain import FetchResult


class EventFetcher(Protocol):
    """Fetches raw events without raising on transient node errors."""

    async def chain_tip(self) -> int | None:
        """Latest block number, or None if the node is unreachable."""
        ...

    async def fetch(self, contract_address: str, from_block: int, to_block: int) -> FetchResult:
        """All events of ``contract_address`` in ``[from_block, to_block]``, in block order."""
        ...
