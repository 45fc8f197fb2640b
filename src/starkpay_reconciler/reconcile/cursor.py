"""Cursor tracker - persisted last reconciled block plus the single-pass guard."""

from __future__ import annotations

import logging

from starkpay_reconciler.interfaces.store import ReconcilerStore
from starkpay_reconciler.models.chain import BlockRange

log = logging.getLogger(__name__)


class CursorTracker:
    """Hands out the next block range and commits it once applied.

    The cursor is the last block whose events have all been applied. It is
    read from the store on every pass, so an operator rewind takes effect on
    the next tick.
    """

    def __init__(
        self,
        store: ReconcilerStore,
        start_block: int = 0,
        max_blocks_per_pass: int = 0,
    ) -> None:
        if start_block < 0:
            raise ValueError("start_block must be >= 0")
        self._store = store
        self._start_block = start_block
        self._max_blocks = max_blocks_per_pass
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_begin(self) -> bool:
        """Claim the pass slot. False if a pass is already in flight."""
        if self._busy:
            return False
        self._busy = True
        return True

    def end(self) -> None:
        self._busy = False

    async def position(self) -> int | None:
        return await self._store.get_cursor()

    async def get_next_range(self, chain_tip: int) -> BlockRange | None:
        """Range after the cursor up to ``chain_tip``, or None if caught up."""
        last = await self._store.get_cursor()
        from_block = self._start_block if last is None else last + 1
        if chain_tip < from_block:
            return None
        to_block = chain_tip
        if self._max_blocks > 0:
            to_block = min(to_block, from_block + self._max_blocks - 1)
        return BlockRange(from_block=from_block, to_block=to_block)

    async def commit(self, to_block: int) -> None:
        await self._store.set_cursor(to_block)
        log.debug("Cursor advanced to block %d", to_block)
