"""Event fetcher - pages starknet_getEvents for one contract and block range."""

from __future__ import annotations

import asyncio
import logging

import aiohttp
from starknet_py.net.client_errors import ClientError

from starkpay_reconciler.interfaces.ledger import LedgerReader
from starkpay_reconciler.models.chain import FetchResult
from starkpay_reconciler.models.events import RawEvent

log = logging.getLogger(__name__)

# Node or network failures that are retried on the next tick.
TRANSIENT_ERRORS = (ClientError, aiohttp.ClientError, asyncio.TimeoutError, OSError)


class StarknetEventFetcher:
    """Fetches raw events in ``chunk_size`` pages.

    Transient node errors never propagate: the result is marked failed and
    carries no events, so the caller keeps its cursor where it was.
    """

    def __init__(self, ledger: LedgerReader, chunk_size: int = 10) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._ledger = ledger
        self._chunk_size = chunk_size

    async def chain_tip(self) -> int | None:
        try:
            block = await self._ledger.get_latest_block()
        except TRANSIENT_ERRORS as exc:
            log.error("Could not read chain tip: %s", exc)
            return None
        return block.block_number

    async def fetch(self, contract_address: str, from_block: int, to_block: int) -> FetchResult:
        events: list[RawEvent] = []
        pages = 0
        token: str | None = None
        try:
            while True:
                page = await self._ledger.get_events(
                    contract_address, from_block, to_block, self._chunk_size, token,
                )
                pages += 1
                events.extend(page.events)
                if not page.continuation_token:
                    break
                if page.continuation_token == token:
                    raise ClientError(
                        message=f"node repeated continuation token {token!r}",
                    )
                token = page.continuation_token
        except TRANSIENT_ERRORS as exc:
            log.error(
                "Error fetching events from %d to %d (page %d): %s",
                from_block, to_block, pages + 1, exc,
            )
            return FetchResult(failed=True, pages=pages, error=str(exc))

        log.debug(
            "Fetched %d events from blocks %d-%d in %d pages",
            len(events), from_block, to_block, pages,
        )
        return FetchResult(events=events, pages=pages)
