"""Starknet node access through starknet_py's FullNodeClient."""

from __future__ import annotations

import asyncio
import logging

from starknet_py.hash.selector import get_selector_from_name
from starknet_py.net.client_models import Call, TransactionExecutionStatus
from starknet_py.net.full_node_client import FullNodeClient

from starkpay_reconciler.models.chain import BlockRef, EventPage, OnChainPayment
from starkpay_reconciler.models.events import RawEvent
from starkpay_reconciler.starknet.felt import (
    felt_to_hex,
    felt_to_token,
    u256_from_felts,
    u256_to_felts,
)

log = logging.getLogger(__name__)

_GET_PAYMENT_SELECTOR = get_selector_from_name("get_payment")

# get_payment returns the Payment struct flattened:
#   payment_id(2) merchant customer amount(2) fee(2) status created_at paid_at metadata
_PAYMENT_STRUCT_LEN = 12


def _to_raw_event(emitted) -> RawEvent:
    return RawEvent(
        block_number=emitted.block_number,
        transaction_hash=felt_to_hex(emitted.transaction_hash),
        keys=tuple(emitted.keys),
        data=tuple(emitted.data),
    )


class StarknetLedger:
    """Read-only access to a Starknet JSON-RPC node.

    Every call is bounded by ``timeout`` seconds; a timeout surfaces as
    ``asyncio.TimeoutError`` to the caller.
    """

    def __init__(self, rpc_url: str, contract_address: str, timeout: int = 30) -> None:
        self._client = FullNodeClient(node_url=rpc_url)
        self._contract_address = contract_address
        self._timeout = timeout

    async def get_latest_block(self) -> BlockRef:
        tip = await asyncio.wait_for(
            self._client.get_block_hash_and_number(), timeout=self._timeout,
        )
        return BlockRef(block_number=tip.block_number, block_hash=felt_to_hex(tip.block_hash))

    async def get_events(
        self,
        address: str,
        from_block: int,
        to_block: int,
        chunk_size: int,
        continuation_token: str | None = None,
    ) -> EventPage:
        chunk = await asyncio.wait_for(
            self._client.get_events(
                address=address,
                keys=None,
                from_block_number=from_block,
                to_block_number=to_block,
                follow_continuation_token=False,
                continuation_token=continuation_token,
                chunk_size=chunk_size,
            ),
            timeout=self._timeout,
        )
        return EventPage(
            events=[_to_raw_event(e) for e in chunk.events],
            continuation_token=chunk.continuation_token,
        )

    async def get_payment(self, payment_id: int) -> OnChainPayment | None:
        """Read a payment straight from the gateway contract."""
        low, high = u256_to_felts(payment_id)
        call = Call(
            to_addr=int(self._contract_address, 16),
            selector=_GET_PAYMENT_SELECTOR,
            calldata=[low, high],
        )
        result = await asyncio.wait_for(
            self._client.call_contract(call, block_number="latest"),
            timeout=self._timeout,
        )
        if len(result) < _PAYMENT_STRUCT_LEN:
            log.warning("get_payment(%d) returned %d felts", payment_id, len(result))
            return None
        # Unset storage reads back as zeroes
        if not any(result):
            return None
        return OnChainPayment(
            payment_id=u256_from_felts(result[0], result[1]),
            merchant=felt_to_hex(result[2]),
            customer=felt_to_hex(result[3]),
            amount=u256_from_felts(result[4], result[5]),
            fee=u256_from_felts(result[6], result[7]),
            status=result[8],
            created_at=result[9],
            paid_at=result[10],
            metadata=felt_to_token(result[11]),
        )

    async def verify_transaction(self, tx_hash: str) -> bool:
        """True if the transaction executed successfully."""
        try:
            receipt = await asyncio.wait_for(
                self._client.get_transaction_receipt(tx_hash), timeout=self._timeout,
            )
        except Exception as exc:
            log.error("Error verifying transaction %s: %s", tx_hash, exc)
            return False
        return receipt.execution_status == TransactionExecutionStatus.SUCCEEDED
