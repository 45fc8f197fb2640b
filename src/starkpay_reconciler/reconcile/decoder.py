"""Decodes raw gateway events into PaymentCreated / PaymentCompleted variants."""

from __future__ import annotations

import logging
from typing import Sequence

from starkpay_reconciler.models.events import (
    DomainEvent,
    PaymentCompleted,
    PaymentCreated,
    RawEvent,
    UnknownEvent,
)
from starkpay_reconciler.starknet.felt import (
    PAYMENT_COMPLETED_SELECTOR,
    PAYMENT_CREATED_SELECTOR,
    felt_to_hex,
    felt_to_token,
    u256_from_felts,
)

log = logging.getLogger(__name__)

# Event layouts emitted by the PaymentGateway contract:
#   PaymentCreated:   keys [sel, id.low, id.high, merchant, customer]
#                     data [amount.low, amount.high, metadata, timestamp]
#   PaymentCompleted: keys [sel, id.low, id.high, merchant]
#                     data [to_merchant.low, to_merchant.high, fee.low, fee.high, timestamp]


class DecodeError(ValueError):
    """A known event whose fields do not match the expected layout."""


def _required(values: Sequence[int], index: int, name: str, raw: RawEvent) -> int:
    if index >= len(values):
        raise DecodeError(f"{name} missing in event {raw.transaction_hash}")
    return values[index]


def _optional(values: Sequence[int], index: int) -> int | None:
    return values[index] if index < len(values) else None


def _optional_address(values: Sequence[int], index: int) -> str | None:
    value = _optional(values, index)
    return felt_to_hex(value) if value is not None else None


def _u256(values: Sequence[int], index: int, name: str, raw: RawEvent) -> int:
    low = _required(values, index, f"{name}.low", raw)
    high = _required(values, index + 1, f"{name}.high", raw)
    try:
        return u256_from_felts(low, high)
    except ValueError as exc:
        raise DecodeError(f"{name}: {exc}") from exc


def _optional_u256(values: Sequence[int], index: int, name: str, raw: RawEvent) -> int | None:
    if index + 1 >= len(values):
        return None
    return _u256(values, index, name, raw)


def _decode_created(raw: RawEvent) -> PaymentCreated:
    return PaymentCreated(
        payment_id=_u256(raw.keys, 1, "payment_id", raw),
        merchant=_optional_address(raw.keys, 3),
        customer=_optional_address(raw.keys, 4),
        amount=_u256(raw.data, 0, "amount", raw),
        metadata_id=felt_to_token(_required(raw.data, 2, "metadata", raw)),
        timestamp=_optional(raw.data, 3),
        block_number=raw.block_number,
        transaction_hash=raw.transaction_hash,
    )


def _decode_completed(raw: RawEvent) -> PaymentCompleted:
    return PaymentCompleted(
        payment_id=_u256(raw.keys, 1, "payment_id", raw),
        merchant=_optional_address(raw.keys, 3),
        amount_to_merchant=_optional_u256(raw.data, 0, "amount_to_merchant", raw),
        fee=_optional_u256(raw.data, 2, "fee", raw),
        timestamp=_optional(raw.data, 4),
        block_number=raw.block_number,
        transaction_hash=raw.transaction_hash,
    )


_DECODERS = {
    PAYMENT_CREATED_SELECTOR: _decode_created,
    PAYMENT_COMPLETED_SELECTOR: _decode_completed,
}


def decode_event(raw: RawEvent) -> DomainEvent | None:
    """Classify and decode one raw event.

    Returns None for events without keys and UnknownEvent for selectors the
    gateway does not define. Raises DecodeError on malformed known events.
    """
    if not raw.keys:
        return None
    selector = raw.keys[0]
    decoder = _DECODERS.get(selector)
    if decoder is None:
        log.debug("Ignoring event with selector %#x in %s", selector, raw.transaction_hash)
        return UnknownEvent(
            selector=selector,
            block_number=raw.block_number,
            transaction_hash=raw.transaction_hash,
        )
    return decoder(raw)
