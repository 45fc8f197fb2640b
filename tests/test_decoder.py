"""Classification and decoding of raw gateway events."""

from __future__ import annotations

import pytest

from starkpay_reconciler.models.events import (
    PaymentCompleted,
    PaymentCreated,
    RawEvent,
    UnknownEvent,
)
from starkpay_reconciler.reconcile.decoder import DecodeError, decode_event
from starkpay_reconciler.starknet.felt import (
    PAYMENT_COMPLETED_SELECTOR,
    PAYMENT_CREATED_SELECTOR,
    felt_to_hex,
)

from tests.factories import (
    CUSTOMER,
    MERCHANT,
    make_completed_raw,
    make_created_raw,
    make_unknown_raw,
)


def test_decode_payment_created():
    raw = make_created_raw(payment_id=42, metadata=0xABC123, amount=5000, block_number=105)

    event = decode_event(raw)

    assert isinstance(event, PaymentCreated)
    assert event.payment_id == 42
    assert event.amount == 5000
    assert event.metadata_id == "abc123"
    assert event.merchant == felt_to_hex(MERCHANT)
    assert event.customer == felt_to_hex(CUSTOMER)
    assert event.block_number == 105
    assert event.transaction_hash == raw.transaction_hash


def test_decode_payment_created_large_ids():
    big = (7 << 128) + 3
    raw = make_created_raw(payment_id=big, amount=big)

    event = decode_event(raw)

    assert event.payment_id == big
    assert event.amount == big


def test_decode_payment_completed():
    raw = make_completed_raw(payment_id=42, amount_to_merchant=4950, fee=50)

    event = decode_event(raw)

    assert isinstance(event, PaymentCompleted)
    assert event.payment_id == 42
    assert event.amount_to_merchant == 4950
    assert event.fee == 50
    assert event.merchant == felt_to_hex(MERCHANT)


def test_completed_without_data_still_decodes():
    raw = RawEvent(
        block_number=1,
        transaction_hash="0x1",
        keys=(PAYMENT_COMPLETED_SELECTOR, 42, 0),
        data=(),
    )

    event = decode_event(raw)

    assert isinstance(event, PaymentCompleted)
    assert event.payment_id == 42
    assert event.fee is None
    assert event.merchant is None


def test_empty_keys_are_skipped():
    raw = RawEvent(block_number=1, transaction_hash="0x1", keys=(), data=(1, 2))
    assert decode_event(raw) is None


def test_unknown_selector_is_tagged_not_raised():
    raw = make_unknown_raw(selector=0x1234)

    event = decode_event(raw)

    assert isinstance(event, UnknownEvent)
    assert event.selector == 0x1234


def test_created_missing_metadata_raises():
    raw = RawEvent(
        block_number=1,
        transaction_hash="0xbad",
        keys=(PAYMENT_CREATED_SELECTOR, 42, 0),
        data=(5000, 0),
    )
    with pytest.raises(DecodeError, match="metadata"):
        decode_event(raw)


def test_created_missing_payment_id_half_raises():
    raw = RawEvent(
        block_number=1,
        transaction_hash="0xbad",
        keys=(PAYMENT_CREATED_SELECTOR, 42),
        data=(5000, 0, 0xABC, 1),
    )
    with pytest.raises(DecodeError, match="payment_id.high"):
        decode_event(raw)


def test_oversized_u256_half_raises():
    raw = RawEvent(
        block_number=1,
        transaction_hash="0xbad",
        keys=(PAYMENT_CREATED_SELECTOR, 1 << 128, 0),
        data=(5000, 0, 0xABC, 1),
    )
    with pytest.raises(DecodeError):
        decode_event(raw)
