"""Ledger event models: raw emitted events and the decoded payment gateway variants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class RawEvent:
    """An event as returned by starknet_getEvents, before decoding."""

    block_number: int | None  # None for events in the pending block
    transaction_hash: str
    keys: tuple[int, ...]  # keys[0] is the event selector
    data: tuple[int, ...]


@dataclass(frozen=True)
class PaymentCreated:
    """Emitted by the gateway when a customer opens a payment.

    The metadata felt carries the order's correlation token.
    """

    payment_id: int  # u256
    merchant: str | None
    customer: str | None
    amount: int  # u256
    metadata_id: str  # rendered correlation token
    timestamp: int | None
    block_number: int | None
    transaction_hash: str


@dataclass(frozen=True)
class PaymentCompleted:
    """Emitted by the gateway when a payment is settled to the merchant."""

    payment_id: int  # u256
    merchant: str | None
    amount_to_merchant: int | None  # u256
    fee: int | None  # u256
    timestamp: int | None
    block_number: int | None
    transaction_hash: str


@dataclass(frozen=True)
class UnknownEvent:
    """Any event whose selector we do not handle (yet)."""

    selector: int
    block_number: int | None
    transaction_hash: str


DomainEvent = Union[PaymentCreated, PaymentCompleted, UnknownEvent]
