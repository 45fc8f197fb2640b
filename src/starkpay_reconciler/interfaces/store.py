"""ReconcilerStore protocol - persisted orders, payments, cursor and activity."""

from __future__ import annotations

from typing import Protocol

from starkpay_reconciler.models.records import (
    ActivityRecord,
    OrderRecord,
    OrderStatus,
    PaymentRecord,
    PaymentStatus,
)


class ReconcilerStore(Protocol):
    """Persistence used by the reconciler."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        ...

    async def set_cursor(self, block_number: int) -> None:
        ...

    # ── Orders ─────────────────────────────────────────────

    async def save_order(self, order: OrderRecord) -> None:
        ...

    async def get_order(self, order_id: str) -> OrderRecord | None:
        ...

    async def find_order_by_on_chain_id(self, on_chain_id: str) -> OrderRecord | None:
        ...

    async def update_order(
        self,
        order_id: str,
        status: OrderStatus | None = None,
        payment_id: str | None = None,
    ) -> None:
        ...

    # ── Payments ───────────────────────────────────────────

    async def insert_payment(self, payment: PaymentRecord) -> bool:
        """Insert a payment. Returns False if one with the same on_chain_id exists."""
        ...

    async def get_payment_by_on_chain_id(self, on_chain_id: str) -> PaymentRecord | None:
        ...

    async def update_payment(
        self,
        on_chain_id: str,
        status: PaymentStatus,
        confirmed_at: str | None = None,
        fee: str | None = None,
    ) -> None:
        ...

    async def list_payments(self, limit: int = 50) -> list[PaymentRecord]:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        tx_hash: str | None = None,
        payment_id: str | None = None,
        order_id: str | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
