"""Applies decoded gateway events to the orders/payments store."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from starkpay_reconciler.interfaces.store import ReconcilerStore
from starkpay_reconciler.models.events import (
    DomainEvent,
    PaymentCompleted,
    PaymentCreated,
    UnknownEvent,
)
from starkpay_reconciler.models.records import (
    OrderStatus,
    PaymentRecord,
    PaymentStatus,
    can_transition,
)

log = logging.getLogger(__name__)

# Orders already past the point of payment; a replayed completion leaves them alone.
_ORDER_PAID_OR_LATER = frozenset({
    OrderStatus.PAID,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
    OrderStatus.DISPUTED,
})


class PaymentEventApplier:
    """Turns PaymentCreated / PaymentCompleted into store mutations.

    Every apply is idempotent: replaying a range after a crash yields the
    same rows. ``apply`` returns a short outcome string:

    - ``created`` / ``duplicate`` for PaymentCreated
    - ``completed`` / ``already_completed`` / ``invalid_transition`` for PaymentCompleted
    - ``order_not_found`` / ``payment_not_found`` when correlation fails
    - ``ignored`` for unknown events
    """

    def __init__(self, store: ReconcilerStore) -> None:
        self._store = store

    async def apply(self, event: DomainEvent) -> str:
        if isinstance(event, PaymentCreated):
            return await self.apply_created(event)
        if isinstance(event, PaymentCompleted):
            return await self.apply_completed(event)
        if isinstance(event, UnknownEvent):
            return "ignored"
        raise TypeError(f"Unsupported event type: {type(event).__name__}")

    async def apply_created(self, event: PaymentCreated) -> str:
        order = await self._store.find_order_by_on_chain_id(event.metadata_id)
        if order is None:
            log.warning(
                "Order not found for metadata %s (payment %d, tx %s)",
                event.metadata_id, event.payment_id, event.transaction_hash,
            )
            await self._store.log_activity(
                "order_not_found",
                f"No order with on-chain id {event.metadata_id}",
                tx_hash=event.transaction_hash,
                payment_id=str(event.payment_id),
            )
            return "order_not_found"

        payment = PaymentRecord(
            id=str(uuid.uuid4()),
            on_chain_id=str(event.payment_id),
            merchant_id=order.seller_id,
            customer_id=order.buyer_id,
            amount=str(event.amount),
            fee="0",  # only known once the payment completes
            status=PaymentStatus.PENDING,
            order_id=order.id,
        )
        if not await self._store.insert_payment(payment):
            log.info("Payment %s already recorded, skipping", payment.on_chain_id)
            if order.payment_id is None:
                await self._relink_order(order.id, payment.on_chain_id)
            return "duplicate"

        await self._store.update_order(order.id, payment_id=payment.id)
        log.info("Payment record %s created for order %s", payment.on_chain_id, order.id)
        await self._store.log_activity(
            "payment_created",
            f"Payment {payment.on_chain_id} for order {order.id}: {payment.amount}",
            tx_hash=event.transaction_hash,
            payment_id=payment.on_chain_id,
            order_id=order.id,
        )
        return "created"

    async def apply_completed(self, event: PaymentCompleted) -> str:
        on_chain_id = str(event.payment_id)
        log.info("Payment completed on chain: payment_id=%s", on_chain_id)

        payment = await self._store.get_payment_by_on_chain_id(on_chain_id)
        if payment is None:
            log.warning(
                "Payment %s not found for completion (tx %s)",
                on_chain_id, event.transaction_hash,
            )
            await self._store.log_activity(
                "payment_not_found",
                f"Completion for unknown payment {on_chain_id}",
                tx_hash=event.transaction_hash,
                payment_id=on_chain_id,
            )
            return "payment_not_found"

        fee = str(event.fee) if event.fee is not None else None
        if payment.status == PaymentStatus.COMPLETED:
            # Same target state; confirmed_at keeps its first value
            await self._store.update_payment(on_chain_id, PaymentStatus.COMPLETED, fee=fee)
            outcome = "already_completed"
        elif not can_transition(payment.status, PaymentStatus.COMPLETED):
            log.warning(
                "Payment %s is %s, ignoring completion (tx %s)",
                on_chain_id, payment.status.value, event.transaction_hash,
            )
            await self._store.log_activity(
                "invalid_transition",
                f"Payment {on_chain_id} is {payment.status.value}, completion ignored",
                tx_hash=event.transaction_hash,
                payment_id=on_chain_id,
                order_id=payment.order_id,
            )
            return "invalid_transition"
        else:
            await self._store.update_payment(
                on_chain_id,
                PaymentStatus.COMPLETED,
                confirmed_at=datetime.now(timezone.utc).isoformat(),
                fee=fee,
            )
            outcome = "completed"
            await self._store.log_activity(
                "payment_completed",
                f"Payment {on_chain_id} completed (fee {fee or '0'})",
                tx_hash=event.transaction_hash,
                payment_id=on_chain_id,
                order_id=payment.order_id,
            )

        if payment.order_id:
            await self._mark_order_paid(payment.order_id)
        return outcome

    async def _relink_order(self, order_id: str, on_chain_id: str) -> None:
        # Insert landed but the order link was never written (crash in between)
        existing = await self._store.get_payment_by_on_chain_id(on_chain_id)
        if existing is None or existing.order_id != order_id:
            return
        await self._store.update_order(order_id, payment_id=existing.id)
        log.info("Linked order %s to existing payment %s", order_id, on_chain_id)

    async def _mark_order_paid(self, order_id: str) -> None:
        order = await self._store.get_order(order_id)
        if order is None:
            log.warning("Payment links to missing order %s", order_id)
            return
        if order.status in _ORDER_PAID_OR_LATER:
            return
        await self._store.update_order(order_id, status=OrderStatus.PAID)
        log.info("Order %s marked as PAID", order_id)
