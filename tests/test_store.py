"""SQLiteStore: cursor persistence and the payment uniqueness constraint."""

from __future__ import annotations

from starkpay_reconciler.models.records import OrderStatus, PaymentRecord, PaymentStatus
from starkpay_reconciler.storage.sqlite import SQLiteStore

from tests.factories import make_order


def _payment(on_chain_id: str = "42", order_id: str | None = "order-1") -> PaymentRecord:
    return PaymentRecord(
        id=f"pay-{on_chain_id}",
        on_chain_id=on_chain_id,
        merchant_id="seller-1",
        customer_id="buyer-1",
        amount="5000",
        order_id=order_id,
    )


async def test_cursor_roundtrip(store):
    assert await store.get_cursor() is None
    await store.set_cursor(110)
    assert await store.get_cursor() == 110
    await store.set_cursor(120)
    assert await store.get_cursor() == 120


async def test_cursor_survives_reopen(tmp_path):
    db_path = str(tmp_path / "state.db")
    first = SQLiteStore(db_path)
    await first.initialize()
    await first.set_cursor(777)
    await first.close()

    second = SQLiteStore(db_path)
    await second.initialize()
    assert await second.get_cursor() == 777
    await second.close()


async def test_duplicate_payment_insert_is_rejected_quietly(store):
    await store.save_order(make_order())

    assert await store.insert_payment(_payment()) is True
    dup = _payment()
    dup.id = "another-row-id"
    assert await store.insert_payment(dup) is False

    assert await store.count_payments("42") == 1


async def test_store_usable_after_duplicate(store):
    await store.save_order(make_order())
    await store.insert_payment(_payment("42"))
    await store.insert_payment(_payment("42"))

    assert await store.insert_payment(_payment("43")) is True
    assert len(await store.list_payments()) == 2


async def test_update_payment_keeps_confirmed_at_when_not_given(store):
    await store.save_order(make_order())
    await store.insert_payment(_payment())
    await store.update_payment("42", PaymentStatus.COMPLETED, confirmed_at="2025-01-01T00:00:00+00:00")
    await store.update_payment("42", PaymentStatus.COMPLETED, fee="50")

    payment = await store.get_payment_by_on_chain_id("42")
    assert payment.status == PaymentStatus.COMPLETED
    assert payment.confirmed_at == "2025-01-01T00:00:00+00:00"
    assert payment.fee == "50"


async def test_find_and_update_order(store):
    await store.save_order(make_order(order_id="o-9", on_chain_id="0a1b2c3d4e"))

    order = await store.find_order_by_on_chain_id("0a1b2c3d4e")
    assert order is not None and order.id == "o-9"

    await store.update_order("o-9", payment_id="pay-1")
    await store.update_order("o-9", status=OrderStatus.PAID)

    order = await store.get_order("o-9")
    assert order.status == OrderStatus.PAID
    assert order.payment_id == "pay-1"


async def test_find_order_ignores_leading_zeros_and_case(store):
    await store.save_order(make_order(order_id="o-z", on_chain_id="00A1b2c3d4"))

    for token in ("a1b2c3d4", "00a1b2c3d4", "0x00a1b2c3d4"):
        order = await store.find_order_by_on_chain_id(token)
        assert order is not None and order.id == "o-z"
    assert await store.find_order_by_on_chain_id("a1b2c3d5") is None


async def test_activity_log_newest_first(store):
    await store.log_activity("a", "first")
    await store.log_activity("b", "second", tx_hash="0x1")

    activity = await store.get_recent_activity(10)
    assert [a.event_type for a in activity] == ["b", "a"]
    assert activity[0].tx_hash == "0x1"
