"""SQLite implementation of the ReconcilerStore protocol."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from starkpay_reconciler.models.records import (
    ActivityRecord,
    OrderRecord,
    OrderStatus,
    PaymentRecord,
    PaymentStatus,
)

SCHEMA = """
-- Last fully reconciled block
CREATE TABLE IF NOT EXISTS cursor (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    last_block INTEGER NOT NULL CHECK (last_block >= 0),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Orders (written by the order API)
CREATE TABLE IF NOT EXISTS orders (
    id TEXT PRIMARY KEY,
    on_chain_id TEXT NOT NULL,
    seller_id TEXT NOT NULL,
    buyer_id TEXT NOT NULL,
    total_amount TEXT NOT NULL DEFAULT '0',
    status TEXT NOT NULL DEFAULT 'PENDING',
    payment_id TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_orders_on_chain_id ON orders(on_chain_id);

-- Payments (written by the reconciler)
CREATE TABLE IF NOT EXISTS payments (
    id TEXT PRIMARY KEY,
    on_chain_id TEXT NOT NULL,
    merchant_id TEXT NOT NULL,
    customer_id TEXT NOT NULL,
    amount TEXT NOT NULL,
    fee TEXT NOT NULL DEFAULT '0',
    status TEXT NOT NULL DEFAULT 'PENDING',
    order_id TEXT REFERENCES orders(id),
    confirmed_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_payments_on_chain_id ON payments(on_chain_id);
CREATE INDEX IF NOT EXISTS idx_payments_order ON payments(order_id);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    message TEXT NOT NULL,
    tx_hash TEXT,
    payment_id TEXT,
    order_id TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""

_DUPLICATE_PAYMENT = "payments.on_chain_id"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStore:
    """SQLite-backed implementation of the ReconcilerStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        async with self.db.execute("SELECT last_block FROM cursor WHERE id=1") as cur:
            row = await cur.fetchone()
            return row["last_block"] if row else None

    async def set_cursor(self, block_number: int) -> None:
        await self.db.execute(
            "INSERT INTO cursor (id, last_block, updated_at) VALUES (1, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET last_block=excluded.last_block,"
            " updated_at=excluded.updated_at",
            (block_number, _now()),
        )
        await self.db.commit()

    # ── Orders ─────────────────────────────────────────────

    async def save_order(self, order: OrderRecord) -> None:
        now = _now()
        await self.db.execute(
            "INSERT OR REPLACE INTO orders"
            " (id, on_chain_id, seller_id, buyer_id, total_amount, status,"
            "  payment_id, created_at, updated_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                order.id, order.on_chain_id, order.seller_id, order.buyer_id,
                order.total_amount, OrderStatus(order.status).value,
                order.payment_id, order.created_at or now, now,
            ),
        )
        await self.db.commit()

    async def get_order(self, order_id: str) -> OrderRecord | None:
        async with self.db.execute("SELECT * FROM orders WHERE id=?", (order_id,)) as cur:
            row = await cur.fetchone()
            return _row_to_order(row) if row else None

    async def find_order_by_on_chain_id(self, on_chain_id: str) -> OrderRecord | None:
        """Find an order by correlation token.

        Tokens are hex and compare by value: case, a ``0x`` prefix and
        leading zeros do not matter, so ``"00a1b2c3d4"`` matches ``"a1b2c3d4"``.
        """
        token = on_chain_id.lower().removeprefix("0x").lstrip("0")
        async with self.db.execute(
            "SELECT * FROM orders"
            " WHERE ltrim(replace(lower(on_chain_id), '0x', ''), '0')=?",
            (token,),
        ) as cur:
            row = await cur.fetchone()
            return _row_to_order(row) if row else None

    async def update_order(
        self,
        order_id: str,
        status: OrderStatus | None = None,
        payment_id: str | None = None,
    ) -> None:
        current = await self.get_order(order_id)
        if current is None:
            return
        await self.db.execute(
            "UPDATE orders SET status=?, payment_id=?, updated_at=? WHERE id=?",
            (
                (status or current.status).value,
                payment_id if payment_id is not None else current.payment_id,
                _now(),
                order_id,
            ),
        )
        await self.db.commit()

    # ── Payments ───────────────────────────────────────────

    async def insert_payment(self, payment: PaymentRecord) -> bool:
        now = _now()
        try:
            await self.db.execute(
                "INSERT INTO payments"
                " (id, on_chain_id, merchant_id, customer_id, amount, fee, status,"
                "  order_id, confirmed_at, created_at, updated_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    payment.id, payment.on_chain_id, payment.merchant_id,
                    payment.customer_id, payment.amount, payment.fee,
                    PaymentStatus(payment.status).value, payment.order_id,
                    payment.confirmed_at, now, now,
                ),
            )
        except sqlite3.IntegrityError as exc:
            await self.db.rollback()
            if _DUPLICATE_PAYMENT in str(exc):
                return False
            raise
        await self.db.commit()
        return True

    async def get_payment_by_on_chain_id(self, on_chain_id: str) -> PaymentRecord | None:
        async with self.db.execute(
            "SELECT * FROM payments WHERE on_chain_id=?", (on_chain_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_payment(row) if row else None

    async def update_payment(
        self,
        on_chain_id: str,
        status: PaymentStatus,
        confirmed_at: str | None = None,
        fee: str | None = None,
    ) -> None:
        await self.db.execute(
            "UPDATE payments SET status=?,"
            " confirmed_at=COALESCE(?, confirmed_at),"
            " fee=COALESCE(?, fee),"
            " updated_at=? WHERE on_chain_id=?",
            (status.value, confirmed_at, fee, _now(), on_chain_id),
        )
        await self.db.commit()

    async def list_payments(self, limit: int = 50) -> list[PaymentRecord]:
        async with self.db.execute(
            "SELECT * FROM payments ORDER BY created_at DESC LIMIT ?", (limit,)
        ) as cur:
            return [_row_to_payment(row) async for row in cur]

    async def count_payments(self, on_chain_id: str) -> int:
        async with self.db.execute(
            "SELECT COUNT(*) AS c FROM payments WHERE on_chain_id=?", (on_chain_id,)
        ) as cur:
            row = await cur.fetchone()
            return row["c"] if row else 0

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        tx_hash: str | None = None,
        payment_id: str | None = None,
        order_id: str | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, message, tx_hash, payment_id, order_id, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (event_type, message, tx_hash, payment_id, order_id, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    message=row["message"],
                    tx_hash=row["tx_hash"],
                    payment_id=row["payment_id"],
                    order_id=row["order_id"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


def _row_to_order(row: aiosqlite.Row) -> OrderRecord:
    return OrderRecord(
        id=row["id"],
        on_chain_id=row["on_chain_id"],
        seller_id=row["seller_id"],
        buyer_id=row["buyer_id"],
        total_amount=row["total_amount"],
        status=OrderStatus(row["status"]),
        payment_id=row["payment_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_payment(row: aiosqlite.Row) -> PaymentRecord:
    return PaymentRecord(
        id=row["id"],
        on_chain_id=row["on_chain_id"],
        merchant_id=row["merchant_id"],
        customer_id=row["customer_id"],
        amount=row["amount"],
        fee=row["fee"],
        status=PaymentStatus(row["status"]),
        order_id=row["order_id"],
        confirmed_at=row["confirmed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
