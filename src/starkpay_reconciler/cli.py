"""CLI entry point for the starkpay reconciler."""

from __future__ import annotations

import asyncio
import logging
import sys
import uuid

import click

from starkpay_reconciler.config import load_config
from starkpay_reconciler.daemon import ReconcilerDaemon, run_daemon
from starkpay_reconciler.models.records import OrderRecord
from starkpay_reconciler.starknet.felt import to_int
from starkpay_reconciler.starknet.ledger import StarknetLedger
from starkpay_reconciler.storage.sqlite import SQLiteStore


def _warn_missing_contract(cfg):
    """Warn when no contract address is configured; passes will be skipped."""
    if not cfg.contract_address:
        click.echo("Warning: No payment gateway contract address configured.", err=True)
        click.echo("Set STARKPAY_CONTRACT_ADDRESS or contract_address in config;", err=True)
        click.echo("until then every reconciliation pass is skipped.", err=True)


async def _with_store(db_path: str, fn):
    store = SQLiteStore(db_path)
    await store.initialize()
    try:
        return await fn(store)
    finally:
        await store.close()


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """starkpay-reconciler - Starknet payment event reconciler."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    cfg = load_config(config_path)
    ctx.obj["cfg"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Reconciliation ─────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the reconciliation daemon."""
    cfg = ctx.obj["cfg"]
    _warn_missing_contract(cfg)

    click.echo(f"Starting starkpay reconciler (every {cfg.poll_interval}s)")
    asyncio.run(run_daemon(cfg))


@cli.command()
@click.pass_context
def once(ctx: click.Context) -> None:
    """Run a single reconciliation pass and print its report."""
    cfg = ctx.obj["cfg"]
    _warn_missing_contract(cfg)

    async def _once():
        daemon = ReconcilerDaemon(cfg)
        await daemon.store.initialize()
        try:
            return await daemon.run_once()
        finally:
            await daemon.store.close()

    report = asyncio.run(_once())
    click.echo(f"Status:     {report.status}")
    if report.from_block is not None:
        click.echo(f"Range:      {report.from_block}-{report.to_block}")
    click.echo(f"Events:     {report.events_fetched}")
    click.echo(f"Applied:    {report.applied}")
    click.echo(f"Duplicates: {report.duplicates}")
    click.echo(f"Dropped:    {report.dropped}")
    click.echo(f"Failed:     {report.failed}")
    for tx_hash in report.failed_tx_hashes:
        click.echo(f"  failed tx {tx_hash}")
    click.echo(f"Cursor:     {report.cursor if report.cursor is not None else '(none)'}")


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show reconciler configuration."""
    cfg = ctx.obj["cfg"]
    click.echo(f"RPC URL:        {cfg.rpc_url}")
    click.echo(f"Contract:       {cfg.contract_address or '(not set)'}")
    click.echo(f"Poll interval:  {cfg.poll_interval}s")
    click.echo(f"Chunk size:     {cfg.chunk_size}")
    click.echo(f"RPC timeout:    {cfg.rpc_timeout}s")
    click.echo(f"Start block:    {cfg.start_block}")
    click.echo(f"Max blocks:     {cfg.max_blocks_per_pass or 'unlimited'}")
    click.echo(f"Retry passes:   {cfg.completion_retry_passes}")
    click.echo(f"DB path:        {cfg.db_path}")


@cli.command()
@click.option("--set", "set_to", type=click.IntRange(min=0), default=None, help="Move the cursor to this block")
@click.pass_context
def cursor(ctx: click.Context, set_to: int | None) -> None:
    """Show (or move) the last reconciled block."""
    cfg = ctx.obj["cfg"]

    async def _cursor(store):
        if set_to is not None:
            await store.set_cursor(set_to)
            await store.log_activity("cursor_set", f"Cursor manually set to {set_to}")
        return await store.get_cursor()

    value = asyncio.run(_with_store(cfg.db_path, _cursor))
    click.echo(f"Cursor: {value if value is not None else '(none)'}")


@cli.command()
@click.argument("payment_id")
@click.pass_context
def payment(ctx: click.Context, payment_id: str) -> None:
    """Read a payment from the gateway contract."""
    cfg = ctx.obj["cfg"]
    if not cfg.contract_address:
        click.echo("Error: No payment gateway contract address configured.", err=True)
        sys.exit(1)

    ledger = StarknetLedger(cfg.rpc_url, cfg.contract_address, cfg.rpc_timeout)
    data = asyncio.run(ledger.get_payment(to_int(payment_id)))
    if data is None:
        click.echo(f"Payment {payment_id}: not found on chain")
        return
    click.echo(f"Payment:    {data.payment_id}")
    click.echo(f"Merchant:   {data.merchant}")
    click.echo(f"Customer:   {data.customer}")
    click.echo(f"Amount:     {data.amount}")
    click.echo(f"Fee:        {data.fee}")
    click.echo(f"Status:     {data.status}")
    click.echo(f"Created at: {data.created_at}")
    click.echo(f"Paid at:    {data.paid_at or '-'}")
    click.echo(f"Metadata:   {data.metadata}")


@cli.command("verify-tx")
@click.argument("tx_hash")
@click.pass_context
def verify_tx(ctx: click.Context, tx_hash: str) -> None:
    """Check that a transaction executed successfully."""
    cfg = ctx.obj["cfg"]
    ledger = StarknetLedger(cfg.rpc_url, cfg.contract_address, cfg.rpc_timeout)
    ok = asyncio.run(ledger.verify_transaction(tx_hash))
    click.echo(f"{tx_hash}: {'SUCCEEDED' if ok else 'NOT CONFIRMED'}")
    if not ok:
        sys.exit(1)


# ── Store ──────────────────────────────────────────────


@cli.command()
@click.option("--limit", default=20, show_default=True)
@click.pass_context
def payments(ctx: click.Context, limit: int) -> None:
    """List stored payments."""
    cfg = ctx.obj["cfg"]
    rows = asyncio.run(_with_store(cfg.db_path, lambda s: s.list_payments(limit)))
    if not rows:
        click.echo("No payments recorded.")
        return
    for p in rows:
        click.echo(
            f"{p.on_chain_id:>12}  {p.status.value:<10} amount={p.amount} fee={p.fee}"
            f" order={p.order_id or '-'} confirmed={p.confirmed_at or '-'}"
        )


@cli.command()
@click.option("--limit", default=20, show_default=True)
@click.pass_context
def activity(ctx: click.Context, limit: int) -> None:
    """Show the recent activity log."""
    cfg = ctx.obj["cfg"]
    rows = asyncio.run(_with_store(cfg.db_path, lambda s: s.get_recent_activity(limit)))
    for a in rows:
        tx = f" tx={a.tx_hash}" if a.tx_hash else ""
        click.echo(f"{a.created_at}  {a.event_type:<18} {a.message}{tx}")


@cli.command("add-order")
@click.option("--on-chain-id", required=True, help="Correlation token carried in the payment metadata")
@click.option("--seller", required=True, help="Seller (merchant) user id")
@click.option("--buyer", required=True, help="Buyer (customer) user id")
@click.option("--amount", default="0", show_default=True)
@click.option("--id", "order_id", default=None, help="Order id (random UUID if omitted)")
@click.pass_context
def add_order(
    ctx: click.Context,
    on_chain_id: str,
    seller: str,
    buyer: str,
    amount: str,
    order_id: str | None,
) -> None:
    """Insert an order row so its payment events can be correlated."""
    cfg = ctx.obj["cfg"]
    order = OrderRecord(
        id=order_id or str(uuid.uuid4()),
        on_chain_id=on_chain_id.lower().removeprefix("0x"),
        seller_id=seller,
        buyer_id=buyer,
        total_amount=amount,
    )
    asyncio.run(_with_store(cfg.db_path, lambda s: s.save_order(order)))
    click.echo(f"Order {order.id} saved (on-chain id {order.on_chain_id})")


if __name__ == "__main__":
    cli()
