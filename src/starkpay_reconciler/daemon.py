"""Main daemon loop - wires all components together."""

from __future__ import annotations

import asyncio
import logging
import signal

from starkpay_reconciler.models.config import ReconcilerConfig
from starkpay_reconciler.models.records import PassReport
from starkpay_reconciler.reconcile.cursor import CursorTracker
from starkpay_reconciler.reconcile.poller import ReconciliationPoller
from starkpay_reconciler.starknet.fetcher import StarknetEventFetcher
from starkpay_reconciler.starknet.ledger import StarknetLedger
from starkpay_reconciler.storage.sqlite import SQLiteStore

log = logging.getLogger(__name__)


class ReconcilerDaemon:
    """Periodic reconciliation of gateway events into the store.

    Owns the single scheduler task: one pass per tick, never two at once.
    """

    def __init__(self, cfg: ReconcilerConfig) -> None:
        self._cfg = cfg
        self._running = False
        self._stop_event = asyncio.Event()

        self.store = SQLiteStore(cfg.db_path)
        self.ledger = StarknetLedger(cfg.rpc_url, cfg.contract_address, cfg.rpc_timeout)
        self.fetcher = StarknetEventFetcher(self.ledger, cfg.chunk_size)
        self.cursor = CursorTracker(self.store, cfg.start_block, cfg.max_blocks_per_pass)
        self.poller = ReconciliationPoller(
            store=self.store,
            fetcher=self.fetcher,
            cursor=self.cursor,
            contract_address=cfg.contract_address,
            completion_retry_passes=cfg.completion_retry_passes,
        )

    async def start(self) -> None:
        """Initialize the store and run the main loop until stopped."""
        log.info("Starting starkpay reconciler")
        log.info("  RPC: %s", self._cfg.rpc_url)
        log.info("  Contract: %s", self._cfg.contract_address or "(not set)")
        log.info("  Poll interval: %ds, chunk size: %d", self._cfg.poll_interval, self._cfg.chunk_size)

        await self.store.initialize()

        saved = await self.store.get_cursor()
        if saved is not None:
            log.info("Restored cursor: block %d", saved)
        else:
            log.info("No cursor stored, starting at block %d", self._cfg.start_block)

        self._running = True
        await self.store.log_activity("reconciler_started", "Reconciler started")

        try:
            await self._main_loop()
        finally:
            await self.store.log_activity("reconciler_stopped", "Reconciler stopped")
            await self.store.close()
            log.info("Reconciler shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._running = False
        self._stop_event.set()

    async def run_once(self) -> PassReport:
        return await self.poller.run_pass()

    async def _main_loop(self) -> None:
        while self._running:
            delay = self._cfg.poll_interval
            try:
                report = await self.poller.run_pass()
                if report.events_fetched:
                    log.info(
                        "Pass %d-%d: %d events, %d applied, %d duplicates, %d dropped, %d failed",
                        report.from_block, report.to_block, report.events_fetched,
                        report.applied, report.duplicates, report.dropped, report.failed,
                    )
            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except Exception as exc:
                log.error("Reconciliation pass error: %s", exc, exc_info=True)
                delay = self._cfg.error_backoff

            await self._sleep(delay)

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass


async def run_daemon(cfg: ReconcilerConfig) -> None:
    """Entry point for running the daemon."""
    daemon = ReconcilerDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
