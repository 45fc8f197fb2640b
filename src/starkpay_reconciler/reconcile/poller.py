"""Reconciliation poller - one pass fetches a block range and applies its events."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from starkpay_reconciler.interfaces.fetcher import EventFetcher
from starkpay_reconciler.interfaces.store import ReconcilerStore
from starkpay_reconciler.models.events import PaymentCompleted, RawEvent
from starkpay_reconciler.models.records import PassReport
from starkpay_reconciler.reconcile.applier import PaymentEventApplier
from starkpay_reconciler.reconcile.cursor import CursorTracker
from starkpay_reconciler.reconcile.decoder import decode_event

log = logging.getLogger(__name__)

_APPLIED = {"created", "completed", "already_completed"}
_DROPPED = {"order_not_found", "payment_not_found", "invalid_transition"}


@dataclass
class _DeferredCompletion:
    event: PaymentCompleted
    deferred_in_pass: int


class ReconciliationPoller:
    """Runs reconciliation passes over the payment gateway's events.

    A pass:
    1. Claims the cursor's busy guard (a concurrent pass is skipped)
    2. Reads the chain tip and asks the cursor for the next range
    3. Fetches the range; on a transient failure the cursor stays put
    4. Decodes and applies each event in order, isolating failures per event
    5. Retries deferred completions, if enabled
    6. Commits the cursor to the end of the range
    """

    def __init__(
        self,
        store: ReconcilerStore,
        fetcher: EventFetcher,
        cursor: CursorTracker,
        contract_address: str,
        applier: PaymentEventApplier | None = None,
        completion_retry_passes: int = 0,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._cursor = cursor
        self._contract_address = contract_address
        self._applier = applier or PaymentEventApplier(store)
        self._retry_passes = completion_retry_passes
        self._deferred: dict[tuple[str, int], _DeferredCompletion] = {}
        self._pass_seq = 0

    @property
    def deferred_count(self) -> int:
        return len(self._deferred)

    async def run_pass(self) -> PassReport:
        """Run one reconciliation pass and report what it did."""
        if not self._cursor.try_begin():
            log.debug("Skipping event processing - previous pass still running")
            return PassReport(status="skipped_busy")
        try:
            return await self._run_pass()
        finally:
            self._cursor.end()

    async def _run_pass(self) -> PassReport:
        if not self._contract_address:
            log.warning("Payment gateway contract address not set, skipping event fetch")
            return PassReport(status="skipped_config")

        tip = await self._fetcher.chain_tip()
        if tip is None:
            return PassReport(status="fetch_failed", cursor=await self._cursor.position())

        block_range = await self._cursor.get_next_range(tip)
        if block_range is None:
            return PassReport(status="idle", cursor=await self._cursor.position())

        log.info("Processing blocks from %d to %d", block_range.from_block, block_range.to_block)
        report = PassReport(
            status="fetch_failed",
            from_block=block_range.from_block,
            to_block=block_range.to_block,
            cursor=await self._cursor.position(),
        )

        result = await self._fetcher.fetch(
            self._contract_address, block_range.from_block, block_range.to_block,
        )
        if result.failed:
            await self._store.log_activity(
                "fetch_failed",
                f"Blocks {block_range.from_block}-{block_range.to_block}: {result.error}",
            )
            return report

        self._pass_seq += 1
        report.events_fetched = len(result.events)
        if result.events:
            log.info("Processing %d events", len(result.events))

        for raw in result.events:
            await self._process(raw, report)

        if self._deferred:
            await self._retry_deferred(report)

        # Every event of the range has been applied or dropped
        await self._cursor.commit(block_range.to_block)
        report.status = "completed"
        report.cursor = block_range.to_block

        if result.events:
            await self._store.log_activity(
                "cursor_advanced",
                f"Blocks {block_range.from_block}-{block_range.to_block}:"
                f" {report.applied} applied, {report.dropped} dropped, {report.failed} failed",
            )
        return report

    async def _process(self, raw: RawEvent, report: PassReport) -> None:
        try:
            event = decode_event(raw)
            if event is None:
                report.ignored += 1
                return
            outcome = await self._applier.apply(event)
        except Exception as exc:
            await self._record_failure(raw.transaction_hash, exc, report)
            return

        if (
            isinstance(event, PaymentCompleted)
            and outcome == "payment_not_found"
            and self._retry_passes > 0
        ):
            key = (event.transaction_hash, event.payment_id)
            self._deferred[key] = _DeferredCompletion(event, self._pass_seq)
            report.deferred += 1
            log.info(
                "Deferring completion of payment %d for up to %d passes",
                event.payment_id, self._retry_passes,
            )
            return
        self._tally(outcome, report)

    async def _retry_deferred(self, report: PassReport) -> None:
        for key, item in list(self._deferred.items()):
            event = item.event
            try:
                # Still unknown: wait quietly, the miss was logged when deferred
                if await self._store.get_payment_by_on_chain_id(str(event.payment_id)) is None:
                    if self._pass_seq - item.deferred_in_pass >= self._retry_passes:
                        del self._deferred[key]
                        await self._drop_deferred(event, report)
                    continue
                outcome = await self._applier.apply_completed(event)
            except Exception as exc:
                del self._deferred[key]
                await self._record_failure(event.transaction_hash, exc, report)
                continue

            del self._deferred[key]
            self._tally(outcome, report)

    async def _drop_deferred(self, event: PaymentCompleted, report: PassReport) -> None:
        report.dropped += 1
        log.warning(
            "Dropping completion of payment %d after %d passes (tx %s)",
            event.payment_id, self._retry_passes, event.transaction_hash,
        )
        await self._store.log_activity(
            "completion_dropped",
            f"Completion for payment {event.payment_id} dropped after {self._retry_passes} passes",
            tx_hash=event.transaction_hash,
            payment_id=str(event.payment_id),
        )

    async def _record_failure(self, tx_hash: str, exc: Exception, report: PassReport) -> None:
        report.failed += 1
        report.failed_tx_hashes.append(tx_hash)
        log.error("Failed to process event %s: %s", tx_hash, exc, exc_info=True)
        try:
            await self._store.log_activity("event_failed", str(exc), tx_hash=tx_hash)
        except Exception as log_exc:
            log.error("Could not record failure of %s: %s", tx_hash, log_exc)

    @staticmethod
    def _tally(outcome: str, report: PassReport) -> None:
        if outcome in _APPLIED:
            report.applied += 1
        elif outcome == "duplicate":
            report.duplicates += 1
        elif outcome in _DROPPED:
            report.dropped += 1
        else:
            report.ignored += 1
