"""Shared fixtures for starkpay_reconciler tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from starkpay_reconciler.models.config import ReconcilerConfig
from starkpay_reconciler.reconcile.applier import PaymentEventApplier
from starkpay_reconciler.reconcile.cursor import CursorTracker
from starkpay_reconciler.reconcile.poller import ReconciliationPoller
from starkpay_reconciler.starknet.fetcher import StarknetEventFetcher
from starkpay_reconciler.storage.sqlite import SQLiteStore

from tests.mocks import MockLedger

CONTRACT_ADDRESS = "0x0578d3fb1a4c0e4a6ebfc3b7a9d2a13d7ab18a2f8b7b4c6c5a0e5a5ce1dd2b6b"


def pytest_configure(config):
    """Add network info to the report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "mocked Starknet node"
    meta["Payment Gateway"] = CONTRACT_ADDRESS


def make_test_config(**overrides) -> ReconcilerConfig:
    """Build a ReconcilerConfig suitable for testing."""
    defaults = dict(
        poll_interval=1,
        error_backoff=1,
        rpc_url="http://127.0.0.1:5050/rpc",
        contract_address=CONTRACT_ADDRESS,
        chunk_size=10,
        rpc_timeout=5,
        start_block=0,
        db_path=":memory:",
    )
    defaults.update(overrides)
    return ReconcilerConfig(**defaults)


@pytest.fixture
def test_config():
    """Default ReconcilerConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStore."""
    s = SQLiteStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_ledger():
    return MockLedger(tip=0)


@pytest.fixture
def fetcher(mock_ledger):
    return StarknetEventFetcher(mock_ledger, chunk_size=10)


@pytest.fixture
def cursor(store):
    return CursorTracker(store, start_block=0)


@pytest.fixture
def applier(store):
    return PaymentEventApplier(store)


@pytest.fixture
def poller(store, fetcher, cursor, applier):
    """ReconciliationPoller wired to the in-memory store and mock ledger."""
    return ReconciliationPoller(
        store=store,
        fetcher=fetcher,
        cursor=cursor,
        contract_address=CONTRACT_ADDRESS,
        applier=applier,
    )
