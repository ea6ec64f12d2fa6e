"""
Shared fixtures for Hall of Shame tests.
"""

import pytest

from hallofshame.ledger.binder import LedgerBinder
from hallofshame.ledger.records import RecordReader
from hallofshame.storage.fetcher import ContentFetcher

from .doubles import InMemoryLedger, InMemoryStorageNetwork, make_settings

# ==================== Fixtures ====================


@pytest.fixture
def settings():
    """Settings with contract ids configured and no retry backoff."""
    return make_settings()


@pytest.fixture
def ledger(settings):
    return InMemoryLedger(settings)


@pytest.fixture
def storage(settings, ledger):
    return InMemoryStorageNetwork(settings, ledger)


@pytest.fixture
def binder(ledger, settings):
    return LedgerBinder(ledger, settings)


@pytest.fixture
def records(ledger):
    return RecordReader(ledger)


@pytest.fixture
def fetcher(storage):
    return ContentFetcher(storage)
