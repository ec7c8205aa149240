"""Shared test fixtures."""

from decimal import Decimal

import pytest

from catalog_sync.common.config_loader import SyncSettings
from catalog_sync.feed import FeedError
from catalog_sync.models import ExistingRecord, Group
from catalog_sync.store import BackendError, InventorySnapshot, StoreBackend


class FakeFeedClient:
    """Feed client serving in-memory groups and rows."""

    def __init__(self, groups, rows_by_group, failing=()):
        self.groups = groups
        self.rows_by_group = rows_by_group
        self.failing = set(failing)
        self.fetched = []

    def fetch_groups(self):
        return list(self.groups)

    def fetch_group_rows(self, group_id):
        self.fetched.append(group_id)
        if group_id in self.failing:
            raise FeedError(f"Download failed for {group_id}")
        return list(self.rows_by_group.get(group_id, []))


class FakeRateProvider:
    def __init__(self, rate):
        self.rate = Decimal(rate)
        self.on_warning = None

    def fetch_rate(self):
        return self.rate


class FakeBackend(StoreBackend):
    """In-memory store recording every batch call."""

    name = "fake"

    def __init__(self, records=None, create_batch_size=100, update_batch_size=100,
                 fail_updates=False, fail_creates=False, requires_connection=False):
        self.records = dict(records or {})
        self.create_batch_size = create_batch_size
        self.update_batch_size = update_batch_size
        self.batch_delay = 0
        self.requires_connection = requires_connection
        self.fail_updates = fail_updates
        self.fail_creates = fail_creates
        self.create_calls = []
        self.update_calls = []
        self.connected = False
        self.closed = False
        self._next_id = 1000

    def connect(self):
        self.connected = True

    def close(self):
        self.closed = True

    def load_snapshot(self):
        return InventorySnapshot(self.records)

    def apply_creates(self, batch, snapshot):
        self.create_calls.append(list(batch))
        if self.fail_creates:
            raise BackendError("create batch rejected")
        for op in batch:
            self._next_id += 1
            snapshot.register(op.external_key, ExistingRecord(self._next_id, Decimal(op.price_local)))
        return len(batch)

    def apply_updates(self, batch):
        self.update_calls.append(list(batch))
        if self.fail_updates:
            raise BackendError("update batch rejected")
        return len(batch)

    def count_published(self):
        return len(self.records)


@pytest.fixture
def settings():
    """Default settings with SSH-style pricing (ceil to 100) and minimum 200."""
    s = SyncSettings()
    s.min_price = Decimal("200")
    s.progress_log_every = 10
    return s


@pytest.fixture
def group():
    return Group(group_id="23237", name="Scarlet & Violet", abbreviation="SVI")


@pytest.fixture
def sellable_row():
    """Row A of the reference scenario: 4/102 at 2.50 USD."""
    return {
        "productId": "42346",
        "name": "Charizard - 4/102",
        "cleanName": "Charizard 4102",
        "extNumber": "4/102",
        "marketPrice": "2.50",
        "subTypeName": "Holofoil",
        "imageUrl": "https://tcgplayer-cdn.tcgplayer.com/product/42346_200w.jpg",
        "extRarity": "Holo Rare",
        "extCardType": "Fire",
        "extHP": "120",
    }


@pytest.fixture
def unnumbered_row():
    """Row B of the reference scenario: no card number (sealed product)."""
    return {
        "productId": "99999",
        "name": "Booster Box",
        "extNumber": "",
        "marketPrice": "150.00",
        "subTypeName": "",
    }


@pytest.fixture
def fake_feed_factory():
    return FakeFeedClient


@pytest.fixture
def fake_backend_factory():
    return FakeBackend


@pytest.fixture
def fake_rate_provider():
    return FakeRateProvider("4000")
