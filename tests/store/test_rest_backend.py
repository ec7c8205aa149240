"""Tests for catalog_sync/store/rest_backend.py"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from catalog_sync.common.config_loader import ConfigurationError, WooCommerceSettings
from catalog_sync.models import CreateOp, UpdateOp
from catalog_sync.store.base import BackendError
from catalog_sync.store.rest_backend import RestBackend
from catalog_sync.store.snapshot import InventorySnapshot


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def backend(client):
    return RestBackend(client, category_id=199, page_size=2, create_batch_size=100,
                       update_batch_size=100, batch_delay=0)


def _create(key="42346-holofoil-SVI", price=10000, image="https://cdn/42346_400w.jpg"):
    return CreateOp(external_key=key, title="Charizard | 4/102 | Holofoil | Scarlet & Violet",
                    price_local=price, description="<ul></ul>", image_url=image)


class TestFromSettings:
    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError, match="WC_CONSUMER_KEY, WC_CONSUMER_SECRET"):
            RestBackend.from_settings(WooCommerceSettings(url="https://shop.example.com"))

    def test_builds_client(self):
        settings = WooCommerceSettings(url="https://shop.example.com", consumer_key="ck",
                                       consumer_secret="cs", update_batch_size=50)
        backend = RestBackend.from_settings(settings)
        assert backend.client.base_url == "https://shop.example.com/wp-json/wc/v3"
        assert backend.update_batch_size == 50
        assert backend.requires_connection is False


class TestLoadSnapshot:
    def test_pages_until_short_page(self, backend, client):
        client.rest_request.side_effect = [
            [{"id": 1, "sku": "A", "regular_price": "100"}, {"id": 2, "sku": "B", "regular_price": "200"}],
            [{"id": 3, "sku": "C", "regular_price": "300"}],
        ]
        snapshot = backend.load_snapshot()

        assert len(snapshot) == 3
        assert client.rest_request.call_count == 2
        params = client.rest_request.call_args_list[1].kwargs["params"]
        assert params == {"per_page": 2, "page": 2, "status": "any"}

    def test_empty_store(self, backend, client):
        client.rest_request.return_value = []
        assert len(backend.load_snapshot()) == 0

    def test_unexpected_listing(self, backend, client):
        client.rest_request.return_value = {"code": "woocommerce_rest_cannot_view"}
        with pytest.raises(BackendError):
            backend.load_snapshot()


    def test_reads_pages_through_from_products(self, backend, client):
        client.rest_request.side_effect = [
            [{"id": 1, "sku": "A"}, {"id": 2, "sku": "B"}],
            [],
        ]
        with patch.object(InventorySnapshot, "from_products",
                          wraps=InventorySnapshot.from_products) as from_products:
            snapshot = backend.load_snapshot()

        from_products.assert_called_once()
        assert list(snapshot) == ["A", "B"]

    def test_product_pages_stops_after_short_page(self, backend, client):
        client.rest_request.side_effect = [[{"id": 1}, {"id": 2}], [{"id": 3}]]
        pages = list(backend.product_pages())
        assert [len(p) for p in pages] == [2, 1]


class TestApplyCreates:
    def test_payload_and_registration(self, backend, client):
        client.rest_request.return_value = {"create": [
            {"id": 5001, "sku": "42346-holofoil-SVI", "status": "publish"},
        ]}
        snapshot = InventorySnapshot()

        created = backend.apply_creates([_create()], snapshot)

        assert created == 1
        method, endpoint, body = client.rest_request.call_args.args
        assert (method, endpoint) == ("POST", "products/batch")
        item = body["create"][0]
        assert item["sku"] == "42346-holofoil-SVI"
        assert item["regular_price"] == "10000"
        assert item["categories"] == [{"id": 199}]
        assert item["stock_quantity"] == 0
        assert item["images"] == [{"src": "https://cdn/42346_400w.jpg"}]
        assert snapshot.get("42346-holofoil-SVI").destination_id == 5001
        assert snapshot.get("42346-holofoil-SVI").current_price == Decimal(10000)

    def test_no_images_without_url(self, backend, client):
        client.rest_request.return_value = {"create": [{"id": 1}]}
        backend.apply_creates([_create(image="")], InventorySnapshot())
        body = client.rest_request.call_args.args[2]
        assert "images" not in body["create"][0]

    def test_item_errors_not_counted(self, backend, client):
        client.rest_request.return_value = {"create": [
            {"id": 0, "error": {"code": "product_invalid_sku", "message": "Duplicate SKU"}},
            {"id": 5002, "sku": "B"},
        ]}
        snapshot = InventorySnapshot()
        created = backend.apply_creates([_create("A"), _create("B")], snapshot)
        assert created == 1
        assert "A" not in snapshot
        assert "B" in snapshot

    def test_item_errors_reported_with_sku(self, backend, client):
        warnings = []
        backend.on_warning = warnings.append
        client.rest_request.return_value = {"create": [
            {"id": 0, "error": {"code": "product_invalid_sku", "message": "Duplicate SKU"}},
        ]}
        backend.apply_creates([_create("42346-holofoil-SVI")], InventorySnapshot())
        assert warnings == ["Create failed for 42346-holofoil-SVI: Duplicate SKU"]

    def test_missing_result_list(self, backend, client):
        client.rest_request.return_value = {}
        with pytest.raises(BackendError):
            backend.apply_creates([_create()], InventorySnapshot())


class TestApplyUpdates:
    def test_price_only_payload(self, backend, client):
        client.rest_request.return_value = {"update": [{"id": 701}]}
        updated = backend.apply_updates([UpdateOp(destination_id=701, price_local=10000)])

        assert updated == 1
        body = client.rest_request.call_args.args[2]
        assert body == {"update": [{"id": 701, "regular_price": "10000"}]}

    def test_full_refresh_payload(self, backend, client):
        client.rest_request.return_value = {"update": [{"id": 701}]}
        op = UpdateOp(destination_id=701, price_local=10000, title="New title",
                      description="<ul></ul>", image_url="https://cdn/1_400w.jpg")
        backend.apply_updates([op])
        item = client.rest_request.call_args.args[2]["update"][0]
        assert item["name"] == "New title"
        assert item["description"] == "<ul></ul>"
        assert item["images"] == [{"src": "https://cdn/1_400w.jpg"}]

    def test_counts_only_successful_items(self, backend, client):
        client.rest_request.return_value = {"update": [
            {"id": 701},
            {"id": 702, "error": "Invalid ID."},
        ]}
        ops = [UpdateOp(701, 100), UpdateOp(702, 100)]
        assert backend.apply_updates(ops) == 1

    def test_item_errors_reported(self, backend, client):
        warnings = []
        backend.on_warning = warnings.append
        client.rest_request.return_value = {"update": [{"id": 702, "error": "Invalid ID."}]}
        backend.apply_updates([UpdateOp(702, 100, external_key="42346-holofoil-SVI")])
        assert warnings == ["Update failed for 42346-holofoil-SVI: Invalid ID."]

    def test_result_count_mismatch_reported(self, backend, client):
        warnings = []
        backend.on_warning = warnings.append
        client.rest_request.return_value = {"update": [{"id": 701}]}
        assert backend.apply_updates([UpdateOp(701, 100), UpdateOp(702, 100)]) == 1
        assert warnings == ["Batch update returned 1 results for 2 items"]

    def test_request_failure_propagates(self, backend, client):
        client.rest_request.side_effect = BackendError("HTTP 500")
        with pytest.raises(BackendError):
            backend.apply_updates([UpdateOp(701, 100)])


class TestCountPublished:
    def test_reads_total_header(self, backend, client):
        client.send.return_value = MagicMock(headers={"X-WP-Total": "1234"})
        assert backend.count_published() == 1234

    def test_missing_header(self, backend, client):
        client.send.return_value = MagicMock(headers={})
        with pytest.raises(BackendError):
            backend.count_published()
