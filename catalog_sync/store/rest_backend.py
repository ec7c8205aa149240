"""
WooCommerce REST backend.

Applies operations through the products batch endpoint: one call per
chunk carrying up to `create_batch_size` creates or `update_batch_size`
updates. The snapshot is read by paging through the products listing.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from ..common.config_loader import ConfigurationError, WooCommerceSettings
from ..models import CreateOp, ExistingRecord, UpdateOp
from .api_client import WooCommerceAPIClient
from .base import BackendError, StoreBackend
from .snapshot import InventorySnapshot

logger = logging.getLogger(__name__)


class RestBackend(StoreBackend):
    """
    Batched-HTTP execution against the WooCommerce REST API.

    Usage:
        backend = RestBackend.from_settings(settings.woocommerce)
        snapshot = backend.load_snapshot()
        created = backend.apply_creates(batch, snapshot)
    """

    name = "rest"
    settings_section = "woocommerce"

    def __init__(
        self,
        client: WooCommerceAPIClient,
        category_id: int,
        page_size: int = 100,
        create_batch_size: int = 100,
        update_batch_size: int = 100,
        batch_delay: float = 1.0,
    ):
        self.client = client
        self.category_id = category_id
        self.page_size = page_size
        self.create_batch_size = create_batch_size
        self.update_batch_size = update_batch_size
        self.batch_delay = batch_delay

    @classmethod
    def from_settings(cls, settings: WooCommerceSettings) -> "RestBackend":
        """
        Build from settings.

        Raises:
            ConfigurationError: If the store URL or API keys are missing
        """
        missing = settings.missing()
        if missing:
            raise ConfigurationError(
                f"WooCommerce credentials not configured. Set {', '.join(missing)}."
            )
        client = WooCommerceAPIClient(
            url=settings.url,
            consumer_key=settings.consumer_key,
            consumer_secret=settings.consumer_secret,
            request_interval=settings.request_interval,
            timeout=settings.timeout,
        )
        return cls(
            client,
            category_id=settings.category_id,
            page_size=settings.page_size,
            create_batch_size=settings.create_batch_size,
            update_batch_size=settings.update_batch_size,
            batch_delay=settings.batch_delay,
        )

    def close(self) -> None:
        self.client.close()

    def product_pages(self) -> Iterator[List[Dict]]:
        """Yield product listing pages until a short page comes back."""
        page = 1
        while True:
            products = self.client.rest_request("GET", "products", params={
                "per_page": self.page_size,
                "page": page,
                "status": "any",
            })
            if not isinstance(products, list):
                raise BackendError(f"Unexpected products listing on page {page}")

            yield products
            if len(products) < self.page_size:
                return
            page += 1

    def load_snapshot(self) -> InventorySnapshot:
        snapshot = InventorySnapshot.from_products(self.product_pages())
        logger.info("Loaded %d existing products", len(snapshot))
        return snapshot

    def _create_payload(self, op: CreateOp) -> Dict:
        payload = {
            "name": op.title,
            "type": "simple",
            "status": "publish",
            "sku": op.external_key,
            "regular_price": str(op.price_local),
            "description": op.description,
            "categories": [{"id": self.category_id}],
            "manage_stock": True,
            "stock_quantity": 0,
        }
        if op.image_url:
            payload["images"] = [{"src": op.image_url}]
        return payload

    @staticmethod
    def _update_payload(op: UpdateOp) -> Dict:
        payload = {"id": op.destination_id, "regular_price": str(op.price_local)}
        if op.is_full_refresh:
            payload["name"] = op.title
            if op.description is not None:
                payload["description"] = op.description
            if op.image_url:
                payload["images"] = [{"src": op.image_url}]
        return payload

    def _results(self, response, key: str, expected: int) -> List[Dict]:
        items = response.get(key) if isinstance(response, dict) else None
        if not isinstance(items, list):
            raise BackendError(f"Batch response has no '{key}' list")
        if len(items) != expected:
            self.warn(f"Batch {key} returned {len(items)} results for {expected} items")
        return items

    @staticmethod
    def _item_error(item: Dict) -> Optional[str]:
        error = item.get("error")
        if error:
            return error.get("message") if isinstance(error, dict) else str(error)
        if not item.get("id"):
            return "missing id"
        return None

    def apply_creates(self, batch: List[CreateOp], snapshot: InventorySnapshot) -> int:
        response = self.client.rest_request(
            "POST", "products/batch", {"create": [self._create_payload(op) for op in batch]}
        )
        results = self._results(response, "create", len(batch))

        created = 0
        for op, item in zip(batch, results):
            error = self._item_error(item)
            if error:
                self.warn(f"Create failed for {op.external_key}: {error}")
                continue
            sku = item.get("sku") or op.external_key
            snapshot.register(sku, ExistingRecord(
                destination_id=int(item["id"]),
                current_price=Decimal(op.price_local),
                status=item.get("status", "publish"),
            ))
            created += 1
        return created

    def apply_updates(self, batch: List[UpdateOp]) -> int:
        response = self.client.rest_request(
            "POST", "products/batch", {"update": [self._update_payload(op) for op in batch]}
        )
        results = self._results(response, "update", len(batch))

        updated = 0
        for op, item in zip(batch, results):
            error = self._item_error(item)
            if error:
                self.warn(f"Update failed for {op.external_key or op.destination_id}: {error}")
                continue
            updated += 1
        return updated

    def count_published(self) -> int:
        response = self.client.send("GET", "products", params={"per_page": 1, "status": "publish"})
        total = response.headers.get("X-WP-Total")
        if total is None:
            raise BackendError("Products listing has no X-WP-Total header")
        return int(total)
