"""
Inventory Snapshot

In-memory picture of destination records keyed by external key (SKU),
loaded once per run. Items created during the run are registered so
later rows with the same key see them as existing.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from ..common.csv_utils import parse_tsv_lines
from ..models import ExistingRecord

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Decimal:
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return price if price.is_finite() else Decimal(0)


class InventorySnapshot:
    """Mapping external_key -> ExistingRecord (last write wins)."""

    def __init__(self, records: Optional[Mapping[str, ExistingRecord]] = None):
        self._records: Dict[str, ExistingRecord] = dict(records or {})

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def get(self, key: str) -> Optional[ExistingRecord]:
        return self._records.get(key)

    def register(self, key: str, record: ExistingRecord) -> None:
        """Insert or replace the record for `key`."""
        self._records[key] = record

    @classmethod
    def from_tsv(cls, text: str) -> "InventorySnapshot":
        """
        Build from `mysql -N` output with columns: id, sku, price[, status].

        Rows without a SKU or with a non-numeric id are ignored.
        A NULL or blank price reads as 0.
        """
        snapshot = cls()
        for cells in parse_tsv_lines(text or ""):
            if len(cells) < 2:
                continue
            raw_id, sku = cells[0].strip(), cells[1].strip()
            if not sku:
                continue
            try:
                destination_id = int(raw_id)
            except ValueError:
                logger.debug("Skipping snapshot row with id %r", raw_id)
                continue
            price = cells[2] if len(cells) > 2 and cells[2] != "NULL" else "0"
            status = cells[3].strip() if len(cells) > 3 else ""
            snapshot.register(sku, ExistingRecord(destination_id, _to_decimal(price), status))
        return snapshot

    @classmethod
    def from_products(cls, pages: Iterable[List[dict]], key_field: str = "sku") -> "InventorySnapshot":
        """
        Build from pages of WooCommerce product JSON.

        Products without a value in `key_field` are ignored.
        """
        snapshot = cls()
        for page in pages:
            snapshot.add_products(page, key_field)
        return snapshot

    def add_products(self, products: List[dict], key_field: str = "sku") -> int:
        """Register a page of WooCommerce products; returns how many were keyed."""
        added = 0
        for product in products:
            key = (product.get(key_field) or "").strip()
            if not key:
                continue
            price = product.get("regular_price") or product.get("price") or "0"
            self.register(key, ExistingRecord(
                destination_id=int(product["id"]),
                current_price=_to_decimal(price),
                status=product.get("status", ""),
            ))
            added += 1
        return added
