"""
Catalog data models.

Pure data classes for feed groups, normalized entries, destination
records and the operations applied to the store.
No business logic - only data structure definitions.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


class RunMode(str, Enum):
    """What a run is allowed to do."""
    FULL = "full"         # create + update
    PRICES = "prices"     # update existing prices only


class Decision(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


@dataclass(frozen=True)
class Group:
    """One catalog subset (a card set) from the feed listing."""
    group_id: str
    name: str
    abbreviation: str = ""

    @property
    def key_suffix(self) -> str:
        """Abbreviation used in external keys, falling back to the id."""
        return self.abbreviation or self.group_id


@dataclass
class CatalogEntry:
    """
    Normalized, comparable catalog item.

    `external_key` is the join key against destination records (the store SKU).
    """
    external_key: str
    title: str
    source_price: Decimal
    local_price: int
    image_url: str = ""
    group_name: str = ""
    description: str = ""
    extra_attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class ExistingRecord:
    """Destination item as seen at snapshot time."""
    destination_id: int
    current_price: Decimal
    status: str = ""


@dataclass
class CreateOp:
    external_key: str
    title: str
    price_local: int
    description: str = ""
    image_url: str = ""


@dataclass
class UpdateOp:
    """
    Price update for an existing item.

    Title, description and image are only set on full-mode refreshes.
    """
    destination_id: int
    price_local: int
    external_key: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def is_full_refresh(self) -> bool:
        return self.title is not None
