"""
Catalog Normalizer

Turns raw feed rows into CatalogEntry records: filters out rows that are
not sellable singles, builds the display title, derives the external key
and converts the market price into the local currency.
"""

import logging
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from ..common.config_loader import PricingProfile
from ..common.text_utils import collapse_whitespace, slugify, upgrade_image_url
from ..models import CatalogEntry, Group

logger = logging.getLogger(__name__)

# Feed column names
COL_PRODUCT_ID = "productId"
COL_NAME = "name"
COL_CLEAN_NAME = "cleanName"
COL_NUMBER = "extNumber"
COL_MARKET_PRICE = "marketPrice"
COL_SUBTYPE = "subTypeName"
COL_IMAGE = "imageUrl"
COL_RARITY = "extRarity"
COL_CARD_TYPE = "extCardType"
COL_HP = "extHP"


def parse_price(value: Optional[str]) -> Optional[Decimal]:
    """
    Parse a feed price cell.

    Returns:
        Positive Decimal, or None for blank, malformed or non-positive values
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        price = Decimal(text)
    except InvalidOperation:
        return None
    if not price.is_finite() or price <= 0:
        return None
    return price


def build_external_key(product_id: str, variant_label: str, group_abbreviation: str) -> str:
    """
    Derive the stable join key (store SKU) for a catalog item.

    Example:
        >>> build_external_key("12345", "Reverse Holofoil", "SVI")
        '12345-reverse-holofoil-SVI'
    """
    variant = slugify(variant_label or "normal") or "base"
    return f"{product_id}-{variant}-{group_abbreviation}"


def convert_price(
    source_price: Decimal,
    rate: Decimal,
    min_price: Decimal,
    pricing: PricingProfile,
) -> int:
    """
    Convert a source price to local currency.

    The product is rounded to the profile's granularity (ceiling or
    half-up) and then clamped to `min_price`.
    """
    granularity = Decimal(pricing.granularity)
    mode = ROUND_CEILING if pricing.rounding == "ceil" else ROUND_HALF_UP
    units = (Decimal(source_price) * Decimal(rate) / granularity).to_integral_value(rounding=mode)
    local = int(units * granularity)
    return max(local, int(min_price))


def build_description(row: Dict[str, str], group_name: str) -> str:
    """HTML description block for a newly created item."""

    def val(col: str) -> str:
        return (row.get(col) or "").strip() or "-"

    return (
        '<div style="background-color: #fff3cd; border: 1px solid #ffeeba; color: #856404; '
        'padding: 10px; border-radius: 4px; margin-bottom: 15px;">\n'
        '  <strong>⚠️ Idioma:</strong> Puede variar entre Inglés y Español.\n'
        '</div>\n'
        '<ul style="list-style: none; padding: 0; display: grid; '
        'grid-template-columns: repeat(auto-fill, minmax(140px, 1fr)); gap: 8px;">\n'
        f'  <li><strong>Set:</strong> {group_name}</li>\n'
        f'  <li><strong>Número:</strong> {val(COL_NUMBER)}</li>\n'
        f'  <li><strong>Rareza:</strong> {val(COL_RARITY)}</li>\n'
        f'  <li><strong>Tipo:</strong> {val(COL_CARD_TYPE)}</li>\n'
        f'  <li><strong>HP:</strong> {val(COL_HP)}</li>\n'
        '</ul>'
    )


class CatalogNormalizer:
    """
    Maps raw rows of one run to CatalogEntry records.

    The rate, minimum price and pricing profile are fixed for the run.

    Usage:
        normalizer = CatalogNormalizer(rate=Decimal("4000"), min_price=Decimal("200"),
                                       pricing=PricingProfile(100, "ceil"))
        entries = normalizer.normalize_rows(rows, group)
    """

    def __init__(self, rate: Decimal, min_price: Decimal, pricing: PricingProfile):
        self.rate = Decimal(rate)
        self.min_price = Decimal(min_price)
        self.pricing = pricing

    @staticmethod
    def is_sellable(row: Dict[str, str]) -> bool:
        """A row is a sellable single iff it has an 'n/total' number and a positive market price."""
        number = (row.get(COL_NUMBER) or "").strip()
        if not number or "/" not in number:
            return False
        return parse_price(row.get(COL_MARKET_PRICE)) is not None

    @staticmethod
    def build_title(row: Dict[str, str], group_name: str) -> str:
        """
        Build the display title.

        Name (with the first " - " turned into " | "), then the card
        number unless the name already contains it, the variant label
        when present and finally the set name.
        """
        base = collapse_whitespace(row.get(COL_NAME) or row.get(COL_CLEAN_NAME) or "")
        base = base.replace(" - ", " | ", 1)
        number = (row.get(COL_NUMBER) or "").strip()

        parts = [base]
        if number and number not in base:
            parts.append(number)
        variant = (row.get(COL_SUBTYPE) or "").strip()
        if variant:
            parts.append(variant)
        parts.append(group_name)

        return collapse_whitespace(" | ".join(part for part in parts if part))

    def local_price(self, source_price: Decimal) -> int:
        return convert_price(source_price, self.rate, self.min_price, self.pricing)

    def normalize(self, row: Dict[str, str], group: Group) -> Optional[CatalogEntry]:
        """
        Normalize one row.

        Returns:
            CatalogEntry, or None when the row is not sellable
        """
        if not self.is_sellable(row):
            return None

        product_id = (row.get(COL_PRODUCT_ID) or "").strip()
        if not product_id:
            return None

        source_price = parse_price(row.get(COL_MARKET_PRICE))
        variant = (row.get(COL_SUBTYPE) or "").strip()

        return CatalogEntry(
            external_key=build_external_key(product_id, variant, group.key_suffix),
            title=self.build_title(row, group.name),
            source_price=source_price,
            local_price=self.local_price(source_price),
            image_url=upgrade_image_url((row.get(COL_IMAGE) or "").strip()),
            group_name=group.name,
            description=build_description(row, group.name),
            extra_attributes={
                "product_id": product_id,
                "group_id": group.group_id,
                "number": (row.get(COL_NUMBER) or "").strip(),
                "variant": variant,
                "rarity": (row.get(COL_RARITY) or "").strip(),
                "card_type": (row.get(COL_CARD_TYPE) or "").strip(),
                "hp": (row.get(COL_HP) or "").strip(),
            },
        )

    def normalize_rows(self, rows: Iterable[Dict[str, str]], group: Group) -> List[CatalogEntry]:
        """Normalize a group's rows, dropping the ones that are not sellable."""
        entries = []
        discarded = 0
        for row in rows:
            entry = self.normalize(row, group)
            if entry is None:
                discarded += 1
                continue
            entries.append(entry)

        if discarded:
            logger.debug("Group %s: %d sellable rows, %d discarded", group.name, len(entries), discarded)
        return entries
