"""
Reconciliation logic.

Modules:
    normalizer - Feed rows -> CatalogEntry (filtering, titles, keys, prices)
    differ     - CatalogEntry vs snapshot -> create/update/skip plan
"""

from .differ import PRICE_TOLERANCE, ReconciliationDiffer, ReconciliationPlan
from .normalizer import (
    CatalogNormalizer,
    build_description,
    build_external_key,
    convert_price,
    parse_price,
)

__all__ = [
    'CatalogNormalizer',
    'PRICE_TOLERANCE',
    'ReconciliationDiffer',
    'ReconciliationPlan',
    'build_description',
    'build_external_key',
    'convert_price',
    'parse_price',
]
