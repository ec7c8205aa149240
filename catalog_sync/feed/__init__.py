"""
Feed integration.

Modules:
    client   - TCGCSV group listing and per-group product documents
    currency - Daily exchange rate with fail-soft default
"""

from .client import FeedClient, FeedError
from .currency import CurrencyRateProvider

__all__ = [
    'CurrencyRateProvider',
    'FeedClient',
    'FeedError',
]
