"""
Currency Rate Provider

Fetches the current USD -> local exchange rate (TRM) from the open data
endpoint. Single attempt, fail-soft: any failure returns the configured
default rate and logs a warning.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)


class CurrencyRateProvider:
    """
    Resolves the daily conversion rate.

    Usage:
        provider = CurrencyRateProvider(url, default_rate=Decimal("4200"))
        rate = provider.fetch_rate()
    """

    def __init__(
        self,
        url: str,
        default_rate: Decimal,
        field: str = "valor",
        timeout: int = 15,
        session: Optional[requests.Session] = None,
        on_warning: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            url: Endpoint returning a JSON list whose first item holds the rate
            default_rate: Rate used when the endpoint cannot be read
            field: Name of the rate field in the first item
            timeout: Request timeout in seconds
            session: Optional requests session
            on_warning: Optional callback receiving the fallback warning text
        """
        self.url = url
        self.default_rate = Decimal(default_rate)
        self.field = field
        self.timeout = timeout
        self.session = session or requests.Session()
        self.on_warning = on_warning

    def fetch_rate(self) -> Decimal:
        """Return the current rate, or the default on any failure."""
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            rate = Decimal(str(data[0][self.field]))
            if not rate.is_finite() or rate <= 0:
                raise ValueError(f"non-positive rate {rate}")
            return rate
        except (requests.exceptions.RequestException, ValueError, KeyError,
                IndexError, TypeError, InvalidOperation) as e:
            message = f"Could not fetch exchange rate ({e}), using default {self.default_rate}"
            logger.warning(message)
            if self.on_warning:
                self.on_warning(message)
            return self.default_rate
