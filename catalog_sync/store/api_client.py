"""
WooCommerce API Client

Client for the WooCommerce REST API (wc/v3).
Handles authentication, request pacing and error handling.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..common.pacing import FixedIntervalPacer
from .base import BackendError

logger = logging.getLogger(__name__)


class WooCommerceAPIClient:
    """
    Client for the WooCommerce REST API.

    Handles:
    - Authentication (consumer key/secret over HTTPS basic auth)
    - Request pacing (fixed minimum interval between requests)
    - Error handling: one attempt per request, failures raise BackendError

    Usage:
        client = WooCommerceAPIClient(url="https://shop.example.com",
                                      consumer_key="ck_xxx", consumer_secret="cs_xxx")

        products = client.rest_request("GET", "products", params={"per_page": 100})
        client.rest_request("POST", "products/batch", {"update": [...]})
    """

    API_PATH = "wp-json/wc/v3"

    def __init__(
        self,
        url: str,
        consumer_key: str,
        consumer_secret: str,
        request_interval: float = 0.5,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the API client.

        Args:
            url: Store base URL (scheme and host, optional path)
            consumer_key: REST API consumer key
            consumer_secret: REST API consumer secret
            request_interval: Minimum seconds between requests
            timeout: Request timeout in seconds
            session: Optional requests session
        """
        self.base_url = f"{url.rstrip('/')}/{self.API_PATH}"
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.auth = (consumer_key, consumer_secret)
        self.session.headers.update({"Content-Type": "application/json"})

        self.pacer = FixedIntervalPacer(request_interval)
        self.requests_made = 0

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.session.close()

    def close(self):
        self.session.close()

    def send(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Send one request and return the raw response.

        Raises:
            ValueError: For unsupported methods
            BackendError: On transport errors or HTTP status >= 400
        """
        if method not in ("GET", "POST", "PUT", "DELETE"):
            raise ValueError(f"Unsupported method: {method}")

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        self.pacer.wait()
        self.requests_made += 1

        try:
            response = self.session.request(method, url, json=data, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise BackendError(f"Request timeout: {method} {endpoint}") from e
        except requests.exceptions.RequestException as e:
            raise BackendError(f"Request failed: {method} {endpoint}: {e}") from e

        if response.status_code >= 400:
            error_msg = response.text[:200]
            logger.error("API Error %d on %s %s: %s", response.status_code, method, endpoint, error_msg)
            raise BackendError(f"HTTP {response.status_code} on {method} {endpoint}: {error_msg}")

        return response

    def rest_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a REST request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Endpoint below wc/v3 (e.g., "products/batch")
            data: Request body for POST/PUT
            params: Query string parameters

        Returns:
            Decoded JSON

        Raises:
            BackendError: On request failure or a non-JSON body
        """
        response = self.send(method, endpoint, data=data, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {method} {endpoint}") from e

