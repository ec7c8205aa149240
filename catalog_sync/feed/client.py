"""
TCGCSV Feed Client

Downloads the group listing and per-group product documents from the
feed host and parses them into row dictionaries.

Single attempt per request: a failed download raises FeedError and the
caller decides whether to skip or abort.
"""

import logging
from typing import Dict, List, Optional

import requests

from ..common.csv_utils import parse_csv_text
from ..models import Group

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """A feed document could not be downloaded or parsed."""


class FeedClient:
    """
    Client for the TCGCSV category feed.

    Usage:
        client = FeedClient(base_url="https://tcgcsv.com/tcgplayer", category_id=3)
        for group in client.fetch_groups():
            rows = client.fetch_group_rows(group.group_id)
    """

    GROUPS_DOCUMENT = "Groups.csv"
    PRODUCTS_DOCUMENT = "ProductsAndPrices.csv"

    def __init__(
        self,
        base_url: str,
        category_id: int,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.category_id = category_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.session.close()

    def close(self):
        self.session.close()

    @property
    def groups_url(self) -> str:
        return f"{self.base_url}/{self.category_id}/{self.GROUPS_DOCUMENT}"

    def group_rows_url(self, group_id: str) -> str:
        return f"{self.base_url}/{self.category_id}/{group_id}/{self.PRODUCTS_DOCUMENT}"

    def _download(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FeedError(f"Download failed for {url}: {e}") from e
        return response.text

    def _parse(self, url: str, text: str) -> List[Dict[str, str]]:
        try:
            return parse_csv_text(text)
        except Exception as e:
            raise FeedError(f"Could not parse {url}: {e}") from e

    def fetch_groups(self) -> List[Group]:
        """
        Fetch the ordered group listing.

        Returns:
            Groups in feed order; rows without a groupId are ignored

        Raises:
            FeedError: If the listing cannot be downloaded or parsed
        """
        url = self.groups_url
        rows = self._parse(url, self._download(url))

        groups = []
        for row in rows:
            group_id = (row.get("groupId") or "").strip()
            if not group_id:
                continue
            groups.append(Group(
                group_id=group_id,
                name=(row.get("name") or "").strip() or group_id,
                abbreviation=(row.get("abbreviation") or "").strip(),
            ))

        logger.debug("Fetched %d groups from %s", len(groups), url)
        return groups

    def fetch_group_rows(self, group_id: str) -> List[Dict[str, str]]:
        """
        Fetch the product rows of one group.

        Args:
            group_id: Feed group identifier

        Returns:
            Raw rows keyed by column name

        Raises:
            FeedError: If the document cannot be downloaded or parsed
        """
        url = self.group_rows_url(group_id)
        rows = self._parse(url, self._download(url))
        logger.debug("Fetched %d rows for group %s", len(rows), group_id)
        return rows
