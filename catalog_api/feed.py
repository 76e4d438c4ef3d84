# catalog_api/feed.py
from typing import List, Optional

import requests

from . import config
from .logger import get_logger
from .schemas import FeedPage, Product

logger = get_logger("feed")


class SourceFeed:
    """Paginated reader for the upstream product API (`?limit=&skip=`)."""

    def __init__(self, url: str = config.SOURCE_API_URL,
                 page_size: int = config.SOURCE_PAGE_SIZE,
                 session: Optional[requests.Session] = None,
                 timeout: int = config.SOURCE_TIMEOUT):
        self.url = url
        self.page_size = page_size
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_page(self, skip: int) -> FeedPage:
        r = self.session.get(self.url,
                             params={"limit": self.page_size, "skip": skip},
                             timeout=self.timeout)
        r.raise_for_status()
        return FeedPage.model_validate(r.json())

    def fetch_all(self) -> List[Product]:
        """
        Page through the feed until its reported total is reached.
        Any failure abandons the whole fetch and returns an empty list.
        """
        products: List[Product] = []
        skip = 0
        total = None
        try:
            while total is None or skip < total:
                page = self.fetch_page(skip)
                if not page.products:
                    break
                products.extend(page.products)
                total = page.total or len(products)
                skip += self.page_size
        except (requests.RequestException, ValueError) as e:
            logger.error("Error fetching products from %s: %s", self.url, e)
            return []
        return products
