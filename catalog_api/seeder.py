"""
One-shot catalog seeding.

On startup the seeder makes sure the products table and the search index
exist, and when the table is empty it pulls the whole upstream feed and
loads it in batches into both stores. Failures in the setup steps restart
the whole sequence after an exponentially growing delay; the wait is cut
short when the stop event is set at shutdown.
"""
import enum
import threading
from typing import List, Optional, Sequence

from elasticsearch import ApiError, TransportError
from psycopg2 import Error as DatabaseError

from . import config
from .feed import SourceFeed
from .logger import get_logger
from .schemas import Product
from .search import ProductIndex
from .store import CatalogStore

logger = get_logger("seeder")


class SeedStatus(enum.Enum):
    SKIPPED = "skipped"      # store already had products
    EMPTY = "empty"          # feed returned nothing
    LOADED = "loaded"
    CANCELLED = "cancelled"  # stopped before a pass succeeded


def batched(items: Sequence[Product], size: int) -> List[Sequence[Product]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def backoff_delays(initial: float, maximum: float):
    delay = initial
    while True:
        yield delay
        delay = min(delay * 2, maximum)


class CatalogSeeder:

    def __init__(self, store: CatalogStore, index: ProductIndex, feed: SourceFeed,
                 batch_size: int = config.SEED_BATCH_SIZE,
                 retry_delay: float = config.SEED_RETRY_DELAY,
                 max_retry_delay: float = config.SEED_MAX_RETRY_DELAY,
                 max_attempts: int = config.SEED_MAX_ATTEMPTS,
                 stop_event: Optional[threading.Event] = None):
        self.store = store
        self.index = index
        self.feed = feed
        self.batch_size = batch_size
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self.max_attempts = max_attempts
        self.stop_event = stop_event or threading.Event()

    def run_once(self, force: bool = False) -> SeedStatus:
        """A single pass. Errors from the setup steps propagate to the caller."""
        self.store.ensure_products_table()
        logger.info("Products table ready")

        health = self.index.health()
        logger.info("Connected to Elasticsearch: %s", health.get("cluster_name"))
        self.index.ensure_index()

        existing = self.store.count_products()
        if existing > 0 and not force:
            logger.info("Products already loaded (%d rows), skipping seed", existing)
            return SeedStatus.SKIPPED

        logger.info("Fetching products from %s", self.feed.url)
        products = self.feed.fetch_all()
        if not products:
            logger.warning("No products fetched")
            return SeedStatus.EMPTY

        logger.info("Loading %d products...", len(products))
        for batch in batched(products, self.batch_size):
            self.load_batch(batch)
        logger.info("Successfully loaded %d products", len(products))
        return SeedStatus.LOADED

    def load_batch(self, batch: Sequence[Product]) -> None:
        """Upsert then index one batch. Either write may fail without stopping the other."""
        ids = f"{batch[0].id}..{batch[-1].id}"
        try:
            self.store.bulk_upsert_products(batch)
        except DatabaseError as e:
            logger.error("Upsert of products %s failed: %s", ids, e)
        try:
            self.index.bulk_index_products(batch)
        except (ApiError, TransportError) as e:
            logger.error("Indexing of products %s failed: %s", ids, e)

    def run(self) -> SeedStatus:
        """Repeat run_once until it succeeds, the attempts run out, or stop is requested."""
        attempt = 0
        for delay in backoff_delays(self.retry_delay, self.max_retry_delay):
            if self.stop_event.is_set():
                break
            attempt += 1
            try:
                return self.run_once()
            except Exception:
                logger.exception("Initialization error (attempt %d)", attempt)
            if self.max_attempts and attempt >= self.max_attempts:
                logger.error("Giving up seeding after %d attempts", attempt)
                break
            logger.info("Retrying seed in %.1fs", delay)
            if self.stop_event.wait(delay):
                break
        return SeedStatus.CANCELLED

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name="catalog-seeder", daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        self.stop_event.set()
