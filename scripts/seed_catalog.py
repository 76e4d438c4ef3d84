#!/usr/bin/env python3
"""
scripts/seed_catalog.py
Run one catalog seeding pass against the configured Postgres and Elasticsearch.

Usage:
  python scripts/seed_catalog.py            # seed only if the products table is empty
  python scripts/seed_catalog.py --force    # fetch and upsert/index the whole feed again
"""

import argparse
import sys

from catalog_api import config
from catalog_api.feed import SourceFeed
from catalog_api.search import ProductIndex, create_client
from catalog_api.seeder import CatalogSeeder, SeedStatus
from catalog_api.store import CatalogStore, create_pool


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the product catalog from the upstream feed.")
    parser.add_argument("--force", action="store_true",
                        help="seed even when the products table already has rows")
    parser.add_argument("--source", default=config.SOURCE_API_URL,
                        help="upstream product API URL")
    args = parser.parse_args(argv)

    print("Connecting to Elasticsearch at", config.ES_HOST)
    store = CatalogStore(create_pool, size=1)
    index = ProductIndex(create_client(), config.ES_INDEX)
    try:
        seeder = CatalogSeeder(store, index, SourceFeed(url=args.source))
        status = seeder.run_once(force=args.force)
    finally:
        index.close()
        store.close()

    print(f"Finished. status={status.value}")
    return 0 if status in (SeedStatus.LOADED, SeedStatus.SKIPPED) else 1


if __name__ == "__main__":
    sys.exit(main())
