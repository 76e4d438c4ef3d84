# catalog_api/search.py
from typing import Any, Dict, Iterable, List, Mapping

from elasticsearch import Elasticsearch, helpers

from . import config
from .logger import get_logger
from .query import Page, SearchQuery
from .schemas import Product
from .shaping import (PRICE_RANGES, RATING_RANGES, shape_categories,
                      shape_facets, shape_listing)

logger = get_logger("search")

# Terms aggregations return 10 buckets unless told otherwise.
TERMS_SIZE = 100

PRODUCT_MAPPING = {
    "properties": {
        "id": {"type": "integer"},
        "title": {"type": "text"},
        "description": {"type": "text"},
        "category": {"type": "keyword"},
        "price": {"type": "float"},
        "discountPercentage": {"type": "float"},
        "rating": {"type": "float"},
        "stock": {"type": "integer"},
        "brand": {"type": "keyword"},
        "sku": {"type": "keyword"},
        "thumbnail": {"type": "keyword"},
        "tags": {"type": "keyword"},
        "images": {"type": "keyword"},
        "weight": {"type": "integer"},
        "dimensions": {
            "properties": {
                "width": {"type": "float"},
                "height": {"type": "float"},
                "depth": {"type": "float"},
            }
        },
        "warrantyInformation": {"type": "keyword"},
        "shippingInformation": {"type": "keyword"},
        "availabilityStatus": {"type": "keyword"},
        "returnPolicy": {"type": "keyword"},
        "minimumOrderQuantity": {"type": "integer"},
        "meta": {
            "properties": {
                "createdAt": {"type": "date"},
                "updatedAt": {"type": "date"},
                "barcode": {"type": "keyword"},
                "qrCode": {"type": "keyword"},
            }
        },
        "reviews": {
            "properties": {
                "rating": {"type": "float"},
                "comment": {"type": "text"},
                "date": {"type": "date"},
                "reviewerName": {"type": "keyword"},
                "reviewerEmail": {"type": "keyword"},
            }
        },
    }
}


def create_client() -> Elasticsearch:
    return Elasticsearch(config.ES_HOST, request_timeout=config.ES_REQUEST_TIMEOUT)


def _body(resp) -> Mapping[str, Any]:
    # ObjectApiResponse wraps the decoded JSON in .body
    return getattr(resp, "body", resp)


def product_document(product: Product) -> Dict[str, Any]:
    return product.model_dump()


class ProductIndex:
    """Read and write access to the products index."""

    def __init__(self, client: Elasticsearch, index: str = config.ES_INDEX):
        self.client = client
        self.index = index

    def health(self) -> Mapping[str, Any]:
        return _body(self.client.cluster.health())

    def close(self) -> None:
        self.client.close()

    # ---------- index management ----------

    def ensure_index(self) -> bool:
        """Create the index with its explicit mapping. Returns True if it was created."""
        if self.client.indices.exists(index=self.index):
            return False
        self.client.indices.create(index=self.index, mappings=PRODUCT_MAPPING)
        logger.info("Elasticsearch index %r created", self.index)
        return True

    def bulk_index_products(self, products: Iterable[Product]) -> int:
        """
        Index a batch of products, refreshing afterwards. Per-document errors
        are logged (first one only) and do not fail the batch.
        Returns the number of documents indexed successfully.
        """
        actions = [
            {"_index": self.index, "_id": str(p.id), "_source": product_document(p)}
            for p in products
        ]
        if not actions:
            return 0
        success, errors = helpers.bulk(self.client, actions, refresh=True,
                                       raise_on_error=False, raise_on_exception=False)
        if errors:
            first = errors[0]
            logger.error("Elasticsearch bulk indexing had %d errors, first: %s",
                         len(errors), first.get("index", {}).get("error", first))
        return success

    # ---------- queries ----------

    def search_products(self, query: SearchQuery, page: Page) -> Dict[str, Any]:
        body = {
            "from": page.offset,
            "size": page.size,
            "query": query.to_dict(),
        }
        resp = _body(self.client.search(index=self.index, body=body))
        return shape_listing(resp, limit=page.size, offset=page.offset)

    def list_categories(self) -> Dict[str, List[str]]:
        body = {
            "size": 0,
            "aggs": {
                "categories": {
                    "terms": {"field": "category", "size": TERMS_SIZE, "order": {"_key": "asc"}}
                }
            },
        }
        resp = _body(self.client.search(index=self.index, body=body))
        return shape_categories(resp)

    def product_facets(self, query: SearchQuery) -> Dict[str, Any]:
        body = {
            "size": 0,
            "query": query.to_dict(),
            "aggs": {
                "categories": {
                    "terms": {"field": "category", "size": TERMS_SIZE, "order": {"_key": "asc"}}
                },
                "brands": {
                    "terms": {"field": "brand", "size": TERMS_SIZE, "order": {"_key": "asc"}}
                },
                "price_ranges": {"range": {"field": "price", "ranges": PRICE_RANGES}},
                "rating_ranges": {"range": {"field": "rating", "ranges": RATING_RANGES}},
            },
        }
        resp = _body(self.client.search(index=self.index, body=body))
        return shape_facets(resp)
