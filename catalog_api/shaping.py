# catalog_api/shaping.py
from typing import Any, Dict, List, Mapping, Optional, Union

# Range aggregations include "from" and exclude "to".
PRICE_RANGES = [
    {"to": 50},
    {"from": 50, "to": 100},
    {"from": 100, "to": 500},
    {"from": 500, "to": 1000},
    {"from": 1000},
]

RATING_RANGES = [
    {"to": 2},
    {"from": 2, "to": 3},
    {"from": 3, "to": 4},
    {"from": 4, "to": 5},
]

# Either a bare count or {"value": n, "relation": "eq" | "gte"}
Total = Union[int, Mapping[str, Any], None]


def resolve_total(total: Total) -> int:
    """
    Normalize hits.total, which Elasticsearch reports either as a bare integer
    or as a {value, relation} object.
    """
    if isinstance(total, bool):
        return 0
    if isinstance(total, int):
        return total
    if isinstance(total, Mapping):
        value = total.get("value")
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


def shape_hit(hit: Mapping[str, Any]) -> Dict[str, Any]:
    src = dict(hit.get("_source") or {})
    if src.get("id") is None:
        doc_id = hit.get("_id")
        src["id"] = int(doc_id) if doc_id is not None else None
    return src


def shape_listing(resp: Mapping[str, Any], limit: int, offset: int) -> Dict[str, Any]:
    hits = resp.get("hits") or {}
    return {
        "total": resolve_total(hits.get("total")),
        "limit": limit,
        "offset": offset,
        "products": [shape_hit(h) for h in hits.get("hits") or []],
    }


def _buckets(aggs: Mapping[str, Any], name: str) -> List[Mapping[str, Any]]:
    agg = aggs.get(name) or {}
    return agg.get("buckets") or []


def shape_term_buckets(aggs: Mapping[str, Any], name: str) -> List[Dict[str, Any]]:
    return [{"key": b["key"], "count": b.get("doc_count", 0)} for b in _buckets(aggs, name)]


def shape_range_buckets(aggs: Mapping[str, Any], name: str) -> List[Dict[str, Any]]:
    shaped = []
    for b in _buckets(aggs, name):
        bucket: Dict[str, Optional[Any]] = {"key": b["key"]}
        if b.get("from") is not None:
            bucket["from"] = b["from"]
        if b.get("to") is not None:
            bucket["to"] = b["to"]
        bucket["count"] = b.get("doc_count", 0)
        shaped.append(bucket)
    return shaped


def shape_categories(resp: Mapping[str, Any]) -> Dict[str, List[str]]:
    aggs = resp.get("aggregations") or {}
    return {"items": [b["key"] for b in _buckets(aggs, "categories")]}


def shape_facets(resp: Mapping[str, Any]) -> Dict[str, Any]:
    aggs = resp.get("aggregations") or {}
    return {
        "facets": {
            "category": shape_term_buckets(aggs, "categories"),
            "brand": shape_term_buckets(aggs, "brands"),
            "price": shape_range_buckets(aggs, "price_ranges"),
            "rating": shape_range_buckets(aggs, "rating_ranges"),
        }
    }
