"""
Translate request parameters into an Elasticsearch query body.

Clauses are collected in a small typed structure first (scored text clauses,
non-scoring filter clauses) and only serialized to the wire format at the end,
so clause construction can be checked without a live cluster.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from . import config
from .errors import InvalidQueryParameter

TEXT_FIELDS = ["title^2", "description", "brand", "category"]


@dataclass(frozen=True)
class TextClause:
    query: str
    fields: List[str] = field(default_factory=lambda: list(TEXT_FIELDS))

    def to_dict(self) -> Dict[str, Any]:
        return {"multi_match": {"query": self.query, "fields": list(self.fields)}}


@dataclass(frozen=True)
class TermFilter:
    field: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"term": {self.field: self.value}}


@dataclass(frozen=True)
class RangeFilter:
    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None

    def __post_init__(self):
        if self.gte is None and self.lte is None:
            raise ValueError(f"range filter on {self.field!r} needs at least one bound")

    def to_dict(self) -> Dict[str, Any]:
        bounds = {}
        if self.gte is not None:
            bounds["gte"] = self.gte
        if self.lte is not None:
            bounds["lte"] = self.lte
        return {"range": {self.field: bounds}}


FilterClause = Union[TermFilter, RangeFilter]


@dataclass
class SearchQuery:
    must: List[TextClause] = field(default_factory=list)
    filter: List[FilterClause] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bool": {
                "must": [c.to_dict() for c in self.must],
                "filter": [c.to_dict() for c in self.filter],
            }
        }


@dataclass(frozen=True)
class Page:
    offset: int
    size: int


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def parse_price(param: str, value: Optional[str]) -> Optional[float]:
    """
    Parse a price bound. Missing or blank values give None; anything that is
    not a finite number raises InvalidQueryParameter.
    """
    if not _present(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidQueryParameter(param, f"{param} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise InvalidQueryParameter(param, f"{param} must be a number")
    return number


def _parse_int(param: str, value: Optional[str]) -> Optional[int]:
    if not _present(value):
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise InvalidQueryParameter(param, f"{param} must be an integer")


def build_query(q: Optional[str] = None,
                category: Optional[str] = None,
                brand: Optional[str] = None,
                min_price: Optional[str] = None,
                max_price: Optional[str] = None) -> SearchQuery:
    query = SearchQuery()
    if _present(q):
        query.must.append(TextClause(q))
    if _present(category):
        query.filter.append(TermFilter("category", category))
    if _present(brand):
        query.filter.append(TermFilter("brand", brand))

    gte = parse_price("min_price", min_price)
    lte = parse_price("max_price", max_price)
    if gte is not None or lte is not None:
        query.filter.append(RangeFilter("price", gte=gte, lte=lte))
    return query


def build_page(limit: Optional[str] = None, offset: Optional[str] = None) -> Page:
    """
    Pagination window: size defaults to DEFAULT_PAGE_SIZE and is silently
    capped at MAX_PAGE_SIZE; negative offsets are floored to 0.
    """
    size = _parse_int("limit", limit)
    if size is None:
        size = config.DEFAULT_PAGE_SIZE
    elif size < 1:
        raise InvalidQueryParameter("limit", "limit must be a positive integer")
    size = min(size, config.MAX_PAGE_SIZE)

    start = _parse_int("offset", offset) or 0
    return Page(offset=max(start, 0), size=size)
