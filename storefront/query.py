# storefront/query.py
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

RANGE_OPS = ("gte", "lte", "gt", "lt")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str  # eq | in | gte | lte | gt | lt
    value: Any


@dataclass(frozen=True)
class Search:
    columns: Tuple[str, ...]
    term: str


@dataclass
class Query:
    """Description of a filtered, ordered, windowed read against one table.

    Mirrors the BaaS query builder closely enough that both clients can
    evaluate it: filters are ANDed, the search term is ORed across its
    columns and ANDed with the filters.
    """

    filters: List[Filter] = field(default_factory=list)
    search: Optional[Search] = None
    order: List[Tuple[str, bool]] = field(default_factory=list)
    offset: Optional[int] = None
    limit: Optional[int] = None
    count: bool = False

    def eq(self, column: str, value: Any) -> "Query":
        self.filters.append(Filter(column, "eq", value))
        return self

    def in_(self, column: str, values: Sequence[Any]) -> "Query":
        self.filters.append(Filter(column, "in", list(values)))
        return self

    def where(self, column: str, op: str, value: Any) -> "Query":
        if op not in RANGE_OPS:
            raise ValueError(f"unsupported range operator: {op}")
        self.filters.append(Filter(column, op, value))
        return self

    def ilike_any(self, columns: Sequence[str], term: str) -> "Query":
        self.search = Search(tuple(columns), term)
        return self

    def order_by(self, column: str, desc: bool = False) -> "Query":
        self.order.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "Query":
        """Inclusive row window, as the BaaS expresses it."""
        self.offset = start
        self.limit = max(end - start + 1, 0)
        return self

    def take(self, limit: int) -> "Query":
        self.limit = limit
        return self

    def with_count(self) -> "Query":
        self.count = True
        return self


def clean_filters(filters: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset values so they don't turn into `= NULL` predicates."""
    return {k: v for k, v in filters.items() if v is not None and v != ""}


def query_from_filters(filters: Dict[str, Any]) -> Query:
    q = Query()
    for column, value in clean_filters(filters).items():
        if isinstance(value, (list, tuple, set)):
            q.in_(column, list(value))
        elif isinstance(value, dict):
            for op in RANGE_OPS:
                if op in value and value[op] is not None:
                    q.where(column, op, value[op])
        else:
            q.eq(column, value)
    return q


# ---------------------------
# Pagination
# ---------------------------
def page_window(page: int, per_page: int) -> Tuple[int, int]:
    """Inclusive (from, to) row indices for a 1-based page."""
    if page < 1 or per_page < 1:
        raise ValueError("page and per_page must be >= 1")
    start = (page - 1) * per_page
    return start, start + per_page - 1


def total_pages(total_count: int, per_page: int) -> int:
    if not total_count:
        return 0
    return math.ceil(total_count / per_page)
