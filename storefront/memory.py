# storefront/memory.py
import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .errors import NotFound, RemoteError
from .models import compute_final_price
from .query import Query
from .remote import DataClient, Result, Rows

# This file holds an in-process stand-in for the BaaS, used for local runs and tests.

GENERATED: Dict[str, Dict[str, Callable[[Dict[str, Any]], Any]]] = {
    "products": {"final_price": lambda row: compute_final_price(row.get("price"), row.get("discount"))},
}

UNIQUE: Dict[str, Tuple[str, ...]] = {
    "products": ("slug",),
    "categories": ("slug",),
    "users": ("clerk_id",),
    "orders": ("order_number",),
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "products": {
        "discount": 0, "trending": False, "number_of_people_bought": 0, "inventory": 0,
        "images": [], "is_published": False, "rating": 0, "number_of_reviews": 0,
    },
    "users": {
        "role": "user", "cart_products": [], "wishlist_products": [], "shipping_addresses": [],
        "billing_addresses": [], "is_active": True,
    },
    "orders": {"shipping_cost": 0, "tax_amount": 0, "discount_applied": 0},
    "order_items": {"discount_applied": 0},
    "store": {
        "pages": [], "social_links": {}, "featuredimages": [], "default_currency": "USD",
        "tax_rate": 0, "footer_links": [], "newsletter_enabled": False,
    },
}


def _matches(row: Dict[str, Any], query: Query) -> bool:
    for f in query.filters:
        value = row.get(f.column)
        if f.op == "eq":
            if value != f.value:
                return False
        elif f.op == "in":
            if value not in f.value:
                return False
        else:
            if value is None:
                return False
            if f.op == "gte" and not value >= f.value:
                return False
            if f.op == "lte" and not value <= f.value:
                return False
            if f.op == "gt" and not value > f.value:
                return False
            if f.op == "lt" and not value < f.value:
                return False
    if query.search is not None:
        term = query.search.term.lower()
        if not any(term in str(row.get(col) or "").lower() for col in query.search.columns):
            return False
    return True


def _sorted(rows: Rows, order: List[Tuple[str, bool]]) -> Rows:
    # stable sorts applied last-key-first; NULLs sort as larger than any value
    out = list(rows)
    for column, desc in reversed(order):
        out.sort(key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else 0), reverse=desc)
    return out


class MemoryClient(DataClient):
    backend = "memory"

    def __init__(self, public_base: str = "http://localhost:8085/storage/v1/object/public"):
        self.tables: Dict[str, Rows] = {}
        self.objects: Dict[Tuple[str, str], Tuple[bytes, str]] = {}
        self.public_base = public_base.rstrip("/")
        self._clock = datetime.now(timezone.utc)

    def _now(self) -> str:
        # strictly increasing so created_at ordering is deterministic
        now = datetime.now(timezone.utc)
        self._clock = now if now > self._clock else self._clock + timedelta(microseconds=1)
        return self._clock.isoformat(timespec="microseconds")

    def _table(self, table: str) -> Rows:
        return self.tables.setdefault(table, [])

    def _derive(self, table: str, row: Dict[str, Any]) -> None:
        for column, fn in GENERATED.get(table, {}).items():
            row[column] = fn(row)

    def _check_writable(self, table: str, payload: Dict[str, Any]) -> None:
        for column in GENERATED.get(table, {}):
            if column in payload:
                raise RemoteError(f'cannot insert a non-DEFAULT value into column "{column}"', status=400)

    def _check_unique(self, table: str, row: Dict[str, Any]) -> None:
        for column in UNIQUE.get(table, ()):
            value = row.get(column)
            if value is None:
                continue
            for other in self._table(table):
                if other is not row and other.get(column) == value:
                    raise RemoteError(
                        f'duplicate key value violates unique constraint "{table}_{column}_key"', status=409
                    )

    # ---------------------------
    # Rows
    # ---------------------------
    async def select(self, table: str, query: Optional[Query] = None) -> Result:
        q = query or Query()
        matched = _sorted([r for r in self._table(table) if _matches(r, q)], q.order)
        total = len(matched)
        start = q.offset or 0
        window = matched[start:] if q.limit is None else matched[start:start + q.limit]
        return Result(copy.deepcopy(window), total if q.count else None)

    async def count(self, table: str, query: Optional[Query] = None) -> int:
        q = query or Query()
        return sum(1 for r in self._table(table) if _matches(r, q))

    async def insert(self, table: str, payload: Union[Dict[str, Any], Rows]) -> Rows:
        payloads = payload if isinstance(payload, list) else [payload]
        created = []
        for item in payloads:
            self._check_writable(table, item)
            now = self._now()
            row = copy.deepcopy(DEFAULTS.get(table, {}))
            row.update({"id": uuid.uuid4().hex, "created_at": now, "updated_at": now})
            row.update(copy.deepcopy(item))
            self._derive(table, row)
            self._check_unique(table, row)
            self._table(table).append(row)
            created.append(row)
        return copy.deepcopy(created)

    async def update(self, table: str, column: str, value: Any, payload: Dict[str, Any]) -> Rows:
        self._check_writable(table, payload)
        hits = [r for r in self._table(table) if r.get(column) == value]
        if not hits:
            raise NotFound(f"{table}: no row with {column}={value}")
        for row in hits:
            before = copy.deepcopy(row)
            row.update(copy.deepcopy(payload))
            row["updated_at"] = self._now()
            self._derive(table, row)
            try:
                self._check_unique(table, row)
            except RemoteError:
                row.clear()
                row.update(before)
                raise
        return copy.deepcopy(hits)

    async def delete(self, table: str, column: str, value: Any) -> Rows:
        rows = self._table(table)
        removed = [r for r in rows if r.get(column) == value]
        self.tables[table] = [r for r in rows if r.get(column) != value]
        return copy.deepcopy(removed)

    async def upsert(self, table: str, payload: Dict[str, Any], on_conflict: str) -> Rows:
        key = payload.get(on_conflict)
        if key is not None and any(r.get(on_conflict) == key for r in self._table(table)):
            return await self.update(table, on_conflict, key, payload)
        return await self.insert(table, payload)

    # ---------------------------
    # Storage
    # ---------------------------
    def public_url(self, bucket: str, name: str) -> str:
        return f"{self.public_base}/{bucket}/{name}"

    async def _put_object(self, bucket: str, name: str, content: bytes, content_type: str) -> None:
        if (bucket, name) in self.objects:
            raise RemoteError("The resource already exists", status=409)
        self.objects[(bucket, name)] = (content, content_type)

    async def _remove_object(self, bucket: str, name: str) -> None:
        self.objects.pop((bucket, name), None)

    async def list_objects(self, bucket: str, prefix: str = "") -> List[str]:
        base = f"{prefix.strip('/')}/" if prefix.strip("/") else ""
        return [
            self.public_url(bucket, name)
            for (b, name) in self.objects
            if b == bucket and name.startswith(base) and "/" not in name[len(base):]
        ]
