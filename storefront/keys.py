# storefront/keys.py
"""
Cache keys for every read the hooks perform.

A key is a tuple that starts with its resource family, so that
invalidating a shorter key (a prefix) also invalidates everything
derived from it: ("products",) covers ("products", "details", slug),
("products", "search", ...), and so on.
"""
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Tuple

Key = Tuple[Hashable, ...]


def freeze(params: Any) -> Hashable:
    """Turn parameter mappings/lists into hashable, order-independent values."""
    if isinstance(params, Mapping):
        return tuple(sorted((str(k), freeze(v)) for k, v in params.items()))
    if isinstance(params, (list, tuple)):
        return tuple(freeze(v) for v in params)
    if isinstance(params, set):
        return tuple(sorted(freeze(v) for v in params))
    return params


def is_prefix(prefix: Key, key: Key) -> bool:
    return key[: len(prefix)] == prefix


class _Users:
    all: Key = ("users",)

    def details(self, clerk_id: str) -> Key:
        return self.all + ("details", clerk_id)

    def cart(self, user_id: str) -> Key:
        return self.all + ("cart", user_id)

    def wishlist(self, user_id: str) -> Key:
        return self.all + ("wishlist", user_id)

    def list(self, params: Any = None) -> Key:
        base = self.all + ("list",)
        return base if params is None else base + (freeze(params),)


class _Products:
    all: Key = ("products",)

    def list(self, params: Any = None) -> Key:
        base = self.all + ("list",)
        return base if params is None else base + (freeze(params),)

    def details(self, slug: str) -> Key:
        return self.all + ("details", slug)

    def by_id(self, product_id: str) -> Key:
        return self.all + ("byId", product_id)

    def by_category(self, category_id: str, params: Any = None) -> Key:
        base = self.all + ("byCategory", category_id)
        return base if params is None else base + (freeze(params),)

    def trending(self, limit: Any = None) -> Key:
        base = self.all + ("trending",)
        return base if limit is None else base + (limit,)

    def search(self, term: str, params: Any = None) -> Key:
        base = self.all + ("search", term)
        return base if params is None else base + (freeze(params),)


class _Categories:
    all: Key = ("categories",)

    def details(self, slug: str) -> Key:
        return self.all + ("details", slug)

    def tree(self) -> Key:
        return self.all + ("tree",)


class _Orders:
    all: Key = ("orders",)

    def list(self, params: Any = None) -> Key:
        base = self.all + ("list",)
        return base if params is None else base + (freeze(params),)

    def details(self, order_id: str) -> Key:
        return self.all + ("details", order_id)

    def by_user(self, user_id: str, params: Any = None) -> Key:
        base = self.all + ("byUser", user_id)
        return base if params is None else base + (freeze(params),)


class _Store:
    all: Key = ("store",)
    details: Key = ("store", "details")


class _Stats:
    all: Key = ("stats",)
    details: Key = ("stats", "details")


users = _Users()
products = _Products()
categories = _Categories()
orders = _Orders()
store = _Store()
stats = _Stats()


# ---------------------------
# Invalidation map
# ---------------------------
Row = Mapping[str, Any]
Dependents = Callable[[Row], Iterable[Key]]


def _product_keys(row: Row) -> Iterable[Key]:
    return [products.all, stats.all]


def _category_keys(row: Row) -> Iterable[Key]:
    # product detail payloads embed their category
    return [categories.all, products.all]


def _user_keys(row: Row) -> Iterable[Key]:
    keys: List[Key] = [users.list(), stats.all]
    if row.get("clerk_id"):
        keys.append(users.details(row["clerk_id"]))
    if row.get("id"):
        keys.append(users.cart(row["id"]))
        keys.append(users.wishlist(row["id"]))
    return keys


def _order_keys(row: Row) -> Iterable[Key]:
    keys: List[Key] = [orders.list(), stats.all]
    if row.get("id"):
        keys.append(orders.details(row["id"]))
    if row.get("user_id"):
        keys.append(orders.by_user(row["user_id"]))
        keys.append(users.cart(row["user_id"]))
    return keys


def _store_keys(row: Row) -> Iterable[Key]:
    return [store.all]


def build_invalidation_map() -> Dict[str, Dependents]:
    return {
        "products": _product_keys,
        "categories": _category_keys,
        "users": _user_keys,
        "orders": _order_keys,
        "store": _store_keys,
    }
