# storefront_sdk/client.py
from typing import Any, Dict, List, Optional

import requests


class StorefrontClient:
    """Synchronous client for the storefront API.

    `session` may be any requests-compatible session object; by default a
    fresh requests.Session is used.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8085",
        token: Optional[str] = None,
        timeout: int = 10,
        session: Any = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _get(self, path: str, **params):
        r = self.session.get(f"{self.base_url}{path}", params=_clean(params), timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _send(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None):
        r = self.session.request(method, f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # ---------------------------
    # Catalog
    # ---------------------------
    def list_products(self, page: int = 1, per_page: int = 12, category_id: Optional[str] = None,
                      min_price: Optional[float] = None, max_price: Optional[float] = None):
        return self._get("/api/products", page=page, per_page=per_page, category_id=category_id,
                         min_price=min_price, max_price=max_price)

    def trending_products(self, limit: int = 4):
        return self._get("/api/products/trending", limit=limit)

    def search_products(self, term: str, page: int = 1, per_page: int = 20):
        return self._get("/api/products/search", q=term, page=page, per_page=per_page)

    def get_product(self, slug: str):
        return self._get(f"/api/products/{slug}")

    def list_categories(self):
        return self._get("/api/categories")

    def category_tree(self):
        return self._get("/api/categories/tree")

    def category_products(self, slug: str, page: int = 1, limit: int = 12):
        return self._get(f"/api/categories/{slug}/products", page=page, limit=limit)

    def store(self):
        return self._get("/api/store")

    # ---------------------------
    # Account
    # ---------------------------
    def me(self):
        return self._get("/api/me")

    def update_me(self, **changes):
        return self._send("PATCH", "/api/me", changes)

    def my_role(self) -> Dict[str, Any]:
        return self._get("/api/me/role")

    def view_cart(self):
        return self._get("/api/cart")

    def add_to_cart(self, product_id: str, quantity: int = 1):
        return self._send("POST", "/api/cart/add", {"product_id": product_id, "quantity": quantity})

    def remove_from_cart(self, product_id: str, quantity: Optional[int] = None):
        payload: Dict[str, Any] = {"product_id": product_id}
        if quantity is not None:
            payload["quantity"] = int(quantity)
        return self._send("POST", "/api/cart/remove", payload)

    def clear_cart(self):
        return self._send("DELETE", "/api/cart")

    def wishlist(self) -> List[Dict[str, Any]]:
        return self._get("/api/wishlist")

    def add_to_wishlist(self, product_id: str):
        return self._send("POST", "/api/wishlist/add", {"product_id": product_id})

    def remove_from_wishlist(self, product_id: str):
        return self._send("POST", "/api/wishlist/remove", {"product_id": product_id})

    # ---------------------------
    # Orders
    # ---------------------------
    def list_orders(self, page: int = 1, per_page: int = 10):
        return self._get("/api/orders", page=page, per_page=per_page)

    def get_order(self, order_id: str):
        return self._get(f"/api/orders/{order_id}")

    def checkout(self, shipping_address: Any = None, billing_address: Any = None, shipping_cost: float = 0):
        return self._send("POST", "/api/orders/checkout", {
            "shipping_address": shipping_address,
            "billing_address": billing_address,
            "shipping_cost": shipping_cost,
        })

    # ---------------------------
    # Admin
    # ---------------------------
    def admin_stats(self):
        return self._get("/api/admin/stats")

    def admin_products(self, page: int = 1, per_page: int = 20, is_published: Optional[bool] = None):
        return self._get("/api/admin/products", page=page, per_page=per_page, is_published=is_published)

    def create_product(self, product: Dict[str, Any]):
        return self._send("POST", "/api/admin/products", product)

    def update_product(self, product_id: str, changes: Dict[str, Any]):
        return self._send("PATCH", f"/api/admin/products/{product_id}", changes)

    def delete_product(self, product_id: str):
        return self._send("DELETE", f"/api/admin/products/{product_id}")

    def list_users(self, page: int = 1, per_page: int = 20, search: Optional[str] = None):
        return self._get("/api/admin/users", page=page, per_page=per_page, search=search)

    def set_role(self, clerk_id: str, role: str):
        return self._send("POST", "/api/admin/set-role", {"targetUserId": clerk_id, "role": role})

    def admin_orders(self, page: int = 1, per_page: int = 20, payment_status: Optional[str] = None):
        return self._get("/api/admin/orders", page=page, per_page=per_page, payment_status=payment_status)

    def update_order_status(self, order_id: str, **status):
        return self._send("PATCH", f"/api/admin/orders/{order_id}/status", status)

    def upload_image(self, filename: str, content: bytes, content_type: str, path: str = "products"):
        r = self.session.post(
            f"{self.base_url}/api/admin/images",
            files={"file": (filename, content, content_type)},
            data={"path": path},
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json()


def _clean(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}
