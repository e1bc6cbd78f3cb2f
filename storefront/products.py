# storefront/products.py
import re
from typing import Any, Dict, List, Optional

from . import keys
from .errors import NotFound, ValidationFailed
from .hooks import Hooks
from .models import Category, Page, Product, ProductDetails, ProductIn, ProductPatch
from .query import Query, clean_filters, query_from_filters

SEARCH_COLUMNS = ("name", "details")


def slugify(name: str) -> str:
    return re.sub(r"^-+|-+$", "", re.sub(r"[^a-z0-9]+", "-", name.lower()))


class ProductHooks(Hooks):
    resource = "products"

    # ---------------------------
    # Reads
    # ---------------------------
    async def list(
        self,
        page: int = 1,
        per_page: int = 10,
        filters: Optional[Dict[str, Any]] = None,
        published_only: bool = True,
    ) -> Page[Product]:
        params = clean_filters(filters or {})
        if published_only:
            params["is_published"] = True
        key = keys.products.list({"page": page, "per_page": per_page, "filters": params})

        async def load():
            q = query_from_filters(params).order_by("created_at", desc=True)
            return await self._page("products", q, page, per_page, Product)

        return await self._read(key, load)

    async def get(self, slug: str, published_only: bool = True) -> ProductDetails:
        async def load():
            row = await self.client.get_one("products", "slug", slug)
            if published_only and not row.get("is_published"):
                raise NotFound(f"products: no row with slug={slug}")
            product = ProductDetails.model_validate(row)
            if product.category_id:
                try:
                    cat = await self.client.get_one("categories", "id", product.category_id)
                    product.category = Category.model_validate(cat)
                except NotFound:
                    product.category = None
            return product

        key = keys.products.details(slug) + (("published",) if published_only else ("any",))
        return await self._read(key, load)

    async def get_by_id(self, product_id: str) -> Product:
        async def load():
            return Product.model_validate(await self.client.get_one("products", "id", product_id))

        return await self._read(keys.products.by_id(product_id), load)

    async def trending(self, limit: int = 4) -> List[Product]:
        async def load():
            q = (
                Query()
                .eq("trending", True)
                .eq("is_published", True)
                .order_by("created_at", desc=True)
                .take(limit)
            )
            result = await self.client.select("products", q)
            return [Product.model_validate(r) for r in result.rows]

        return await self._read(keys.products.trending(limit), load)

    async def by_category(self, category_id: str, page: int = 1, limit: int = 12) -> Page[Product]:
        async def load():
            q = (
                Query()
                .eq("category_id", category_id)
                .eq("is_published", True)
                .order_by("created_at", desc=True)
            )
            return await self._page("products", q, page, limit, Product)

        key = keys.products.by_category(category_id, {"page": page, "limit": limit})
        return await self._read(key, load)

    async def search(
        self,
        term: str,
        page: int = 1,
        per_page: int = 20,
        include_unpublished: bool = False,
    ) -> Page[Product]:
        term = (term or "").strip()
        if not term:
            return Page[Product](items=[], total_count=0, total_pages=0, current_page=page)

        async def load():
            q = Query().ilike_any(SEARCH_COLUMNS, term)
            if not include_unpublished:
                q.eq("is_published", True)
            q.order_by("trending", desc=True).order_by("created_at", desc=True)
            return await self._page("products", q, page, per_page, Product)

        params = {"page": page, "per_page": per_page, "all": include_unpublished}
        return await self._read(keys.products.search(term.lower(), params), load)

    # ---------------------------
    # Mutations (admin only)
    # ---------------------------
    async def _check_category(self, category_id: Optional[str]) -> None:
        if not category_id:
            return
        try:
            await self.client.get_one("categories", "id", category_id)
        except NotFound:
            raise ValidationFailed({"category_id": "Please select a category"})

    async def create(self, product: ProductIn) -> Product:
        await self._check_category(product.category_id)
        rows = await self._mutate("adding", lambda: self.client.insert("products", product.to_row()))
        return Product.model_validate(rows[0])

    async def update(self, product_id: str, patch: ProductPatch) -> Product:
        changes = patch.to_row()
        if not changes:
            raise ValidationFailed({"product": "No updates provided"})
        await self._check_category(changes.get("category_id"))
        previous = await self.client.get_one("products", "id", product_id)
        rows = await self._mutate("updating", lambda: self.client.update("products", "id", product_id, changes))
        # a slug change must also drop the details cached under the old slug
        self.cache.invalidate(keys.products.details(previous.get("slug") or ""))
        return Product.model_validate(rows[0])

    async def delete(self, product_id: str) -> str:
        rows = await self._mutate("deleting", lambda: self.client.delete("products", "id", product_id))
        if not rows:
            raise NotFound(f"products: no row with id={product_id}")
        return product_id
