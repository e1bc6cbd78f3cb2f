# storefront/categories.py
from typing import Any, Dict, List, Optional

from . import keys
from .errors import NotFound, ValidationFailed
from .hooks import Hooks
from .models import Category, CategoryIn, CategoryPatch, CategoryTreeNode
from .query import Query


def build_tree(categories: List[Category]) -> List[CategoryTreeNode]:
    """Group a flat, name-ordered category list into parents with subcategories."""
    parents = [c for c in categories if not c.parent_category_id]
    return [
        CategoryTreeNode(
            **parent.model_dump(),
            subcategories=[c for c in categories if c.parent_category_id == parent.id],
        )
        for parent in parents
    ]


class CategoryHooks(Hooks):
    resource = "categories"

    async def list(self) -> List[Category]:
        async def load():
            result = await self.client.select("categories", Query().order_by("name"))
            return [Category.model_validate(r) for r in result.rows]

        return await self._read(keys.categories.all + ("list",), load)

    async def get(self, slug: str) -> Category:
        async def load():
            return Category.model_validate(await self.client.get_one("categories", "slug", slug))

        return await self._read(keys.categories.details(slug), load)

    async def tree(self) -> List[CategoryTreeNode]:
        async def load():
            result = await self.client.select("categories", Query().order_by("name"))
            return build_tree([Category.model_validate(r) for r in result.rows])

        return await self._read(keys.categories.tree(), load)

    async def _check_parent(self, parent_id: Optional[str], own_id: Optional[str] = None) -> None:
        # only two levels: a parent must itself be top-level
        if not parent_id:
            return
        if parent_id == own_id:
            raise ValidationFailed({"parent_category_id": "A category cannot be its own parent"})
        try:
            parent = await self.client.get_one("categories", "id", parent_id)
        except NotFound:
            raise ValidationFailed({"parent_category_id": "Parent category does not exist"})
        if parent.get("parent_category_id"):
            raise ValidationFailed({"parent_category_id": "Subcategories cannot have children"})
        if own_id:
            children = await self.client.count("categories", Query().eq("parent_category_id", own_id))
            if children:
                raise ValidationFailed({"parent_category_id": "A category with subcategories must stay top-level"})

    async def create(self, category: CategoryIn) -> Category:
        await self._check_parent(category.parent_category_id)
        rows = await self._mutate("adding", lambda: self.client.insert("categories", category.to_row()))
        return Category.model_validate(rows[0])

    async def update(self, category_id: str, patch: CategoryPatch) -> Category:
        changes: Dict[str, Any] = patch.to_row()
        if not changes:
            raise ValidationFailed({"category": "No updates provided"})
        if changes.get("parent_category_id"):
            await self._check_parent(changes["parent_category_id"], own_id=category_id)
        rows = await self._mutate("updating", lambda: self.client.update("categories", "id", category_id, changes))
        return Category.model_validate(rows[0])

    async def delete(self, category_id: str) -> str:
        rows = await self._mutate("deleting", lambda: self.client.delete("categories", "id", category_id))
        if not rows:
            raise NotFound(f"categories: no row with id={category_id}")
        return category_id
