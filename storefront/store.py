# storefront/store.py
from typing import Any, Dict

from . import keys
from .errors import NotFound, ValidationFailed
from .hooks import Hooks
from .models import FooterSettings, Store, StorePatch
from .query import Query


class StoreHooks(Hooks):
    """The single store configuration row."""

    resource = "store"

    async def _first(self) -> Dict[str, Any]:
        result = await self.client.select("store", Query().order_by("created_at").take(1))
        if not result.rows:
            raise NotFound("store: not configured")
        return result.rows[0]

    async def get(self) -> Store:
        async def load():
            return Store.model_validate(await self._first())

        return await self._read(keys.store.details, load)

    async def update(self, store_id: str, patch: StorePatch) -> Store:
        changes = patch.model_dump(exclude_unset=True, mode="json")
        if not changes:
            raise ValidationFailed({"store": "No updates provided"})
        rows = await self._mutate("updating", lambda: self.client.update("store", "id", store_id, changes))
        return Store.model_validate(rows[0])

    async def create_if_not_exists(self, patch: StorePatch) -> Store:
        data = patch.model_dump(exclude_unset=True, mode="json")
        try:
            existing = await self._first()
        except NotFound:
            rows = await self._mutate("creating", lambda: self.client.insert("store", data))
            return Store.model_validate(rows[0])
        if not data:
            return Store.model_validate(existing)
        rows = await self._mutate("updating", lambda: self.client.update("store", "id", existing["id"], data))
        return Store.model_validate(rows[0])

    async def update_footer(self, settings: FooterSettings) -> Store:
        existing = await self._first()
        data = settings.model_dump(mode="json")
        rows = await self._mutate("saving footer for", lambda: self.client.update("store", "id", existing["id"], data))
        return Store.model_validate(rows[0])
