# storefront/context.py
from typing import Optional

from .auth import AuthorizationResolver
from .baas import BaasClient
from .cache import QueryCache
from .categories import CategoryHooks
from .config import Settings
from .memory import MemoryClient
from .orders import OrderHooks
from .products import ProductHooks
from .remote import DataClient
from .store import StoreHooks
from .users import UserHooks


def build_client(settings: Settings) -> DataClient:
    if settings.backend == "memory":
        return MemoryClient(public_base=f"http://localhost:{settings.port}/storage/v1/object/public")
    if not settings.baas_url:
        raise RuntimeError("BAAS_URL must be set when STOREFRONT_BACKEND=rest")
    return BaasClient(settings.baas_url, settings.baas_service_key, timeout=settings.baas_timeout)


class Storefront:
    """Everything a request handler needs, wired once per process."""

    def __init__(self, settings: Settings, client: Optional[DataClient] = None):
        self.settings = settings
        self.client = client if client is not None else build_client(settings)
        self.cache = QueryCache(stale_seconds=settings.cache_stale_seconds)
        self.products = ProductHooks(self.client, self.cache)
        self.categories = CategoryHooks(self.client, self.cache)
        self.users = UserHooks(self.client, self.cache)
        self.orders = OrderHooks(self.client, self.cache, compensate=settings.compensate_orders)
        self.store = StoreHooks(self.client, self.cache)
        self.auth = AuthorizationResolver(self.users, settings.session_key, settings.session_algorithms)

    async def close(self) -> None:
        await self.client.aclose()
