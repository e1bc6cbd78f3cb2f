# storefront/cache.py
import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from .errors import describe_error
from .keys import Dependents, Key, build_invalidation_map, is_prefix

logger = logging.getLogger(__name__)


class QueryState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Entry:
    state: QueryState = QueryState.IDLE
    data: Any = None
    error: Optional[str] = None
    updated_at: float = 0.0
    stale: bool = True


@dataclass(frozen=True)
class Snapshot:
    state: QueryState
    data: Any = None
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        if self.state is not QueryState.SUCCESS:
            return False
        items = getattr(self.data, "items", self.data)
        return hasattr(items, "__len__") and len(items) == 0


class QueryCache:
    """
    Query results keyed by query key.

    A fresh success is served from memory; anything else (never fetched,
    invalidated, older than stale_seconds, or errored) goes back to
    loading and refetches. Concurrent fetches of one key are not
    coalesced: whichever finishes last wins.
    """

    def __init__(self, stale_seconds: float = 30.0, invalidation_map: Optional[Dict[str, Dependents]] = None):
        self.stale_seconds = stale_seconds
        self.invalidation_map = invalidation_map or build_invalidation_map()
        self._entries: Dict[Key, Entry] = {}

    def _is_fresh(self, entry: Entry) -> bool:
        if entry.state is not QueryState.SUCCESS or entry.stale:
            return False
        return (time.monotonic() - entry.updated_at) < self.stale_seconds

    async def fetch(self, key: Key, loader: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.setdefault(key, Entry())
        if self._is_fresh(entry):
            return entry.data

        entry.state = QueryState.LOADING
        try:
            data = await loader()
        except Exception as e:
            entry.state = QueryState.ERROR
            entry.error = describe_error(e)
            entry.stale = True
            raise
        entry.state = QueryState.SUCCESS
        entry.data = data
        entry.error = None
        entry.updated_at = time.monotonic()
        entry.stale = False
        return data

    def snapshot(self, key: Key) -> Snapshot:
        entry = self._entries.get(key)
        if entry is None:
            return Snapshot(QueryState.IDLE)
        return Snapshot(entry.state, entry.data, entry.error)

    def set(self, key: Key, data: Any) -> None:
        self._entries[key] = Entry(QueryState.SUCCESS, data, None, time.monotonic(), False)

    def invalidate(self, prefix: Key) -> int:
        hits = 0
        for key, entry in self._entries.items():
            if is_prefix(prefix, key):
                entry.stale = True
                hits += 1
        return hits

    def invalidate_many(self, prefixes: Iterable[Key]) -> int:
        return sum(self.invalidate(p) for p in prefixes)

    def invalidate_for(self, resource: str, row: Optional[Dict[str, Any]] = None) -> List[Key]:
        dependents = self.invalidation_map.get(resource)
        if dependents is None:
            return []
        prefixes = list(dependents(row or {}))
        self.invalidate_many(prefixes)
        logger.debug("invalidated %s after %s mutation", prefixes, resource)
        return prefixes

    def clear(self) -> None:
        self._entries.clear()
