# storefront/remote.py
import abc
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import unquote, urlparse

from .errors import NotFound, ValidationFailed
from .query import Query

MAX_UPLOAD_BYTES = 5 * 1024 * 1024

Rows = List[Dict[str, Any]]


@dataclass
class Result:
    rows: Rows = field(default_factory=list)
    count: Optional[int] = None


class DataClient(abc.ABC):
    """Row CRUD and object storage against the BaaS.

    Every method raises RemoteError (NotFound where a single row was
    expected) instead of returning error tuples.
    """

    backend = "abstract"

    @abc.abstractmethod
    async def select(self, table: str, query: Optional[Query] = None) -> Result: ...

    @abc.abstractmethod
    async def count(self, table: str, query: Optional[Query] = None) -> int: ...

    @abc.abstractmethod
    async def insert(self, table: str, payload: Union[Dict[str, Any], Rows]) -> Rows: ...

    @abc.abstractmethod
    async def update(self, table: str, column: str, value: Any, payload: Dict[str, Any]) -> Rows: ...

    @abc.abstractmethod
    async def delete(self, table: str, column: str, value: Any) -> Rows: ...

    @abc.abstractmethod
    async def upsert(self, table: str, payload: Dict[str, Any], on_conflict: str) -> Rows: ...

    @abc.abstractmethod
    async def _put_object(self, bucket: str, name: str, content: bytes, content_type: str) -> None: ...

    @abc.abstractmethod
    async def _remove_object(self, bucket: str, name: str) -> None: ...

    @abc.abstractmethod
    async def list_objects(self, bucket: str, prefix: str = "") -> List[str]: ...

    @abc.abstractmethod
    def public_url(self, bucket: str, name: str) -> str: ...

    async def get_one(self, table: str, column: str, value: Any, query: Optional[Query] = None) -> Dict[str, Any]:
        q = query or Query()
        q.eq(column, value).take(1)
        result = await self.select(table, q)
        if not result.rows:
            raise NotFound(f"{table}: no row with {column}={value}")
        return result.rows[0]

    async def upload_object(self, bucket: str, path: str, filename: str, content: bytes, content_type: str) -> str:
        check_image(content, content_type)
        name = object_name(path, filename)
        await self._put_object(bucket, name, content, content_type)
        return self.public_url(bucket, name)

    async def delete_object(self, bucket: str, url_or_path: str) -> str:
        name = object_path(bucket, url_or_path)
        await self._remove_object(bucket, name)
        return name

    async def aclose(self) -> None:
        return None


# ---------------------------
# Storage helpers
# ---------------------------
def check_image(content: bytes, content_type: Optional[str]) -> None:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationFailed({"file": "Please upload an image file"})
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValidationFailed({"file": "Image size should be less than 5MB"})


def object_name(path: str, filename: str, now_ms: Optional[int] = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    safe = re.sub(r"\s+", "_", filename)
    prefix = path.strip("/")
    return f"{prefix}/{stamp}_{safe}" if prefix else f"{stamp}_{safe}"


def object_path(bucket: str, url_or_path: str) -> str:
    """Object name inside `bucket`, from either a public URL or a bare path."""
    if "://" not in url_or_path:
        return url_or_path.strip("/")
    segments = unquote(urlparse(url_or_path).path).split("/")
    if bucket not in segments:
        raise ValidationFailed({"url": "Invalid image URL format"})
    idx = segments.index(bucket)
    rest = [s for s in segments[idx + 1:] if s]
    if not rest:
        raise ValidationFailed({"url": "Invalid image URL format"})
    return "/".join(rest)
