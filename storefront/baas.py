# storefront/baas.py
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from .errors import NotFound, RemoteError
from .query import Filter, Query
from .remote import DataClient, Result, Rows

logger = logging.getLogger(__name__)

Params = List[Tuple[str, str]]


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _quoted(value: Any) -> str:
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return _literal(value)


def _like_escape(term: str) -> str:
    # % and _ are LIKE wildcards; search terms match them literally
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def encode_filter(f: Filter) -> Tuple[str, str]:
    if f.op == "in":
        return f.column, "in.(" + ",".join(_quoted(v) for v in f.value) + ")"
    if f.op == "eq" and f.value is None:
        return f.column, "is.null"
    return f.column, f"{f.op}.{_literal(f.value)}"


def encode_query(query: Optional[Query]) -> Params:
    """Translate a Query into PostgREST query-string parameters."""
    params: Params = [("select", "*")]
    if query is None:
        return params
    params.extend(encode_filter(f) for f in query.filters)
    if query.search is not None:
        pattern = _quoted(f"*{_like_escape(query.search.term)}*")
        ors = ",".join(f"{col}.ilike.{pattern}" for col in query.search.columns)
        params.append(("or", f"({ors})"))
    if query.order:
        params.append(("order", ",".join(f"{col}.{'desc' if desc else 'asc'}" for col, desc in query.order)))
    if query.offset:
        params.append(("offset", str(query.offset)))
    if query.limit is not None:
        params.append(("limit", str(query.limit)))
    return params


def parse_content_range(header: Optional[str]) -> Optional[int]:
    # "0-9/42", "*/42" or "0-9/*"
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else None


class BaasClient(DataClient):
    """Thin async wrapper over the BaaS REST (PostgREST) and storage APIs."""

    backend = "rest"

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        kwargs: Dict[str, Any] = {
            "base_url": self.base_url,
            "headers": {"apikey": service_key, "Authorization": f"Bearer {service_key}"},
        }
        if timeout is not None:
            kwargs["timeout"] = timeout
        if transport is not None:
            kwargs["transport"] = transport
        self.http = httpx.AsyncClient(**kwargs)

    async def aclose(self) -> None:
        await self.http.aclose()

    # ---------------------------
    # Plumbing
    # ---------------------------
    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise RemoteError(f"request to data service failed: {e}") from e
        if resp.status_code >= 400 and resp.status_code != 416:
            raise self._error(resp)
        return resp

    @staticmethod
    def _error(resp: httpx.Response) -> RemoteError:
        message = resp.text or resp.reason_phrase
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or body.get("msg") or message
        if resp.status_code == 404:
            return NotFound(message)
        return RemoteError(message, status=resp.status_code)

    @staticmethod
    def _rows(resp: httpx.Response) -> Rows:
        if not resp.content:
            return []
        body = resp.json()
        return body if isinstance(body, list) else [body]

    # ---------------------------
    # Rows
    # ---------------------------
    async def select(self, table: str, query: Optional[Query] = None) -> Result:
        headers = {"Prefer": "count=exact"} if query is not None and query.count else {}
        resp = await self._send("GET", f"/rest/v1/{table}", params=encode_query(query), headers=headers)
        count = parse_content_range(resp.headers.get("content-range"))
        if resp.status_code == 416:
            # window starts past the last row
            return Result([], count)
        return Result(self._rows(resp), count)

    async def count(self, table: str, query: Optional[Query] = None) -> int:
        resp = await self._send(
            "HEAD", f"/rest/v1/{table}", params=encode_query(query), headers={"Prefer": "count=exact"}
        )
        return parse_content_range(resp.headers.get("content-range")) or 0

    async def insert(self, table: str, payload: Union[Dict[str, Any], Rows]) -> Rows:
        resp = await self._send(
            "POST", f"/rest/v1/{table}", json=payload, headers={"Prefer": "return=representation"}
        )
        return self._rows(resp)

    async def update(self, table: str, column: str, value: Any, payload: Dict[str, Any]) -> Rows:
        resp = await self._send(
            "PATCH",
            f"/rest/v1/{table}",
            params=[(column, f"eq.{_literal(value)}")],
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        rows = self._rows(resp)
        if not rows:
            raise NotFound(f"{table}: no row with {column}={value}")
        return rows

    async def delete(self, table: str, column: str, value: Any) -> Rows:
        resp = await self._send(
            "DELETE",
            f"/rest/v1/{table}",
            params=[(column, f"eq.{_literal(value)}")],
            headers={"Prefer": "return=representation"},
        )
        return self._rows(resp)

    async def upsert(self, table: str, payload: Dict[str, Any], on_conflict: str) -> Rows:
        resp = await self._send(
            "POST",
            f"/rest/v1/{table}",
            params=[("on_conflict", on_conflict)],
            json=payload,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._rows(resp)

    # ---------------------------
    # Storage
    # ---------------------------
    def public_url(self, bucket: str, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{name}"

    async def _put_object(self, bucket: str, name: str, content: bytes, content_type: str) -> None:
        await self._send(
            "POST",
            f"/storage/v1/object/{bucket}/{name}",
            content=content,
            headers={"Content-Type": content_type, "Cache-Control": "max-age=3600", "x-upsert": "false"},
        )

    async def _remove_object(self, bucket: str, name: str) -> None:
        await self._send("DELETE", f"/storage/v1/object/{bucket}", json={"prefixes": [name]})

    async def list_objects(self, bucket: str, prefix: str = "") -> List[str]:
        resp = await self._send(
            "POST", f"/storage/v1/object/list/{bucket}", json={"prefix": prefix, "limit": 100, "offset": 0}
        )
        base = f"{prefix.strip('/')}/" if prefix.strip("/") else ""
        # folders come back without an id
        return [self.public_url(bucket, base + item["name"]) for item in resp.json() if item.get("id")]
