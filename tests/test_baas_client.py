# tests/test_baas_client.py
import json

import httpx
import pytest

from conftest import run
from storefront.baas import BaasClient, encode_query, parse_content_range
from storefront.errors import NotFound, RemoteError, ValidationFailed
from storefront.query import Query
from storefront.remote import MAX_UPLOAD_BYTES, object_name, object_path

BASE = "https://project.example.co"


def make_client(handler):
    requests = []

    def record(request: httpx.Request):
        requests.append(request)
        return handler(request)

    return BaasClient(BASE, "service-key", transport=httpx.MockTransport(record)), requests


def test_encode_query():
    q = (
        Query()
        .eq("is_published", True)
        .in_("id", ["a", "b"])
        .ilike_any(("name", "details"), "kale")
        .order_by("trending", desc=True)
        .order_by("created_at", desc=True)
        .range(10, 19)
    )
    assert encode_query(q) == [
        ("select", "*"),
        ("is_published", "eq.true"),
        ("id", 'in.("a","b")'),
        ("or", '(name.ilike."*kale*",details.ilike."*kale*")'),
        ("order", "trending.desc,created_at.desc"),
        ("offset", "10"),
        ("limit", "10"),
    ]


def test_search_term_wildcards_are_literal():
    params = encode_query(Query().ilike_any(("name",), "50%_off"))
    assert ("or", '(name.ilike."*50\\\\%\\\\_off*")') in params


def test_encode_null_filter():
    assert ("parent_category_id", "is.null") in encode_query(Query().eq("parent_category_id", None))


@pytest.mark.parametrize("header,total", [("0-9/42", 42), ("*/42", 42), ("0-9/*", None), (None, None)])
def test_parse_content_range(header, total):
    assert parse_content_range(header) == total


def test_select_sends_auth_and_reads_count():
    client, sent = make_client(
        lambda r: httpx.Response(200, json=[{"id": "p1"}], headers={"Content-Range": "0-0/42"})
    )
    result = run(client.select("products", Query().eq("slug", "kale").range(0, 9).with_count()))

    assert result.rows == [{"id": "p1"}]
    assert result.count == 42
    req = sent[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/products"
    assert req.url.params["slug"] == "eq.kale"
    assert req.headers["apikey"] == "service-key"
    assert req.headers["authorization"] == "Bearer service-key"
    assert req.headers["prefer"] == "count=exact"


def test_window_past_the_end_is_empty():
    client, _ = make_client(lambda r: httpx.Response(416, json={}, headers={"Content-Range": "*/25"}))
    result = run(client.select("products", Query().range(30, 39).with_count()))
    assert result.rows == []
    assert result.count == 25


def test_count_uses_head():
    client, sent = make_client(lambda r: httpx.Response(200, headers={"Content-Range": "*/7"}))
    assert run(client.count("orders")) == 7
    assert sent[0].method == "HEAD"


def test_conflict_becomes_remote_error():
    client, _ = make_client(
        lambda r: httpx.Response(409, json={"message": 'duplicate key value violates unique constraint "products_slug_key"'})
    )
    with pytest.raises(RemoteError) as exc:
        run(client.insert("products", {"slug": "kale"}))
    assert exc.value.status == 409
    assert "products_slug_key" in exc.value.message


def test_network_failure_becomes_remote_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = make_client(handler)
    with pytest.raises(RemoteError):
        run(client.select("products"))


def test_update_with_no_matching_row_is_not_found():
    client, sent = make_client(lambda r: httpx.Response(200, json=[]))
    with pytest.raises(NotFound):
        run(client.update("products", "id", "missing", {"name": "x"}))
    assert sent[0].method == "PATCH"
    assert sent[0].url.params["id"] == "eq.missing"
    assert sent[0].headers["prefer"] == "return=representation"


def test_upsert_merges_duplicates():
    client, sent = make_client(lambda r: httpx.Response(201, json=[{"id": "u1", "clerk_id": "user_1"}]))
    rows = run(client.upsert("users", {"clerk_id": "user_1"}, on_conflict="clerk_id"))
    assert rows[0]["clerk_id"] == "user_1"
    assert sent[0].url.params["on_conflict"] == "clerk_id"
    assert "resolution=merge-duplicates" in sent[0].headers["prefer"]


# ---------------------------
# Storage
# ---------------------------
def test_upload_rejects_non_images_before_any_request():
    client, sent = make_client(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValidationFailed) as exc:
        run(client.upload_object("images", "products", "notes.txt", b"hello", "text/plain"))
    assert "file" in exc.value.errors
    assert sent == []


def test_upload_rejects_oversized_images_before_any_request():
    client, sent = make_client(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValidationFailed):
        run(client.upload_object("images", "products", "big.png", b"x" * (MAX_UPLOAD_BYTES + 1), "image/png"))
    assert sent == []


def test_upload_returns_public_url():
    client, sent = make_client(lambda r: httpx.Response(200, json={"Key": "images/products/x.png"}))
    url = run(client.upload_object("images", "products", "my photo.png", b"\x89PNG", "image/png"))
    path = sent[0].url.path
    assert sent[0].method == "POST"
    assert path.startswith("/storage/v1/object/images/products/")
    assert path.endswith("_my_photo.png")
    assert url == BASE + "/storage/v1/object/public/images/" + path[len("/storage/v1/object/images/"):]


def test_delete_object_accepts_public_url():
    client, sent = make_client(lambda r: httpx.Response(200, json=[]))
    name = run(client.delete_object("images", BASE + "/storage/v1/object/public/images/products/1_a.png"))
    assert name == "products/1_a.png"
    assert sent[0].method == "DELETE"
    assert json.loads(sent[0].content) == {"prefixes": ["products/1_a.png"]}


def test_object_name_and_path():
    assert object_name("products", "my  summer photo.png", now_ms=123) == "products/123_my_summer_photo.png"
    assert object_name("", "a.png", now_ms=5) == "5_a.png"
    assert object_path("images", "products/1_a.png") == "products/1_a.png"
    with pytest.raises(ValidationFailed):
        object_path("images", "https://cdn.example.com/other/1_a.png")
