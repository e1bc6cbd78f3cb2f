# tests/test_query.py
import pytest

from conftest import add_product, run
from storefront.errors import NotFound, RemoteError
from storefront.query import Query, page_window, query_from_filters, total_pages


@pytest.mark.parametrize(
    "page,per_page,window",
    [(1, 10, (0, 9)), (2, 10, (10, 19)), (3, 12, (24, 35)), (1, 1, (0, 0))],
)
def test_page_window(page, per_page, window):
    assert page_window(page, per_page) == window


@pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0), (-1, 5)])
def test_page_window_rejects_non_positive(page, per_page):
    with pytest.raises(ValueError):
        page_window(page, per_page)


@pytest.mark.parametrize("count,per_page,pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 12, 3)])
def test_total_pages(count, per_page, pages):
    assert total_pages(count, per_page) == pages


def test_query_from_filters_skips_unset_values():
    q = query_from_filters({
        "category_id": "c1",
        "trending": None,
        "sku": "",
        "id": ["a", "b"],
        "final_price": {"gte": 5, "lte": None},
    })
    assert [(f.column, f.op, f.value) for f in q.filters] == [
        ("category_id", "eq", "c1"),
        ("id", "in", ["a", "b"]),
        ("final_price", "gte", 5),
    ]


def test_where_only_accepts_range_operators():
    with pytest.raises(ValueError):
        Query().where("price", "like", 3)


def test_range_is_inclusive():
    q = Query().range(10, 19)
    assert (q.offset, q.limit) == (10, 10)


# ---------------------------
# In-memory backend semantics
# ---------------------------
def test_memory_window_and_count(memory):
    for i in range(25):
        add_product(memory, f"item-{i}")
    result = run(memory.select("products", Query().order_by("created_at", desc=True).range(20, 29).with_count()))
    assert result.count == 25
    assert [r["slug"] for r in result.rows] == [f"item-{i}" for i in range(4, -1, -1)]

    past_end = run(memory.select("products", Query().range(30, 39).with_count()))
    assert past_end.rows == []
    assert past_end.count == 25


def test_memory_nulls_sort_first_when_descending(memory):
    add_product(memory, "priced", price=5.0)
    add_product(memory, "unpriced", price=None)
    rows = run(memory.select("products", Query().order_by("price", desc=True))).rows
    assert [r["slug"] for r in rows] == ["unpriced", "priced"]


def test_memory_search_is_case_insensitive_across_columns(memory):
    add_product(memory, "kale", details="ORGANIC curly kale")
    add_product(memory, "organic-apples")
    add_product(memory, "rice")
    rows = run(memory.select("products", Query().ilike_any(("name", "details"), "organic"))).rows
    assert sorted(r["slug"] for r in rows) == ["kale", "organic-apples"]


def test_memory_rejects_writes_to_generated_columns(memory):
    with pytest.raises(RemoteError) as exc:
        run(memory.insert("products", {"name": "x", "slug": "x", "price": 3, "final_price": 1}))
    assert exc.value.status == 400


def test_memory_enforces_unique_slug(memory):
    add_product(memory, "kale")
    other = add_product(memory, "spinach")
    with pytest.raises(RemoteError) as exc:
        add_product(memory, "kale")
    assert exc.value.status == 409
    with pytest.raises(RemoteError):
        run(memory.update("products", "id", other["id"], {"slug": "kale"}))
    assert run(memory.get_one("products", "id", other["id"]))["slug"] == "spinach"


def test_memory_derives_final_price(memory):
    row = add_product(memory, "oil", price=20.0, discount=25)
    assert row["final_price"] == 15.0
    updated = run(memory.update("products", "id", row["id"], {"discount": 50}))[0]
    assert updated["final_price"] == 10.0


def test_get_one_raises_not_found(memory):
    with pytest.raises(NotFound):
        run(memory.get_one("products", "slug", "nope"))


def test_memory_upsert_merges_on_conflict(memory):
    run(memory.upsert("users", {"clerk_id": "u1", "email": "a@example.com"}, on_conflict="clerk_id"))
    run(memory.upsert("users", {"clerk_id": "u1", "first_name": "Ada"}, on_conflict="clerk_id"))
    rows = run(memory.select("users")).rows
    assert len(rows) == 1
    assert rows[0]["email"] == "a@example.com"
    assert rows[0]["first_name"] == "Ada"
