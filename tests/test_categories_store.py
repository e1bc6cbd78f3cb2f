# tests/test_categories_store.py
import pytest

from conftest import ADMIN, add_category, add_product, run
from storefront.categories import build_tree
from storefront.errors import ValidationFailed
from storefront.models import Category, CategoryIn, CategoryPatch


def test_build_tree_groups_children_under_parents():
    flat = [
        Category(id="c1", name="Fruit", slug="fruit"),
        Category(id="c2", name="Berries", slug="berries", parent_category_id="c1"),
        Category(id="c3", name="Greens", slug="greens"),
    ]
    tree = build_tree(flat)
    assert [n.slug for n in tree] == ["fruit", "greens"]
    assert [s.slug for s in tree[0].subcategories] == ["berries"]
    assert tree[1].subcategories == []


def test_tree_endpoint(client, memory):
    fruit = add_category(memory, "fruit")
    add_category(memory, "berries", parent_category_id=fruit["id"])
    add_category(memory, "apples", parent_category_id=fruit["id"])

    tree = client.get("/api/categories/tree").json()
    assert [n["slug"] for n in tree] == ["fruit"]
    assert [s["slug"] for s in tree[0]["subcategories"]] == ["apples", "berries"]
    assert [c["slug"] for c in client.get("/api/categories").json()] == ["apples", "berries", "fruit"]


def test_categories_are_two_levels(sf, memory):
    fruit = add_category(memory, "fruit")
    berries = add_category(memory, "berries", parent_category_id=fruit["id"])

    with pytest.raises(ValidationFailed):
        run(sf.categories.create(CategoryIn(name="Blue", slug="blue", parent_category_id=berries["id"])))
    with pytest.raises(ValidationFailed):
        run(sf.categories.create(CategoryIn(name="Lost", slug="lost", parent_category_id="missing")))
    with pytest.raises(ValidationFailed):
        run(sf.categories.update(fruit["id"], CategoryPatch(parent_category_id=fruit["id"])))

    veg = add_category(memory, "veg")
    with pytest.raises(ValidationFailed):
        # fruit has children, so it cannot become a subcategory
        run(sf.categories.update(fruit["id"], CategoryPatch(parent_category_id=veg["id"])))


def test_admin_category_crud(client, memory):
    r = client.post("/api/admin/categories", json={"name": "Dairy", "slug": "dairy"}, headers=ADMIN)
    assert r.status_code == 201
    cat = r.json()

    r = client.patch(f"/api/admin/categories/{cat['id']}", json={"description": "Milk and cheese"}, headers=ADMIN)
    assert r.json()["description"] == "Milk and cheese"
    assert client.get("/api/categories/dairy").json()["description"] == "Milk and cheese"

    assert client.delete(f"/api/admin/categories/{cat['id']}", headers=ADMIN).json() == {"deleted": cat["id"]}
    assert client.get("/api/categories/dairy").status_code == 404


def test_category_rename_reaches_product_details(client, memory):
    greens = add_category(memory, "greens")
    add_product(memory, "kale", greens["id"])
    assert client.get("/api/products/kale").json()["category"]["name"] == "Greens"
    client.patch(f"/api/admin/categories/{greens['id']}", json={"name": "Leafy Greens"}, headers=ADMIN)
    assert client.get("/api/products/kale").json()["category"]["name"] == "Leafy Greens"


def test_category_products(client, memory):
    greens = add_category(memory, "greens")
    add_product(memory, "kale", greens["id"])
    add_product(memory, "rice")
    body = client.get("/api/categories/greens/products").json()
    assert [p["slug"] for p in body["items"]] == ["kale"]
    assert client.get("/api/categories/nope/products").status_code == 404


# ---------------------------
# Store settings
# ---------------------------
def test_store_is_created_once_then_updated(client, memory):
    assert client.get("/api/store").status_code == 404

    r = client.put("/api/admin/store", json={"name": "Organic", "tax_rate": 5}, headers=ADMIN)
    assert r.status_code == 200
    first = r.json()

    r = client.put("/api/admin/store", json={"tagline": "Fresh food"}, headers=ADMIN)
    assert r.json()["id"] == first["id"]
    assert run(memory.count("store")) == 1

    store = client.get("/api/store").json()
    assert store["name"] == "Organic"
    assert store["tagline"] == "Fresh food"


def test_footer_settings(client):
    client.put("/api/admin/store", json={"name": "Organic"}, headers=ADMIN)
    footer = {
        "contact_email": "hello@example.com",
        "social_links": {"instagram": "https://instagram.com/organic"},
        "footer_links": [{"title": "Shipping", "url": "/shipping", "category": "help"}],
        "newsletter_enabled": True,
    }
    r = client.put("/api/admin/store/footer", json=footer, headers=ADMIN)
    assert r.status_code == 200
    store = client.get("/api/store").json()
    assert store["footer_links"][0]["title"] == "Shipping"
    assert store["newsletter_enabled"] is True


def test_store_update_by_id(client):
    store = client.put("/api/admin/store", json={"name": "Organic"}, headers=ADMIN).json()
    client.get("/api/store")

    r = client.patch(f"/api/admin/store/{store['id']}", json={"tagline": "Picked this morning"}, headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["name"] == "Organic"
    assert client.get("/api/store").json()["tagline"] == "Picked this morning"

    assert client.patch(f"/api/admin/store/{store['id']}", json={}, headers=ADMIN).status_code == 400
    assert client.patch("/api/admin/store/missing", json={"name": "X"}, headers=ADMIN).status_code == 404
    assert client.patch(f"/api/admin/store/{store['id']}", json={"name": "X"}).status_code == 401


def test_store_tax_rate_applies_at_checkout(client, memory):
    client.put("/api/admin/store", json={"name": "Organic", "tax_rate": 10}, headers=ADMIN)
    kale = add_product(memory, "kale", price=20.0)
    client.post("/api/cart/add", json={"product_id": kale["id"]}, headers=ADMIN)
    order = client.post("/api/orders/checkout", json={}, headers=ADMIN).json()
    assert order["tax_amount"] == 2.0
    assert order["total_amount"] == 22.0


# ---------------------------
# Images
# ---------------------------
def test_image_upload_list_and_delete(client, memory):
    files = {"file": ("kale photo.png", b"\x89PNG\r\n", "image/png")}
    r = client.post("/api/admin/images", files=files, data={"path": "products"}, headers=ADMIN)
    assert r.status_code == 201
    url = r.json()["url"]
    assert "/images/products/" in url
    assert url.endswith("_kale_photo.png")

    assert client.get("/api/admin/images", headers=ADMIN).json() == {"urls": [url]}

    r = client.post("/api/admin/images/delete", json={"url": url}, headers=ADMIN)
    assert r.status_code == 200
    assert memory.objects == {}


def test_non_image_upload_is_rejected(client, memory):
    files = {"file": ("notes.txt", b"hello", "text/plain")}
    r = client.post("/api/admin/images", files=files, headers=ADMIN)
    assert r.status_code == 400
    assert "file" in r.json()["errors"]
    assert memory.objects == {}
