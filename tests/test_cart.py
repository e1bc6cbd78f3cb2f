# tests/test_cart.py
from conftest import ADMIN, add_product, auth, run

SHOPPER = auth("user_shopper", email="shopper@example.com", first_name="Sam", last_name="Shopper")


def test_me_creates_profile_from_claims(client, memory):
    r = client.get("/api/me", headers=SHOPPER)
    assert r.status_code == 200
    body = r.json()
    assert body["clerk_id"] == "user_shopper"
    assert body["name"] == "Sam Shopper"
    assert body["role"] == "user"
    # second call reuses the row
    client.get("/api/me", headers=SHOPPER)
    assert run(memory.count("users")) == 1


def test_cart_requires_session(client):
    assert client.get("/api/cart").status_code == 401


def test_adding_same_product_sums_quantities(client, memory):
    product = add_product(memory, "kale", price=4.0)
    client.post("/api/cart/add", json={"product_id": product["id"], "quantity": 2}, headers=SHOPPER)
    r = client.post("/api/cart/add", json={"product_id": product["id"], "quantity": 3}, headers=SHOPPER)
    assert r.status_code == 200
    cart = r.json()
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 5
    assert cart["item_count"] == 5
    assert cart["total"] == 20.0

    assert client.get("/api/cart", headers=SHOPPER).json()["items"][0]["quantity"] == 5


def test_cart_keeps_price_snapshot(client, memory):
    product = add_product(memory, "kale", price=4.0)
    client.post("/api/cart/add", json={"product_id": product["id"]}, headers=SHOPPER)
    client.patch(f"/api/admin/products/{product['id']}", json={"price": 9.0}, headers=ADMIN)
    item = client.get("/api/cart", headers=SHOPPER).json()["items"][0]
    assert item["final_price"] == 4.0


def test_unpublished_products_cannot_be_added(client, memory):
    draft = add_product(memory, "draft", is_published=False)
    r = client.post("/api/cart/add", json={"product_id": draft["id"]}, headers=SHOPPER)
    assert r.status_code == 404


def test_remove_partial_full_and_absent(client, memory):
    kale = add_product(memory, "kale")
    rice = add_product(memory, "rice")
    client.post("/api/cart/add", json={"product_id": kale["id"], "quantity": 3}, headers=SHOPPER)
    client.post("/api/cart/add", json={"product_id": rice["id"]}, headers=SHOPPER)

    cart = client.post("/api/cart/remove", json={"product_id": kale["id"], "quantity": 1}, headers=SHOPPER).json()
    assert {i["id"]: i["quantity"] for i in cart["items"]} == {kale["id"]: 2, rice["id"]: 1}

    cart = client.post("/api/cart/remove", json={"product_id": kale["id"]}, headers=SHOPPER).json()
    assert [i["id"] for i in cart["items"]] == [rice["id"]]

    cart = client.post("/api/cart/remove", json={"product_id": "not-in-cart"}, headers=SHOPPER).json()
    assert [i["id"] for i in cart["items"]] == [rice["id"]]

    cart = client.delete("/api/cart", headers=SHOPPER).json()
    assert cart["items"] == []
    assert cart["total"] == 0


def test_wishlist_has_no_duplicates(client, memory):
    kale = add_product(memory, "kale")
    client.post("/api/wishlist/add", json={"product_id": kale["id"]}, headers=SHOPPER)
    r = client.post("/api/wishlist/add", json={"product_id": kale["id"]}, headers=SHOPPER)
    assert r.json() == {"wishlist_products": [kale["id"]]}

    listed = client.get("/api/wishlist", headers=SHOPPER).json()
    assert [p["slug"] for p in listed] == ["kale"]

    r = client.post("/api/wishlist/remove", json={"product_id": kale["id"]}, headers=SHOPPER)
    assert r.json() == {"wishlist_products": []}
    assert client.get("/api/wishlist", headers=SHOPPER).json() == []


def test_wishlist_rejects_unknown_product(client):
    r = client.post("/api/wishlist/add", json={"product_id": "ghost"}, headers=SHOPPER)
    assert r.status_code == 404


def test_profile_update(client):
    client.get("/api/me", headers=SHOPPER)
    r = client.patch("/api/me", json={"first_name": "Samuel", "phone": "555-0100"}, headers=SHOPPER)
    assert r.status_code == 200
    assert r.json()["first_name"] == "Samuel"
    assert client.get("/api/me", headers=SHOPPER).json()["phone"] == "555-0100"

    assert client.patch("/api/me", json={}, headers=SHOPPER).status_code == 400


def test_profile_update_cannot_change_role(client):
    r = client.patch("/api/me", json={"role": "admin"}, headers=SHOPPER)
    assert r.status_code == 422
    assert client.get("/api/me/role", headers=SHOPPER).json() == {"role": "user", "is_admin": False}
