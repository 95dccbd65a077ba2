from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from database import MemoryStore
from main import app, get_store
from seed import seed_catalog

CUSTOMER = {
    "customerName": "Asha Verma",
    "customerEmail": "asha.verma@gmail.com",
    "customerMobile": "9876543210",
    "customerAddress": "12 MG Road",
    "city": "Jaipur",
    "zipCode": "302001",
}

SILVER_RING = {"purchaseType": "mounted", "jewelryType": "Ring", "metalType": "Silver", "ringSize": 5}


@pytest.fixture
def store():
    s = MemoryStore()
    seed_catalog(s)
    return s


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_to_cart(client, session, product_id, selection=None):
    payload = {"productId": product_id}
    if selection is not None:
        payload["selection"] = selection
    response = client.post(f"/api/cart/{session}/items", json=payload)
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/").status_code == 200
    body = client.get("/test").json()
    assert body["backend"] == "ok"
    assert body["db"] == "memory"


def test_categories_report_product_counts(client):
    categories = {c["slug"]: c for c in client.get("/api/categories").json()}
    assert categories["rings"]["productCount"] == 2
    assert categories["rings"]["kind"] == "ring"
    assert categories["emeralds"]["productCount"] == 1


def test_category_crud(client):
    response = client.post("/api/categories", json={"name": "Anklets", "slug": "anklets"})
    assert response.status_code == 201
    category = response.json()
    assert category["kind"] == "other"
    assert client.post("/api/categories", json={"name": "Again", "slug": "anklets"}).status_code == 400

    response = client.patch(f"/api/categories/{category['id']}", json={"description": "Ankle chains"})
    assert response.json()["description"] == "Ankle chains"

    assert client.delete(f"/api/categories/{category['id']}").json() == {"ok": True}
    assert client.delete(f"/api/categories/{category['id']}").status_code == 404


def test_list_products_by_category(client):
    by_slug = client.get("/api/products", params={"categorySlug": "rings"}).json()
    by_id = client.get("/api/products", params={"categoryId": 4}).json()
    assert [p["id"] for p in by_slug] == [1, 6]
    assert by_id == by_slug
    assert client.get("/api/products", params={"categorySlug": "nope"}).json() == []
    assert len(client.get("/api/products").json()) == 12


def test_product_crud(client):
    payload = {"name": "Coral (Moonga)", "price": 900, "categoryId": 8, "subHeading": "Natural Red Coral"}
    response = client.post("/api/products", json=payload)
    assert response.status_code == 201
    product = response.json()
    assert product["subHeading"] == "Natural Red Coral"
    assert product["categoryId"] == 8

    response = client.patch(f"/api/products/{product['id']}", json={"price": 950})
    assert response.json()["price"] == 950
    assert response.json()["name"] == "Coral (Moonga)"

    assert client.delete(f"/api/products/{product['id']}").status_code == 200
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_product_with_unknown_category_rejected(client):
    response = client.post("/api/products", json={"name": "X", "price": 10, "categoryId": 99})
    assert response.status_code == 404


def test_product_patch_rejects_null_required_fields(client):
    for field in ("price", "name", "categoryId"):
        assert client.patch("/api/products/4", json={field: None}).status_code == 422

    assert client.get("/api/products/4").json()["price"] == 950
    assert client.post("/api/products/4/quote", json={}).json()["price"] == 950
    assert add_to_cart(client, "s1", 4)["items"][0]["unitPrice"] == 950


def test_product_patch_can_clear_optional_fields(client):
    product = client.patch("/api/products/1", json={"subHeading": None}).json()
    assert product["subHeading"] is None
    assert product["price"] == 2500


def test_category_patch_rejects_null_kind(client):
    for field in ("kind", "slug", "name"):
        assert client.patch("/api/categories/4", json={field: None}).status_code == 422

    assert client.get("/api/categories").status_code == 200
    assert client.post("/api/products/1/quote", json={"ringSize": 6}).json()["price"] == pytest.approx(2550)


def test_category_patch_rejects_taken_slug(client):
    assert client.patch("/api/categories/5", json={"slug": "rings"}).status_code == 400
    assert client.patch("/api/categories/4", json={"slug": "rings"}).status_code == 200

    rings = client.get("/api/products", params={"categorySlug": "rings"}).json()
    assert [p["id"] for p in rings] == [1, 6]


def test_quote_ring_size(client):
    quote = client.post("/api/products/1/quote", json={"ringSize": 15}).json()
    assert quote["basePrice"] == 2500
    assert quote["price"] == pytest.approx(2500 * 1.02 ** 10)
    assert quote["displayPrice"] == round(2500 * 1.02 ** 10 * 83.5, 2)
    assert quote["customization"] == "Size: 15"


def test_quote_mounted_gemstone(client):
    quote = client.post("/api/products/9/quote", json=SILVER_RING).json()
    assert quote["price"] == 2500
    assert quote["customization"] == "Mounted in Ring (Silver), Size: 5"


def test_quote_rejects_bad_ring_size(client):
    assert client.post("/api/products/1/quote", json={"ringSize": 31}).status_code == 422
    assert client.post("/api/products/1/quote", json={"metalType": "Bronze"}).status_code == 422


def test_quote_unknown_product(client):
    assert client.post("/api/products/404/quote", json={}).status_code == 404


def test_cart_merges_identical_configuration(client):
    add_to_cart(client, "s1", 9, SILVER_RING)
    cart = add_to_cart(client, "s1", 9, SILVER_RING)

    assert len(cart["items"]) == 1
    item = cart["items"][0]
    assert item["quantity"] == 2
    assert item["unitPrice"] == 2500
    assert item["product"]["name"] == "Emerald (Panna)"
    assert cart["itemCount"] == 2
    assert cart["total"] == 5000
    assert cart["displayTotal"] == 5000 * 83.5


def test_cart_keeps_distinct_configurations(client):
    add_to_cart(client, "s1", 9, SILVER_RING)
    cart = add_to_cart(client, "s1", 9, {**SILVER_RING, "metalType": "14K Gold – Yellow"})

    assert len(cart["items"]) == 2
    assert [it["unitPrice"] for it in cart["items"]] == [2500, 2700]


def test_stale_selection_does_not_split_lines(client):
    add_to_cart(client, "s1", 2)
    cart = add_to_cart(client, "s1", 2, {"purchaseType": "mounted", "metalType": "Silver", "ringSize": 9})
    assert len(cart["items"]) == 1
    assert cart["items"][0]["unitPrice"] == 1800


def test_cart_update_and_remove(client):
    cart = add_to_cart(client, "s1", 1, {"ringSize": 7})
    add_to_cart(client, "s1", 4)
    key = quote(cart["items"][0]["key"], safe="")

    cart = client.patch(f"/api/cart/s1/items/{key}", json={"quantity": 3}).json()
    assert cart["items"][0]["quantity"] == 3

    cart = client.patch(f"/api/cart/s1/items/{key}", json={"quantity": 0}).json()
    assert [it["productId"] for it in cart["items"]] == [4]

    cart = client.delete(f"/api/cart/s1/items/{quote(cart['items'][0]['key'], safe='')}").json()
    assert cart["items"] == []
    assert cart["total"] == 0


def test_carts_are_per_session(client):
    add_to_cart(client, "alice", 1)
    assert client.get("/api/cart/bob").json()["items"] == []
    assert len(client.get("/api/cart/alice").json()["items"]) == 1
    assert client.delete("/api/cart/alice").json()["items"] == []


def test_cart_price_is_frozen_at_add_time(client):
    add_to_cart(client, "s1", 4)
    client.patch("/api/products/4", json={"price": 5000})
    cart = add_to_cart(client, "s1", 4)
    assert cart["items"][0]["unitPrice"] == 950
    assert cart["items"][0]["quantity"] == 2


def test_wishlist(client):
    client.post("/api/wishlist/s1/items", json={"productId": 3})
    wishlist = client.post("/api/wishlist/s1/items", json={"productId": 3}).json()
    assert [e["productId"] for e in wishlist["items"]] == [3]
    assert wishlist["items"][0]["price"] == 1250

    wishlist = client.delete("/api/wishlist/s1/items/3").json()
    assert wishlist["items"] == []
    assert client.post("/api/wishlist/s1/items", json={"productId": 77}).status_code == 404


def test_checkout_creates_order_and_clears_cart(client):
    add_to_cart(client, "s1", 9, SILVER_RING)
    add_to_cart(client, "s1", 9, SILVER_RING)
    add_to_cart(client, "s1", 4)

    response = client.post(
        "/api/checkout",
        json={**CUSTOMER, "sessionId": "s1", "paymentReceipt": "https://cdn.example.org/r/1.png"},
    )
    assert response.status_code == 201
    order = response.json()
    assert order["status"] == "pending"
    assert order["totalAmount"] == 5950
    assert order["paymentReceipt"] == "https://cdn.example.org/r/1.png"
    assert [(it["productId"], it["quantity"]) for it in order["orderItems"]] == [(9, 2), (4, 1)]
    assert order["orderItems"][0]["customization"] == "Mounted in Ring (Silver), Size: 5"

    assert client.get("/api/cart/s1").json()["items"] == []
    assert client.post("/api/checkout", json={**CUSTOMER, "sessionId": "s1"}).status_code == 400


def test_orders(client):
    payload = {
        **CUSTOMER,
        "totalAmount": 1250,
        "orderItems": [{"productId": 3, "name": "Emerald Stud Earrings", "quantity": 1, "price": 1250}],
    }
    first = client.post("/api/orders", json=payload).json()
    second = client.post("/api/orders", json=payload).json()
    assert [o["id"] for o in client.get("/api/orders").json()] == [second["id"], first["id"]]

    updated = client.patch(f"/api/orders/{first['id']}", json={"status": "paid"}).json()
    assert updated["status"] == "paid"
    assert client.patch("/api/orders/999", json={"status": "paid"}).status_code == 404
    assert client.patch(f"/api/orders/{first['id']}", json={"status": "lost"}).status_code == 422


def test_order_requires_items_and_contact(client):
    assert client.post("/api/orders", json={**CUSTOMER, "totalAmount": 10, "orderItems": []}).status_code == 422
    assert client.post("/api/orders", json={"totalAmount": 10}).status_code == 422


def test_inquiries(client):
    payload = {"name": "Ravi", "mobile": "9000000000", "message": "Is this certified?", "productId": 9}
    created = client.post("/api/inquiries", json=payload)
    assert created.status_code == 201
    inquiry = created.json()
    assert inquiry["status"] == "new"

    resolved = client.patch(f"/api/inquiries/{inquiry['id']}", json={"status": "resolved"}).json()
    assert resolved["status"] == "resolved"
    assert len(client.get("/api/inquiries").json()) == 1

    assert client.delete(f"/api/inquiries/{inquiry['id']}").json() == {"ok": True}
    assert client.get("/api/inquiries").json() == []


def test_bank_details(client):
    assert client.get("/api/bank-details").json() is None

    payload = {
        "accountHolder": "Lumera Gems",
        "bankName": "State Bank",
        "accountNumber": "0001112223",
        "ifscCode": "SBIN0000001",
        "accountType": "Current Account",
        "upiId": "lumera@sbi",
        "qrImageUrl": "/assets/images/bank_qr.png",
        "gstNumber": "08ABCDE1234F1Z5",
    }
    saved = client.put("/api/bank-details", json=payload).json()
    assert saved["gstDetails"] == "08ABCDE1234F1Z5"
    assert "gstNumber" not in saved

    client.put("/api/bank-details", json={**payload, "bankName": "Other Bank"})
    fetched = client.get("/api/bank-details").json()
    assert fetched["bankName"] == "Other Bank"
    assert fetched["ifscCode"] == "SBIN0000001"
