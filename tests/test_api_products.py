from tests.conftest import API

NEW_PRODUCT = {
    "name": "Desk Lamp",
    "description": "Adjustable LED lamp",
    "price": 24.99,
    "category": "Home & Kitchen",
    "stock": 7,
    "images": [{"url": "https://img.test/lamp.png", "alt": "lamp"}],
}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_unknown_route(client):
    resp = client.get(f"{API}/nothing-here")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_create_product_admin_only(client, alice, admin):
    assert client.post(f"{API}/products", json=NEW_PRODUCT, headers=alice).status_code == 403

    resp = client.post(f"{API}/products", json=NEW_PRODUCT, headers=admin)

    assert resp.status_code == 201
    product = resp.json()["data"]
    assert product["price"] == 24.99
    assert product["seller"] == "admin-1"
    assert product["images"][0]["url"] == "https://img.test/lamp.png"


def test_create_product_bad_category(client, admin):
    resp = client.post(f"{API}/products", json={**NEW_PRODUCT, "category": "Spaceships"}, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Please select a valid category"


def test_create_product_negative_stock(client, admin):
    resp = client.post(f"{API}/products", json={**NEW_PRODUCT, "stock": -1}, headers=admin)
    assert resp.status_code == 400


def test_list_filters_and_pagination(client, make_product):
    make_product(name="Cheap Phone", price="50.00", category="Electronics")
    make_product(name="Pricey Phone", price="900.00", category="Electronics")
    make_product(name="Novel", price="15.00", category="Books")

    body = client.get(f"{API}/products", params={"category": "Electronics"}).json()
    assert body["total"] == 2

    body = client.get(f"{API}/products", params={"minPrice": 20, "maxPrice": 100}).json()
    assert [p["name"] for p in body["data"]] == ["Cheap Phone"]

    body = client.get(f"{API}/products", params={"keyword": "phone", "sort": "price"}).json()
    assert [p["name"] for p in body["data"]] == ["Cheap Phone", "Pricey Phone"]

    body = client.get(f"{API}/products", params={"limit": 2, "sort": "name"}).json()
    assert body["count"] == 2
    assert body["pagination"]["next"] == {"page": 2, "limit": 2}
    assert body["pagination"].get("prev") is None

    body = client.get(f"{API}/products", params={"limit": 2, "page": 2, "sort": "name"}).json()
    assert [p["name"] for p in body["data"]] == ["Pricey Phone"]
    assert body["pagination"]["prev"] == {"page": 1, "limit": 2}


def test_get_update_delete(client, admin, make_product):
    pid = make_product(name="Old", seller="admin-1")

    assert client.get(f"{API}/products/{pid}").json()["data"]["name"] == "Old"

    resp = client.put(f"{API}/products/{pid}", json={"name": "New", "stock": 3}, headers=admin)
    assert resp.json()["data"]["name"] == "New"
    assert resp.json()["data"]["stock"] == 3

    assert client.delete(f"{API}/products/{pid}", headers=admin).json() == {"success": True, "data": {}}
    assert client.get(f"{API}/products/{pid}").status_code == 404


def test_deleted_product_stays_in_cart_snapshot(client, alice, admin, make_product):
    pid = make_product(name="Gone", price="3.00")
    client.post(f"{API}/cart/items", json={"productId": pid}, headers=alice)
    client.delete(f"{API}/products/{pid}", headers=admin)

    [item] = client.get(f"{API}/cart", headers=alice).json()["data"]["items"]
    assert item["name"] == "Gone"
    assert item["product"] is None


def test_reviews_update_rating(client, alice, bob, make_product):
    pid = make_product()

    resp = client.post(f"{API}/products/{pid}/reviews", json={"rating": 5, "comment": "Great"}, headers=alice)
    assert resp.status_code == 201
    client.post(f"{API}/products/{pid}/reviews", json={"rating": 2, "comment": "Meh"}, headers=bob)

    product = client.get(f"{API}/products/{pid}").json()["data"]
    assert product["numReviews"] == 2
    assert product["ratings"] == 3.5
    assert {r["user"] for r in product["reviews"]} == {"alice", "bob"}

    again = client.post(f"{API}/products/{pid}/reviews", json={"rating": 1, "comment": "Again"}, headers=alice)
    assert again.status_code == 400


def test_top_products(client, alice, make_product):
    low = make_product(name="Low")
    high = make_product(name="High")
    client.post(f"{API}/products/{low}/reviews", json={"rating": 2, "comment": "ok"}, headers=alice)
    client.post(f"{API}/products/{high}/reviews", json={"rating": 5, "comment": "wow"}, headers=alice)

    top = client.get(f"{API}/products/top").json()["data"]
    assert [p["name"] for p in top][:2] == ["High", "Low"]


def test_product_photo_upload(client, admin, blob_store, make_product):
    pid = make_product(name="Camera", seller="admin-1")

    resp = client.put(
        f"{API}/products/{pid}/photo",
        files={"file": ("cam.png", b"\x89PNG fake", "image/png")},
        headers=admin,
    )

    assert resp.status_code == 200
    images = resp.json()["data"]["images"]
    assert images[-1]["url"].startswith("https://blobs.test/")
    assert len(blob_store.objects) == 1


def test_product_photo_must_be_image(client, admin, make_product):
    pid = make_product(seller="admin-1")
    resp = client.put(
        f"{API}/products/{pid}/photo",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Please upload an image file"


def test_upload_and_fetch_file(client, alice, blob_store):
    resp = client.post(
        f"{API}/upload",
        files={"file": ("pic.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=alice,
    )
    assert resp.status_code == 200
    key = resp.json()["data"]["key"]

    fetched = client.get(f"{API}/files/{key}")
    assert fetched.status_code == 200
    assert fetched.content == b"jpeg-bytes"
    assert fetched.headers["content-type"] == "image/jpeg"


def test_upload_requires_auth(client):
    resp = client.post(f"{API}/upload", files={"file": ("pic.jpg", b"x", "image/jpeg")})
    assert resp.status_code == 401


def test_missing_file(client):
    resp = client.get(f"{API}/files/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"] == "File not found"


def test_deleting_product_removes_uploaded_photos(client, admin, blob_store, make_product):
    pid = make_product(name="Camera", seller="admin-1", image="https://img.test/plain.png")
    client.put(
        f"{API}/products/{pid}/photo",
        files={"file": ("cam.png", b"\x89PNG fake", "image/png")},
        headers=admin,
    )
    assert len(blob_store.objects) == 1

    assert client.delete(f"{API}/products/{pid}", headers=admin).status_code == 200
    assert blob_store.objects == {}
