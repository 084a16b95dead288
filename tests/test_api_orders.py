from tests.conftest import API, SHIPPING


def order_body(product_id, quantity=3, price=10.00, items=30.00, tax=4.50, shipping=10.00, total=44.50):
    return {
        "orderItems": [{"product": product_id, "quantity": quantity, "price": price}],
        "shippingInfo": SHIPPING,
        "paymentMethod": "PayPal",
        "itemsPrice": items,
        "taxPrice": tax,
        "shippingPrice": shipping,
        "totalPrice": total,
    }


def place(client, headers, product_id, **kwargs):
    resp = client.post(f"{API}/orders", json=order_body(product_id, **kwargs), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_checkout_from_cart(client, alice, make_product, stock_of):
    pid = make_product(name="Lamp", price="10.00", stock=5)
    client.post(f"{API}/cart/items", json={"productId": pid, "quantity": 3}, headers=alice)

    resp = client.post(f"{API}/orders", json=order_body(pid), headers=alice)

    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["orderNumber"] == "ORD-000001"
    assert order["totalPrice"] == 44.5
    assert order["orderStatus"] == "Processing"
    assert order["shippingInfo"]["postalCode"] == "62701"
    assert order["trackingUpdates"][0]["status"] == "Order Placed"
    assert stock_of(pid) == 2
    assert client.get(f"{API}/cart", headers=alice).json()["data"]["items"] == []


def test_checkout_price_mismatch(client, alice, make_product, stock_of):
    pid = make_product(price="10.00", stock=5)
    client.post(f"{API}/cart/items", json={"productId": pid, "quantity": 3}, headers=alice)

    resp = client.post(f"{API}/orders", json=order_body(pid, items=25.00, total=39.50), headers=alice)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Cart items have been updated"}
    assert stock_of(pid) == 5
    assert len(client.get(f"{API}/cart", headers=alice).json()["data"]["items"]) == 1


def test_checkout_accepts_shipping_address_alias(client, alice, make_product):
    pid = make_product(price="10.00", stock=5)
    body = order_body(pid)
    body["shippingAddress"] = body.pop("shippingInfo")
    resp = client.post(f"{API}/orders", json=body, headers=alice)
    assert resp.status_code == 201


def test_checkout_validation_error(client, alice):
    resp = client.post(f"{API}/orders", json={"orderItems": []}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_checkout_while_locked(client, alice, lock_service, make_product):
    pid = make_product(stock=5)
    lock_service.acquire_checkout_lock("alice", 30)
    resp = client.post(f"{API}/orders", json=order_body(pid), headers=alice)
    assert resp.status_code == 409


def test_order_read_permissions(client, alice, bob, admin, make_product):
    pid = make_product(stock=5)
    order = place(client, alice, pid)

    assert client.get(f"{API}/orders/{order['id']}", headers=alice).status_code == 200
    assert client.get(f"{API}/orders/{order['id']}", headers=admin).status_code == 200
    assert client.get(f"{API}/orders/{order['id']}", headers=bob).status_code == 401
    assert client.get(f"{API}/orders/9999", headers=alice).status_code == 404


def test_pay_without_body(client, alice, make_product):
    pid = make_product(stock=5)
    order = place(client, alice, pid)

    resp = client.put(f"{API}/orders/{order['id']}/pay", headers=alice)

    assert resp.status_code == 200
    paid = resp.json()["data"]
    assert paid["isPaid"] is True
    assert paid["paymentInfo"]["status"] == "COMPLETED"
    assert [t["status"] for t in paid["trackingUpdates"]] == ["Processing", "Order Placed"]


def test_pay_with_provider_result(client, alice, make_product):
    pid = make_product(stock=5)
    order = place(client, alice, pid)
    result = {"id": "PAY-9", "status": "COMPLETED", "update_time": "2026-02-01T10:00:00Z", "email_address": "p@x.io"}

    paid = client.put(f"{API}/orders/{order['id']}/pay", json=result, headers=alice).json()["data"]

    assert paid["paymentInfo"] == result


def test_deliver_and_status(client, alice, admin, make_product):
    pid = make_product(stock=5)
    order = place(client, alice, pid)

    assert client.put(f"{API}/orders/{order['id']}/deliver", headers=alice).status_code == 403

    resp = client.put(
        f"{API}/orders/{order['id']}/status",
        json={"status": "Shipped", "trackingNumber": "1Z999", "details": "Left the warehouse"},
        headers=admin,
    )
    shipped = resp.json()["data"]
    assert shipped["orderStatus"] == "Shipped"
    assert shipped["trackingNumber"] == "1Z999"
    assert shipped["trackingUpdates"][0]["details"] == "Left the warehouse"

    delivered = client.put(f"{API}/orders/{order['id']}/deliver", headers=admin).json()["data"]
    assert delivered["isDelivered"] is True
    assert [t["status"] for t in delivered["trackingUpdates"]] == ["Delivered", "Shipped", "Order Placed"]


def test_unknown_status_rejected(client, alice, admin, make_product):
    pid = make_product(stock=5)
    order = place(client, alice, pid)
    resp = client.put(f"{API}/orders/{order['id']}/status", json={"status": "Lost"}, headers=admin)
    assert resp.status_code == 400


def test_order_lists(client, alice, bob, admin, make_product):
    pid = make_product(stock=10)
    place(client, alice, pid, quantity=1, items=10.00, tax=1.50, total=21.50)
    place(client, bob, pid, quantity=1, items=10.00, tax=1.50, total=21.50)

    mine = client.get(f"{API}/orders/myorders", headers=alice).json()
    assert mine["count"] == 1
    assert mine["data"][0]["user"] == "alice"

    assert client.get(f"{API}/orders", headers=alice).status_code == 403
    assert client.get(f"{API}/orders", headers=admin).json()["count"] == 2


def test_stats_and_monthly_sales(client, alice, admin, make_product):
    assert client.get(f"{API}/orders/stats", headers=admin).json() == {"success": True, "data": {}}

    pid = make_product(stock=10)
    order = place(client, alice, pid)
    client.put(f"{API}/orders/{order['id']}/pay", headers=alice)

    stats = client.get(f"{API}/orders/stats", headers=admin).json()["data"]
    assert stats["totalOrders"] == 1
    assert stats["totalSales"] == 44.5

    sales = client.get(f"{API}/orders/monthly-sales", headers=admin).json()["data"]
    assert sales[0]["numOrders"] == 1
    assert sales[0]["totalSales"] == 44.5

    assert client.get(f"{API}/orders/stats", headers=alice).status_code == 403
