from decimal import Decimal

from sqlalchemy.exc import OperationalError

from shopsathi import config, models, orders


def shirt_order(product_id, quantity=3, discount=50):
    return {
        "customerName": "Meena",
        "discount": discount,
        "items": [{"id": product_id, "name": "Shirt", "price": 200, "quantity": quantity}],
    }


def test_order_scenario(client, make_product):
    product = make_product()
    response = client.post("/api/orders", json=shirt_order(product["id"]))
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    order_id = body["orderId"]

    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 7

    order = client.get(f"/api/orders/{order_id}").json()
    assert order["customerName"] == "Meena"
    assert order["totalAmount"] == 600
    assert order["discount"] == 50
    assert order["finalAmount"] == 550
    assert order["items"] == [
        {"product_id": product["id"], "product_name": "Shirt", "quantity": 3, "price": 200},
    ]


def test_items_required(client):
    for body in ({"items": []}, {"customerName": "Meena"}):
        response = client.post("/api/orders", json=body)
        assert response.status_code == 400
        assert response.json() == {"message": "Items required"}


def test_discount_defaults_to_zero(client, make_product):
    product = make_product()
    order_id = client.post("/api/orders", json={"items": [{"productId": product["id"], "productName": "Shirt", "price": 200, "quantity": 1}]}).json()["orderId"]
    order = client.get(f"/api/orders/{order_id}").json()
    assert order["discount"] == 0
    assert order["finalAmount"] == order["totalAmount"] == 200


def test_discount_larger_than_total_gives_negative_final(client):
    response = client.post("/api/orders", json={"discount": 30, "items": [{"name": "Button", "price": 5, "quantity": 2}]})
    order = client.get(f"/api/orders/{response.json()['orderId']}").json()
    assert order["finalAmount"] == -20


def test_arithmetic_keeps_cents(db):
    request = orders.schemas.OrderCreate(
        discount="0.30",
        items=[{"name": "Thread", "price": "19.99", "quantity": 3}, {"name": "Needle", "price": "0.10", "quantity": 7}],
    )
    total, final = orders.order_totals(request.items, request.discount)
    assert total == Decimal("60.67")
    assert final == Decimal("60.37")

    order_id = orders.create_order(db, request)["orderId"]
    stored = db.get(models.Order, order_id)
    assert stored.total_amount == sum(item.price * item.quantity for item in stored.items)
    assert stored.final_amount == stored.total_amount - stored.discount


def test_stock_may_go_negative(client, make_product):
    product = make_product(quantity=2)
    response = client.post("/api/orders", json=shirt_order(product["id"], quantity=5, discount=0))
    assert response.status_code == 201
    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == -3


def test_strict_stock_rejects_overselling(client, make_product, monkeypatch):
    monkeypatch.setattr(config, "STRICT_STOCK", True)
    product = make_product(quantity=2)
    response = client.post("/api/orders", json=shirt_order(product["id"], quantity=5))
    assert response.status_code == 400
    assert response.json()["message"].startswith("Not enough stock available")
    assert client.get("/api/orders").json() == []
    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 2


def test_invalid_quantity_is_rejected(client):
    response = client.post("/api/orders", json={"items": [{"name": "Shirt", "price": 200, "quantity": 0}]})
    assert response.status_code == 400


def test_failed_item_insert_leaves_store_unchanged(client, make_product):
    product = make_product()
    body = shirt_order(product["id"])
    # no product name: the line cannot be stored
    body["items"].append({"id": product["id"], "price": 200, "quantity": 1})

    response = client.post("/api/orders", json=body)
    assert response.status_code == 500
    assert "product_name" in response.json()["message"]
    assert client.get("/api/orders").json() == []
    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 10


def test_failed_stock_decrement_rolls_back_everything(client, db, make_product, monkeypatch):
    shirt = make_product()
    jeans = make_product(name="Jeans", quantity=5)
    real_decrement = orders.decrement_stock
    calls = []

    def flaky_decrement(session, line, owner_id, strict=False):
        calls.append(line.product_id)
        if len(calls) == 2:
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))
        return real_decrement(session, line, owner_id, strict=strict)

    monkeypatch.setattr(orders, "decrement_stock", flaky_decrement)
    response = client.post("/api/orders", json={"items": [
        {"id": shirt["id"], "name": "Shirt", "price": 200, "quantity": 1},
        {"id": jeans["id"], "name": "Jeans", "price": 900, "quantity": 1},
    ]})

    assert response.status_code == 500
    assert response.json() == {"message": "database is locked"}
    assert db.query(models.Order).count() == 0
    assert db.query(models.OrderItem).count() == 0
    assert client.get(f"/api/products/{shirt['id']}").json()["quantity"] == 10
    assert client.get(f"/api/products/{jeans['id']}").json()["quantity"] == 5


def test_stock_decrement_stays_in_the_order_owner_catalog(client, signup, make_product):
    alice = signup(email="alice@shop.com")
    bob = signup(email="bob@shop.com")
    alice_product = make_product(alice)

    client.post("/api/orders", json=shirt_order(alice_product["id"]), headers=bob)
    client.post("/api/orders", json=shirt_order(alice_product["id"]))
    assert client.get(f"/api/products/{alice_product['id']}", headers=alice).json()["quantity"] == 10

    client.post("/api/orders", json=shirt_order(alice_product["id"]), headers=alice)
    assert client.get(f"/api/products/{alice_product['id']}", headers=alice).json()["quantity"] == 7


def test_orders_are_isolated_between_owners(client, signup, make_product):
    alice = signup(email="alice@shop.com")
    bob = signup(email="bob@shop.com")
    order_id = client.post("/api/orders", json=shirt_order(None), headers=alice).json()["orderId"]

    assert client.get(f"/api/orders/{order_id}", headers=bob).status_code == 404
    missing = client.get(f"/api/orders/{order_id}")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Order not found"}
    assert client.get("/api/orders", headers=bob).json() == []
    assert [o["id"] for o in client.get("/api/orders", headers=alice).json()] == [order_id]


def test_order_list_is_newest_first_without_items(client):
    first = client.post("/api/orders", json={"items": [{"name": "A", "price": 1, "quantity": 1}]}).json()["orderId"]
    second = client.post("/api/orders", json={"items": [{"name": "B", "price": 2, "quantity": 1}]}).json()["orderId"]

    listed = client.get("/api/orders").json()
    assert [o["id"] for o in listed] == [second, first]
    assert "items" not in listed[0]
    assert set(listed[0]) == {"id", "customerName", "totalAmount", "discount", "finalAmount", "createdAt"}


def test_order_read_is_repeatable(client, make_product):
    product = make_product()
    order_id = client.post("/api/orders", json=shirt_order(product["id"])).json()["orderId"]
    assert client.get(f"/api/orders/{order_id}").json() == client.get(f"/api/orders/{order_id}").json()


def test_sub_cent_prices_are_rejected(client, db):
    response = client.post("/api/orders", json={"items": [
        {"name": "Bead", "price": "0.005", "quantity": 1},
        {"name": "Bead", "price": "0.005", "quantity": 1},
    ]})
    assert response.status_code == 400
    assert "items.0.price" in response.json()["message"]
    assert db.query(models.Order).count() == 0


def test_sub_cent_discount_is_rejected(client):
    response = client.post("/api/orders", json={"discount": "0.001", "items": [{"name": "Bead", "price": 1, "quantity": 1}]})
    assert response.status_code == 400
    assert client.get("/api/orders").json() == []


def test_totals_match_stored_lines_to_the_cent(client, db):
    response = client.post("/api/orders", json={"discount": "1.05", "items": [
        {"name": "Bead", "price": "0.01", "quantity": 7},
        {"name": "Lace", "price": "12.35", "quantity": 3},
    ]})
    assert response.status_code == 201
    stored = db.get(models.Order, response.json()["orderId"])
    assert stored.total_amount == sum(item.price * item.quantity for item in stored.items)
    assert stored.total_amount == Decimal("37.12")
    assert stored.final_amount == Decimal("36.07")


def test_strict_stock_skips_lines_without_a_product(client, make_product, monkeypatch):
    monkeypatch.setattr(config, "STRICT_STOCK", True)
    product = make_product(quantity=4)
    response = client.post("/api/orders", json={"items": [
        {"id": product["id"], "name": "Shirt", "price": 200, "quantity": 1},
        {"name": "Alteration", "price": 50, "quantity": 1},
        {"id": None, "name": "Carry bag", "price": 5, "quantity": 2},
    ]})
    assert response.status_code == 201
    order = client.get(f"/api/orders/{response.json()['orderId']}").json()
    assert [item["product_name"] for item in order["items"]] == ["Shirt", "Alteration", "Carry bag"]
    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 3
