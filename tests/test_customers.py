def test_customers_are_sorted_by_name(client):
    for name in ("Zoya", "Arjun", "Meena"):
        client.post("/api/customers", json={"name": name})
    names = [c["name"] for c in client.get("/api/customers").json()]
    assert names == ["Arjun", "Meena", "Zoya"]


def test_create_customer(client, signup):
    headers = signup()
    response = client.post("/api/customers", json={"name": "Ravi", "phone": "98400", "type": "wholesale", "dues": 1500}, headers=headers)
    assert response.status_code == 201
    customer = response.json()
    assert customer["dues"] == 1500
    assert customer["user_id"] is not None

    assert client.post("/api/customers", json={"name": "Sita"}).json()["dues"] == 0


def test_settle_dues(client):
    customer = client.post("/api/customers", json={"name": "Ravi", "dues": 1500}).json()
    response = client.put(f"/api/customers/{customer['id']}", json={"name": "Ravi", "dues": 200})
    assert response.status_code == 200
    assert response.json()["dues"] == 200
    assert client.get("/api/customers").json()[0]["dues"] == 200


def test_orders_do_not_touch_dues(client):
    client.post("/api/customers", json={"name": "Ravi", "dues": 100})
    client.post("/api/orders", json={"customerName": "Ravi", "items": [{"name": "Shirt", "price": 200, "quantity": 1}]})
    assert client.get("/api/customers").json()[0]["dues"] == 100


def test_delete_customer(client):
    customer = client.post("/api/customers", json={"name": "Ravi"}).json()
    assert client.delete(f"/api/customers/{customer['id']}").json() == {"success": True}
    response = client.delete(f"/api/customers/{customer['id']}")
    assert response.status_code == 404
    assert response.json() == {"message": "Customer not found"}


def test_customers_are_isolated_between_owners(client, signup):
    alice = signup(email="alice@shop.com")
    bob = signup(email="bob@shop.com")
    customer = client.post("/api/customers", json={"name": "Ravi", "dues": 500}, headers=alice).json()

    assert client.get("/api/customers", headers=bob).json() == []
    assert client.get("/api/customers").json() == []
    client.put(f"/api/customers/{customer['id']}", json={"name": "Ravi", "dues": 0}, headers=bob)
    assert client.delete(f"/api/customers/{customer['id']}", headers=bob).status_code == 404
    assert client.delete(f"/api/customers/{customer['id']}").status_code == 404

    stored = client.get("/api/customers", headers=alice).json()
    assert [(c["id"], c["dues"]) for c in stored] == [(customer["id"], 500)]
