from decimal import Decimal

from fastapi.testclient import TestClient

PRODUCT_PAYLOAD = {
    "name": "Smart TV 50",
    "category": "Televisions",
    "brand": "Acme",
    "model": "TV-50X",
    "quantity": 10,
    "min_stock": 5,
    "price": "2499.90",
    "voltage": "Bivolt",
    "screen_resolution": "3840x2160",
    "connectivity": "Wi-Fi, Bluetooth",
}


def _create_product(client: TestClient, **overrides) -> dict:
    response = client.post("/products", json={**PRODUCT_PAYLOAD, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def test_health_is_public(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_endpoints_require_authentication(client: TestClient) -> None:
    assert client.get("/products").status_code == 401
    assert client.post("/movements", json={"product_id": "x", "type": "inbound", "quantity": 1}).status_code == 401
    assert client.get("/movements/history").status_code == 401
    assert client.get("/dashboard").status_code == 401


def test_signup_creates_profile_and_rejects_duplicates(client: TestClient, login_as) -> None:
    user = login_as("maria", "Maria Silva")

    profile = client.get("/profiles/me").json()
    assert profile["id"] == user["id"]
    assert profile["full_name"] == "Maria Silva"

    response = client.post("/auth/signup", json={"username": "maria", "password": "secret123"})
    assert response.status_code == 400


def test_signup_ignores_account_flags(client: TestClient) -> None:
    response = client.post(
        "/auth/signup",
        json={"username": "mallory", "password": "secret123", "is_superuser": True, "is_active": False},
    )
    assert response.status_code == 201
    body = response.json()
    assert "is_superuser" not in body
    assert body["is_active"] is True

    response = client.post("/auth/login", json={"username": "mallory", "password": "secret123"})
    assert response.status_code == 200


def test_profile_name_falls_back_to_email(client: TestClient) -> None:
    response = client.post(
        "/auth/signup", json={"username": "joao", "password": "secret123", "email": "joao@example.com"}
    )
    assert response.status_code == 201
    client.post("/auth/login", json={"username": "joao", "password": "secret123"})

    assert client.get("/profiles/me").json()["full_name"] == "joao@example.com"


def test_login_with_wrong_password(client: TestClient, login_as) -> None:
    login_as("maria")
    client.post("/auth/logout")

    response = client.post("/auth/login", json={"username": "maria", "password": "nope-nope"})
    assert response.status_code == 401
    assert client.get("/profiles/me").status_code == 401


def test_profiles_are_private(client: TestClient, login_as) -> None:
    maria = login_as("maria", "Maria Silva")
    login_as("carlos", "Carlos Lima")

    assert client.get(f"/profiles/{maria['id']}").status_code == 403
    response = client.put("/profiles/me", json={"full_name": "Carlos A. Lima"})
    assert response.status_code == 200
    assert response.json()["full_name"] == "Carlos A. Lima"


def test_product_lifecycle(client: TestClient, login_as) -> None:
    user = login_as("maria", "Maria Silva")

    product = _create_product(client)
    assert product["created_by"] == user["id"]
    assert Decimal(product["price"]) == Decimal("2499.90")
    assert product["screen_resolution"] == "3840x2160"

    response = client.patch(f"/products/{product['id']}", json={"min_stock": 12, "dimensions": "112x65x8 cm"})
    assert response.status_code == 200
    assert response.json()["min_stock"] == 12
    assert response.json()["name"] == "Smart TV 50"

    listed = client.get("/products").json()
    assert [p["id"] for p in listed] == [product["id"]]

    response = client.post("/products", json={**PRODUCT_PAYLOAD, "quantity": -1})
    assert response.status_code == 422

    assert client.delete(f"/products/{product['id']}").status_code == 204
    assert client.get(f"/products/{product['id']}").status_code == 404


def test_stock_movement_flow(client: TestClient, login_as) -> None:
    user = login_as("maria", "Maria Silva")
    product = _create_product(client, quantity=10, min_stock=5)

    response = client.post(
        "/movements",
        json={"product_id": product["id"], "type": "inbound", "quantity": 5, "notes": "NF 1234"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["balance"] == 15
    assert body["movement"]["kind"] == "inbound"
    assert body["movement"]["responsible_id"] == user["id"]
    assert body["movement"]["responsible_name"] == "Maria Silva"

    response = client.post("/movements", json={"product_id": product["id"], "type": "saida", "quantity": 11})
    assert response.status_code == 201
    assert response.json()["balance"] == 4

    balance = client.get(f"/products/{product['id']}/balance").json()
    assert balance == {"product_id": product["id"], "quantity": 4, "min_stock": 5, "status": "low"}

    low = client.get("/stock/low").json()
    assert [item["id"] for item in low] == [product["id"]]


def test_movement_errors_are_distinguishable(client: TestClient, login_as) -> None:
    login_as("maria")
    product = _create_product(client, quantity=3)

    response = client.post("/movements", json={"product_id": product["id"], "type": "outbound", "quantity": 5})
    assert response.status_code == 409
    assert response.json()["error"] == "insufficient_stock"

    response = client.post("/movements", json={"product_id": product["id"], "type": "outbound", "quantity": 0})
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"

    response = client.post("/movements", json={"product_id": product["id"], "type": "transfer", "quantity": 1})
    assert response.status_code == 422

    response = client.post("/movements", json={"product_id": "missing", "type": "inbound", "quantity": 1})
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    assert client.get(f"/products/{product['id']}/balance").json()["quantity"] == 3
    assert client.get("/movements/history").json() == []


def test_movement_for_another_user_is_forbidden(client: TestClient, login_as) -> None:
    maria = login_as("maria", "Maria Silva")
    login_as("carlos", "Carlos Lima")
    product = _create_product(client, quantity=3)

    response = client.post(
        "/movements",
        json={"product_id": product["id"], "type": "inbound", "quantity": 1, "responsible_id": maria["id"]},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"
    assert client.get(f"/products/{product['id']}/balance").json()["quantity"] == 3


def test_history_filters(client: TestClient, login_as) -> None:
    login_as("maria", "Maria Silva")
    tv = _create_product(client, name="Smart TV 50", quantity=10)
    phone = _create_product(client, name="Phone X", category="Phones", quantity=10)
    client.post("/movements", json={"product_id": tv["id"], "type": "outbound", "quantity": 1})
    client.post("/movements", json={"product_id": phone["id"], "type": "inbound", "quantity": 2})

    login_as("carlos", "Carlos Lima")
    client.post("/movements", json={"product_id": phone["id"], "type": "outbound", "quantity": 3})

    everything = client.get("/movements/history").json()
    assert len(everything) == 3

    maria_out = client.get("/movements/history", params={"search": "maria", "type": "outbound"}).json()
    assert [(m["product_name"], m["kind"]) for m in maria_out] == [("Smart TV 50", "outbound")]

    phones = client.get("/movements/history", params={"search": "PHONE"}).json()
    assert {m["responsible_name"] for m in phones} == {"Maria Silva", "Carlos Lima"}
    assert all(m["product_category"] == "Phones" for m in phones)

    assert len(client.get("/movements/history", params={"type": ""}).json()) == 3
    assert client.get("/movements/history", params={"type": "bogus"}).status_code == 422


def test_dashboard(client: TestClient, login_as) -> None:
    login_as("maria", "Maria Silva")
    tv = _create_product(client, quantity=20, min_stock=10)
    _create_product(client, name="Cable HDMI", quantity=0, min_stock=5)

    client.post("/movements", json={"product_id": tv["id"], "type": "outbound", "quantity": 12})

    dashboard = client.get("/dashboard").json()
    assert dashboard["total_products"] == 2
    assert [(item["name"], item["status"]) for item in dashboard["low_stock"]] == [
        ("Cable HDMI", "critical"),
        ("Smart TV 50", "low"),
    ]
    assert dashboard["recent_movements"][0]["product_name"] == "Smart TV 50"
    assert dashboard["recent_movements"][0]["quantity"] == 12


def test_deleting_product_removes_its_movements(client: TestClient, login_as) -> None:
    login_as("maria")
    product = _create_product(client, quantity=5)
    client.post("/movements", json={"product_id": product["id"], "type": "outbound", "quantity": 2})

    assert client.delete(f"/products/{product['id']}").status_code == 204
    assert client.get("/movements/history").json() == []
