import pytest

from restomatch.models import UserRole


@pytest.fixture
def dish(make_menu_item):
    return make_menu_item("Ratatouille", price=14.0)


def place_order(client, user, menu_item_id, quantity=2):
    return client.post(
        "/api/orders",
        json={"items": [{"menuItem": menu_item_id, "quantity": quantity}], "totalAmount": 14.0 * quantity},
        headers=user.headers,
    )


def test_client_places_an_order(client, client_user, dish):
    response = place_order(client, client_user, dish)

    assert response.status_code == 200
    order = response.json()
    assert order["status"] == "pending"
    assert order["totalAmount"] == 28.0
    assert order["user"]["id"] == client_user.id
    assert order["items"][0]["menuItemId"] == dish
    assert order["items"][0]["menuItem"]["name"] == "Ratatouille"


def test_order_requires_a_token(client, dish):
    response = client.post("/api/orders", json={"items": [{"menuItem": dish, "quantity": 1}], "totalAmount": 14})

    assert response.status_code == 401


def test_order_validation(client, client_user):
    response = client.post(
        "/api/orders",
        json={"items": [{"menuItem": 1, "quantity": 0}], "totalAmount": -5},
        headers=client_user.headers,
    )

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["items.0.quantity", "totalAmount"]


def test_unknown_or_withdrawn_menu_item_is_rejected(client, client_user, staff_user, dish):
    client.delete(f"/api/menu/{dish}", headers=staff_user.headers)

    response = client.post(
        "/api/orders",
        json={"items": [{"menuItem": dish, "quantity": 1}, {"menuItem": 999, "quantity": 1}], "totalAmount": 14},
        headers=client_user.headers,
    )

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["items.0.menuItem", "items.1.menuItem"]


def test_clients_only_see_their_own_orders(client, make_user, staff_user, dish):
    alice = make_user(UserRole.CLIENT)
    bob = make_user(UserRole.CLIENT)
    place_order(client, alice, dish)
    place_order(client, bob, dish)
    place_order(client, bob, dish)

    assert len(client.get("/api/orders", headers=alice.headers).json()) == 1
    assert len(client.get("/api/orders", headers=bob.headers).json()) == 2
    assert len(client.get("/api/orders", headers=staff_user.headers).json()) == 3


def test_other_clients_order_is_forbidden(client, make_user, staff_user, dish):
    alice = make_user(UserRole.CLIENT)
    bob = make_user(UserRole.CLIENT)
    order_id = place_order(client, alice, dish).json()["id"]

    assert client.get(f"/api/orders/{order_id}", headers=alice.headers).status_code == 200
    assert client.get(f"/api/orders/{order_id}", headers=bob.headers).status_code == 403
    assert client.get(f"/api/orders/{order_id}", headers=staff_user.headers).status_code == 200
    assert client.delete(f"/api/orders/{order_id}", headers=bob.headers).status_code == 403


def test_staff_moves_order_through_workflow(client, client_user, staff_user, dish):
    order_id = place_order(client, client_user, dish).json()["id"]

    response = client.put(
        f"/api/orders/{order_id}",
        json={"status": "preparing"},
        headers=staff_user.headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "preparing"

    stats = client.get("/api/orders/stats", headers=staff_user.headers).json()
    assert stats == {"total": 1, "pending": 0, "preparing": 1}


def test_client_cannot_change_status(client, client_user, dish):
    order_id = place_order(client, client_user, dish).json()["id"]

    response = client.put(
        f"/api/orders/{order_id}",
        json={"status": "delivered"},
        headers=client_user.headers,
    )

    assert response.status_code == 403


def test_invalid_status_is_rejected(client, client_user, staff_user, dish):
    order_id = place_order(client, client_user, dish).json()["id"]

    response = client.put(
        f"/api/orders/{order_id}",
        json={"status": "eaten"},
        headers=staff_user.headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "status"


def test_client_cancels_pending_order(client, client_user, dish):
    order_id = place_order(client, client_user, dish).json()["id"]

    response = client.delete(f"/api/orders/{order_id}", headers=client_user.headers)

    assert response.status_code == 200
    assert response.json()["msg"] == "Order cancelled"
    order = client.get(f"/api/orders/{order_id}", headers=client_user.headers).json()
    assert order["status"] == "cancelled"


def test_client_cannot_cancel_once_preparing(client, client_user, staff_user, dish):
    order_id = place_order(client, client_user, dish).json()["id"]
    client.put(f"/api/orders/{order_id}", json={"status": "preparing"}, headers=staff_user.headers)

    response = client.delete(f"/api/orders/{order_id}", headers=client_user.headers)
    assert response.status_code == 400

    response = client.delete(f"/api/orders/{order_id}", headers=staff_user.headers)
    assert response.status_code == 200


def test_missing_order_is_not_found(client, staff_user):
    assert client.get("/api/orders/12345", headers=staff_user.headers).status_code == 404
    assert client.put("/api/orders/12345", json={"status": "ready"}, headers=staff_user.headers).status_code == 404
