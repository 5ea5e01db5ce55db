import pytest

from restomatch.models import UserRole

NEW_STAFF = {
    "name": "Paul Serveur",
    "email": "paul@example.com",
    "password": "secret123",
    "role": "staff",
    "salary": 1800,
}


# =============================================================================
# STAFF
# =============================================================================

@pytest.mark.parametrize("role", [UserRole.CLIENT, UserRole.STAFF])
def test_staff_routes_are_admin_only(client, make_user, role):
    user = make_user(role)

    assert client.get("/api/staff", headers=user.headers).status_code == 403
    assert client.post("/api/staff", json={}, headers=user.headers).status_code == 403


def test_admin_manages_staff(client, admin_user):
    response = client.post("/api/staff", json=NEW_STAFF, headers=admin_user.headers)
    assert response.status_code == 200
    staff = response.json()
    assert staff["role"] == "staff"
    assert staff["salary"] == 1800

    response = client.put(
        f"/api/staff/{staff['id']}",
        json={"salary": 2100, "name": "Paul Chef"},
        headers=admin_user.headers,
    )
    assert response.json()["salary"] == 2100
    assert response.json()["name"] == "Paul Chef"

    listing = client.get("/api/staff", headers=admin_user.headers).json()
    assert [member["email"] for member in listing] == ["paul@example.com"]

    response = client.delete(f"/api/staff/{staff['id']}", headers=admin_user.headers)
    assert response.json()["msg"] == "Staff member removed"
    assert client.get("/api/staff", headers=admin_user.headers).json() == []

    login = client.post("/api/auth/login", json={"email": "paul@example.com", "password": "secret123"})
    assert login.status_code == 400


def test_staff_creation_validation(client, admin_user):
    payload = {**NEW_STAFF, "role": "client", "salary": None}

    response = client.post("/api/staff", json=payload, headers=admin_user.headers)

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["role", "salary"]


def test_duplicate_staff_email(client, admin_user):
    client.post("/api/staff", json=NEW_STAFF, headers=admin_user.headers)

    response = client.post("/api/staff", json=NEW_STAFF, headers=admin_user.headers)

    assert response.status_code == 400


def test_update_requires_salary_and_staff_target(client, admin_user, client_user, staff_user):
    response = client.put(f"/api/staff/{staff_user.id}", json={"name": "X"}, headers=admin_user.headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "salary"

    response = client.put(f"/api/staff/{client_user.id}", json={"salary": 100}, headers=admin_user.headers)
    assert response.status_code == 400
    assert response.json()["msg"] == "This user is not a staff member"

    response = client.put("/api/staff/9999", json={"salary": 100}, headers=admin_user.headers)
    assert response.status_code == 404


def test_admin_cannot_deactivate_self(client, admin_user):
    response = client.delete(f"/api/staff/{admin_user.id}", headers=admin_user.headers)

    assert response.status_code == 400


def test_staff_stats(client, make_user, admin_user):
    make_user(UserRole.STAFF, salary=1000)
    make_user(UserRole.STAFF, salary=2000)
    make_user(UserRole.CLIENT)

    stats = client.get("/api/staff/stats", headers=admin_user.headers).json()

    assert stats == {"totalStaff": 2, "totalAdmin": 1, "averageSalary": 2333.33}


# =============================================================================
# ADMIN
# =============================================================================

@pytest.mark.parametrize("path", ["/api/admin/stats", "/api/admin/revenue", "/api/admin/orders", "/api/admin/users"])
def test_admin_routes_reject_staff(client, staff_user, path):
    assert client.get(path).status_code == 401
    assert client.get(path, headers=staff_user.headers).status_code == 403


def test_admin_stats_shape(client, admin_user, client_user, make_menu_item):
    dish = make_menu_item(price=10.0)
    client.post(
        "/api/orders",
        json={"items": [{"menuItem": dish, "quantity": 1}], "totalAmount": 10},
        headers=client_user.headers,
    )

    stats = client.get("/api/admin/stats", headers=admin_user.headers).json()

    assert set(stats) == {"revenue", "orders", "customers", "reservations"}
    assert stats["orders"] == {"total": 1, "change": 0}
    assert stats["customers"]["total"] == 1
    assert stats["revenue"]["total"] == 0

    counts = client.get("/api/admin/orders", headers=admin_user.headers).json()
    assert [day["count"] for day in counts] == [1]
    assert client.get("/api/admin/revenue", headers=admin_user.headers).json() == []


def test_admin_lists_clients(client, admin_user, client_user, staff_user):
    users = client.get("/api/admin/users", headers=admin_user.headers).json()

    assert [user["id"] for user in users] == [client_user.id]


def test_promotion_requires_salary(client, admin_user, client_user):
    path = f"/api/admin/users/{client_user.id}/role"

    response = client.put(path, json={"role": "staff"}, headers=admin_user.headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "salary"

    response = client.put(path, json={"role": "staff", "salary": 1500}, headers=admin_user.headers)
    assert response.status_code == 200
    assert response.json()["msg"] == "Role updated"
    assert response.json()["user"]["role"] == "staff"
    assert response.json()["user"]["salary"] == 1500


def test_demotion_clears_salary(client, admin_user, staff_user):
    response = client.put(
        f"/api/admin/users/{staff_user.id}/role",
        json={"role": "client"},
        headers=admin_user.headers,
    )

    assert response.json()["user"]["role"] == "client"
    assert response.json()["user"]["salary"] is None


def test_admin_cannot_demote_self(client, admin_user):
    response = client.put(
        f"/api/admin/users/{admin_user.id}/role",
        json={"role": "client"},
        headers=admin_user.headers,
    )

    assert response.status_code == 400
    assert response.json()["msg"] == "You cannot change your own role"


def test_invalid_role(client, admin_user, client_user):
    response = client.put(
        f"/api/admin/users/{client_user.id}/role",
        json={"role": "owner"},
        headers=admin_user.headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "role"


# =============================================================================
# CURRENT ACCOUNT STATE
# =============================================================================

def test_demoted_admin_loses_admin_access_immediately(client, make_user, admin_user):
    other_admin = make_user(UserRole.ADMIN, salary=3500)
    assert client.get("/api/admin/users", headers=other_admin.headers).status_code == 200

    client.put(
        f"/api/admin/users/{other_admin.id}/role",
        json={"role": "client"},
        headers=admin_user.headers,
    )

    assert client.get("/api/admin/users", headers=other_admin.headers).status_code == 403
    assert client.get("/api/staff", headers=other_admin.headers).status_code == 403


def test_deactivated_staff_token_is_rejected(client, admin_user, staff_user):
    assert client.get("/api/reservations", headers=staff_user.headers).status_code == 200

    client.delete(f"/api/staff/{staff_user.id}", headers=admin_user.headers)

    response = client.get("/api/reservations", headers=staff_user.headers)
    assert response.status_code == 401
    assert client.get("/api/orders", headers=staff_user.headers).status_code == 401


def test_promoted_client_gains_staff_access_with_same_token(client, admin_user, client_user):
    assert client.get("/api/reservations", headers=client_user.headers).status_code == 403

    client.put(
        f"/api/admin/users/{client_user.id}/role",
        json={"role": "staff", "salary": 1500},
        headers=admin_user.headers,
    )

    assert client.get("/api/reservations", headers=client_user.headers).status_code == 200
