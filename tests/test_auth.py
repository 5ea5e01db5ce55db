from sqlalchemy.exc import OperationalError

from conftest import run_db
from restomatch.database import get_db
from restomatch.main import app
from restomatch.models import User, UserRole


def register(client, **overrides):
    payload = {"name": "Jean Dupont", "email": "jean@example.com", "password": "secret123"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_login_and_profile(client):
    response = register(client)
    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "jean@example.com"
    assert body["user"]["role"] == "client"

    response = client.post(
        "/api/auth/login",
        json={"email": "jean@example.com", "password": "secret123"},
    )
    assert response.status_code == 200
    token = response.json()["token"]

    response = client.get("/api/auth/me", headers={"x-auth-token": token})
    assert response.status_code == 200
    profile = response.json()
    assert profile["name"] == "Jean Dupont"
    assert profile["status"] == "active"
    assert "createdAt" in profile
    assert not any("password" in key.lower() for key in profile)


def test_bearer_header_is_accepted(client):
    token = register(client).json()["token"]

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200


def test_register_cannot_choose_a_role(client):
    response = register(client, role="admin")

    assert response.json()["user"]["role"] == "client"


def test_duplicate_email_is_rejected(client):
    register(client)

    response = register(client, email="JEAN@example.com")

    assert response.status_code == 400
    assert response.json()["msg"] == "User already exists"


def test_register_reports_every_invalid_field(client):
    response = client.post("/api/auth/register", json={"email": "nope", "password": "123"})

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["name", "email", "password"]


def test_malformed_json_is_a_validation_error(client):
    response = client.post(
        "/api/auth/register",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "body"


def test_wrong_password_is_rejected(client):
    register(client)

    response = client.post(
        "/api/auth/login",
        json={"email": "jean@example.com", "password": "wrong-password"},
    )

    assert response.status_code == 400
    assert response.json()["msg"] == "Invalid credentials"


def test_unknown_email_is_rejected(client):
    response = client.post(
        "/api/auth/login",
        json={"email": "ghost@example.com", "password": "secret123"},
    )

    assert response.status_code == 400


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["msg"] == "No token, authorization denied"


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/auth/me", headers={"x-auth-token": "forged.token.value"})

    assert response.status_code == 401
    assert response.json()["msg"] == "Token is not valid"


def test_deactivated_staff_cannot_log_in(client, make_user, admin_user):
    staff = make_user(UserRole.STAFF, email="sam@example.com")
    client.delete(f"/api/staff/{staff.id}", headers=admin_user.headers)

    response = client.post(
        "/api/auth/login",
        json={"email": "sam@example.com", "password": staff.password},
    )

    assert response.status_code == 400


def test_health_and_root(client):
    assert client.get("/").json()["documentation"] == "/docs"

    health = client.get("/health").json()
    assert health["status"] == "operational"
    assert health["database"] == "healthy"


def test_type_errors_are_reported_with_rule_errors(client):
    response = client.post(
        "/api/auth/register",
        json={"name": 123, "email": "nope", "password": "secret123"},
    )

    assert response.status_code == 400
    assert {error["field"] for error in response.json()["errors"]} == {"name", "email"}


def test_overlong_name_is_rejected(client):
    response = register(client, name="x" * 101)

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["name"]


def test_deleted_account_token_is_unauthorized(client, client_user):
    async def delete_user(session):
        await session.delete(await session.get(User, client_user.id))
        await session.commit()

    run_db(delete_user)

    response = client.get("/api/auth/me", headers=client_user.headers)
    assert response.status_code == 401


def test_health_hides_database_error_detail(client):
    class BrokenSession:
        async def execute(self, statement):
            raise OperationalError("SELECT 1", {}, Exception("password for resto leaked"))

    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    try:
        health = client.get("/health").json()
    finally:
        app.dependency_overrides.clear()

    assert health["status"] == "degraded"
    assert health["database"] == "unhealthy"
