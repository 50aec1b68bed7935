from conftest import auth_headers

from gamebazaar.middleware import rate_limit


def test_register_and_login(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Tamim", "email": "Tamim@Example.com", "password": "secret123"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "tamim@example.com"
    assert data["user"]["role"] == "user"

    login = client.post("/api/auth/login", json={"email": "tamim@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["data"]["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["name"] == "Tamim"


def test_register_duplicate_email(client, user):
    response = client.post(
        "/api/auth/register",
        json={"name": "Again", "email": "rafi@example.com", "password": "secret123"},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User already exists"}


def test_login_with_wrong_password(client, user):
    response = client.post("/api/auth/login", json={"email": "rafi@example.com", "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_configured_admin_email_gets_admin_role(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Boss", "email": "boss@example.com", "password": "secret123"},
    )

    assert response.json()["data"]["user"]["role"] == "admin"


def test_bad_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized to access this route"


def test_me_with_valid_token(client, user):
    response = client.get("/api/auth/me", headers=auth_headers(user))

    assert response.json()["data"]["id"] == user.id


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_health(client):
    assert client.get("/health").json() == {"success": True, "status": "ok"}


def test_rate_limit(client, monkeypatch):
    monkeypatch.setattr(rate_limit, "RATE_LIMIT_DEFAULT_PER_MINUTE", 2)

    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 200

    response = client.get("/health")
    assert response.status_code == 429
    assert response.json() == {"success": False, "message": "Too many requests"}
    assert response.headers["retry-after"] == "60"
