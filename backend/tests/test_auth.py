def test_register_login_me(client):
    register_payload = {
        "name": "Admin User",
        "email": "Admin@Example.com",
        "password": "password123",
        "role": "admin",
        "department": "Administration",
    }

    register_response = client.post("/api/auth/register", json=register_payload)
    assert register_response.status_code == 201
    data = register_response.json()
    assert data["email"] == "admin@example.com"
    assert data["role"] == "admin"

    login_response = client.post(
        "/api/auth/login",
        json={"email": "admin@example.com", "password": "password123", "role": "admin"},
    )
    assert login_response.status_code == 200
    login_data = login_response.json()
    assert login_data["token_type"] == "bearer"

    me_response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {login_data['access_token']}"})
    assert me_response.status_code == 200
    assert me_response.json()["email"] == "admin@example.com"


def test_duplicate_registration_is_rejected(client):
    payload = {"name": "Scheduler", "email": "sched@example.com", "password": "password123", "role": "scheduler"}
    assert client.post("/api/auth/register", json=payload).status_code == 201
    assert client.post("/api/auth/register", json=payload).status_code == 409


def test_login_failures(client):
    payload = {"name": "Viewer", "email": "viewer@example.com", "password": "password123", "role": "viewer"}
    client.post("/api/auth/register", json=payload)

    wrong_password = client.post("/api/auth/login", json={"email": "viewer@example.com", "password": "nope"})
    assert wrong_password.status_code == 401

    wrong_role = client.post(
        "/api/auth/login",
        json={"email": "viewer@example.com", "password": "password123", "role": "admin"},
    )
    assert wrong_role.status_code == 403


def test_me_requires_valid_token(client):
    missing = client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.headers["WWW-Authenticate"] == "Bearer"
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
