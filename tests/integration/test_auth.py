def test_register_success(client):
    payload = {"email": "Owner1@Example.com", "password": "StrongPass123", "full_name": "Studio One"}

    response = client.post("/auth/register", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "owner1@example.com"
    assert data["role"] == "owner"
    assert data["full_name"] == "Studio One"
    assert data["is_active"] is True
    assert "hashed_password" not in data


def test_register_duplicate_email(client):
    payload = {"email": "duplicate@example.com", "password": "StrongPass123"}

    first = client.post("/auth/register", json=payload)
    second = client.post("/auth/register", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "User with this email already exists"


def test_register_with_short_password_is_422(client):
    response = client.post("/auth/register", json={"email": "short@example.com", "password": "short"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_login_success(client):
    client.post("/auth/register", json={"email": "login@example.com", "password": "StrongPass123"})

    response = client.post("/auth/login", json={"email": "login@example.com", "password": "StrongPass123"})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert len(data["access_token"]) > 20


def test_login_with_wrong_password_is_401(client):
    client.post("/auth/register", json={"email": "wrong@example.com", "password": "StrongPass123"})

    response = client.post("/auth/login", json={"email": "wrong@example.com", "password": "WrongPass123"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_admin_routes_need_a_token(client):
    assert client.get("/api/event-types").status_code == 401
    assert client.get("/api/bookings").status_code == 401


def test_garbage_token_is_rejected(client):
    response = client.get("/api/categories", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"


def test_me_returns_current_owner(client, owner_headers):
    response = client.get("/auth/me", headers=owner_headers)

    assert response.status_code == 200
    assert response.json()["email"] == "owner@example.com"
    assert response.json()["full_name"] == "Studio Owner"
