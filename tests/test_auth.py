"""
认证接口测试：登录、当前用户、登出吊销、管理员创建用户
"""
from models import AccessToken, UserRole


def login(client, email, password="password123"):
    return client.post("/api/login", json={"email": email, "password": password})


def test_login_returns_bearer_token(client, make_user):
    user = make_user("Lena", email="lena@example.com")

    response = login(client, "lena@example.com")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Logged in successfully"
    assert body["token_type"] == "Bearer"
    assert body["user"]["id"] == user.id
    assert "password_hash" not in body["user"]

    me = client.get("/api/user", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "lena@example.com"


def test_login_with_wrong_password(client, make_user):
    make_user(email="wrong@example.com")

    response = login(client, "wrong@example.com", "not-the-password")

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_revokes_previous_tokens(client, make_user):
    make_user(email="twice@example.com")

    first = login(client, "twice@example.com").json()["access_token"]
    second = login(client, "twice@example.com").json()["access_token"]

    assert client.get("/api/user", headers={"Authorization": f"Bearer {first}"}).status_code == 401
    assert client.get("/api/user", headers={"Authorization": f"Bearer {second}"}).status_code == 200


def test_logout_revokes_current_token(client, make_user, db_session):
    make_user(email="bye@example.com")
    token = login(client, "bye@example.com").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    response = client.post("/api/logout", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"
    db_session.expunge_all()
    assert db_session.query(AccessToken).count() == 0
    assert client.get("/api/user", headers=headers).status_code == 401


def test_requests_without_token_are_unauthenticated(client):
    response = client.get("/api/teams")

    assert response.status_code == 401
    body = response.json()
    assert body["message"] == "Unauthenticated."
    assert "timestamp" in body


def test_garbage_token_is_rejected(client):
    response = client.get("/api/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_admin_creates_user(client, make_user, auth_headers):
    admin = make_user("Root", role=UserRole.ADMIN)

    response = client.post(
        "/api/users",
        json={"name": "New Hire", "email": "hire@example.com", "password": "longenough"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully by admin"
    assert body["user"]["role"] == "member"

    assert login(client, "hire@example.com", "longenough").status_code == 200


def test_non_admin_cannot_create_user(client, make_user, auth_headers):
    manager = make_user(role=UserRole.PROJECT_MANAGER)

    response = client.post(
        "/api/users",
        json={"name": "Sneaky", "email": "sneaky@example.com", "password": "longenough"},
        headers=auth_headers(manager),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "This action is unauthorized."


def test_create_user_rejects_duplicate_email_and_short_password(client, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN, email="admin@example.com")
    headers = auth_headers(admin)

    duplicate = client.post(
        "/api/users",
        json={"name": "Copy", "email": "admin@example.com", "password": "longenough"},
        headers=headers,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "The email has already been taken."

    short = client.post(
        "/api/users",
        json={"name": "Short", "email": "short@example.com", "password": "123"},
        headers=headers,
    )
    assert short.status_code == 422
    assert "password" in short.json()["data"]["errors"]


def test_login_is_rate_limited(client, make_user):
    make_user(email="spam@example.com")

    statuses = [login(client, "spam@example.com", "bad-password").status_code for _ in range(6)]

    assert statuses[:5] == [401] * 5
    assert statuses[5] == 429
