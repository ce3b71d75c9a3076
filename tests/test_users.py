from conftest import API


def test_register_and_login(client):
    created = client.post(
        f"{API}/users/",
        json={"email": "Asha@Example.com", "password": "secret123", "fullName": "Asha Rao"},
    )
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["email"] == "asha@example.com"
    assert body["role"] == "user"
    assert "password" not in body

    login = client.post(f"{API}/users/login", json={"email": "asha@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["accessToken"]
    assert login.json()["tokenType"] == "bearer"

    me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["fullName"] == "Asha Rao"


def test_duplicate_email_is_rejected(client, make_user):
    make_user(email="dup@example.com")

    resp = client.post(f"{API}/users/", json={"email": "dup@example.com", "password": "secret123"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "User already exists"}


def test_login_with_wrong_password(client, make_user):
    user = make_user()

    resp = client.post(f"{API}/users/login", json={"email": user["email"], "password": "wrong-password"})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


def test_short_password_is_a_bad_request(client):
    resp = client.post(f"{API}/users/", json={"email": "short@example.com", "password": "123"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"
    assert resp.json()["details"]


def test_me_requires_token(client):
    resp = client.get(f"{API}/users/me")

    assert resp.status_code == 401
    assert resp.json() == {"error": "No token, authorization denied"}


def test_disabled_user_is_rejected(client, make_user):
    from event_hub_api.app.core.db import get_connection

    user = make_user()
    conn = get_connection()
    try:
        conn.execute("UPDATE users SET disabled = 1 WHERE id = ?", (user["id"],))
        conn.commit()
    finally:
        conn.close()

    resp = client.get(f"{API}/users/me", headers=user["headers"])

    assert resp.status_code == 401
    assert resp.json() == {"error": "User account disabled"}
