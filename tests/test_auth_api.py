"""HTTP tests for /api/v1/users."""

BASE = "/api/v1/users"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_login_refresh_logout_scenario(client, register):
    data = register("alice", "alice@x.com", "Alice Liddell", "pw123456")
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["username"] == "alice"
    assert "password" not in data["user"]
    assert "password_hash" not in data["user"]
    assert "sessions" not in data["user"]

    resp = client.post(f"{BASE}/refresh", json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.get_json()["data"]
    assert rotated["refresh_token"] != data["refresh_token"]
    assert "user" not in rotated

    resp = client.post(f"{BASE}/refresh", json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 401

    resp = client.post(
        f"{BASE}/logout",
        json={"refresh_token": rotated["refresh_token"]},
        headers=bearer(rotated["access_token"]),
    )
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True

    resp = client.post(f"{BASE}/refresh", json={"refresh_token": rotated["refresh_token"]})
    assert resp.status_code == 401
    body = resp.get_json()
    assert body["success"] is False
    assert body["message"] == "Invalid or expired refresh token"


def test_register_envelope(client):
    resp = client.post(
        f"{BASE}/register",
        json={"username": "alice", "email": "  Alice@X.com ", "full_name": "Alice", "password": "pw123456"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "alice@x.com"
    assert body["data"]["token_type"] == "bearer"


def test_register_conflicts(client, register):
    register("alice", "alice@x.com")

    resp = client.post(
        f"{BASE}/register",
        json={"username": "alice", "email": "new@x.com", "full_name": "Alice", "password": "pw123456"},
    )
    assert resp.status_code == 409
    assert resp.get_json()["message"] == "Username already exists"

    resp = client.post(
        f"{BASE}/register",
        json={"username": "alice2", "email": "alice@x.com", "full_name": "Alice", "password": "pw123456"},
    )
    assert resp.status_code == 409
    assert resp.get_json()["message"] == "Email already exists"


def test_register_validation(client):
    resp = client.post(f"{BASE}/register", json={"username": "al", "email": "nope", "password": "short"})
    assert resp.status_code == 422
    details = resp.get_json()["details"]
    assert {"username", "email", "full_name", "password"} <= set(details)


def test_login_failures_are_indistinguishable(client, register):
    register()
    wrong_password = client.post(f"{BASE}/login", json={"username": "alice", "password": "bad-password"})
    unknown_user = client.post(f"{BASE}/login", json={"username": "ghost", "password": "pw123456"})
    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.get_json() == unknown_user.get_json()
    assert wrong_password.get_json()["message"] == "Invalid username or password"


def test_login_success(client, register):
    register()
    resp = client.post(f"{BASE}/login", json={"username": "alice", "password": "pw123456"})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["user"]["username"] == "alice"
    assert data["access_token"] and data["refresh_token"]


def test_logout_requires_access_token(client, register):
    data = register()
    resp = client.post(f"{BASE}/logout", json={"refresh_token": data["refresh_token"]})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "No token provided"

    resp = client.post(
        f"{BASE}/logout",
        json={"refresh_token": data["refresh_token"]},
        headers=bearer(data["refresh_token"]),
    )
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid or expired token"


def test_logout_all(client, register):
    first = register()
    second = client.post(f"{BASE}/login", json={"username": "alice", "password": "pw123456"}).get_json()["data"]

    resp = client.post(f"{BASE}/logout-all", headers=bearer(first["access_token"]))
    assert resp.status_code == 200

    for token in (first["refresh_token"], second["refresh_token"]):
        resp = client.post(f"{BASE}/refresh", json={"refresh_token": token})
        assert resp.status_code == 401


def test_me(client, register):
    data = register()
    resp = client.get(f"{BASE}/me", headers=bearer(data["access_token"]))
    assert resp.status_code == 200
    me = resp.get_json()["data"]
    assert me["id"] == data["user"]["id"]
    assert "password_hash" not in me


def test_change_password(client, register):
    data = register()
    resp = client.put(
        f"{BASE}/me/password",
        json={"current_password": "pw123456", "new_password": "brand-new-pw"},
        headers=bearer(data["access_token"]),
    )
    assert resp.status_code == 200

    assert client.post(f"{BASE}/refresh", json={"refresh_token": data["refresh_token"]}).status_code == 401
    assert client.post(f"{BASE}/login", json={"username": "alice", "password": "brand-new-pw"}).status_code == 200


def test_delete_me(client, register):
    data = register()
    resp = client.delete(f"{BASE}/me", headers=bearer(data["access_token"]))
    assert resp.status_code == 200
    assert client.get(f"{BASE}/me", headers=bearer(data["access_token"])).status_code == 401
    assert client.post(f"{BASE}/refresh", json={"refresh_token": data["refresh_token"]}).status_code == 401


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_deleted_account_token_is_rejected(client, register):
    data = register()
    assert client.delete(f"{BASE}/me", headers=bearer(data["access_token"])).status_code == 200

    resp = client.post(f"{BASE}/logout-all", headers=bearer(data["access_token"]))
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid or expired token"

    resp = client.post(
        "/api/v1/comments", json={"post_id": "any", "content": "hi"}, headers=bearer(data["access_token"])
    )
    assert resp.status_code == 401
    resp = client.post("/api/v1/posts", json={"title": "t", "content": "c"}, headers=bearer(data["access_token"]))
    assert resp.status_code == 401


def test_refresh_with_unencodable_token(client):
    resp = client.post(
        f"{BASE}/refresh",
        data='{"refresh_token": "\\ud800"}',
        content_type="application/json",
    )
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid or expired refresh token"


def test_logout_with_unencodable_token(client, register):
    data = register()
    resp = client.post(
        f"{BASE}/logout",
        data='{"refresh_token": "\\ud800"}',
        content_type="application/json",
        headers=bearer(data["access_token"]),
    )
    assert resp.status_code == 200


def test_login_strips_username_like_register(client):
    resp = client.post(
        f"{BASE}/register",
        json={"username": "alice ", "email": "alice@x.com", "full_name": "Alice", "password": "pw123456"},
    )
    assert resp.status_code == 201
    assert resp.get_json()["data"]["user"]["username"] == "alice"

    resp = client.post(f"{BASE}/login", json={"username": "  alice ", "password": "pw123456"})
    assert resp.status_code == 200
