"""Account and session endpoints through the FastAPI app."""

import pytest

from backend.src.services.auth import LOCAL_USER_ID

pytestmark = pytest.mark.integration


def test_register_returns_token_and_profile(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "writer", "email": "Writer@Example.com", "password": "password123"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["username"] == "writer"
    assert body["user"]["email"] == "writer@example.com"
    assert "password_hash" not in body["user"]


def test_register_validation_error_envelope(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "writer", "email": "writer@example.com", "password": "letters"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "INVALID_PASSWORD"
    assert body["message"] == "Password must contain at least one number"
    assert "errors" in body["detail"]


def test_register_with_overlong_bio_leaves_email_free(client):
    payload = {"username": "writer", "email": "writer@example.com", "password": "password123"}

    response = client.post("/api/auth/register", json={**payload, "bio": "x" * 200})
    assert response.status_code == 400
    assert response.json()["error"] == "BIO_TOO_LONG"

    login = client.post(
        "/api/auth/login", json={"email": "writer@example.com", "password": "password123"}
    )
    assert login.status_code == 401

    retry = client.post("/api/auth/register", json={**payload, "bio": "Short and sweet."})
    assert retry.status_code == 201
    assert retry.json()["user"]["bio"] == "Short and sweet."


def test_malformed_body_is_a_400(client):
    response = client.post("/api/auth/register", json={"username": ["not", "a", "string"]})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["detail"]["errors"][0]["loc"] == ["body", "username"]


def test_duplicate_registration_conflicts(client, alice):
    response = client.post(
        "/api/auth/register",
        json={"username": "Alice", "email": "new@example.com", "password": "password123"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "USERNAME_EXISTS"


def test_login_and_me(client, alice):
    response = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "password123"}
    )
    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json()["username"] == "alice"
    assert me.json()["email"] == "alice@example.com"


def test_login_with_wrong_password(client, alice):
    response = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "password999"}
    )

    assert response.status_code == 401
    assert response.json() == {
        "error": "INVALID_CREDENTIALS",
        "message": "Invalid email or password",
        "detail": None,
    }


def test_repeated_failed_logins_are_rate_limited(client, alice):
    payload = {"email": "alice@example.com", "password": "password999"}
    for _ in range(5):
        assert client.post("/api/auth/login", json=payload).status_code == 401

    blocked = client.post("/api/auth/login", json=payload)

    assert blocked.status_code == 429
    assert blocked.json()["error"] == "RATE_LIMIT_EXCEEDED"
    assert "reset_at" in blocked.json()["detail"]


def test_me_requires_a_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"] == "NO_TOKEN"


@pytest.mark.parametrize(
    "header,error",
    [
        ("Token abc", "INVALID_TOKEN"),
        ("Bearer", "INVALID_TOKEN"),
        ("Bearer not-a-jwt", "invalid_token"),
    ],
)
def test_me_rejects_bad_credentials(client, header, error):
    response = client.get("/api/auth/me", headers={"Authorization": header})

    assert response.status_code == 401
    assert response.json()["error"] == error


def test_local_token_maps_to_seeded_user(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer local-dev-token"})

    assert response.status_code == 200
    assert response.json()["id"] == LOCAL_USER_ID


def test_token_for_deleted_user_is_rejected(client, alice, db):
    conn = db.connect()
    try:
        conn.execute("DELETE FROM users WHERE username = 'alice'")
        conn.commit()
    finally:
        conn.close()

    response = client.get("/api/auth/me", headers=alice["headers"])

    assert response.status_code == 401
    assert response.json()["error"] == "USER_NOT_FOUND"


def test_logout(client):
    assert client.post("/api/auth/logout").json()["message"] == "Logged out successfully"


def test_check_username(client, alice):
    assert client.get("/api/auth/check-username", params={"username": "fresh"}).json()["available"]

    taken = client.get("/api/auth/check-username", params={"username": "alice"}).json()
    assert taken["available"] is False

    missing = client.get("/api/auth/check-username")
    assert missing.status_code == 400
    assert missing.json()["error"] == "MISSING_USERNAME"


def test_registration_awards_login_experience(client, alice):
    profile = client.get("/api/engagement/profile", headers=alice["headers"]).json()

    assert profile["experience"] == 3
