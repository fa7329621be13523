"""Registration, login, profile, password and session lifecycle over the API."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from app.config import get_settings
from app.domain.models.user import UserStatus

settings = get_settings()

REGISTER_BODY = {
    "first_name": "Ana-María",
    "last_name": "López",
    "email": "ana@example.com",
    "password": "secret-pass",
    "password_confirmation": "secret-pass",
}


def _login(client, email, password):
    return client.post("/v1/auth/login", json={"email": email, "password": password})


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_returns_usable_token(client):
    resp = client.post("/v1/auth/register", json=REGISTER_BODY)
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    assert body["message"] == "Registration successful"
    token = body["data"]["access_token"]
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["expires_in"] == settings.JWT_EXPIRATION_MINUTES * 60
    assert [r["name"] for r in body["data"]["user"]["roles"]] == ["user"]
    assert "password_hash" not in body["data"]["user"]

    me = client.get("/v1/auth/me", headers=_auth(token))
    assert me.status_code == 200
    assert me.json()["data"]["id"] == body["data"]["user"]["id"]
    assert me.json()["data"]["email"] == "ana@example.com"
    assert me.json()["data"]["full_name"] == "Ana-María López"


def test_register_duplicate_email_is_validation_error(client):
    assert client.post("/v1/auth/register", json=REGISTER_BODY).status_code == 201

    resp = client.post("/v1/auth/register", json=REGISTER_BODY)
    assert resp.status_code == 422
    body = resp.json()
    assert body["status"] == "error"
    assert body["errors"]["email"] == ["The email has already been taken."]


def test_register_rejects_bad_names_and_password_mismatch(client):
    resp = client.post(
        "/v1/auth/register",
        json={**REGISTER_BODY, "first_name": "R2D2", "password_confirmation": "different"},
    )
    assert resp.status_code == 422
    errors = resp.json()["errors"]
    assert "first_name" in errors
    assert "password_confirmation" in errors


def test_register_without_last_name(client):
    body = {k: v for k, v in REGISTER_BODY.items() if k != "last_name"}
    resp = client.post("/v1/auth/register", json=body)
    assert resp.status_code == 201
    assert resp.json()["data"]["user"]["last_name"] == ""


def test_login_wrong_password_returns_401_without_token(client, member):
    resp = _login(client, "jane@example.com", "wrong-password")
    assert resp.status_code == 401
    body = resp.json()
    assert body["message"] == "Invalid email or password"
    assert "data" not in body
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_login_returns_token_for_same_user(client, member):
    resp = _login(client, "jane@example.com", "password123")
    assert resp.status_code == 200
    token = resp.json()["data"]["access_token"]

    me = client.get("/v1/auth/me", headers=_auth(token))
    assert me.json()["data"]["id"] == member.id


def test_login_validates_payload(client):
    resp = _login(client, "not-an-email", "123")
    assert resp.status_code == 422
    assert set(resp.json()["errors"]) == {"email", "password"}


def test_me_requires_token(client):
    resp = client.get("/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Unauthenticated"

    resp = client.get("/v1/auth/me", headers=_auth("garbage"))
    assert resp.status_code == 401


def test_change_password_with_wrong_current_password(client, member, member_headers):
    resp = client.put(
        "/v1/auth/change-password",
        headers=member_headers,
        json={
            "current_password": "nope-nope",
            "password": "new-password",
            "password_confirmation": "new-password",
        },
    )
    assert resp.status_code == 422
    assert resp.json()["message"] == "Current password is incorrect"
    assert _login(client, "jane@example.com", "password123").status_code == 200


def test_change_password_replaces_old_password(client, member, member_headers):
    resp = client.put(
        "/v1/auth/change-password",
        headers=member_headers,
        json={
            "current_password": "password123",
            "password": "new-password",
            "password_confirmation": "new-password",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Password changed successfully"
    assert _login(client, "jane@example.com", "password123").status_code == 401
    assert _login(client, "jane@example.com", "new-password").status_code == 200


def test_update_profile(client, db, member, member_headers, admin):
    admin.mobile = "+1 555 0100"
    db.commit()
    resp = client.put("/v1/auth/profile", headers=member_headers, json={"mobile": "+1 555 0100"})
    assert resp.status_code == 422
    assert "mobile" in resp.json()["errors"]

    resp = client.put(
        "/v1/auth/profile",
        headers=member_headers,
        json={"first_name": "Janet", "mobile": "+1 555 0199"},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["first_name"] == "Janet"
    assert data["last_name"] == "Doe"
    assert data["mobile"] == "+1 555 0199"

    # Keeping one's own mobile is not a conflict
    resp = client.put("/v1/auth/profile", headers=member_headers, json={"mobile": "+1 555 0199"})
    assert resp.status_code == 200


def test_logout_revokes_token(client, member):
    token = _login(client, "jane@example.com", "password123").json()["data"]["access_token"]

    resp = client.post("/v1/auth/logout", headers=_auth(token))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Successfully logged out"

    assert client.get("/v1/auth/me", headers=_auth(token)).status_code == 401
    assert client.post("/v1/auth/refresh", headers=_auth(token)).status_code == 401


def test_refresh_issues_new_token_and_revokes_old(client, member):
    old = _login(client, "jane@example.com", "password123").json()["data"]["access_token"]

    resp = client.post("/v1/auth/refresh", headers=_auth(old))
    assert resp.status_code == 200
    new = resp.json()["data"]["access_token"]
    assert new != old

    assert client.get("/v1/auth/me", headers=_auth(new)).status_code == 200
    assert client.get("/v1/auth/me", headers=_auth(old)).status_code == 401


def test_expired_token_can_be_refreshed_within_window(client, member):
    issued = datetime.now(timezone.utc) - timedelta(hours=3)
    expired = jwt.encode(
        {"sub": str(member.id), "iat": issued, "exp": issued + timedelta(hours=1), "jti": "expired-jti"},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    assert client.get("/v1/auth/me", headers=_auth(expired)).status_code == 401

    resp = client.post("/v1/auth/refresh", headers=_auth(expired))
    assert resp.status_code == 200
    assert client.get("/v1/auth/me", headers=_auth(resp.json()["data"]["access_token"])).status_code == 200


def test_deleted_user_token_stops_working_until_restored(client, db, member, member_headers, admin_headers):
    assert client.get("/v1/auth/me", headers=member_headers).status_code == 200

    assert client.delete(f"/v1/users/{member.id}", headers=admin_headers).status_code == 200
    assert client.get("/v1/auth/me", headers=member_headers).status_code == 401

    assert client.post(f"/v1/users/restore/{member.id}", headers=admin_headers).status_code == 200
    assert client.get("/v1/auth/me", headers=member_headers).status_code == 200


def test_inactive_user_cannot_authenticate(client, db, member, member_headers):
    member.status = UserStatus.INACTIVE.value
    db.commit()

    assert client.get("/v1/auth/me", headers=member_headers).status_code == 401
    assert _login(client, "jane@example.com", "password123").status_code == 401
