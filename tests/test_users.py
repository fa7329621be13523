"""Admin user management over the API."""

import pytest

from app.application.services import user_service
from app.application.services.image_service import UploadedImage
from app.domain.models.user import User
from app.domain.schemas.user import UserCreate, UserUpdate
from conftest import PNG_BYTES, png

NEW_USER = {
    "first_name": "Bob",
    "last_name": "Stone",
    "email": "bob@example.com",
    "mobile": "+1 555 0142",
    "password": "password123",
    "password_confirmation": "password123",
    "status": "ACTIVE",
    "roles": ["user"],
}


def _form(**overrides):
    data = dict(NEW_USER, **overrides)
    roles = data.pop("roles")
    data["roles[]"] = roles
    return data


def _user(db, user_id):
    db.expire_all()
    return db.query(User).filter(User.id == user_id).one()


def test_admin_cannot_be_deleted(client, db, admin, admin_headers):
    before = (admin.email, admin.status, admin.updated_at)

    resp = client.delete(f"/v1/users/{admin.id}", headers=admin_headers)
    assert resp.status_code == 403
    assert resp.json()["message"] == "Cannot delete admin user"

    admin = _user(db, admin.id)
    assert admin.deleted_at is None
    assert (admin.email, admin.status, admin.updated_at) == before


def test_create_user_with_roles(client, admin, admin_headers):
    resp = client.post("/v1/users", headers=admin_headers, json=NEW_USER)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User created successfully"
    data = body["data"]
    assert data["full_name"] == "Bob Stone"
    assert data["initials"] == "BS"
    assert [r["name"] for r in data["roles"]] == ["user"]
    assert data["creator"]["id"] == admin.id
    assert data["avatar_url"].startswith("https://ui-avatars.com/api/?name=Bob+Stone")


def test_create_user_validation(client, admin_headers, member):
    resp = client.post(
        "/v1/users",
        headers=admin_headers,
        json=dict(NEW_USER, email=member.email, roles=["ghost"], mobile="call me"),
    )
    assert resp.status_code == 422
    assert "mobile" in resp.json()["errors"]

    resp = client.post("/v1/users", headers=admin_headers, json=dict(NEW_USER, email=member.email))
    assert resp.status_code == 422
    assert resp.json()["errors"]["email"] == ["The email has already been taken."]

    resp = client.post("/v1/users", headers=admin_headers, json=dict(NEW_USER, roles=["ghost"]))
    assert resp.status_code == 422
    assert "roles" in resp.json()["errors"]

    resp = client.post("/v1/users", headers=admin_headers, json=dict(NEW_USER, roles=[]))
    assert resp.status_code == 422


def test_create_user_with_avatar(client, admin_headers, public_disk):
    resp = client.post("/v1/users", headers=admin_headers, data=_form(), files={"avatar": png("me.png")})
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["avatar"].startswith("avatars/")
    assert public_disk.exists(data["avatar"])
    assert data["avatar_url"] == f"http://testserver/storage/{data['avatar']}"


def test_replacing_avatar_deletes_previous_file(client, admin_headers, public_disk):
    created = client.post("/v1/users", headers=admin_headers, data=_form(), files={"avatar": png()}).json()["data"]
    old_avatar = created["avatar"]

    resp = client.put(
        f"/v1/users/{created['id']}",
        headers=admin_headers,
        data=_form(first_name="Robert"),
        files={"avatar": png("new.png")},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["first_name"] == "Robert"
    assert data["avatar"] != old_avatar
    assert not public_disk.exists(old_avatar)
    assert public_disk.exists(data["avatar"])


def test_update_replaces_role_set_and_keeps_password(client, db, admin_headers):
    created = client.post("/v1/users", headers=admin_headers, json=NEW_USER).json()["data"]

    payload = {k: v for k, v in NEW_USER.items() if not k.startswith("password")}
    resp = client.put(f"/v1/users/{created['id']}", headers=admin_headers, json=dict(payload, roles=["admin"]))
    assert resp.status_code == 200
    assert [r["name"] for r in resp.json()["data"]["roles"]] == ["admin"]

    login = client.post("/v1/auth/login", json={"email": "bob@example.com", "password": "password123"})
    assert login.status_code == 200


def test_update_allows_own_email_and_mobile(client, admin_headers):
    created = client.post("/v1/users", headers=admin_headers, json=NEW_USER).json()["data"]
    resp = client.put(f"/v1/users/{created['id']}", headers=admin_headers, json=NEW_USER)
    assert resp.status_code == 200


def test_delete_user_removes_avatar_and_soft_deletes(client, db, admin_headers, public_disk):
    created = client.post("/v1/users", headers=admin_headers, data=_form(), files={"avatar": png()}).json()["data"]

    resp = client.delete(f"/v1/users/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "User deleted successfully"
    assert not public_disk.exists(created["avatar"])

    user = _user(db, created["id"])
    assert user.deleted_at is not None
    assert user.avatar is None
    assert client.get(f"/v1/users/{created['id']}", headers=admin_headers).status_code == 404


def test_restore_user(client, admin_headers, member):
    assert client.post(f"/v1/users/restore/{member.id}", headers=admin_headers).status_code == 404

    client.delete(f"/v1/users/{member.id}", headers=admin_headers)
    resp = client.post(f"/v1/users/restore/{member.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "User restored successfully"
    assert client.get(f"/v1/users/{member.id}", headers=admin_headers).status_code == 200


def test_change_status(client, admin_headers, member):
    resp = client.post(f"/v1/users/{member.id}/status", headers=admin_headers, json={"status": "INACTIVE"})
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "success",
        "message": "User Jane Doe marked as INACTIVE",
        "data": {"id": member.id, "status": "INACTIVE"},
    }

    resp = client.post(f"/v1/users/{member.id}/status", headers=admin_headers, json={"status": "BANNED"})
    assert resp.status_code == 422


def test_list_users(client, admin_headers, member):
    resp = client.get("/v1/users", headers=admin_headers, params={"search": "jane"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [u["email"] for u in data["items"]] == ["jane@example.com"]
    assert data["items"][0]["roles"][0]["name"] == "user"
    assert data["per_page"] == 10

    resp = client.get("/v1/users", headers=admin_headers, params={"status": "INACTIVE"})
    assert resp.json()["data"]["items"] == []
    assert resp.json()["data"]["from"] is None


def test_user_routes_are_admin_only(client, member, member_headers):
    assert client.get("/v1/users", headers=member_headers).status_code == 403
    assert client.get(f"/v1/users/{member.id}", headers=member_headers).status_code == 403
    assert client.get("/v1/users").status_code == 401


def _activity(db, user_repo, user_id):
    db.expire_all()
    return [(entry.event, entry.old_values, entry.new_values) for entry in user_repo.get_activity(user_id)]


def test_tracked_changes_are_logged(client, db, admin, admin_headers, user_repo):
    created = client.post("/v1/users", headers=admin_headers, json=NEW_USER).json()["data"]

    client.put(f"/v1/users/{created['id']}", headers=admin_headers, json=dict(NEW_USER, first_name="Robert"))
    client.post(f"/v1/users/{created['id']}/status", headers=admin_headers, json={"status": "INACTIVE"})

    assert _activity(db, user_repo, created["id"]) == [
        (
            "created",
            {},
            {
                "first_name": "Bob",
                "last_name": "Stone",
                "email": "bob@example.com",
                "mobile": "+1 555 0142",
                "status": "ACTIVE",
            },
        ),
        ("updated", {"first_name": "Bob"}, {"first_name": "Robert"}),
        ("updated", {"status": "ACTIVE"}, {"status": "INACTIVE"}),
    ]
    assert {entry.causer_id for entry in user_repo.get_activity(created["id"])} == {admin.id}


def test_update_without_tracked_changes_logs_nothing(client, db, admin_headers, user_repo):
    created = client.post("/v1/users", headers=admin_headers, json=NEW_USER).json()["data"]

    resp = client.put(
        f"/v1/users/{created['id']}",
        headers=admin_headers,
        json=dict(NEW_USER, password="newpassword1", password_confirmation="newpassword1", roles=["admin"]),
    )
    assert resp.status_code == 200

    assert [event for event, _, _ in _activity(db, user_repo, created["id"])] == ["created"]


def test_failed_update_keeps_previous_avatar(user_repo, public_disk, admin, monkeypatch):
    user = user_service.create_user(
        user_repo,
        public_disk,
        UserCreate(**NEW_USER),
        admin,
        avatar=UploadedImage("me.png", "image/png", PNG_BYTES),
    )
    previous = user.avatar

    def fail(_user, _fields):
        raise RuntimeError("unique constraint failed")

    monkeypatch.setattr(user_repo, "update", fail)

    with pytest.raises(RuntimeError):
        user_service.update_user(
            user_repo,
            public_disk,
            user,
            UserUpdate(**dict(NEW_USER, first_name="Robert")),
            admin,
            avatar=UploadedImage("new.png", "image/png", PNG_BYTES),
        )

    assert public_disk.exists(previous)
    assert [path.name for path in (public_disk.root / "avatars").iterdir()] == [previous.split("/")[1]]
