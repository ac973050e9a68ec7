import pytest

from blinky.core.errors import NotFoundError, ValidationError
from blinky.plugins.users.service import (
    get_push_tokens,
    list_notifiable,
    list_users,
    require_email,
    set_notifications_enabled,
    upsert_user,
    user_exists,
)

TOKEN = "ExponentPushToken[abc123]"


def test_register_with_null_keeps_existing_token(db):
    upsert_user("a@x.com", TOKEN)
    upsert_user("a@x.com", None)
    assert get_push_tokens("a@x.com") == [TOKEN]


def test_register_twice_without_token_is_idempotent(db):
    upsert_user("a@x.com")
    upsert_user("a@x.com")
    assert [u.email for u in list_users()] == ["a@x.com"]
    assert get_push_tokens("a@x.com") == []


def test_new_token_replaces_old_one(db):
    upsert_user("a@x.com", TOKEN)
    upsert_user("a@x.com", "ExpoPushToken[new]")
    assert get_push_tokens("a@x.com") == ["ExpoPushToken[new]"]


def test_upsert_refreshes_last_seen(db):
    upsert_user("a@x.com")
    first = list_users()[0].last_seen
    upsert_user("a@x.com")
    assert list_users()[0].last_seen >= first


def test_toggle_unknown_identity_is_not_found(db):
    with pytest.raises(NotFoundError):
        set_notifications_enabled("ghost@x.com", False)


def test_notifiable_requires_token_and_enabled(db):
    upsert_user("token@x.com", TOKEN)
    upsert_user("notoken@x.com")
    upsert_user("muted@x.com", "ExponentPushToken[muted]")
    set_notifications_enabled("muted@x.com", False)
    assert [u.email for u in list_notifiable()] == ["token@x.com"]


@pytest.mark.parametrize("email", [None, "", "   "])
def test_require_email_rejects_blank(email):
    with pytest.raises(ValidationError):
        require_email(email)


def test_register_endpoint(client):
    resp = client.post("/api/register", json={"email": "a@x.com", "pushToken": TOKEN})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "User registered successfully", "email": "a@x.com"}
    assert user_exists("a@x.com")


def test_register_applies_notification_preference(client):
    client.post("/api/register", json={"email": "a@x.com", "pushToken": TOKEN, "notificationsEnabled": False})
    users = client.get("/api/users").json()["users"]
    assert users[0]["notificationsEnabled"] is False
    assert users[0]["pushToken"] == TOKEN


def test_register_rejects_invalid_token(client):
    resp = client.post("/api/register", json={"email": "a@x.com", "pushToken": "not-a-token"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid Expo push token"}


def test_register_requires_email(client):
    resp = client.post("/api/register", json={"pushToken": TOKEN})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Email is required"}


def test_toggle_notifications_endpoint(client):
    client.post("/api/register", json={"email": "a@x.com"})
    resp = client.post("/api/toggle-notifications", json={"email": "a@x.com", "enabled": False})
    assert resp.status_code == 200
    assert resp.json()["enabled"] is False
    assert client.get("/api/users").json()["users"][0]["notificationsEnabled"] is False


def test_toggle_rejects_non_boolean(client):
    client.post("/api/register", json={"email": "a@x.com"})
    resp = client.post("/api/toggle-notifications", json={"email": "a@x.com", "enabled": "yes"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Enabled must be a boolean"}


def test_toggle_unknown_identity_returns_404(client):
    resp = client.post("/api/toggle-notifications", json={"email": "ghost@x.com", "enabled": True})
    assert resp.status_code == 404
    assert "error" in resp.json()


def test_list_users_shape(client):
    client.post("/api/register", json={"email": "a@x.com"})
    body = client.get("/api/users").json()
    assert body["count"] == 1
    assert set(body["users"][0]) == {"email", "pushToken", "notificationsEnabled", "createdAt", "lastSeen"}
