from datetime import datetime, timedelta, timezone

import pytest

import auth
from models import AuthToken, User, utcnow

REGISTER = {
    "username": "carol_1",
    "email": "Carol@Example.com",
    "password": "Secret123",
    "confirm_password": "Secret123",
}


def register(client, **overrides):
    body = dict(REGISTER, **overrides)
    return client.post("/api/auth/register", json=body)


class TestRegister:

    def test_register_returns_token(self, client):
        r = register(client)
        assert r.status_code == 201
        body = r.json()
        assert body["token"]
        assert body["user"]["email"] == "carol@example.com"
        assert body["user"]["role"] == "user"
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.json()["user"]["username"] == "carol_1"

    @pytest.mark.parametrize("overrides,message", [
        ({"username": "ab"}, "Username must be 3–30 characters"),
        ({"username": "bad name"}, "Username can only contain letters, numbers, and underscores"),
        ({"email": "nope"}, "Valid email is required"),
        ({"password": "Short1", "confirm_password": "Short1"}, "Password must be at least 8 characters"),
        ({"password": "alllower1", "confirm_password": "alllower1"},
         "Password must contain uppercase, lowercase, and a number"),
        ({"confirm_password": "Different1"}, "Passwords do not match"),
    ])
    def test_validation(self, client, overrides, message):
        r = register(client, **overrides)
        assert r.status_code == 400
        assert r.json()["message"] == message

    def test_duplicates(self, client):
        register(client)
        assert register(client, username="other").json()["message"] == "Email is already taken."
        assert register(client, email="x@example.com").json()["message"] == "Username is already taken."


class TestLogin:

    def test_login_ok(self, client):
        register(client)
        r = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "Secret123"})
        assert r.status_code == 200
        assert r.json()["user"]["username"] == "carol_1"

    def test_bad_password(self, client):
        register(client)
        r = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "Wrong123"})
        assert r.status_code == 401
        assert r.json()["message"] == "Invalid email or password."

    def test_unknown_token(self, client):
        r = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401


def test_logout_revokes_token(client):
    token = register(client).json()["token"]
    hdrs = {"Authorization": f"Bearer {token}"}
    assert client.post("/api/auth/logout", headers=hdrs).status_code == 200
    assert client.get("/api/auth/me", headers=hdrs).status_code == 401


def test_expired_token_rejected(client, session, headers, alice):
    hdrs = headers(alice)
    tok = session.get(AuthToken, hdrs["Authorization"].split(" ", 1)[1])
    assert client.get("/api/auth/me", headers=hdrs).status_code == 200
    tok.valid_from = utcnow() - timedelta(hours=2)
    tok.valid_to = utcnow() - timedelta(hours=1)
    session.commit()
    assert client.get("/api/auth/me", headers=hdrs).status_code == 401


def test_token_window_is_timezone_aware(session, alice):
    token = auth.issue_token(session, alice)
    tok = session.get(AuthToken, token)
    assert auth.as_utc(tok.valid_to) - auth.as_utc(tok.valid_from) == timedelta(hours=168)
    assert auth.resolve_token(session, token).id == alice.id


def test_naive_database_values_read_as_utc():
    naive = datetime(2026, 3, 2, 9, 0)
    assert auth.as_utc(naive) == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    manila = datetime(2026, 3, 2, 17, 0, tzinfo=timezone(timedelta(hours=8)))
    assert auth.as_utc(manila) == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_delete_account(client, session, headers, alice, rooms):
    hdrs = headers(alice)
    uid = alice.id
    client.post("/api/bookings", headers=hdrs, json={
        "room_id": rooms[0].id, "booking_date": "2026-03-02", "start_time": "09:00", "end_time": "10:00"})
    r = client.delete("/api/auth/delete-account", headers=hdrs)
    assert r.status_code == 200
    assert session.get(User, uid) is None
    assert client.get("/api/auth/me", headers=hdrs).status_code == 401


class TestProfile:

    def test_update_username_and_photo(self, client, headers, alice):
        r = client.patch("/api/users/profile", headers=headers(alice),
                         json={"username": "alice_2", "profile_photo": "data:image/png;base64,AAAA"})
        assert r.status_code == 200
        assert r.json()["user"]["username"] == "alice_2"
        assert r.json()["user"]["profile_photo"].startswith("data:image/png")

    def test_username_taken(self, client, headers, alice, bob):
        r = client.patch("/api/users/profile", headers=headers(alice), json={"username": "bob"})
        assert r.status_code == 400
        assert r.json()["message"] == "Username already taken."
