from datetime import datetime, timedelta

import pytest

from recomp.extensions import db
from recomp.models import User
from recomp.helpers.url import hash_token


@pytest.fixture
def outbox(monkeypatch):
    """Captures (email, token) instead of sending anything."""
    sent = []

    def fake_send(email, token):
        sent.append((email, token))
        return True

    monkeypatch.setattr("recomp.routes.auth.send_verification_email", fake_send)
    monkeypatch.setattr("recomp.routes.auth.send_password_reset_email", fake_send)
    return sent


def _register(client, username="alice", email="Alice@Example.com", password="secret123"):
    return client.post("/api/register", json={"username": username, "email": email, "password": password})


def test_register_then_verify_then_login(client, outbox):
    resp = _register(client)
    assert resp.status_code == 201
    assert resp.get_json()["requires_verification"] is True

    user = User.query.filter_by(username="alice").first()
    assert user.email == "alice@example.com"
    assert user.password_hash != "secret123"

    email, token = outbox[0]
    assert email == "alice@example.com"
    # only the hash is stored
    assert user.email_verification_token == hash_token(token)

    resp = client.post("/api/login", json={"username": "alice", "password": "secret123"})
    assert resp.status_code == 401
    assert resp.get_json()["requires_verification"] is True

    assert client.post("/api/verify-email", json={"token": token}).status_code == 200

    resp = client.post("/api/login", json={"username": "alice@example.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.get_json()["username"] == "alice"
    assert resp.get_json()["is_admin"] is False


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "al", "email": "al@example.com", "password": "secret123"},
        {"username": "alice", "email": "not-an-email", "password": "secret123"},
        {"username": "alice", "email": "alice@example.com", "password": "123"},
    ],
)
def test_register_validation(client, outbox, payload):
    resp = client.post("/api/register", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False


def test_register_duplicate(client, outbox, make_user):
    make_user("alice")
    assert _register(client).status_code == 400
    assert _register(client, username="other").status_code == 400


def test_register_auto_verifies_in_development_when_email_fails(app, client, monkeypatch):
    app.config["ENVIRONMENT"] = "development"
    monkeypatch.setattr("recomp.routes.auth.send_verification_email", lambda email, token: False)

    resp = _register(client)
    assert resp.status_code == 201
    assert resp.get_json()["requires_verification"] is False
    assert User.query.filter_by(username="alice").first().is_email_verified is True


def test_verify_email_rejects_expired_token(client, outbox):
    _register(client)
    _, token = outbox[0]

    user = User.query.filter_by(username="alice").first()
    user.email_verification_expires = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    assert client.post("/api/verify-email", json={"token": token}).status_code == 400
    assert client.post("/api/verify-email", json={"token": "nope"}).status_code == 400


def test_resend_verification(client, outbox, make_user):
    _register(client)
    assert client.post("/api/resend-verification", json={"email": "alice@example.com"}).status_code == 200
    assert len(outbox) == 2
    assert outbox[0][1] != outbox[1][1]

    make_user("bob")
    assert client.post("/api/resend-verification", json={"email": "bob@example.com"}).status_code == 400
    assert client.post("/api/resend-verification", json={"email": "ghost@example.com"}).status_code == 404


def test_login_failures(client, make_user):
    make_user("alice")
    make_user("gone", is_active=False)

    assert client.post("/api/login", json={"username": "alice", "password": "wrong"}).status_code == 401
    assert client.post("/api/login", json={"username": "nobody", "password": "secret123"}).status_code == 401
    assert client.post("/api/login", json={"username": "gone", "password": "secret123"}).status_code == 401
    assert client.post("/api/login", json={}).status_code == 400


def test_current_user_and_logout(client, make_user, login):
    make_user("alice")
    assert client.get("/api/user").status_code == 401

    login("alice")
    assert client.get("/api/user").get_json()["username"] == "alice"

    assert client.post("/api/logout").status_code == 200
    assert client.get("/api/user").status_code == 401


def test_forgot_and_reset_password(client, outbox, make_user):
    make_user("alice")

    unknown = client.post("/api/forgot-password", json={"email": "ghost@example.com"}).get_json()
    known = client.post("/api/forgot-password", json={"email": "alice@example.com"}).get_json()
    assert unknown == known
    assert len(outbox) == 1

    _, token = outbox[0]
    assert client.post("/api/reset-password", json={"token": token, "password": "abc"}).status_code == 400
    assert client.post("/api/reset-password", json={"token": "bad", "password": "newpass1"}).status_code == 400
    assert client.post("/api/reset-password", json={"token": token, "password": "newpass1"}).status_code == 200

    # single use
    assert client.post("/api/reset-password", json={"token": token, "password": "newpass2"}).status_code == 400

    assert client.post("/api/login", json={"username": "alice", "password": "newpass1"}).status_code == 200


def test_deactivate_account(client, make_user, make_scan, login):
    alice = make_user("alice")
    make_scan(alice, "2025-08-04", 25, 130)
    make_scan(alice, "2025-09-23", 20, 130)
    login("alice")

    assert client.get("/api/leaderboard").get_json()[0]["user_id"] == alice.id

    assert client.delete("/api/user").status_code == 200
    assert client.get("/api/user").status_code == 401
    assert client.get("/api/leaderboard").get_json() == []
    assert client.post("/api/login", json={"username": "alice", "password": "secret123"}).status_code == 401
