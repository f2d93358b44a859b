from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from chatty.db.base import utcnow
from chatty.models.tokens import RefreshToken
from chatty.models.users import User

from conftest import auth_headers, count_rows, register

def test_register_returns_user_and_token_pair(client, sync_engine):
    body = register(client, full_name="Alice Liddell")

    assert body["user"]["username"] == "alice"
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["full_name"] == "Alice Liddell"
    assert "hashed_password" not in body["user"]
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 15 * 60
    assert body["access_token"] and body["refresh_token"]
    assert count_rows(sync_engine, RefreshToken) == 1

def test_password_is_stored_hashed(client, sync_engine):
    register(client)

    with Session(sync_engine) as session:
        user = session.query(User).one()
        assert user.hashed_password != "secret123"
        assert user.hashed_password.startswith("$2")

def test_duplicate_username_or_email_conflicts(client):
    register(client)

    same_email = client.post(
        "/api/auth/register",
        json={"username": "other", "email": "alice@example.com", "password": "secret123"},
    )
    same_username = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "secret123"},
    )

    assert same_email.status_code == 409
    assert same_username.status_code == 409

def test_register_validation(client, sync_engine):
    missing = client.post("/api/auth/register", json={"username": "bob", "password": "secret123"})
    weak = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "bob@example.com", "password": "short"},
    )
    no_digit = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "bob@example.com", "password": "password"},
    )

    assert missing.status_code == 422
    assert weak.status_code == 422
    assert no_digit.status_code == 422
    assert count_rows(sync_engine, User) == 0

def test_login_issues_a_new_refresh_token_each_time(client, sync_engine):
    register(client)

    first = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    second = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["refresh_token"] != second.json()["refresh_token"]
    assert first.json()["user"]["last_login"] is not None
    assert count_rows(sync_engine, RefreshToken) == 3

def test_login_rejects_bad_credentials(client):
    register(client)

    wrong_password = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong123"})
    unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"})
    missing = client.post("/api/auth/login", json={"email": "alice@example.com"})

    assert wrong_password.status_code == 401
    assert wrong_password.json()["detail"] == "Invalid credentials"
    assert unknown.status_code == 401
    assert missing.status_code == 422

def test_expired_refresh_tokens_are_swept_on_issue(client, sync_engine):
    register(client)
    with Session(sync_engine) as session:
        session.execute(update(RefreshToken).values(expires_at=utcnow() - timedelta(days=1)))
        session.commit()

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})

    assert response.status_code == 200
    assert count_rows(sync_engine, RefreshToken) == 1

def test_refresh_rotates_the_token(client, sync_engine):
    tokens = register(client)

    refreshed = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    reused = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

    assert refreshed.status_code == 200
    assert refreshed.json()["refresh_token"] != tokens["refresh_token"]
    assert reused.status_code == 401
    assert count_rows(sync_engine, RefreshToken) == 1
    profile = client.get("/api/auth/profile", headers=auth_headers(refreshed.json()))
    assert profile.status_code == 200

def test_refresh_rejects_access_tokens_and_expired_rows(client, sync_engine):
    tokens = register(client)

    as_access = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert as_access.status_code == 401

    with Session(sync_engine) as session:
        session.execute(update(RefreshToken).values(expires_at=utcnow() - timedelta(minutes=1)))
        session.commit()
    expired = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert expired.status_code == 401

def test_profile_requires_a_valid_access_token(client):
    tokens = register(client)

    assert client.get("/api/auth/profile").status_code == 401
    assert client.get("/api/auth/profile", headers={"Authorization": "Bearer junk"}).status_code == 401
    refresh_as_access = {"Authorization": f"Bearer {tokens['refresh_token']}"}
    assert client.get("/api/auth/profile", headers=refresh_as_access).status_code == 401

def test_profile_read_and_partial_update(client):
    tokens = register(client)
    headers = auth_headers(tokens)

    response = client.put(
        "/api/auth/profile",
        json={"preferred_name": "Al", "bio": "Curious", "avatar_url": "https://example.com/a.png"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["preferred_name"] == "Al"
    assert body["bio"] == "Curious"
    assert body["username"] == "alice"
    profile = client.get("/api/auth/profile", headers=headers).json()
    assert profile["avatar_url"] == "https://example.com/a.png"

def test_profile_username_change(client):
    register(client)
    tokens = register(client, username="bob", email="bob@example.com")
    headers = auth_headers(tokens)

    taken = client.put("/api/auth/profile", json={"username": "alice"}, headers=headers)
    renamed = client.put("/api/auth/profile", json={"username": "robert"}, headers=headers)

    assert taken.status_code == 409
    assert renamed.status_code == 200
    assert renamed.json()["username"] == "robert"

def test_inactive_user_cannot_use_profile(client, sync_engine):
    tokens = register(client)
    with Session(sync_engine) as session:
        session.execute(update(User).values(is_active=False))
        session.commit()

    response = client.get("/api/auth/profile", headers=auth_headers(tokens))

    assert response.status_code == 400
