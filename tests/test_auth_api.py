from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from conftest import create_user, make_config
from storefront.core.tokens import TokenService
from storefront.models.user import UserRole

REGISTER = {
    "username": "alice",
    "email": "Alice@Acme.io",
    "password": "secret123",
    "full_name": "Alice Liddell",
}


def _register(client: TestClient, **overrides) -> dict:
    r = client.post("/api/v1/auth/register", json={**REGISTER, **overrides})
    assert r.status_code == 201, r.text
    return r.json()


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_register_returns_tokens_and_customer_user(client: TestClient) -> None:
    data = _register(client)

    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["email"] == "alice@acme.io"
    assert data["user"]["role"] == "Customer"
    assert "hashed_password" not in data["user"]


def test_register_rejects_duplicates_and_weak_passwords(client: TestClient) -> None:
    _register(client)

    r = client.post("/api/v1/auth/register", json={**REGISTER, "username": "other"})
    assert r.status_code == 409
    r = client.post("/api/v1/auth/register", json={**REGISTER, "email": "x@acme.io"})
    assert r.status_code == 409
    r = client.post("/api/v1/auth/register", json={**REGISTER, "username": "bob", "email": "b@acme.io", "password": "onlyletters"})
    assert r.status_code == 422


def test_login_and_me(client: TestClient) -> None:
    _register(client)

    r = client.post("/api/v1/auth/login", json={"email": "alice@acme.io", "password": "secret123"})
    assert r.status_code == 200
    data = r.json()
    assert data["user"]["last_login"] is not None

    me = client.get("/api/v1/auth/me", headers=_bearer(data["access_token"]))
    assert me.status_code == 200
    assert me.json()["username"] == "alice"


def test_login_with_bad_credentials_is_401(client: TestClient) -> None:
    _register(client)
    r = client.post("/api/v1/auth/login", json={"email": "alice@acme.io", "password": "wrong123"})
    assert r.status_code == 401
    r = client.post("/api/v1/auth/login", json={"email": "nobody@acme.io", "password": "secret123"})
    assert r.status_code == 401


def test_me_requires_valid_token(client: TestClient) -> None:
    assert client.get("/api/v1/auth/me").status_code == 401
    r = client.get("/api/v1/auth/me", headers=_bearer("not-a-jwt"))
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHENTICATED"
    assert r.headers["WWW-Authenticate"] == "Bearer"


def test_expired_access_token_is_refused_for_requests(client: TestClient) -> None:
    data = _register(client)
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = TokenService(make_config(), clock=lambda: past).issue_access_token(
        data["user"]["id"], data["user"]["email"], data["user"]["role"], data["user"]["username"]
    )

    assert client.get("/api/v1/auth/me", headers=_bearer(expired)).status_code == 401

    # mas serve para o fluxo de refresh
    r = client.post(
        "/api/v1/auth/refresh-token",
        json={"access_token": expired, "refresh_token": data["refresh_token"]},
    )
    assert r.status_code == 200
    fresh = r.json()
    assert fresh["refresh_token"] != data["refresh_token"]
    assert client.get("/api/v1/auth/me", headers=_bearer(fresh["access_token"])).status_code == 200


def test_refresh_token_cannot_be_spent_twice(client: TestClient) -> None:
    data = _register(client)
    body = {"access_token": data["access_token"], "refresh_token": data["refresh_token"]}

    assert client.post("/api/v1/auth/refresh-token", json=body).status_code == 200
    r = client.post("/api/v1/auth/refresh-token", json=body)
    assert r.status_code == 401
    assert r.json() == {"code": "UNAUTHENTICATED", "message": "Invalid refresh token", "details": None}


def test_revoke_token_and_logout(client: TestClient) -> None:
    data = _register(client)
    second = client.post("/api/v1/auth/login", json={"email": "alice@acme.io", "password": "secret123"}).json()
    headers = _bearer(data["access_token"])

    r = client.post("/api/v1/auth/revoke-token", json={"refresh_token": second["refresh_token"]}, headers=headers)
    assert r.status_code == 200
    r = client.post("/api/v1/auth/revoke-token", json={"refresh_token": second["refresh_token"]}, headers=headers)
    assert r.status_code == 400

    r = client.post("/api/v1/auth/logout", headers=headers)
    assert r.json() == {"ok": True, "revoked": 1}
    r = client.post(
        "/api/v1/auth/refresh-token",
        json={"access_token": data["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert r.status_code == 401


def test_sessions_are_paginated_with_link_header(client: TestClient) -> None:
    data = _register(client)
    for _ in range(4):
        client.post("/api/v1/auth/login", json={"email": "alice@acme.io", "password": "secret123"})

    r = client.get("/api/v1/auth/sessions?page=2&pageSize=2", headers=_bearer(data["access_token"]))
    assert r.status_code == 200
    body = r.json()
    assert body["total_count"] == 5
    assert body["page"] == 2 and body["page_size"] == 2
    assert len(body["items"]) == 2
    assert all("token" not in item for item in body["items"])
    assert r.headers["X-Total-Count"] == "5"
    link = r.headers["Link"]
    assert '</api/v1/auth/sessions?page=1&pageSize=2>; rel="prev"' in link
    assert '</api/v1/auth/sessions?page=3&pageSize=2>; rel="last"' in link


def test_user_listing_requires_staff(client: TestClient, session_factory: sessionmaker) -> None:
    customer = _register(client)
    with session_factory() as s:
        create_user(s, username="sam", email="sam@acme.io", password="staff123", role=UserRole.STAFF)
    staff = client.post("/api/v1/auth/login", json={"email": "sam@acme.io", "password": "staff123"}).json()

    assert client.get("/api/v1/users/", headers=_bearer(customer["access_token"])).status_code == 403

    r = client.get("/api/v1/users/?page=0&pageSize=500", headers=_bearer(staff["access_token"]))
    assert r.status_code == 200
    body = r.json()
    assert body["page"] == 1 and body["page_size"] == 100
    assert body["total_count"] == 2
    assert "Link" not in r.headers


def test_admin_can_revoke_all_sessions_of_a_user(client: TestClient, session_factory: sessionmaker) -> None:
    customer = _register(client)
    with session_factory() as s:
        create_user(s, username="root", email="root@acme.io", password="admin123", role=UserRole.ADMIN)
    admin = client.post("/api/v1/auth/login", json={"email": "root@acme.io", "password": "admin123"}).json()

    r = client.post(
        f"/api/v1/users/{customer['user']['id']}/revoke-sessions", headers=_bearer(customer["access_token"])
    )
    assert r.status_code == 403

    r = client.post(f"/api/v1/users/{customer['user']['id']}/revoke-sessions", headers=_bearer(admin["access_token"]))
    assert r.json() == {"ok": True, "revoked": 1}
    assert client.post("/api/v1/users/999/revoke-sessions", headers=_bearer(admin["access_token"])).status_code == 404


def test_change_password_forces_relogin(client: TestClient) -> None:
    data = _register(client)
    headers = _bearer(data["access_token"])

    r = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "wrong123", "new_password": "newpass456"},
        headers=headers,
    )
    assert r.status_code == 400
    r = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "secret123", "new_password": "letters"},
        headers=headers,
    )
    assert r.status_code == 422

    r = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "secret123", "new_password": "newpass456"},
        headers=headers,
    )
    assert r.json() == {"ok": True, "revoked": 1}

    r = client.post(
        "/api/v1/auth/refresh-token",
        json={"access_token": data["access_token"], "refresh_token": data["refresh_token"]},
    )
    assert r.status_code == 401
    old = client.post("/api/v1/auth/login", json={"email": "alice@acme.io", "password": "secret123"})
    assert old.status_code == 401
    new = client.post("/api/v1/auth/login", json={"email": "alice@acme.io", "password": "newpass456"})
    assert new.status_code == 200


def test_healthz(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}
