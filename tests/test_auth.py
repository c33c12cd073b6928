"""Auth module test suite — login, register, logout, profile, rate limiting."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from hrdesk.auth.models import User
from hrdesk.auth.service import AuthService
from hrdesk.common.constants import UserRole
from hrdesk.common.exceptions import ConflictError
from tests.conftest import (
    DEFAULT_PASSWORD,
    TestSessionFactory,
    _make_user,
    token_issuer,
)


async def _user_count() -> int:
    async with TestSessionFactory() as session:
        return (await session.execute(select(func.count()).select_from(User))).scalar_one()


# ── Login ───────────────────────────────────────────────────────────


async def test_login_with_username_returns_token_for_same_user(client, hr_user):
    """Correct credentials → token whose claims decode to the same identity."""
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "hrmanager", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "Bearer"
    assert data["expires_in"] > 0
    assert data["user"]["username"] == "hrmanager"
    assert data["user"]["last_login"] is not None

    claims = token_issuer.decode(data["access_token"])
    assert claims.user_id == hr_user.id
    assert claims.role == UserRole.hr
    assert claims.username == hr_user.username
    assert claims.email == hr_user.email


async def test_login_with_email(client, employee_user):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": employee_user.email, "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == employee_user.id


async def test_login_stamps_last_login(client, employee_user):
    await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "jdoe", "password": DEFAULT_PASSWORD},
    )
    async with TestSessionFactory() as session:
        user = await session.get(User, employee_user.id)
        assert user.last_login is not None


async def test_login_wrong_password(client, employee_user):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "jdoe", "password": "wrong-password"},
    )
    assert resp.status_code == 401
    body = resp.json()
    assert body["kind"] == "authentication"
    assert body["code"] == "invalid_credentials"
    assert "access_token" not in body


async def test_login_unknown_user(client):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "ghost", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_credentials"


async def test_login_is_case_sensitive(client, employee_user):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "JDOE", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 401


async def test_login_inactive_account(client, db):
    await _make_user(db, username="former", is_active=False)
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "former", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 401
    assert resp.json()["code"] == "account_inactive"


async def test_login_inactive_account_with_wrong_password(client, db):
    """Password is verified before the active flag is consulted."""
    await _make_user(db, username="former", is_active=False)
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "former", "password": "nope"},
    )
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_credentials"


async def test_login_rate_limited(client, employee_user):
    payload = {"username_or_email": "jdoe", "password": "wrong-password"}
    for _ in range(10):
        resp = await client.post("/api/v1/auth/login", json=payload)
        assert resp.status_code == 401
    resp = await client.post("/api/v1/auth/login", json=payload)
    assert resp.status_code == 429


# ── Register ────────────────────────────────────────────────────────


def _register_payload(**overrides) -> dict:
    payload = {
        "username": "newbie",
        "email": "newbie@company.com",
        "password": "Newbie@123",
        "confirm_password": "Newbie@123",
    }
    payload.update(overrides)
    return payload


async def test_register_creates_employee_user_and_returns_token(client):
    resp = await client.post("/api/v1/auth/register", json=_register_payload())
    assert resp.status_code == 201
    data = resp.json()
    assert data["user"]["username"] == "newbie"
    assert data["user"]["role"] == "employee"
    assert data["user"]["first_name"] == "newbie"
    assert data["user"]["last_name"] == ""

    claims = token_issuer.decode(data["access_token"])
    assert claims.user_id == data["user"]["id"]

    login = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "newbie@company.com", "password": "Newbie@123"},
    )
    assert login.status_code == 200


async def test_register_duplicate_username_creates_no_row(client, employee_user):
    before = await _user_count()
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(username="jdoe"),
    )
    assert resp.status_code == 409
    body = resp.json()
    assert body["kind"] == "validation"
    assert body["code"] == "duplicate_username"
    assert await _user_count() == before


async def test_register_duplicate_email_creates_no_row(client, employee_user):
    before = await _user_count()
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(email=employee_user.email),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_email"
    assert await _user_count() == before


async def test_register_username_checked_before_email(client, employee_user):
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(username="jdoe", email=employee_user.email),
    )
    assert resp.json()["code"] == "duplicate_username"


async def test_register_username_equal_to_existing_email_is_rejected(client):
    """Username and email share one login namespace."""
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(username="alice", email="alice@example.com"),
    )
    assert resp.status_code == 201

    before = await _user_count()
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(username="alice@example.com", email="bob@example.com"),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_username"
    assert await _user_count() == before

    resp = await client.post(
        "/api/v1/auth/login",
        json={"username_or_email": "alice@example.com", "password": "Newbie@123"},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "alice"


async def test_create_user_rejects_email_used_as_username(db):
    await _make_user(db, username="carol@company.com", email="carol.x@company.com")
    with pytest.raises(ConflictError) as exc:
        await AuthService.create_user(
            db, username="carol", email="carol@company.com", password="Carol@123",
        )
    assert exc.value.code == "duplicate_email"


async def test_register_password_mismatch(client):
    before = await _user_count()
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(confirm_password="Different@123"),
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "password_mismatch"
    assert await _user_count() == before


async def test_register_keeps_requested_role(client):
    """Caller-supplied role is honoured (logged as a warning server-side)."""
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(role="admin"),
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "admin"
    assert token_issuer.decode(resp.json()["access_token"]).role == UserRole.admin


async def test_register_rejects_short_password(client):
    resp = await client.post(
        "/api/v1/auth/register",
        json=_register_payload(password="123", confirm_password="123"),
    )
    assert resp.status_code == 422


# ── Profile / Logout ────────────────────────────────────────────────


async def test_profile_returns_current_user(client, employee_user, employee_headers):
    resp = await client.get("/api/v1/auth/profile", headers=employee_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == employee_user.id
    assert data["email"] == employee_user.email
    assert "password_hash" not in data


async def test_profile_for_deleted_user_is_404(client, db, employee_user, employee_headers):
    await db.delete(employee_user)
    await db.commit()
    resp = await client.get("/api/v1/auth/profile", headers=employee_headers)
    assert resp.status_code == 404


async def test_profile_requires_token(client):
    resp = await client.get("/api/v1/auth/profile")
    assert resp.status_code == 401


async def test_logout_is_advisory(client, employee_headers):
    resp = await client.post("/api/v1/auth/logout", headers=employee_headers)
    assert resp.status_code == 200
    assert "logout" in resp.json()["message"].lower()

    # Token stays valid: there is no server-side revocation
    resp = await client.get("/api/v1/auth/profile", headers=employee_headers)
    assert resp.status_code == 200
