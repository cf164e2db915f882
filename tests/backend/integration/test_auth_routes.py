import asyncio
import datetime as dt
import uuid

import jwt
import pytest

from eventflow.core.security import JWT_ALG, create_access_token
from eventflow.models.event import Event, SYSTEM_USER_ID
from eventflow.models.notification import Notification, NotificationType
from eventflow.models.user import User


pytestmark = pytest.mark.asyncio


async def register_user(client, email: str, password: str = "StrongPass!23", name: str = "Alice Tester"):
    return await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )


async def login_user(client, email: str, password: str):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


def _email() -> str:
    return f"user_{uuid.uuid4().hex[:6]}@example.com"


async def test_register_then_verify_returns_valid_token(client):
    email = _email()

    resp = await register_user(client, email)
    body = resp.json()
    assert resp.status_code == 201
    assert body["success"] is True
    assert body["user"]["email"] == email
    assert "password_hash" not in body["user"] and "password" not in body["user"]
    assert body["user"]["profilePicture"].startswith("https://ui-avatars.com/api/")

    verify = await client.get("/api/auth/verify", headers={"Authorization": f"Bearer {body['token']}"})
    vbody = verify.json()
    assert verify.status_code == 200
    assert vbody["valid"] is True
    assert vbody["user"]["email"] == email

    # Side effects: registration event and welcome notification
    user_id = body["user"]["id"]
    assert await Event.filter(user_id=user_id, type="USER_REGISTERED").count() == 1
    assert await Notification.filter(user_id=user_id, type=NotificationType.SUCCESS).count() == 1


async def test_duplicate_email_is_rejected_case_insensitively(client):
    email = _email()
    assert (await register_user(client, email)).status_code == 201

    dup = await register_user(client, email.upper())
    assert dup.status_code == 400
    assert dup.json()["success"] is False
    assert dup.json()["error"]["code"] == "EMAIL_EXISTS"


async def test_register_validation_errors_list_fields(client):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "A", "email": "not-an-email", "password": "123"},
    )
    body = resp.json()
    assert resp.status_code == 400
    assert body["error"]["code"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in body["error"]["details"]}
    assert {"name", "email", "password"} <= fields


async def test_login_returns_access_and_refresh_tokens(client):
    email = _email()
    await register_user(client, email, password="StrongPass!23")

    resp = await login_user(client, email.upper(), "StrongPass!23")
    body = resp.json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["token"] and body["refreshToken"]

    user_id = body["user"]["id"]
    assert await Event.filter(user_id=user_id, type="LOGIN_SUCCESS").count() == 1


async def test_wrong_password_is_401_and_records_login_failed(client):
    email = _email()
    reg = await register_user(client, email, password="StrongPass!23")
    user_id = reg.json()["user"]["id"]

    resp = await login_user(client, email, "wrong-password")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_INVALID_CREDENTIALS"
    assert await Event.filter(user_id=user_id, type="LOGIN_FAILED").count() == 1


async def test_unknown_email_gets_same_answer_and_is_recorded_against_system(client):
    email = _email()
    resp = await login_user(client, email, "whatever1")
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid credentials"
    assert await Event.filter(user_id=SYSTEM_USER_ID, type="LOGIN_FAILED").count() == 1


async def test_me_and_logout(client):
    email = _email()
    reg = await register_user(client, email)
    headers = {"Authorization": f"Bearer {reg.json()['token']}"}
    user_id = reg.json()["user"]["id"]

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user_id
    assert await Event.filter(user_id=user_id, type="PROFILE_ACCESS").count() == 1

    out = await client.post("/api/auth/logout", headers=headers)
    assert out.status_code == 200
    assert await Event.filter(user_id=user_id, type="LOGOUT").count() == 1


async def test_refresh_issues_new_access_token(client):
    email = _email()
    await register_user(client, email, password="StrongPass!23")
    login = (await login_user(client, email, "StrongPass!23")).json()

    resp = await client.post("/api/auth/refresh", json={"refreshToken": login["refreshToken"]})
    assert resp.status_code == 200
    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {resp.json()['token']}"})
    assert me.status_code == 200

    # An access token cannot be used as a refresh token
    bad = await client.post("/api/auth/refresh", json={"refreshToken": login["token"]})
    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "AUTH_TOKEN_MALFORMED"


async def test_gate_distinguishes_missing_malformed_expired_and_forged_tokens(client, create_user):
    user, _ = await create_user()

    missing = await client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "AUTH_REQUIRED"

    basic = await client.get("/api/auth/me", headers={"Authorization": "Basic abc"})
    assert basic.status_code == 403
    assert basic.json()["error"]["code"] == "AUTH_TOKEN_MALFORMED"

    expired = create_access_token(str(user.id), expires_delta=dt.timedelta(seconds=-60))
    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "AUTH_TOKEN_EXPIRED"

    now = dt.datetime.now(dt.timezone.utc)
    forged = jwt.encode(
        {"sub": str(user.id), "typ": "access", "iat": now, "exp": now + dt.timedelta(hours=1)},
        "not-the-server-key",
        algorithm=JWT_ALG,
    )
    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "AUTH_TOKEN_INVALID"


async def test_verify_never_errors(client, create_user):
    user, _ = await create_user()
    expired = create_access_token(str(user.id), expires_delta=dt.timedelta(seconds=-60))

    for headers, reason in (
        ({}, "AUTH_REQUIRED"),
        ({"Authorization": "Bearer garbage"}, "AUTH_TOKEN_MALFORMED"),
        ({"Authorization": f"Bearer {expired}"}, "AUTH_TOKEN_EXPIRED"),
        ({"Authorization": f"Bearer {create_access_token(str(uuid.uuid4()))}"}, "AUTH_USER_NOT_FOUND"),
    ):
        resp = await client.get("/api/auth/verify", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["valid"] is False
        assert resp.json()["reason"] == reason


async def test_auth_health_reports_database_and_users(client, create_user):
    await create_user()
    resp = await client.get("/api/auth/health")
    body = resp.json()
    assert resp.status_code == 200
    assert body["status"] == "healthy"
    assert body["jwtConfigured"] is True
    assert body["userCount"] == 1


async def test_concurrent_registrations_of_one_email_yield_one_account(client):
    email = _email()

    first, second = await asyncio.gather(register_user(client, email), register_user(client, email))
    assert sorted([first.status_code, second.status_code]) == [201, 400]
    loser = first if first.status_code == 400 else second
    assert loser.json()["error"]["code"] == "EMAIL_EXISTS"
    assert await User.filter(email=email).count() == 1
