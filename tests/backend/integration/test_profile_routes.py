import asyncio

import pytest

from eventflow.models.event import Event, SYSTEM_USER_ID
from eventflow.models.notification import Notification
from eventflow.models.user import User


pytestmark = pytest.mark.asyncio


async def test_get_profile_records_access(client, create_user, auth_headers):
    user, _ = await create_user(name="Profile Owner")
    resp = await client.get("/api/profile", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["user"]["name"] == "Profile Owner"
    assert await Event.filter(user_id=str(user.id), type="PROFILE_ACCESS").count() == 1


async def test_partial_update(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    resp = await client.patch("/api/profile", json={"bio": "Backend developer"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["bio"] == "Backend developer"
    assert resp.json()["user"]["name"] == user.name

    resp = await client.put(
        "/api/profile",
        json={"socialName": "Dev", "profilePicture": "https://example.com/me.png"},
        headers=headers,
    )
    assert resp.json()["user"]["socialName"] == "Dev"
    assert resp.json()["user"]["profilePicture"] == "https://example.com/me.png"

    updates = await Event.filter(user_id=str(user.id), type="PROFILE_UPDATED")
    assert sorted(sorted(e.metadata["updatedFields"]) for e in updates) == [
        ["bio"],
        ["profilePicture", "socialName"],
    ]


async def test_update_rejects_empty_body_long_bio_and_taken_email(client, create_user, auth_headers):
    user, _ = await create_user()
    other, _ = await create_user()
    headers = auth_headers(user)

    empty = await client.put("/api/profile", json={}, headers=headers)
    assert empty.status_code == 400
    assert empty.json()["error"]["code"] == "VALIDATION_ERROR"

    long_bio = await client.put("/api/profile", json={"bio": "x" * 101}, headers=headers)
    assert long_bio.status_code == 400

    taken = await client.put("/api/profile", json={"email": other.email.upper()}, headers=headers)
    assert taken.status_code == 400
    assert taken.json()["error"]["code"] == "EMAIL_EXISTS"


async def test_password_change(client, create_user, auth_headers, login_headers):
    user, password = await create_user(password="OldPass!23")
    headers = auth_headers(user)

    wrong = await client.put(
        "/api/profile/password",
        json={"currentPassword": "nope", "newPassword": "NewPass!45"},
        headers=headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["error"]["code"] == "INVALID_PASSWORD"
    assert await Event.filter(user_id=str(user.id), type="PASSWORD_CHANGE_FAILED").count() == 1

    ok = await client.put(
        "/api/profile/password",
        json={"currentPassword": password, "newPassword": "NewPass!45"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert await Event.filter(user_id=str(user.id), type="PASSWORD_CHANGED").count() == 1

    # The new password works at the login endpoint, the old one doesn't
    await login_headers(user.email, "NewPass!45")
    old = await client.post("/api/auth/login", json={"email": user.email, "password": password})
    assert old.status_code == 401


async def test_credentials_are_merged(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    await client.put("/api/profile/credentials", json={"credentials": {"github": "octo"}}, headers=headers)
    resp = await client.put("/api/profile/credentials", json={"credentials": {"gitlab": "tanuki"}}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["credentials"] == {"github": "octo", "gitlab": "tanuki"}


async def test_profile_picture(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    bad = await client.put("/api/profile/profile-picture", json={"imageUrl": "not a url"}, headers=headers)
    assert bad.status_code == 400

    ok = await client.put(
        "/api/profile/profile-picture", json={"imageUrl": "https://cdn.example.com/a.png"}, headers=headers
    )
    assert ok.status_code == 200
    assert ok.json()["user"]["profilePicture"] == "https://cdn.example.com/a.png"
    assert await Event.filter(user_id=str(user.id), type="PROFILE_PICTURE_UPDATE").count() == 1


async def test_deleted_account_token_is_rejected(client, create_user, auth_headers):
    user, password = await create_user()
    user_id = str(user.id)
    headers = auth_headers(user)
    await client.post("/api/events/dashboard-access", headers=headers)
    await client.post(
        "/api/notifications", json={"title": "t", "message": "m", "type": "INFO"}, headers=headers
    )

    wrong = await client.request("DELETE", "/api/profile", json={"password": "nope"}, headers=headers)
    assert wrong.status_code == 400
    assert await User.filter(id=user.id).exists()

    resp = await client.request("DELETE", "/api/profile", json={"password": password}, headers=headers)
    assert resp.status_code == 200

    after = await client.get("/api/events", headers=headers)
    assert after.status_code == 401
    assert after.json()["error"]["code"] == "AUTH_USER_NOT_FOUND"

    assert not await User.filter(id=user.id).exists()
    assert await Event.filter(user_id=user_id).count() == 0
    assert await Notification.filter(user_id=user_id).count() == 0
    deleted = await Event.get(user_id=SYSTEM_USER_ID, type="ACCOUNT_DELETED")
    assert deleted.metadata["userId"] == user_id


async def test_null_email_is_ignored_and_not_reported(client, create_user, auth_headers):
    user, _ = await create_user()
    headers = auth_headers(user)

    only_null = await client.put("/api/profile", json={"email": None}, headers=headers)
    assert only_null.status_code == 400
    assert only_null.json()["error"]["code"] == "VALIDATION_ERROR"

    resp = await client.put("/api/profile", json={"email": None, "bio": "Still here"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == user.email

    (event,) = await Event.filter(user_id=str(user.id), type="PROFILE_UPDATED")
    assert event.metadata["updatedFields"] == ["bio"]
    note = await Notification.filter(user_id=user.id, title="Profile updated").first()
    assert "email" not in note.message


async def test_concurrent_switch_to_same_email_yields_one_owner(client, create_user, auth_headers):
    alice, _ = await create_user()
    bob, _ = await create_user()
    target = "shared-address@example.com"

    first, second = await asyncio.gather(
        client.put("/api/profile", json={"email": target}, headers=auth_headers(alice)),
        client.put("/api/profile", json={"email": target}, headers=auth_headers(bob)),
    )
    assert sorted([first.status_code, second.status_code]) == [200, 400]
    assert await User.filter(email=target).count() == 1
