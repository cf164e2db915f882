import pytest

from eventflow.config import settings
from eventflow.core.bootstrap import DEMO_EMAIL, DEMO_EVENTS
from eventflow.models.event import Event
from eventflow.models.user import User


pytestmark = pytest.mark.asyncio


async def test_health_reports_database_and_audit_counters(client):
    resp = await client.get("/health")
    body = resp.json()
    assert resp.status_code == 200
    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert set(body["audit"]) == {"running", "pending", "written", "failed"}


async def test_init_demo_is_disabled_without_password(client, monkeypatch):
    monkeypatch.setattr(settings, "demo_password", None)
    resp = await client.post("/api/init-demo")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "DEMO_DISABLED"
    assert not await User.filter(email=DEMO_EMAIL).exists()


async def test_init_demo_seeds_once(client, monkeypatch, login_headers):
    monkeypatch.setattr(settings, "demo_password", "DemoPass!23")

    for _ in range(2):
        resp = await client.post("/api/init-demo")
        assert resp.status_code == 200
        assert resp.json()["email"] == DEMO_EMAIL

    user = await User.get(email=DEMO_EMAIL)
    assert await Event.filter(user_id=str(user.id)).count() == len(DEMO_EVENTS)

    headers = await login_headers(DEMO_EMAIL, "DemoPass!23")
    stats = await client.get("/api/events/stats", headers=headers)
    assert stats.json()["loginEvents"] == 3  # two seeded logins plus this one
