"""Tests for the Notifications router."""
import pytest

from models import Notification
from tests.conftest import get_auth_headers


async def _notify(db, member, title="You were assigned to Episode 1"):
    notification = Notification(user_id=member.id, type="task_assigned", title=title)
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return notification


@pytest.mark.asyncio
async def test_list_notifications_empty(client, internal_member):
    resp = await client.get("/api/v1/notifications", headers=get_auth_headers(internal_member))
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_notification_count(client, db_session, internal_member, second_member):
    await _notify(db_session, internal_member)
    await _notify(db_session, internal_member, "Second")
    await _notify(db_session, second_member)

    resp = await client.get("/api/v1/notifications/count", headers=get_auth_headers(internal_member))
    assert resp.status_code == 200
    assert resp.json() == {"unread": 2}


@pytest.mark.asyncio
async def test_mark_notification_read(client, db_session, internal_member):
    notification = await _notify(db_session, internal_member)
    headers = get_auth_headers(internal_member)

    resp = await client.post(f"/api/v1/notifications/{notification.id}/read", headers=headers)
    assert resp.status_code == 200

    body = (await client.get("/api/v1/notifications", headers=headers)).json()
    assert body[0]["is_read"] is True
    assert body[0]["read_at"] is not None
    unread = (await client.get("/api/v1/notifications", params={"unread_only": True}, headers=headers)).json()
    assert unread == []


@pytest.mark.asyncio
async def test_cannot_read_someone_elses_notification(client, db_session, internal_member, second_member):
    notification = await _notify(db_session, second_member)
    resp = await client.post(
        f"/api/v1/notifications/{notification.id}/read", headers=get_auth_headers(internal_member),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_mark_all_read(client, db_session, internal_member):
    await _notify(db_session, internal_member)
    await _notify(db_session, internal_member, "Another")
    headers = get_auth_headers(internal_member)

    resp = await client.post("/api/v1/notifications/read-all", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"marked": 2}

    resp = await client.get("/api/v1/notifications/count", headers=headers)
    assert resp.json()["unread"] == 0
