"""
The caller's inbox: listing, read state and ownership
"""
from datetime import datetime, timedelta, timezone

import pytest

from pizzadesk.database.models import Notification, NotificationPriority

API = "/api/v1"


@pytest.fixture
def notify(store):
    async def _notify(user, message, minutes_ago=0, is_read=False):
        return await store.add(Notification(
            user_id=user.key,
            message=message,
            related_url="/orders",
            is_read=is_read,
            priority=NotificationPriority.NORMAL,
            timestamp=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        ))
    return _notify


@pytest.mark.asyncio
async def test_inbox_shows_unread_newest_first(client, auth, employee, notify):
    await notify(employee, "older", minutes_ago=10)
    await notify(employee, "newer", minutes_ago=1)
    await notify(employee, "seen", minutes_ago=5, is_read=True)

    response = await client.get(f"{API}/notifications", headers=auth(employee))

    assert response.status_code == 200
    assert [n["message"] for n in response.json()] == ["newer", "older"]
    assert response.json()[0]["relatedUrl"] == "/orders"
    assert response.json()[0]["isRead"] is False


@pytest.mark.asyncio
async def test_inbox_can_include_read_notifications(client, auth, employee, notify):
    await notify(employee, "seen", is_read=True)
    response = await client.get(f"{API}/notifications", params={"include_read": "true"}, headers=auth(employee))
    assert [n["message"] for n in response.json()] == ["seen"]


@pytest.mark.asyncio
async def test_notifications_older_than_the_account_are_hidden(client, auth, employee, notify):
    await notify(employee, "before signup", minutes_ago=120)
    response = await client.get(f"{API}/notifications", headers=auth(employee))
    assert response.json() == []


@pytest.mark.asyncio
async def test_inbox_is_private(client, auth, admin, employee, notify):
    await notify(admin, "for the boss")
    response = await client.get(f"{API}/notifications", headers=auth(employee))
    assert response.json() == []


@pytest.mark.asyncio
async def test_marking_someone_elses_notification_is_forbidden(client, auth, admin, employee, notify):
    notification = await notify(admin, "for the boss")
    response = await client.put(f"{API}/notifications/{notification.id}", headers=auth(employee))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_mark_one_as_read(client, auth, employee, notify):
    notification = await notify(employee, "hello")

    response = await client.put(f"{API}/notifications/{notification.id}", headers=auth(employee))

    assert response.status_code == 200
    assert response.json()["isRead"] is True
    assert (await client.get(f"{API}/notifications", headers=auth(employee))).json() == []


@pytest.mark.asyncio
async def test_mark_all_as_read_leaves_other_inboxes_alone(client, auth, admin, employee, notify):
    await notify(employee, "one")
    await notify(employee, "two")
    await notify(admin, "boss")

    response = await client.put(f"{API}/notifications", headers=auth(employee))

    assert response.json()["message"] == "2 notifications marked as read"
    assert (await client.get(f"{API}/notifications", headers=auth(employee))).json() == []
    assert len((await client.get(f"{API}/notifications", headers=auth(admin))).json()) == 1


@pytest.mark.asyncio
async def test_mark_selected_as_read(client, auth, admin, employee, notify):
    first = await notify(employee, "one")
    await notify(employee, "two")
    foreign = await notify(admin, "boss")

    response = await client.put(
        f"{API}/notifications",
        json={"notificationIds": [first.id, foreign.id]},
        headers=auth(employee),
    )

    assert response.json()["message"] == "1 notifications marked as read"
    remaining = (await client.get(f"{API}/notifications", headers=auth(employee))).json()
    assert [n["message"] for n in remaining] == ["two"]


@pytest.mark.asyncio
async def test_test_push_goes_to_the_callers_device(client, auth, admin, push):
    response = await client.post(f"{API}/notifications/test", headers=auth(admin))
    assert response.status_code == 200
    assert push.tokens() == ["admin-device"]


@pytest.mark.asyncio
async def test_test_push_without_a_device(client, auth, employee):
    response = await client.post(f"{API}/notifications/test", headers=auth(employee))
    assert response.status_code == 400
