from datetime import timedelta

from conftest import auth_headers

from sybertailor.models import Notification, utcnow
from sybertailor.routes.notifications import LATEST_LIMIT


def add_notifications(db, user, count, read=False):
    start = utcnow() - timedelta(hours=count)
    items = [
        Notification(
            user_id=user.id,
            title=f"Update {i}",
            message=f"Message {i}",
            type="general",
            read=read,
            created_at=start + timedelta(minutes=i),
        )
        for i in range(count)
    ]
    db.add_all(items)
    db.commit()
    return items


def test_list_is_newest_first_and_capped(client, db, user):
    add_notifications(db, user, LATEST_LIMIT + 5)

    response = client.get("/api/notifications", headers=auth_headers(user))

    body = response.json()
    assert len(body) == LATEST_LIMIT
    assert body[0]["title"] == f"Update {LATEST_LIMIT + 4}"


def test_list_only_includes_own(client, db, user, other_user):
    add_notifications(db, other_user, 3)

    response = client.get("/api/notifications", headers=auth_headers(user))

    assert response.json() == []


def test_mark_all_read(client, db, user, other_user):
    add_notifications(db, user, 3)
    add_notifications(db, user, 2, read=True)
    add_notifications(db, other_user, 4)

    response = client.post("/api/notifications", headers=auth_headers(user))

    assert response.json()["updatedCount"] == 3
    assert client.get("/api/notifications/unread-count", headers=auth_headers(user)).json() == {"unreadCount": 0}
    assert client.get("/api/notifications/unread-count", headers=auth_headers(other_user)).json() == {"unreadCount": 4}


def test_mark_one_read_is_idempotent(client, db, user):
    (item,) = add_notifications(db, user, 1)

    first = client.put(f"/api/notifications/{item.id}/read", headers=auth_headers(user))
    second = client.put(f"/api/notifications/{item.id}/read", headers=auth_headers(user))

    assert first.status_code == 200
    assert first.json()["notification"]["read"] is True
    assert second.json()["message"] == "Notification already marked as read"


def test_mark_someone_elses_notification(client, db, user, other_user):
    (item,) = add_notifications(db, other_user, 1)

    response = client.put(f"/api/notifications/{item.id}/read", headers=auth_headers(user))

    assert response.status_code == 403


def test_mark_missing_notification(client, user):
    response = client.put("/api/notifications/9999/read", headers=auth_headers(user))

    assert response.status_code == 404


def test_requires_authentication(client):
    assert client.get("/api/notifications").status_code == 401
