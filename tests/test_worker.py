import asyncio
from datetime import date, timedelta

import pytest
from arq import Retry

from sybertailor import email_service, worker
from sybertailor.models import Appointment, Notification, Order, utcnow


@pytest.fixture
def sent(monkeypatch):
    outbox = []

    async def capture(*args, **kwargs):
        outbox.append(args)
        return {"id": "test"}

    monkeypatch.setattr(email_service, "send_order_progress_email", capture)
    monkeypatch.setattr(email_service, "send_admin_delivery_reminder", capture)
    monkeypatch.setattr(email_service, "send_appointment_reminder", capture)
    return outbox


def make_order(db, user, **fields):
    values = {
        "user_id": user.id,
        "customer_name": "Ada",
        "customer_email": user.email,
        "style": {"title": "Agbada", "price": 5000, "yardsRequired": 2},
        "material": {"name": "Lace", "pricePerYard": 1000},
        "status": "in-progress",
        "payment_status": "paid",
    }
    values.update(fields)
    order = Order(**values)
    db.add(order)
    db.commit()
    return order


def test_progress_task_writes_the_day_notification(db, user, sent):
    order = make_order(db, user)

    result = asyncio.run(worker.send_order_progress_notification_task({}, order.id, 6))

    assert result["status"] == "sent"
    note = db.query(Notification).filter(Notification.order_id == order.id).one()
    assert note.type == "delivery_imminent"
    assert "Ada" in note.message and "Agbada" in note.message and f"#{order.id}" in note.message
    assert len(sent) == 1


def test_progress_task_skips_cancelled_orders(db, user, sent):
    order = make_order(db, user, status="cancelled")

    result = asyncio.run(worker.send_order_progress_notification_task({}, order.id, 2))

    assert result == {"status": "skipped"}
    assert db.query(Notification).count() == 0
    assert sent == []


def test_progress_task_skips_in_person_orders(db, user, sent):
    order = make_order(db, user, order_type="InPerson")

    result = asyncio.run(worker.send_order_progress_notification_task({}, order.id, 4))

    assert result == {"status": "skipped"}
    assert db.query(Notification).count() == 0
    assert sent == []


def test_progress_task_skips_deleted_orders(sent):
    assert asyncio.run(worker.send_order_progress_notification_task({}, 4242, 3)) == {"status": "skipped"}


def test_admin_reminder_only_for_active_orders(db, user, sent):
    active = make_order(db, user)
    unpaid = make_order(db, user, payment_status="unpaid", status="pending")

    assert asyncio.run(worker.send_admin_delivery_reminder_task({}, active.id, 3))["status"] == "sent"
    assert asyncio.run(worker.send_admin_delivery_reminder_task({}, unpaid.id, 3))["status"] == "skipped"
    assert len(sent) == 1


def test_appointment_reminder_skips_closed(db, sent):
    appointment = Appointment(
        name="Ada",
        phone="08031234567",
        email="ada@example.com",
        address="Lagos",
        date=date.today() + timedelta(days=1),
        time="10:00",
        scheduled_at=utcnow() + timedelta(days=1),
        status="cancelled",
    )
    db.add(appointment)
    db.commit()

    result = asyncio.run(worker.send_appointment_reminder_task({}, appointment.public_id, "morning"))

    assert result == {"status": "skipped"}
    assert sent == []


def test_email_task_retries_then_gives_up(monkeypatch):
    async def failing(*args, **kwargs):
        raise RuntimeError("smtp down")

    monkeypatch.setattr(email_service, "send_compiled_email", failing)

    with pytest.raises(Retry):
        asyncio.run(worker.send_email_task({"job_try": 1}, "a@example.com", "Hi", "<p>hi</p>"))

    result = asyncio.run(worker.send_email_task({"job_try": worker.MAX_TRIES}, "a@example.com", "Hi", "<p>hi</p>"))
    assert result["status"] == "failed"
