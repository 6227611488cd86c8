from datetime import datetime, timedelta

from conftest import auth_headers

from sybertailor.domain.appointments.service import business_now, local_to_utc, reminder_job_ids
from sybertailor.models import Appointment, Notification

FITTING_DAY = (business_now() + timedelta(days=10)).date().isoformat()


def booking(time, day=FITTING_DAY, **overrides):
    payload = {
        "name": "Ada Obi",
        "phone": "+234 803 123 4567",
        "email": "ada@example.com",
        "address": "12 Broad Street, Lagos",
        "date": day,
        "time": time,
    }
    payload.update(overrides)
    return payload


def book(client, time, headers=None, **overrides):
    return client.post("/api/order/in-person", json=booking(time, **overrides), headers=headers or {})


class TestBooking:
    def test_guest_can_book(self, client):
        response = book(client, "10:00")

        assert response.status_code == 201, response.text
        appointment = response.json()["appointment"]
        assert appointment["status"] == "pending"
        assert appointment["userId"] is None
        assert appointment["phone"] == "+2348031234567"
        assert appointment["scheduledAt"].startswith(f"{FITTING_DAY}T10:00")

    def test_signed_in_booking_is_linked_and_notified(self, client, db, user):
        response = book(client, "2:30 PM", headers=auth_headers(user), email=None)

        appointment = response.json()["appointment"]
        assert appointment["userId"] == user.id
        assert appointment["email"] == user.email
        assert appointment["scheduledAt"].startswith(f"{FITTING_DAY}T14:30")
        assert db.query(Notification).filter(Notification.type == "appointment").count() == 1

    def test_bookings_closer_than_an_hour_conflict(self, client):
        assert book(client, "10:00").status_code == 201

        response = book(client, "10:45")

        assert response.status_code == 409
        assert "10:00" in response.json()["detail"]

    def test_an_hour_apart_is_fine(self, client):
        assert book(client, "10:00").status_code == 201
        assert book(client, "11:00").status_code == 201
        assert book(client, "9:00 AM").status_code == 201

    def test_same_time_on_another_day_is_fine(self, client):
        other_day = (business_now() + timedelta(days=11)).date().isoformat()

        assert book(client, "10:00").status_code == 201
        assert book(client, "10:00", day=other_day).status_code == 201

    def test_cancelled_booking_frees_the_slot(self, client, user):
        first = book(client, "10:00", headers=auth_headers(user)).json()["appointment"]
        client.post(f"/api/order/in-person/{first['id']}/cancel", headers=auth_headers(user))

        assert book(client, "10:30").status_code == 201

    def test_past_time_is_rejected(self, client):
        yesterday = (business_now() - timedelta(days=1)).date().isoformat()

        response = book(client, "10:00", day=yesterday)

        assert response.status_code == 400

    def test_bad_time_fails_validation(self, client):
        response = book(client, "quarter past ten")

        assert response.status_code == 400
        assert "time" in response.json()["errors"]

    def test_missing_phone_fails_validation(self, client):
        payload = booking("10:00")
        del payload["phone"]

        response = client.post("/api/order/in-person", json=payload)

        assert response.status_code == 400
        assert "phone" in response.json()["errors"]


class TestReminders:
    def test_morning_and_afternoon_reminders_are_queued(self, client, queue):
        appointment = book(client, "15:00").json()["appointment"]

        ids = reminder_job_ids(appointment["id"])
        assert set(queue.jobs) == set(ids)
        morning = queue.jobs[f"appointment_reminder_morning_{appointment['id']}"]
        assert morning["function"] == "send_appointment_reminder_task"
        assert morning["args"] == (appointment["id"], "morning")
        assert morning["run_at"] == local_to_utc(datetime.fromisoformat(f"{FITTING_DAY}T08:00:00"))

    def test_cancelling_revokes_reminders(self, client, user, queue):
        appointment = book(client, "15:00", headers=auth_headers(user)).json()["appointment"]

        response = client.post(f"/api/order/in-person/{appointment['id']}/cancel", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "cancelled"
        assert queue.jobs == {}

    def test_cancelling_twice_is_rejected(self, client, user):
        appointment = book(client, "15:00", headers=auth_headers(user)).json()["appointment"]
        client.post(f"/api/order/in-person/{appointment['id']}/cancel", headers=auth_headers(user))

        response = client.post(f"/api/order/in-person/{appointment['id']}/cancel", headers=auth_headers(user))

        assert response.status_code == 400


class TestClientViews:
    def test_lists_only_own_appointments(self, client, user, other_user):
        book(client, "10:00", headers=auth_headers(user))
        book(client, "12:00", headers=auth_headers(other_user))

        response = client.get("/api/order/in-person", headers=auth_headers(user))

        assert [a["time"] for a in response.json()["appointments"]] == ["10:00"]

    def test_other_users_appointment_is_404(self, client, user, other_user):
        appointment = book(client, "10:00", headers=auth_headers(user)).json()["appointment"]

        response = client.get(f"/api/order/in-person/{appointment['id']}", headers=auth_headers(other_user))

        assert response.status_code == 404


class TestAdminAppointments:
    def test_reschedule_into_a_taken_slot_conflicts(self, client, admin):
        book(client, "10:00")
        second = book(client, "13:00").json()["appointment"]

        response = client.put(
            f"/api/order/admin/in-person/{second['id']}", json={"time": "10:30"}, headers=auth_headers(admin)
        )

        assert response.status_code == 409

    def test_reschedule_moves_the_reminders(self, client, db, admin, queue):
        appointment = book(client, "10:00").json()["appointment"]
        new_day = (business_now() + timedelta(days=12)).date().isoformat()

        response = client.put(
            f"/api/order/admin/in-person/{appointment['id']}",
            json={"date": new_day, "time": "11:00", "status": "confirmed"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200, response.text
        assert response.json()["appointment"]["scheduledAt"].startswith(f"{new_day}T11:00")
        afternoon = queue.jobs[f"appointment_reminder_afternoon_{appointment['id']}"]
        assert afternoon["run_at"] == local_to_utc(datetime.fromisoformat(f"{new_day}T13:00:00"))

    def test_moving_within_its_own_hour_is_allowed(self, client, admin):
        appointment = book(client, "10:00").json()["appointment"]

        response = client.put(
            f"/api/order/admin/in-person/{appointment['id']}", json={"time": "10:30"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200

    def test_reopening_into_a_taken_slot_conflicts(self, client, db, admin):
        first = book(client, "10:00").json()["appointment"]
        url = f"/api/order/admin/in-person/{first['id']}"
        client.put(url, json={"status": "cancelled"}, headers=auth_headers(admin))
        assert book(client, "10:30").status_code == 201

        response = client.put(url, json={"status": "confirmed"}, headers=auth_headers(admin))

        assert response.status_code == 409
        db.expire_all()
        live = db.query(Appointment).filter(Appointment.status != "cancelled").all()
        assert [a.time for a in live] == ["10:30"]

    def test_reopening_a_free_slot_restores_reminders(self, client, admin, queue):
        appointment = book(client, "10:00").json()["appointment"]
        url = f"/api/order/admin/in-person/{appointment['id']}"
        client.put(url, json={"status": "cancelled"}, headers=auth_headers(admin))
        assert queue.jobs == {}

        response = client.put(url, json={"status": "confirmed"}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["appointment"]["status"] == "confirmed"
        assert set(queue.jobs) == set(reminder_job_ids(appointment["id"]))

    def test_same_time_written_differently_only_relabels(self, client, db, user, admin, queue):
        appointment = book(client, "10:00", headers=auth_headers(user)).json()["appointment"]
        queue.cancelled.clear()

        response = client.put(
            f"/api/order/admin/in-person/{appointment['id']}", json={"time": "10:00 AM"}, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["appointment"]["time"] == "10:00 AM"
        assert db.query(Notification).filter(Notification.title == "Appointment Updated").count() == 0
        assert queue.cancelled == []
        assert set(queue.jobs) == set(reminder_job_ids(appointment["id"]))

    def test_completing_revokes_reminders(self, client, admin, queue):
        appointment = book(client, "10:00").json()["appointment"]

        client.put(
            f"/api/order/admin/in-person/{appointment['id']}", json={"status": "completed"}, headers=auth_headers(admin)
        )

        assert queue.jobs == {}

    def test_date_range_listing(self, client, admin):
        book(client, "10:00")
        later = (business_now() + timedelta(days=20)).date().isoformat()
        book(client, "10:00", day=later)

        response = client.get(
            f"/api/order/admin/in-person/date-range?start={FITTING_DAY}&end={FITTING_DAY}", headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert len(response.json()["appointments"]) == 1

    def test_date_range_must_be_ordered(self, client, admin):
        later = (business_now() + timedelta(days=20)).date().isoformat()

        response = client.get(
            f"/api/order/admin/in-person/date-range?start={later}&end={FITTING_DAY}", headers=auth_headers(admin)
        )

        assert response.status_code == 400

    def test_delete_removes_the_row_and_reminders(self, client, db, admin, queue):
        appointment = book(client, "10:00").json()["appointment"]

        response = client.delete(f"/api/order/admin/in-person/{appointment['id']}", headers=auth_headers(admin))

        assert response.status_code == 204
        assert queue.jobs == {}
        assert db.query(Appointment).count() == 0

    def test_admin_list_is_paginated(self, client, admin):
        for hour in ("09:00", "11:00", "13:00"):
            book(client, hour)

        response = client.get("/api/order/admin/in-person?limit=2", headers=auth_headers(admin))

        body = response.json()
        assert len(body["appointments"]) == 2
        assert body["pagination"]["total"] == 3

    def test_non_admin_is_forbidden(self, client, user):
        response = client.get("/api/order/admin/in-person", headers=auth_headers(user))

        assert response.status_code == 403
