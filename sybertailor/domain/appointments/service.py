"""Appointment service - Business logic for in-person bookings"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...config import BUSINESS_UTC_OFFSET_HOURS
from ...models import Appointment, User, generate_public_id, utcnow
from ...services import notification_service
from ...shared.pagination import paginate
from .repository import AppointmentRepository
from .schemas import (
    AppointmentAdminUpdate,
    AppointmentCreate,
    parse_appointment_date,
    parse_appointment_time,
)

logger = logging.getLogger(__name__)

BUSINESS_TZ = timezone(timedelta(hours=BUSINESS_UTC_OFFSET_HOURS))

REMINDER_TASK = "send_appointment_reminder_task"
# (slot name, local hour) for the same-day reminders
REMINDER_SLOTS = (("morning", 8), ("afternoon", 13))

CLOSED_STATUSES = ("cancelled", "completed")


def business_now() -> datetime:
    """Current wall-clock time at the shop (naive)"""
    return datetime.now(BUSINESS_TZ).replace(tzinfo=None)


def local_to_utc(local: datetime) -> datetime:
    """Naive shop-local time -> naive UTC"""
    return local - timedelta(hours=BUSINESS_UTC_OFFSET_HOURS)


def reminder_job_ids(public_id: str) -> list[str]:
    return [f"appointment_reminder_{slot}_{public_id}" for slot, _ in REMINDER_SLOTS]


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, queue=None):
        self.db = db
        self.repo = AppointmentRepository()
        self.queue = queue

    # ========================================================================
    # REMINDERS
    # ========================================================================

    async def schedule_reminders(self, appointment: Appointment) -> int:
        """Queue the 08:00 and 13:00 same-day reminders that are still ahead"""
        if self.queue is None:
            logger.warning(f"⚠️ No job queue, reminders for {appointment.public_id} not scheduled")
            return 0

        now_utc = utcnow()
        queued = 0
        for slot, hour in REMINDER_SLOTS:
            run_at = local_to_utc(datetime.combine(appointment.date, datetime.min.time()).replace(hour=hour))
            if run_at <= now_utc:
                continue
            job_id = f"appointment_reminder_{slot}_{appointment.public_id}"
            try:
                if await self.queue.enqueue(
                    REMINDER_TASK, appointment.public_id, slot, job_id=job_id, run_at=run_at
                ):
                    queued += 1
            except Exception as e:
                logger.error(f"❌ Failed to schedule {job_id}: {e}")
        return queued

    async def cancel_reminders(self, public_id: str) -> int:
        if self.queue is None:
            logger.warning(f"⚠️ No job queue, cannot revoke reminders for {public_id}")
            return 0

        revoked = 0
        for job_id in reminder_job_ids(public_id):
            try:
                if await self.queue.cancel(job_id):
                    revoked += 1
            except Exception as e:
                logger.error(f"❌ Failed to cancel {job_id}: {e}")
        return revoked

    # ========================================================================
    # BOOKING
    # ========================================================================

    @staticmethod
    def _parse_slot(date_str: str, time_str: str) -> tuple[date, datetime]:
        try:
            day = parse_appointment_date(date_str)
            start = datetime.combine(day, parse_appointment_time(time_str))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if start <= business_now():
            raise HTTPException(status_code=400, detail="Appointment time must be in the future")
        return day, start

    def _conflict_error(self, day: date, start: datetime, exclude_id: Optional[int] = None):
        conflict = self.repo.find_conflict(self.db, day, start, exclude_id)
        slot = f" at {conflict.time}" if conflict else ""
        return HTTPException(
            status_code=409,
            detail=(
                f"This time slot conflicts with an existing appointment{slot} on {day.isoformat()}. "
                "Please choose a time at least 60 minutes apart."
            ),
        )

    async def create_appointment(self, data: AppointmentCreate, user: Optional[User]) -> Appointment:
        day, start = self._parse_slot(data.date, data.time)

        now = utcnow()
        values = {
            "public_id": generate_public_id(),
            "user_id": user.id if user else None,
            "name": data.name,
            "phone": data.phone,
            "email": data.email or (user.email if user else None),
            "address": data.address,
            "date": day,
            "time": data.time,
            "scheduled_at": start,
            "status": "pending",
            "notes": data.notes,
            "created_at": now,
            "updated_at": now,
        }

        appointment = self.repo.insert_if_slot_free(self.db, values)
        if appointment is None:
            logger.info(f"⛔ Booking for {start} rejected: slot taken")
            raise self._conflict_error(day, start)

        logger.info(f"📅 Appointment {appointment.public_id} booked for {start}")

        if user:
            notification_service.create_notification(
                self.db,
                user.id,
                "Appointment Booked",
                f"Your in-person fitting is booked for {day.isoformat()} at {appointment.time}.",
                "appointment",
            )
            self.db.commit()

        await email_service.send_appointment_confirmation_emails(self.queue, appointment)
        await self.schedule_reminders(appointment)
        return appointment

    def list_user_appointments(self, user: User) -> list[Appointment]:
        return self.repo.get_user_appointments(self.db, user.id)

    def get_user_appointment(self, public_id: str, user: User) -> Appointment:
        appointment = self.repo.get_by_public_id(self.db, public_id)
        if not appointment or appointment.user_id != user.id:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    async def cancel_appointment(self, public_id: str, user: User) -> Appointment:
        appointment = self.get_user_appointment(public_id, user)
        if appointment.status in CLOSED_STATUSES:
            raise HTTPException(
                status_code=400, detail=f"Appointment is already {appointment.status}"
            )

        appointment.status = "cancelled"
        notification_service.create_notification(
            self.db,
            user.id,
            "Appointment Cancelled",
            f"Your appointment on {appointment.date.isoformat()} at {appointment.time} was cancelled.",
            "appointment",
        )
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"🚫 Appointment {public_id} cancelled by user {user.id}")

        await self.cancel_reminders(public_id)
        await email_service.send_appointment_cancelled_email(self.queue, appointment)
        return appointment

    # ========================================================================
    # ADMIN
    # ========================================================================

    def admin_list(self, page: int = 1, limit: int = 20, status: Optional[str] = None):
        return paginate(self.repo.get_admin_query(self.db, status), page, limit)

    def admin_date_range(self, start: str, end: str) -> list[Appointment]:
        try:
            start_day = parse_appointment_date(start)
            end_day = parse_appointment_date(end)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        if start_day > end_day:
            raise HTTPException(status_code=400, detail="start must not be after end")
        return self.repo.get_in_date_range(self.db, start_day, end_day)

    def _admin_get(self, public_id: str) -> Appointment:
        appointment = self.repo.get_by_public_id(self.db, public_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    async def admin_update(self, public_id: str, data: AppointmentAdminUpdate) -> Appointment:
        appointment = self._admin_get(public_id)
        old_status = appointment.status
        new_status = data.status or old_status
        reopening = old_status == "cancelled" and new_status != "cancelled"

        day, start = appointment.date, appointment.scheduled_at
        moved = {}
        if data.date is not None or data.time is not None:
            date_str = data.date or appointment.date.isoformat()
            time_str = data.time or appointment.time
            day, start = self._parse_slot(date_str, time_str)
            if start != appointment.scheduled_at:
                moved = {"date": day, "time": time_str, "scheduled_at": start}
            elif time_str != appointment.time:
                # Same start written another way ("10:00" vs "10:00 AM"): relabel only,
                # the slot and its reminders stay put so nobody is notified
                appointment.time = time_str
        rescheduled = bool(moved)

        if new_status == "cancelled":
            for field, value in moved.items():
                setattr(appointment, field, value)
        elif moved or reopening:
            # A live booking has to clear the 60-minute guard wherever it ends up
            values = dict(moved, status=new_status)
            if not self.repo.update_if_slot_free(self.db, appointment, day, start, values):
                self.db.rollback()
                raise self._conflict_error(day, start, exclude_id=appointment.id)

        if data.notes is not None:
            appointment.notes = data.notes
        if data.status is not None:
            appointment.status = data.status

        status_changed = appointment.status != old_status
        if appointment.user_id and (status_changed or rescheduled):
            notification_service.create_notification(
                self.db,
                appointment.user_id,
                "Appointment Updated",
                f"Your appointment is now {appointment.status}"
                + (" and has been rescheduled" if rescheduled else "")
                + ".",
                "appointment",
            )

        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"🛠️ Admin updated appointment {public_id}: {old_status}->{appointment.status}")

        if appointment.status in CLOSED_STATUSES:
            await self.cancel_reminders(public_id)
        elif rescheduled or reopening:
            await self.cancel_reminders(public_id)
            await self.schedule_reminders(appointment)

        if status_changed and appointment.status == "cancelled":
            await email_service.send_appointment_cancelled_email(self.queue, appointment)
        return appointment

    async def admin_delete(self, public_id: str) -> None:
        appointment = self._admin_get(public_id)
        self.repo.delete(self.db, appointment)
        logger.info(f"🗑️ Admin deleted appointment {public_id}")
        await self.cancel_reminders(public_id)
