"""Appointment repository - Database operations for in-person bookings"""

from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import insert, literal, select, update
from sqlalchemy.orm import Query, Session, aliased

from ...models import Appointment

# Two live bookings on the same day must start at least this far apart
MIN_GAP = timedelta(minutes=60)


def _slot_taken(day: date, start: datetime, exclude_id: Optional[int] = None):
    """EXISTS(a live appointment on `day` starting strictly within MIN_GAP of `start`)"""
    other = aliased(Appointment)
    query = select(other.id).where(
        other.status != "cancelled",
        other.date == day,
        other.scheduled_at > start - MIN_GAP,
        other.scheduled_at < start + MIN_GAP,
    )
    if exclude_id is not None:
        query = query.where(other.id != exclude_id)
    return query.exists()


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def insert_if_slot_free(db: Session, values: dict) -> Optional[Appointment]:
        """
        Single INSERT ... SELECT ... WHERE NOT EXISTS, so the conflict check and
        the write cannot be interleaved by another booking.

        Returns the new appointment, or None when the slot was taken.
        """
        table = Appointment.__table__
        columns = list(values)
        source = select(
            *[literal(values[name], type_=table.c[name].type) for name in columns]
        ).where(~_slot_taken(values["date"], values["scheduled_at"]))

        db.execute(insert(table).from_select(columns, source))
        db.commit()
        return AppointmentRepository.get_by_public_id(db, values["public_id"])

    @staticmethod
    def update_if_slot_free(
        db: Session, appointment: Appointment, day: date, start: datetime, values: dict
    ) -> bool:
        """
        Conditional UPDATE with the same guard, ignoring the appointment itself.
        Used for moves and for bringing a cancelled booking back to life.
        """
        table = Appointment.__table__
        result = db.execute(
            update(table)
            .where(table.c.id == appointment.id, ~_slot_taken(day, start, exclude_id=appointment.id))
            .values(**values)
        )
        return result.rowcount == 1

    @staticmethod
    def find_conflict(
        db: Session, day: date, start: datetime, exclude_id: Optional[int] = None
    ) -> Optional[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.status != "cancelled",
            Appointment.date == day,
            Appointment.scheduled_at > start - MIN_GAP,
            Appointment.scheduled_at < start + MIN_GAP,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.scheduled_at).first()

    @staticmethod
    def get_by_public_id(db: Session, public_id: str) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.public_id == public_id).first()

    @staticmethod
    def get_user_appointments(db: Session, user_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.user_id == user_id)
            .order_by(Appointment.scheduled_at.desc())
            .all()
        )

    @staticmethod
    def get_admin_query(db: Session, status: Optional[str] = None) -> Query:
        query = db.query(Appointment)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.scheduled_at.asc(), Appointment.id.asc())

    @staticmethod
    def get_in_date_range(db: Session, start: date, end: date) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.date >= start, Appointment.date <= end)
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()
