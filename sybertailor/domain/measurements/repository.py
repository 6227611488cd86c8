"""Measurement repository - Database operations for body measurements"""

from typing import Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Measurement, User


class MeasurementRepository:
    """Repository for measurement database operations"""

    @staticmethod
    def get_for_user(db: Session, measurement_id: int, user_id: int) -> Optional[Measurement]:
        return (
            db.query(Measurement)
            .filter(Measurement.id == measurement_id, Measurement.user_id == user_id)
            .first()
        )

    @staticmethod
    def get(db: Session, measurement_id: int) -> Optional[Measurement]:
        return (
            db.query(Measurement)
            .options(joinedload(Measurement.user))
            .filter(Measurement.id == measurement_id)
            .first()
        )

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> list[Measurement]:
        return (
            db.query(Measurement)
            .filter(Measurement.user_id == user_id)
            .order_by(Measurement.created_at.desc(), Measurement.id.desc())
            .all()
        )

    @staticmethod
    def user_has_any(db: Session, user_id: int) -> bool:
        return db.query(Measurement.id).filter(Measurement.user_id == user_id).first() is not None

    @staticmethod
    def get_admin_query(
        db: Session,
        gender: Optional[str] = None,
        unit: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Query:
        query = db.query(Measurement).join(User, Measurement.user_id == User.id)
        if gender and gender != "All":
            query = query.filter(Measurement.gender == gender)
        if unit and unit != "All":
            query = query.filter(Measurement.unit == unit)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Measurement.name.ilike(term),
                    Measurement.size.ilike(term),
                    Measurement.age_bracket.ilike(term),
                    cast(Measurement.id, String).ilike(term),
                    User.name.ilike(term),
                    User.email.ilike(term),
                )
            )
        return query.order_by(Measurement.created_at.desc(), Measurement.id.desc())

    @staticmethod
    def save(db: Session, measurement: Measurement) -> Measurement:
        db.add(measurement)
        db.commit()
        db.refresh(measurement)
        return measurement

    @staticmethod
    def delete(db: Session, measurement: Measurement) -> None:
        db.delete(measurement)
        db.commit()
