"""Account repository - Database operations for users and dashboard figures"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ...models import Appointment, Fabric, Order, Style, User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @staticmethod
    def get_by_public_id(db: Session, public_id: str) -> Optional[User]:
        return db.query(User).filter(User.public_id == public_id).first()

    @staticmethod
    def email_taken(db: Session, email: str, exclude_user_id: Optional[int] = None) -> bool:
        query = db.query(User.id).filter(func.lower(User.email) == email.lower())
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    @staticmethod
    def create(db: Session, user: User) -> User:
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_admin_query(db: Session, search: Optional[str] = None) -> Query:
        query = db.query(User)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(User.name.ilike(term), User.email.ilike(term)))
        return query.order_by(User.created_at.desc(), User.id.desc())

    @staticmethod
    def delete(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()


class DashboardRepository:
    """Aggregates for the admin dashboard"""

    @staticmethod
    def count_users(db: Session) -> int:
        return db.query(func.count(User.id)).scalar() or 0

    @staticmethod
    def count_orders(db: Session) -> int:
        return db.query(func.count(Order.id)).scalar() or 0

    @staticmethod
    def orders_by(db: Session, column) -> dict[str, int]:
        rows = db.query(column, func.count(Order.id)).group_by(column).all()
        return {value: count for value, count in rows}

    @staticmethod
    def paid_revenue(db: Session) -> float:
        total = (
            db.query(func.coalesce(func.sum(Order.total_price), 0))
            .filter(Order.payment_status == "paid")
            .scalar()
        )
        return round(float(total or 0), 2)

    @staticmethod
    def upcoming_appointments(db: Session, now: datetime) -> int:
        return (
            db.query(func.count(Appointment.id))
            .filter(
                Appointment.scheduled_at >= now,
                Appointment.status.notin_(("cancelled", "completed")),
            )
            .scalar()
            or 0
        )

    @staticmethod
    def count_catalog(db: Session) -> tuple[int, int]:
        styles = db.query(func.count(Style.id)).scalar() or 0
        fabrics = db.query(func.count(Fabric.id)).scalar() or 0
        return styles, fabrics

    @staticmethod
    def recent_orders(db: Session, limit: int = 5) -> list[Order]:
        return db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()
