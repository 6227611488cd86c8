"""Order repository - Database operations for orders"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from ...models import Fabric, Measurement, Order, Style

ADMIN_SORTS = {
    "newest": Order.created_at.desc(),
    "oldest": Order.created_at.asc(),
    "price_high": Order.total_price.desc(),
    "price_low": Order.total_price.asc(),
}


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def get_user_orders_query(
        db: Session,
        user_id: int,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> Query:
        query = db.query(Order).filter(Order.user_id == user_id)
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        return query.order_by(Order.created_at.desc(), Order.id.desc())

    @staticmethod
    def get_order(db: Session, order_id: int) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id).first()

    @staticmethod
    def get_order_for_user(db: Session, order_id: int, user_id: int) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()

    @staticmethod
    def get_admin_query(
        db: Session,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        order_type: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> Query:
        query = db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if order_type:
            query = query.filter(Order.order_type == order_type)
        if search:
            term = f"%{search.strip()}%"
            conditions = [
                Order.customer_name.ilike(term),
                Order.customer_email.ilike(term),
                Order.payment_reference.ilike(term),
            ]
            if search.strip().isdigit():
                conditions.append(Order.id == int(search.strip()))
            query = query.filter(or_(*conditions))
        return query.order_by(ADMIN_SORTS.get(sort or "newest", ADMIN_SORTS["newest"]), Order.id.desc())

    @staticmethod
    def mark_paid(db: Session, order_id: int, values: dict) -> int:
        """
        Conditional transition to paid: only rows not already paid or cancelled
        are touched. Returns the number of rows updated (0 or 1).
        """
        return (
            db.query(Order)
            .filter(
                Order.id == order_id,
                Order.payment_status != "paid",
                Order.status != "cancelled",
            )
            .update(values, synchronize_session="fetch")
        )

    @staticmethod
    def mark_cancelled(db: Session, order_id: int, locked_statuses) -> int:
        """Conditional transition to cancelled from an unlocked status"""
        return (
            db.query(Order)
            .filter(Order.id == order_id, Order.status.notin_(locked_statuses))
            .update({"status": "cancelled"}, synchronize_session="fetch")
        )

    @staticmethod
    def get_style(db: Session, style_id: int) -> Optional[Style]:
        return db.query(Style).filter(Style.id == style_id).first()

    @staticmethod
    def get_fabric(db: Session, fabric_id: int) -> Optional[Fabric]:
        return db.query(Fabric).filter(Fabric.id == fabric_id).first()

    @staticmethod
    def get_measurement_for_user(db: Session, measurement_id: int, user_id: int) -> Optional[Measurement]:
        return (
            db.query(Measurement)
            .filter(Measurement.id == measurement_id, Measurement.user_id == user_id)
            .first()
        )

    @staticmethod
    def delete_order(db: Session, order: Order) -> None:
        db.delete(order)
        db.commit()
