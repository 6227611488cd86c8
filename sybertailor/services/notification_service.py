"""
In-app Notification Service
Writes notification rows in the caller's transaction so a state change and
the message describing it are committed together
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Notification, Order

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: Optional[int],
    title: str,
    message: str,
    notification_type: str = "general",
    order_id: Optional[int] = None,
) -> Optional[Notification]:
    """
    Stage a notification on the session. The caller commits.

    Anonymous owners (user_id None) get nothing.
    """
    if not user_id:
        return None

    notification = Notification(
        user_id=user_id,
        order_id=order_id,
        title=title,
        message=message,
        type=notification_type,
    )
    db.add(notification)
    logger.debug(f"🔔 Staged '{title}' notification for user {user_id}")
    return notification


def notify_order_created(db: Session, order: Order) -> None:
    create_notification(
        db,
        order.user_id,
        "New Order Placed",
        f"Your order #{order.id} for {(order.style or {}).get('title', 'a custom garment')} "
        f"has been placed. Total: ₦{order.total_price:,.2f}.",
        "order_status",
        order.id,
    )


def notify_order_status(db: Session, order: Order) -> None:
    create_notification(
        db,
        order.user_id,
        "Order Status Updated",
        f"Your order #{order.id} is now {order.status}.",
        "order_status",
        order.id,
    )


def notify_payment_status(db: Session, order: Order) -> None:
    if order.payment_status == "paid":
        title = "Payment Successful"
        message = f"Payment for order #{order.id} was confirmed. We've started working on it!"
    elif order.payment_status == "failed":
        title = "Payment Failed"
        message = f"We couldn't confirm payment for order #{order.id}. Please try again."
    else:
        title = "Payment Status Updated"
        message = f"Payment status for order #{order.id} is now {order.payment_status}."
    create_notification(db, order.user_id, title, message, "payment", order.id)


def notify_order_cancelled(db: Session, order: Order) -> None:
    create_notification(
        db,
        order.user_id,
        "Order Cancelled",
        f"Your order #{order.id} has been cancelled.",
        "order_status",
        order.id,
    )
