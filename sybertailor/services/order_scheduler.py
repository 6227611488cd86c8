"""
Delayed-notification scheduler for paid online orders

A paid order gets a fixed set of one-shot jobs keyed off its creation time:
two admin delivery reminders and five customer progress updates. Job ids are
built from a prefix and the order id, so scheduling is idempotent and any job
can be revoked later from the order id alone.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Order, utcnow

logger = logging.getLogger(__name__)

DELIVERY_DAYS = 7

ADMIN_REMINDER_TASK = "send_admin_delivery_reminder_task"
PROGRESS_TASK = "send_order_progress_notification_task"

# (days before delivery, job id prefix)
ADMIN_REMINDERS = (
    (3, "admin_3_days_before"),
    (1, "admin_1_day_before"),
)


@dataclass(frozen=True)
class ProgressStep:
    day: int
    title: str
    message: str
    type: str = "order_progress"

    def render(self, customer_name: str, item_name: str, order_id: int) -> str:
        return (
            self.message.replace("%NAME%", customer_name)
            .replace("%ITEM%", item_name)
            .replace("%ID%", str(order_id))
        )


PROGRESS_STEPS = (
    ProgressStep(
        2,
        "Your Material Is Ready! 🧵",
        "Great news, %NAME%! The material for your order %ITEM% (#%ID%) has been purchased "
        "and is ready for the next step. 🧵",
    ),
    ProgressStep(
        3,
        "Your Cloth is Cut! ✂️",
        "%NAME%, the cloth for your order %ITEM% (#%ID%) is now cut and being prepared "
        "for tailoring. ✂️",
    ),
    ProgressStep(
        4,
        "Your Garment is Being Sewn! 🧵✨",
        "Exciting, %NAME%! Your custom garment %ITEM% (#%ID%) is being sewn by our tailors. 🧵✨",
    ),
    ProgressStep(
        5,
        "Freshly Dry-Cleaned! ✨",
        "%NAME%, your garment %ITEM% (#%ID%) has just been dry-cleaned and is looking its best! ✨",
    ),
    ProgressStep(
        6,
        "🎉 Almost There! 🎉",
        "🎉 Woohoo, %NAME%! Your custom order %ITEM% (#%ID%) is complete. "
        "Expect delivery by tomorrow! 🚚",
        "delivery_imminent",
    ),
)

PROGRESS_STEPS_BY_DAY = {step.day: step for step in PROGRESS_STEPS}


@dataclass(frozen=True)
class ScheduledJob:
    job_id: str
    function: str
    run_at: datetime
    args: tuple


def expected_delivery_for(order: Order) -> datetime:
    return order.created_at + timedelta(days=DELIVERY_DAYS)


def is_schedulable(order: Order) -> bool:
    """Only paid online orders that are still being worked on get jobs"""
    return (
        order.order_type == "Online"
        and order.payment_status == "paid"
        and order.status not in ("cancelled", "completed")
    )


def order_job_ids(order_id: int) -> list[str]:
    ids = [f"{prefix}_{order_id}" for _, prefix in ADMIN_REMINDERS]
    ids.extend(f"user_day{step.day}_{order_id}" for step in PROGRESS_STEPS)
    return ids


def build_order_jobs(order: Order) -> list[ScheduledJob]:
    """Every job an order should have, past or future"""
    delivery = order.expected_delivery_date or expected_delivery_for(order)
    jobs = [
        ScheduledJob(
            job_id=f"{prefix}_{order.id}",
            function=ADMIN_REMINDER_TASK,
            run_at=delivery - timedelta(days=days_before),
            args=(order.id, days_before),
        )
        for days_before, prefix in ADMIN_REMINDERS
    ]
    jobs.extend(
        ScheduledJob(
            job_id=f"user_day{step.day}_{order.id}",
            function=PROGRESS_TASK,
            run_at=order.created_at + timedelta(days=step.day),
            args=(order.id, step.day),
        )
        for step in PROGRESS_STEPS
    )
    return jobs


async def schedule_order_notifications(
    db: Session, queue, order: Order, now: Optional[datetime] = None
) -> int:
    """
    Set the expected delivery date (once) and queue the order's future jobs.

    Returns the number of jobs newly queued. Jobs whose fire time has passed are
    skipped, and ids that are already queued are left alone.
    """
    if not is_schedulable(order):
        return 0

    if order.expected_delivery_date is None:
        order.expected_delivery_date = expected_delivery_for(order)
        db.commit()

    if queue is None:
        logger.warning(f"⚠️ No job queue available, order {order.id} notifications not scheduled")
        return 0

    now = now or utcnow()
    queued = 0
    for job in build_order_jobs(order):
        if job.run_at <= now:
            logger.debug(f"⏭️ {job.job_id} is in the past, skipping")
            continue
        try:
            if await queue.enqueue(job.function, *job.args, job_id=job.job_id, run_at=job.run_at):
                queued += 1
        except Exception as e:
            logger.error(f"❌ Failed to schedule {job.job_id}: {e}")

    logger.info(
        f"📅 Scheduled {queued} notifications for order {order.id} "
        f"(expected delivery {order.expected_delivery_date:%Y-%m-%d})"
    )
    return queued


async def cancel_order_notifications(queue, order_id: int) -> int:
    """Revoke every job keyed to the order. Best-effort; returns how many were revoked."""
    if queue is None:
        logger.warning(f"⚠️ No job queue available, cannot cancel jobs for order {order_id}")
        return 0

    revoked = 0
    for job_id in order_job_ids(order_id):
        try:
            if await queue.cancel(job_id):
                revoked += 1
        except Exception as e:
            logger.error(f"❌ Failed to cancel {job_id}: {e}")

    if revoked:
        logger.info(f"🗑️ Cancelled {revoked} scheduled notifications for order {order_id}")
    return revoked


async def reschedule_all_notifications(db: Session, queue, now: Optional[datetime] = None) -> int:
    """
    Startup re-scan: queue jobs for every paid online order still awaiting delivery.

    Safe to run repeatedly since already-queued ids are no-ops.
    """
    now = now or utcnow()
    try:
        active_orders = (
            db.query(Order)
            .filter(
                Order.order_type == "Online",
                Order.payment_status == "paid",
                Order.status.notin_(("cancelled", "completed")),
                Order.actual_delivery_date.is_(None),
                Order.expected_delivery_date > now,
            )
            .all()
        )
    except Exception as e:
        logger.error(f"❌ Error during notification rescheduling on startup: {e}")
        return 0

    logger.info(f"🔄 Found {len(active_orders)} active orders to reschedule")
    total = 0
    for order in active_orders:
        total += await schedule_order_notifications(db, queue, order, now=now)
    logger.info(f"✅ Notification rescheduling complete ({total} jobs queued)")
    return total
