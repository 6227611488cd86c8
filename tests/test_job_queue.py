import asyncio
from datetime import timedelta, timezone

import pytest
from arq.connections import ArqRedis
from arq.constants import default_queue_name, job_key_prefix
from fakeredis import FakeServer
from fakeredis.aioredis import FakeConnection
from redis.asyncio import ConnectionPool

from sybertailor.models import Order, utcnow
from sybertailor.services import order_scheduler
from sybertailor.services.job_queue import JobQueue

PROGRESS_TASK = "send_order_progress_notification_task"


@pytest.fixture
def server():
    return FakeServer()


def run_with_queue(server, scenario):
    """Run `scenario(queue, pool)` against an arq pool on the fake server"""

    async def main():
        pool = ArqRedis(ConnectionPool(connection_class=FakeConnection, server=server))
        try:
            return await scenario(JobQueue(pool), pool)
        finally:
            await pool.aclose()

    return asyncio.run(main())


def test_same_id_is_queued_once(server):
    run_at = utcnow() + timedelta(days=2)

    async def scenario(queue, pool):
        first = await queue.enqueue(PROGRESS_TASK, 1, 2, job_id="user_day2_1", run_at=run_at)
        second = await queue.enqueue(PROGRESS_TASK, 1, 2, job_id="user_day2_1", run_at=run_at)
        return first, second, await pool.zcard(default_queue_name), await pool.zscore(default_queue_name, "user_day2_1")

    first, second, queued, score = run_with_queue(server, scenario)

    assert (first, second, queued) == (True, False, 1)
    assert score == round(run_at.replace(tzinfo=timezone.utc).timestamp() * 1000)


def test_cancel_removes_a_deferred_job_and_frees_its_id(server):
    run_at = utcnow() + timedelta(days=3)

    async def scenario(queue, pool):
        await queue.enqueue(PROGRESS_TASK, 1, 3, job_id="user_day3_1", run_at=run_at)
        assert await queue.exists("user_day3_1")

        revoked = await queue.cancel("user_day3_1")
        after = (
            await queue.exists("user_day3_1"),
            await pool.zscore(default_queue_name, "user_day3_1"),
            await pool.exists(job_key_prefix + "user_day3_1"),
        )
        requeued = await queue.enqueue(PROGRESS_TASK, 1, 3, job_id="user_day3_1", run_at=run_at)
        return revoked, after, requeued

    revoked, after, requeued = run_with_queue(server, scenario)

    assert revoked is True
    assert after == (False, None, 0)
    assert requeued is True


def test_cancel_of_unknown_id_reports_nothing_revoked(server):
    async def scenario(queue, pool):
        return await queue.cancel("user_day4_999")

    assert run_with_queue(server, scenario) is False


def test_order_jobs_survive_a_restart_without_duplicates(server, db, user):
    created = utcnow() - timedelta(hours=1)
    order = Order(
        user_id=user.id,
        customer_name=user.name,
        customer_email=user.email,
        order_type="Online",
        style={"title": "Kaftan", "price": 3000, "yardsRequired": 3},
        material={"name": "Linen", "pricePerYard": 500},
        status="in-progress",
        payment_status="paid",
        created_at=created,
        paid_at=created,
    )
    db.add(order)
    db.commit()

    async def first_boot(queue, pool):
        return await order_scheduler.schedule_order_notifications(db, queue, order)

    async def second_boot(queue, pool):
        again = await order_scheduler.reschedule_all_notifications(db, queue)
        return again, await pool.zcard(default_queue_name)

    async def cancel(queue, pool):
        revoked = await order_scheduler.cancel_order_notifications(queue, order.id)
        return revoked, await pool.zcard(default_queue_name)

    assert run_with_queue(server, first_boot) == 7
    assert run_with_queue(server, second_boot) == (0, 7)
    assert run_with_queue(server, cancel) == (7, 0)
