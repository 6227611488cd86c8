"""
Durable delayed-job queue backed by arq/Redis

Every job is enqueued with a caller-chosen id, so enqueueing the same id
twice is a no-op and a job can later be revoked by rebuilding its id.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from arq import create_pool
from arq.connections import ArqRedis
from arq.constants import default_queue_name, job_key_prefix
from arq.jobs import Job, JobStatus
from fastapi import Request

from ..worker import get_redis_settings

logger = logging.getLogger(__name__)

ABORT_TIMEOUT_SECONDS = 2.0


def _to_aware_utc(run_at: datetime) -> datetime:
    # Naive datetimes are UTC throughout the app
    if run_at.tzinfo is None:
        return run_at.replace(tzinfo=timezone.utc)
    return run_at.astimezone(timezone.utc)


class JobQueue:
    """Thin wrapper over an ArqRedis pool"""

    def __init__(self, pool: ArqRedis):
        self.pool = pool

    @classmethod
    async def connect(cls) -> "JobQueue":
        pool = await asyncio.wait_for(create_pool(get_redis_settings()), timeout=20.0)
        return cls(pool)

    async def enqueue(
        self,
        function: str,
        *args,
        job_id: Optional[str] = None,
        run_at: Optional[datetime] = None,
        **kwargs,
    ) -> bool:
        """
        Queue a job, optionally deferred until run_at.

        Returns False when a job with the same id already exists.
        """
        if job_id:
            kwargs["_job_id"] = job_id
        if run_at:
            kwargs["_defer_until"] = _to_aware_utc(run_at)

        job = await self.pool.enqueue_job(function, *args, **kwargs)
        if job is None:
            logger.debug(f"⏭️ Job {job_id} already queued, skipping")
            return False

        logger.info(f"📋 Queued {function} as {job.job_id} (run_at={run_at})")
        return True

    async def cancel(self, job_id: str) -> bool:
        """Revoke a job by id. Returns True when something was revoked."""
        job = Job(job_id, self.pool)
        status = await job.status()

        if status in (JobStatus.deferred, JobStatus.queued):
            # Not started yet: drop it from the queue and free the id
            async with self.pool.pipeline(transaction=True) as tr:
                tr.zrem(default_queue_name, job_id)
                tr.delete(job_key_prefix + job_id)
                await tr.execute()
            logger.info(f"🗑️ Removed queued job {job_id}")
            return True

        if status == JobStatus.in_progress:
            try:
                return await job.abort(timeout=ABORT_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                # Abort is registered; the worker will honour it
                logger.warning(f"⏰ Abort of job {job_id} still pending")
                return True

        return False

    async def exists(self, job_id: str) -> bool:
        status = await Job(job_id, self.pool).status()
        return status in (JobStatus.deferred, JobStatus.queued, JobStatus.in_progress)

    async def close(self):
        await self.pool.aclose()


def get_job_queue(request: Request) -> Optional[JobQueue]:
    """FastAPI dependency: the queue opened at startup, or None when Redis is down"""
    return getattr(request.app.state, "job_queue", None)
