# salon/queue.py

"""
Notification job queue.

Two lanes, each its own arq queue:
  - notifications -> confirmations & cancellations, sent right away.
  - reminders     -> reminders, drained by a single rate-limited worker.

Job ids are derived from the appointment id so a reminder can be found,
replaced or removed later without storing anything else.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Protocol

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.constants import job_key_prefix, result_key_prefix
from arq.jobs import Job, JobStatus
from sqlmodel import Session, select

from .config import REDIS_URL
from .models import (
    ACTIVE_STATUSES,
    Appointment,
    Notification,
    NotificationStatus,
    NotificationType,
)

logger = logging.getLogger(__name__)

HOUR = timedelta(hours=1)
DAY = timedelta(hours=24)


@dataclass(frozen=True)
class Lane:
    name: str
    queue_name: str
    function: str


NOTIFICATIONS = Lane("notifications", "salon:notifications", "send_notification")
REMINDERS = Lane("reminders", "salon:reminders", "send_reminder")

# job states that will still send; a retained result ("complete") does not count
LIVE_JOB_STATUSES = {"queued", "deferred", "in_progress"}


def confirmation_job_id(appointment_id: str) -> str:
    return f"confirm-{appointment_id}"


def reminder_job_id(appointment_id: str) -> str:
    return f"reminder-{appointment_id}"


def cancellation_job_id(appointment_id: str) -> str:
    return f"cancel-{appointment_id}"


def get_redis_settings() -> RedisSettings:
    settings = RedisSettings.from_dsn(REDIS_URL)
    settings.conn_timeout = 15
    settings.conn_retry_delay = 1
    return settings


class JobQueue(Protocol):
    async def enqueue(
        self, lane: Lane, payload: dict, job_id: str, delay: Optional[timedelta] = None
    ) -> Optional[str]:
        ...

    async def find_job(self, lane: Lane, job_id: str) -> Optional[str]:
        ...

    async def remove_job(self, lane: Lane, job_id: str) -> bool:
        ...


class ArqJobQueue:
    """JobQueue on top of an arq Redis pool, created on first use."""

    def __init__(self, redis_settings: Optional[RedisSettings] = None, pool: Optional[ArqRedis] = None):
        self.redis_settings = redis_settings or get_redis_settings()
        self._pool = pool

    async def pool(self) -> ArqRedis:
        if self._pool is None:
            self._pool = await asyncio.wait_for(create_pool(self.redis_settings), timeout=20.0)
        return self._pool

    async def enqueue(self, lane, payload, job_id, delay=None):
        pool = await self.pool()
        job = await pool.enqueue_job(
            lane.function,
            payload["appointment_id"],
            payload["type"],
            _job_id=job_id,
            _queue_name=lane.queue_name,
            _defer_by=delay,
        )
        if job is None:
            logger.info("Job %s already queued on %s, not enqueued again", job_id, lane.name)
            return None
        return job.job_id

    async def find_job(self, lane, job_id):
        pool = await self.pool()
        status = await Job(job_id, pool, _queue_name=lane.queue_name).status()
        if status == JobStatus.not_found:
            return None
        return status.value

    async def remove_job(self, lane, job_id):
        # Only drops queued/deferred jobs; a job already picked up by a worker keeps running.
        pool = await self.pool()
        async with pool.pipeline(transaction=True) as pipe:
            pipe.zrem(lane.queue_name, job_id)
            pipe.delete(job_key_prefix + job_id, result_key_prefix + job_id)
            removed, _ = await pipe.execute()
        return bool(removed)

    async def close(self):
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


def reminder_delay(start_at: datetime, now: datetime) -> Optional[timedelta]:
    """
    Remind 24 h before, or 1 h before when the appointment is 24 h away or less.
    Returns None when the reminder moment has already passed.
    """
    until = start_at - now
    lead = HOUR if until <= DAY else DAY
    delay = until - lead
    if delay <= timedelta(0):
        return None
    return delay


class NotificationScheduler:
    def __init__(self, queue: JobQueue, clock=datetime.now):
        self.queue = queue
        self.clock = clock

    async def enqueue_confirmation(self, appointment_id: str):
        job_id = await self.queue.enqueue(
            NOTIFICATIONS,
            {"appointment_id": appointment_id, "type": NotificationType.CONFIRMATION.value},
            job_id=confirmation_job_id(appointment_id),
        )
        logger.info("Confirmation queued for appointment %s", appointment_id)
        return job_id

    async def schedule_reminder(self, appointment_id: str, start_at: datetime):
        delay = reminder_delay(start_at, self.clock())
        job_id = reminder_job_id(appointment_id)
        # replace any earlier reminder for this appointment
        await self.queue.remove_job(REMINDERS, job_id)
        if delay is None:
            logger.info("Appointment %s starts too soon for a reminder", appointment_id)
            return None

        queued = await self.queue.enqueue(
            REMINDERS,
            {"appointment_id": appointment_id, "type": NotificationType.REMINDER_24H.value},
            job_id=job_id,
            delay=delay,
        )
        logger.info("Reminder for appointment %s scheduled in %s", appointment_id, delay)
        return queued

    async def enqueue_cancellation(self, appointment_id: str):
        if await self.queue.remove_job(REMINDERS, reminder_job_id(appointment_id)):
            logger.info("Removed pending reminder for appointment %s", appointment_id)

        job_id = await self.queue.enqueue(
            NOTIFICATIONS,
            {"appointment_id": appointment_id, "type": NotificationType.CANCELLATION.value},
            job_id=cancellation_job_id(appointment_id),
        )
        logger.info("Cancellation queued for appointment %s", appointment_id)
        return job_id

    async def reconcile_reminders(self, session: Session) -> int:
        """
        Safety net for reminders lost to restarts or failed enqueues.

        Looks at appointments starting around now + lead time (for both the
        24 h and the 1 h policy) that have no PENDING/SENT reminder row and
        no queued reminder job, and schedules them again.
        """
        now = self.clock()
        already = (
            select(Notification.appointment_id)
            .where(Notification.type == NotificationType.REMINDER_24H)
            .where(Notification.status.in_([NotificationStatus.SENT, NotificationStatus.PENDING]))
        )

        scheduled = 0
        for lead in (DAY, HOUR):
            window_start = now + lead - timedelta(minutes=15)
            window_end = now + lead + timedelta(minutes=60)
            appointments = session.exec(
                select(Appointment)
                .where(Appointment.start_at >= window_start)
                .where(Appointment.start_at <= window_end)
                .where(Appointment.status.in_(ACTIVE_STATUSES))
                .where(Appointment.id.not_in(already))
            ).all()

            logger.info("Reconcile found %d appointments in the %s window", len(appointments), lead)
            for appt in appointments:
                if await self.queue.find_job(REMINDERS, reminder_job_id(appt.id)) in LIVE_JOB_STATUSES:
                    continue
                if await self.schedule_reminder(appt.id, appt.start_at):
                    scheduled += 1
        return scheduled


async def fire_and_forget(func, *args):
    """Run a queue call after the response; failures are logged, never raised."""
    try:
        await func(*args)
    except Exception:
        logger.exception("Background %s%s failed", func.__name__, args)
