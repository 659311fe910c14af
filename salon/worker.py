# salon/worker.py

"""
ARQ background workers.

Run both lanes in one process with:  python -m salon.worker
or each lane separately:
    arq salon.worker.NotificationsWorkerSettings
    arq salon.worker.RemindersWorkerSettings

  - notifications -> confirmations & cancellations, sent immediately.
  - reminders     -> reminders, at most 1 message per REMINDER_RATE_WINDOW_SECONDS
                     across every reminders worker, so a day's worth of
                     reminders trickles out instead of bursting.

The notifications worker also runs the auto-completion sweep every minute
and the reminder reconciliation sweep every 15 minutes (both at startup too).
"""

import asyncio
import logging

from arq import cron, func
from arq.worker import Retry, create_worker

from .config import (
    JOB_BACKOFF_SECONDS,
    JOB_MAX_TRIES,
    LOG_LEVEL,
    NOTIFICATIONS_MAX_JOBS,
    REMINDER_RATE_WINDOW_SECONDS,
    WHATSAPP_TIMEOUT_SECONDS,
)
from .db import session_scope
from .models import NotificationType
from .queue import NOTIFICATIONS, REMINDERS, ArqJobQueue, NotificationScheduler, get_redis_settings
from .services.appointments import auto_complete_expired_appointments
from .services.notifications import process_notification
from .whatsapp import get_provider

logger = logging.getLogger(__name__)

REMINDER_RATE_KEY = "salon:reminders:rate"
KEEP_RESULT_SECONDS = 7 * 24 * 3600  # failed jobs stay inspectable for a week


def backoff_seconds(job_try: int) -> int:
    # 5s, 10s, 20s ...
    return JOB_BACKOFF_SECONDS * 2 ** (job_try - 1)


async def wait_for_reminder_slot(redis, window_seconds: int = REMINDER_RATE_WINDOW_SECONDS):
    """Block until this worker owns the next send in the shared rate window."""
    while True:
        acquired = await redis.set(REMINDER_RATE_KEY, "1", px=window_seconds * 1000, nx=True)
        if acquired:
            return
        ttl_ms = await redis.pttl(REMINDER_RATE_KEY)
        wait = max(ttl_ms, 100) / 1000
        logger.info("Reminder rate limit reached, waiting %.1fs", wait)
        await asyncio.sleep(wait)


async def _dispatch(ctx, appointment_id: str, kind: str, before_send=None):
    job_try = ctx.get("job_try", 1)
    logger.info("Processing job %s (%s, attempt %d)", ctx.get("job_id"), kind, job_try)
    try:
        with session_scope() as session:
            notification = await process_notification(
                session, ctx["provider"], appointment_id, NotificationType(kind), before_send=before_send
            )
    except Exception as exc:
        if job_try >= JOB_MAX_TRIES:
            logger.error("Job %s failed for good after %d attempts: %s", ctx.get("job_id"), job_try, exc)
            raise
        defer = backoff_seconds(job_try)
        logger.warning("Job %s failed (attempt %d), retrying in %ds: %s", ctx.get("job_id"), job_try, defer, exc)
        raise Retry(defer=defer) from exc
    return notification.id if notification else None


async def send_notification(ctx, appointment_id: str, kind: str):
    return await _dispatch(ctx, appointment_id, kind)


async def send_reminder(ctx, appointment_id: str, kind: str):
    redis = ctx["redis"]
    return await _dispatch(ctx, appointment_id, kind, before_send=lambda: wait_for_reminder_slot(redis))


async def auto_complete_task(ctx):
    with session_scope() as session:
        count = auto_complete_expired_appointments(session)
    if count:
        logger.info("Auto-completed %d expired appointment(s)", count)
    return count


async def reconcile_reminders_task(ctx):
    with session_scope() as session:
        scheduled = await ctx["scheduler"].reconcile_reminders(session)
    logger.info("Reminder reconciliation scheduled %d reminder(s)", scheduled)
    return scheduled


async def startup(ctx):
    ctx["provider"] = get_provider()
    ctx["scheduler"] = NotificationScheduler(ArqJobQueue(pool=ctx["redis"]))
    logger.info("Worker started")


async def shutdown(ctx):
    logger.info("Worker shutting down")


class NotificationsWorkerSettings:
    """Confirmations & cancellations, plus the periodic sweeps."""

    functions = [func(send_notification, name=NOTIFICATIONS.function)]
    queue_name = NOTIFICATIONS.queue_name
    redis_settings = get_redis_settings()
    on_startup = startup
    on_shutdown = shutdown

    max_jobs = NOTIFICATIONS_MAX_JOBS
    max_tries = JOB_MAX_TRIES
    job_timeout = int(WHATSAPP_TIMEOUT_SECONDS) + 60
    keep_result = KEEP_RESULT_SECONDS

    cron_jobs = [
        cron(auto_complete_task, second=0, run_at_startup=True),
        cron(reconcile_reminders_task, minute={0, 15, 30, 45}, second=0, run_at_startup=True),
    ]


class RemindersWorkerSettings:
    """Reminders, one at a time, globally rate limited."""

    functions = [func(send_reminder, name=REMINDERS.function)]
    queue_name = REMINDERS.queue_name
    redis_settings = get_redis_settings()
    on_startup = startup
    on_shutdown = shutdown

    max_jobs = 1
    max_tries = JOB_MAX_TRIES
    # a job may wait out a full rate window before sending
    job_timeout = REMINDER_RATE_WINDOW_SECONDS + int(WHATSAPP_TIMEOUT_SECONDS) + 60
    keep_result = KEEP_RESULT_SECONDS


async def run_all():
    workers = [create_worker(NotificationsWorkerSettings), create_worker(RemindersWorkerSettings)]
    try:
        await asyncio.gather(*(w.async_run() for w in workers))
    finally:
        await asyncio.gather(*(w.close() for w in workers))


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.info("Starting notification and reminder workers")
    asyncio.run(run_all())


if __name__ == "__main__":
    main()
