# salon/services/availability.py

import logging
from datetime import datetime, date, timedelta
from typing import List, Optional, Sequence

from sqlmodel import Session, select

from salon.config import SLOT_MINUTES, SEARCH_DAYS
from salon.core import overlaps, at_time, day_bounds, round_up_to_slot
from salon.models import Appointment, AppointmentStatus, BlockedTime, Manicurist, Schedule

logger = logging.getLogger(__name__)


def get_schedule(session: Session, manicurist_id: str, weekday: int) -> Optional[Schedule]:
    return session.exec(
        select(Schedule)
        .where(Schedule.manicurist_id == manicurist_id)
        .where(Schedule.day_of_week == weekday)
    ).first()


def busy_intervals(session: Session, manicurist_id: str, day: date):
    """Non-cancelled appointments and blocked times touching `day`."""
    day_start, day_end = day_bounds(day)

    appts = session.exec(
        select(Appointment)
        .where(Appointment.manicurist_id == manicurist_id)
        .where(Appointment.status != AppointmentStatus.CANCELLED)
        .where(Appointment.start_at <= day_end)
        .where(Appointment.end_at > day_start)
    ).all()

    blocks = session.exec(
        select(BlockedTime)
        .where(BlockedTime.manicurist_id == manicurist_id)
        .where(BlockedTime.start_at <= day_end)
        .where(BlockedTime.end_at > day_start)
    ).all()

    return [(a.start_at, a.end_at) for a in appts] + [(b.start_at, b.end_at) for b in blocks]


def get_available_slots(
    session: Session,
    manicurist_id: str,
    day: date,
    duration_minutes: int,
) -> List[dict]:
    manicurist = session.get(Manicurist, manicurist_id)
    if manicurist is None or not manicurist.is_active:
        return []

    # 1) Lookup schedule for that weekday
    schedule = get_schedule(session, manicurist_id, day.weekday())
    if schedule is None or not schedule.is_active:
        return []

    # 2) Build working window
    work_start = at_time(day, schedule.start_time)
    work_end = at_time(day, schedule.end_time)

    busy = busy_intervals(session, manicurist_id, day)

    slot_delta = timedelta(minutes=SLOT_MINUTES)
    duration = timedelta(minutes=duration_minutes)

    # 3) Walk the 15-min grid, subtract appointments AND blocks
    slots = []
    current = work_start
    while current < work_end:
        slot_end = current + duration
        if slot_end > work_end:
            break
        if not any(overlaps(current, slot_end, b_start, b_end) for b_start, b_end in busy):
            slots.append({"start": current, "end": slot_end})
        current += slot_delta

    return slots


def get_next_available_slots(
    session: Session,
    manicurist_ids: Sequence[str],
    duration_minutes: int,
    limit: int,
    business_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[dict]:
    """Earliest `limit` slots across staff, searching SEARCH_DAYS calendar days from now."""
    now = now or datetime.now()
    earliest = round_up_to_slot(now)

    ids = list(manicurist_ids)
    if not ids:
        stmt = select(Manicurist.id).where(Manicurist.is_active == True)  # noqa: E712
        if business_id:
            stmt = stmt.where(Manicurist.business_id == business_id)
        ids = list(session.exec(stmt).all())

    collected = []
    for offset in range(SEARCH_DAYS):
        day = (now + timedelta(days=offset)).date()
        for manicurist_id in ids:
            for slot in get_available_slots(session, manicurist_id, day, duration_minutes):
                if slot["start"] >= earliest:
                    collected.append({**slot, "manicurist_id": manicurist_id})

    collected.sort(key=lambda s: s["start"])
    logger.debug("Next-slot search over %d staff found %d candidates", len(ids), len(collected))
    return collected[:limit]
