# salon/services/conflicts.py

import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from salon.core import at_time
from salon.models import Appointment, AppointmentStatus, BlockedTime, Manicurist
from salon.services.availability import get_schedule

logger = logging.getLogger(__name__)


def is_slot_available(
    session: Session,
    manicurist_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    manicurist = session.get(Manicurist, manicurist_id)
    if manicurist is None or not manicurist.is_active:
        return False

    # 1) Schedule exists, is active, and contains the interval
    schedule = get_schedule(session, manicurist_id, start.weekday())
    if schedule is None or not schedule.is_active:
        return False

    work_start = at_time(start.date(), schedule.start_time)
    work_end = at_time(start.date(), schedule.end_time)
    if start < work_start or end > work_end:
        return False

    # 2) No blocked time overlap
    blocked = session.exec(
        select(BlockedTime)
        .where(BlockedTime.manicurist_id == manicurist_id)
        .where(BlockedTime.start_at < end)
        .where(BlockedTime.end_at > start)
    ).first()
    if blocked is not None:
        return False

    # 3) No overlapping appointment for the same manicurist
    stmt = (
        select(Appointment)
        .where(Appointment.manicurist_id == manicurist_id)
        .where(Appointment.status != AppointmentStatus.CANCELLED)
        .where(Appointment.start_at < end)
        .where(Appointment.end_at > start)
    )
    if exclude_appointment_id:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)

    conflicting = session.exec(stmt).first()
    if conflicting is not None:
        logger.debug("Slot %s-%s for %s collides with %s", start, end, manicurist_id, conflicting.id)
    return conflicting is None


def get_client_overlapping_appointment(
    session: Session,
    client_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[str] = None,
) -> Optional[Appointment]:
    """The client's other non-cancelled appointment overlapping [start, end), across all staff."""
    stmt = (
        select(Appointment)
        .where(Appointment.client_id == client_id)
        .where(Appointment.status != AppointmentStatus.CANCELLED)
        .where(Appointment.start_at < end)
        .where(Appointment.end_at > start)
        .order_by(Appointment.start_at)
    )
    if exclude_appointment_id:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)
    return session.exec(stmt).first()


def client_has_overlapping_appointment(
    session: Session,
    client_id: str,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    return get_client_overlapping_appointment(
        session, client_id, start, end, exclude_appointment_id
    ) is not None
