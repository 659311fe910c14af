# salon/services/staff.py

import logging
from typing import List, Optional

from sqlmodel import Session, select

from salon.errors import NotFoundError
from salon.models import Appointment, BlockedTime, Manicurist, Schedule
from salon.schemas import BlockCreate, ManicuristCreate, ScheduleDay

logger = logging.getLogger(__name__)


def get_manicurist(session: Session, manicurist_id: str, business_id: str) -> Manicurist:
    manicurist = session.get(Manicurist, manicurist_id)
    if manicurist is None or manicurist.business_id != business_id:
        raise NotFoundError("Manicurist not found")
    return manicurist


def list_manicurists(session: Session, business_id: str, include_inactive: bool = False) -> List[Manicurist]:
    stmt = select(Manicurist).where(Manicurist.business_id == business_id)
    if not include_inactive:
        stmt = stmt.where(Manicurist.is_active == True)  # noqa: E712
    return list(session.exec(stmt.order_by(Manicurist.name)).all())


def create_manicurist(session: Session, business_id: str, data: ManicuristCreate) -> Manicurist:
    manicurist = Manicurist(business_id=business_id, name=data.name, color=data.color, user_id=data.user_id)
    session.add(manicurist)
    session.commit()
    session.refresh(manicurist)
    return manicurist


def deactivate_manicurist(session: Session, manicurist: Manicurist) -> bool:
    """Soft-delete when there is booking history, hard-delete otherwise. Returns True if removed."""
    has_history = session.exec(
        select(Appointment.id).where(Appointment.manicurist_id == manicurist.id)
    ).first() is not None

    if has_history:
        manicurist.is_active = False
        session.add(manicurist)
        session.commit()
        logger.info("Manicurist %s deactivated", manicurist.id)
        return False

    for row in session.exec(select(Schedule).where(Schedule.manicurist_id == manicurist.id)).all():
        session.delete(row)
    for row in session.exec(select(BlockedTime).where(BlockedTime.manicurist_id == manicurist.id)).all():
        session.delete(row)
    session.delete(manicurist)
    session.commit()
    logger.info("Manicurist %s deleted", manicurist.id)
    return True


def list_schedule(session: Session, manicurist_id: str) -> List[Schedule]:
    return list(session.exec(
        select(Schedule).where(Schedule.manicurist_id == manicurist_id).order_by(Schedule.day_of_week)
    ).all())


def replace_schedule(session: Session, manicurist_id: str, days: List[ScheduleDay]) -> List[Schedule]:
    """Upsert one row per day of week in a single transaction."""
    existing = {row.day_of_week: row for row in list_schedule(session, manicurist_id)}

    for day in days:
        row = existing.get(day.day_of_week)
        if row is None:
            row = Schedule(manicurist_id=manicurist_id, day_of_week=day.day_of_week,
                           start_time=day.start_time, end_time=day.end_time)
        row.start_time = day.start_time
        row.end_time = day.end_time
        row.is_active = day.is_active
        session.add(row)

    session.commit()
    return list_schedule(session, manicurist_id)


def list_blocks(session: Session, manicurist_id: str) -> List[BlockedTime]:
    return list(session.exec(
        select(BlockedTime).where(BlockedTime.manicurist_id == manicurist_id).order_by(BlockedTime.start_at)
    ).all())


def add_block(session: Session, manicurist_id: str, data: BlockCreate) -> BlockedTime:
    block = BlockedTime(
        manicurist_id=manicurist_id,
        start_at=data.start_at,
        end_at=data.end_at,
        reason=data.reason,
    )
    session.add(block)
    session.commit()
    session.refresh(block)
    return block


def delete_block(session: Session, manicurist_id: str, block_id: str):
    block = session.get(BlockedTime, block_id)
    if block is None or block.manicurist_id != manicurist_id:
        raise NotFoundError("Blocked time not found")
    session.delete(block)
    session.commit()


def get_manicurist_for_user(session: Session, user_id: str) -> Optional[Manicurist]:
    return session.exec(select(Manicurist).where(Manicurist.user_id == user_id)).first()
