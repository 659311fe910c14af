# salon/routers/manicurists_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlmodel import Session

from salon.auth import get_current_user
from salon.db import get_session
from salon.deps import require_can_edit, require_role
from salon.models import User, UserRole
from salon.schemas import (
    BlockCreate,
    BlockPublic,
    ManicuristCreate,
    ManicuristPublic,
    ScheduleDay,
    ScheduleReplace,
    Slot,
)
from salon.services import staff
from salon.services.availability import get_available_slots
from salon.services.catalog import get_service

router = APIRouter(
    prefix="/manicurists",
    tags=["manicurists"],
)


@router.get("", response_model=List[ManicuristPublic])
def list_manicurists(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return staff.list_manicurists(session, current_user.business_id, include_inactive)


@router.post("", response_model=ManicuristPublic, status_code=201)
def create_manicurist(
    manicurist: ManicuristCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    return staff.create_manicurist(session, current_user.business_id, manicurist)


@router.delete("/{manicurist_id}", status_code=204)
def deactivate_manicurist(
    manicurist_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    staff.deactivate_manicurist(session, manicurist)
    return Response(status_code=204)


@router.get("/{manicurist_id}/schedule", response_model=List[ScheduleDay])
def get_schedule(
    manicurist_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    return staff.list_schedule(session, manicurist.id)


@router.put("/{manicurist_id}/schedule", response_model=List[ScheduleDay])
def replace_schedule(
    manicurist_id: str,
    schedule: ScheduleReplace,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    require_can_edit(current_user, manicurist)
    return staff.replace_schedule(session, manicurist.id, schedule.days)


@router.get("/{manicurist_id}/blocks", response_model=List[BlockPublic])
def list_blocks(
    manicurist_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    return staff.list_blocks(session, manicurist.id)


@router.post("/{manicurist_id}/blocks", response_model=BlockPublic, status_code=201)
def add_block(
    manicurist_id: str,
    block: BlockCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    require_can_edit(current_user, manicurist)
    return staff.add_block(session, manicurist.id, block)


@router.delete("/{manicurist_id}/blocks/{block_id}", status_code=204)
def delete_block(
    manicurist_id: str,
    block_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    require_can_edit(current_user, manicurist)
    staff.delete_block(session, manicurist.id, block_id)
    return Response(status_code=204)


@router.get("/{manicurist_id}/availability", response_model=List[Slot])
def manicurist_availability(
    manicurist_id: str,
    on_date: date = Query(alias="date"),
    duration: Optional[int] = Query(default=None, gt=0, le=480),
    service_id: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    manicurist = staff.get_manicurist(session, manicurist_id, current_user.business_id)
    if service_id:
        duration = get_service(session, service_id, current_user.business_id).duration
    if duration is None:
        raise HTTPException(status_code=422, detail="duration or service_id is required")

    return get_available_slots(session, manicurist.id, on_date, duration)
