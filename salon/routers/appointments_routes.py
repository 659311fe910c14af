# salon/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlmodel import Session

from salon.auth import get_current_user
from salon.db import get_session
from salon.deps import get_scheduler
from salon.models import User
from salon.queue import NotificationScheduler
from salon.schemas import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentPublic,
    AppointmentUpdate,
    StaffSlot,
)
from salon.services import appointments as appointment_service
from salon.services.availability import get_next_available_slots
from salon.services.catalog import get_service
from salon.services.staff import get_manicurist

router = APIRouter(
    tags=["appointments"],
)


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_appointments(
    on_date: Optional[date] = None,
    week_start: Optional[date] = None,
    manicurist_id: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if week_start is not None:
        return appointment_service.get_appointments_by_week(
            session, week_start, manicurist_id=manicurist_id, business_id=current_user.business_id
        )
    return appointment_service.get_appointments_by_date(
        session, on_date or date.today(), manicurist_id=manicurist_id, business_id=current_user.business_id
    )


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    scheduler: NotificationScheduler = Depends(get_scheduler),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.create_appointment(
        session, appt, scheduler, background_tasks, business_id=current_user.business_id
    )


@router.get("/appointments/{appt_id}", response_model=AppointmentDetail)
def get_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.get_appointment(session, appt_id, business_id=current_user.business_id)


@router.patch("/appointments/{appt_id}", response_model=AppointmentPublic)
def update_appointment(
    appt_id: str,
    changes: AppointmentUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    scheduler: NotificationScheduler = Depends(get_scheduler),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.update_appointment(
        session, appt_id, changes, scheduler, background_tasks, business_id=current_user.business_id
    )


@router.delete("/appointments/{appt_id}", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: str,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    scheduler: NotificationScheduler = Depends(get_scheduler),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.cancel_appointment(
        session, appt_id, scheduler, background_tasks, business_id=current_user.business_id
    )


@router.get("/availability/next", response_model=List[StaffSlot])
def next_available_slots(
    duration: Optional[int] = Query(default=None, gt=0, le=480),
    service_id: Optional[str] = None,
    limit: int = Query(default=10, gt=0, le=100),
    manicurist_ids: List[str] = Query(default=[]),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if service_id:
        duration = get_service(session, service_id, current_user.business_id).duration
    if duration is None:
        raise HTTPException(status_code=422, detail="duration or service_id is required")
    for manicurist_id in manicurist_ids:
        get_manicurist(session, manicurist_id, current_user.business_id)

    return get_next_available_slots(
        session, manicurist_ids, duration, limit, business_id=current_user.business_id
    )
