# salon/services/appointments.py

"""
Appointment lifecycle: create / update / cancel, range queries and the
auto-completion sweep.

Writes run the availability checks and the insert inside one critical
section per manicurist; notification jobs are handed to BackgroundTasks
and only run after the booking is committed.
"""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, date, timedelta
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from salon.core import day_bounds, format_range, week_bounds
from salon.errors import (
    ClientConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from salon.models import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Appointment,
    AppointmentStatus,
    Client,
    Manicurist,
    Service,
)
from salon.queue import NotificationScheduler, fire_and_forget
from salon.schemas import AppointmentCreate, AppointmentUpdate
from salon.services.conflicts import get_client_overlapping_appointment, is_slot_available

logger = logging.getLogger(__name__)

_manicurist_locks = defaultdict(threading.Lock)


@contextmanager
def manicurist_lock(session: Session, manicurist_id: str):
    """Serialize check + write for one manicurist (in process and in the database)."""
    with _manicurist_locks[manicurist_id]:
        # FOR UPDATE is a no-op on SQLite, which serializes writers itself
        session.exec(select(Manicurist).where(Manicurist.id == manicurist_id).with_for_update()).first()
        yield


def _with_relations(stmt):
    return stmt.options(
        selectinload(Appointment.client),
        selectinload(Appointment.manicurist),
        selectinload(Appointment.service),
    )


def _get_scoped(session: Session, model, obj_id: str, business_id: Optional[str], label: str):
    obj = session.get(model, obj_id)
    if obj is None or (business_id and obj.business_id != business_id):
        raise NotFoundError(f"{label} not found")
    return obj


def get_appointment(session: Session, appointment_id: str, business_id: Optional[str] = None) -> Appointment:
    stmt = _with_relations(select(Appointment).where(Appointment.id == appointment_id)).options(
        selectinload(Appointment.notifications)
    )
    appointment = session.exec(stmt).first()
    if appointment is None or (business_id and appointment.business_id != business_id):
        raise NotFoundError("Appointment not found")
    return appointment


def _client_conflict(other: Appointment) -> ClientConflictError:
    return ClientConflictError(
        f"El cliente ya tiene un turno en ese horario ({format_range(other.start_at, other.end_at)}). "
        "Elegí otro horario o revisá el calendario."
    )


def _commit_booking(session: Session, appointment: Appointment):
    session.add(appointment)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning("Concurrent booking rejected for manicurist %s at %s",
                       appointment.manicurist_id, appointment.start_at)
        raise SlotUnavailableError()


def create_appointment(
    session: Session,
    data: AppointmentCreate,
    scheduler: NotificationScheduler,
    background: BackgroundTasks,
    business_id: Optional[str] = None,
) -> Appointment:
    # 1) Service gives duration, price and tenant
    service = _get_scoped(session, Service, data.service_id, business_id, "Service")
    _get_scoped(session, Client, data.client_id, service.business_id, "Client")
    _get_scoped(session, Manicurist, data.manicurist_id, service.business_id, "Manicurist")

    # 2) Build appointment interval
    start_at = data.start_at
    end_at = start_at + timedelta(minutes=service.duration)

    with manicurist_lock(session, data.manicurist_id):
        # 3) Staff side: schedule, blocks, other bookings
        if not is_slot_available(session, data.manicurist_id, start_at, end_at):
            raise SlotUnavailableError()

        # 4) Client side, across all staff
        other = get_client_overlapping_appointment(session, data.client_id, start_at, end_at)
        if other is not None:
            raise _client_conflict(other)

        # 5) Persist with the price snapshot
        appointment = Appointment(
            business_id=service.business_id,
            client_id=data.client_id,
            manicurist_id=data.manicurist_id,
            service_id=service.id,
            start_at=start_at,
            end_at=end_at,
            price=service.price,
            notes=data.notes,
            status=AppointmentStatus.PENDING,
        )
        _commit_booking(session, appointment)

    logger.info("Appointment %s booked for %s-%s with %s",
                appointment.id, start_at, end_at, data.manicurist_id)

    # 6) Fire-and-forget notifications
    background.add_task(fire_and_forget, scheduler.enqueue_confirmation, appointment.id)
    background.add_task(fire_and_forget, scheduler.schedule_reminder, appointment.id, start_at)

    return get_appointment(session, appointment.id)


def update_appointment(
    session: Session,
    appointment_id: str,
    data: AppointmentUpdate,
    scheduler: NotificationScheduler,
    background: BackgroundTasks,
    business_id: Optional[str] = None,
) -> Appointment:
    existing = _get_scoped(session, Appointment, appointment_id, business_id, "Appointment")
    fields = data.model_fields_set
    previous_status = existing.status

    reschedule = any(
        getattr(data, name) is not None for name in ("start_at", "service_id", "manicurist_id")
    )

    if previous_status in TERMINAL_STATUSES:
        if reschedule:
            raise InvalidTransitionError(f"Appointment is {previous_status.value}; time, staff and service are fixed")
        if data.status is not None and data.status != previous_status:
            raise InvalidTransitionError(f"Appointment is {previous_status.value} and cannot change status")

    if reschedule:
        service_id = data.service_id or existing.service_id
        service = _get_scoped(session, Service, service_id, existing.business_id, "Service")
        manicurist_id = data.manicurist_id or existing.manicurist_id
        _get_scoped(session, Manicurist, manicurist_id, existing.business_id, "Manicurist")

        start_at = data.start_at or existing.start_at
        end_at = start_at + timedelta(minutes=service.duration)

        with manicurist_lock(session, manicurist_id):
            if not is_slot_available(session, manicurist_id, start_at, end_at, appointment_id):
                raise SlotUnavailableError("El nuevo horario no está disponible.")

            other = get_client_overlapping_appointment(
                session, existing.client_id, start_at, end_at, appointment_id
            )
            if other is not None:
                raise _client_conflict(other)

            if service.id != existing.service_id:
                existing.price = service.price
            existing.service_id = service.id
            existing.manicurist_id = manicurist_id
            existing.start_at = start_at
            existing.end_at = end_at
            _apply_plain_fields(existing, data, fields)
            _commit_booking(session, existing)
    else:
        _apply_plain_fields(existing, data, fields)
        session.add(existing)
        session.commit()

    logger.info("Appointment %s updated (%s)", appointment_id, ", ".join(sorted(fields)) or "no fields")

    if existing.status == AppointmentStatus.CANCELLED and previous_status != AppointmentStatus.CANCELLED:
        background.add_task(fire_and_forget, scheduler.enqueue_cancellation, appointment_id)
    elif reschedule and existing.status in ACTIVE_STATUSES:
        background.add_task(fire_and_forget, scheduler.schedule_reminder, appointment_id, existing.start_at)

    return get_appointment(session, appointment_id)


def _apply_plain_fields(appointment: Appointment, data: AppointmentUpdate, fields):
    if "status" in fields and data.status is not None:
        appointment.status = data.status
    if "notes" in fields:
        appointment.notes = data.notes


def cancel_appointment(
    session: Session,
    appointment_id: str,
    scheduler: NotificationScheduler,
    background: BackgroundTasks,
    business_id: Optional[str] = None,
) -> Appointment:
    appointment = _get_scoped(session, Appointment, appointment_id, business_id, "Appointment")

    if appointment.status == AppointmentStatus.CANCELLED:
        return get_appointment(session, appointment_id)
    if appointment.status == AppointmentStatus.COMPLETED:
        raise InvalidTransitionError("Appointment is COMPLETED and cannot be cancelled")

    appointment.status = AppointmentStatus.CANCELLED
    session.add(appointment)
    session.commit()
    logger.info("Appointment %s cancelled", appointment_id)

    background.add_task(fire_and_forget, scheduler.enqueue_cancellation, appointment_id)
    return get_appointment(session, appointment_id)


def _range_query(session, start, end, manicurist_id, business_id, end_inclusive):
    stmt = select(Appointment).where(Appointment.start_at >= start)
    stmt = stmt.where(Appointment.start_at <= end if end_inclusive else Appointment.start_at < end)
    if business_id:
        stmt = stmt.where(Appointment.business_id == business_id)
    if manicurist_id:
        stmt = stmt.where(Appointment.manicurist_id == manicurist_id)
    return list(session.exec(_with_relations(stmt).order_by(Appointment.start_at)).all())


def get_appointments_by_date(
    session: Session,
    day: date,
    manicurist_id: Optional[str] = None,
    business_id: Optional[str] = None,
) -> List[Appointment]:
    start, end = day_bounds(day)
    return _range_query(session, start, end, manicurist_id, business_id, end_inclusive=True)


def get_appointments_by_week(
    session: Session,
    week_start: date,
    manicurist_id: Optional[str] = None,
    business_id: Optional[str] = None,
) -> List[Appointment]:
    start, end = week_bounds(week_start)
    return _range_query(session, start, end, manicurist_id, business_id, end_inclusive=False)


def auto_complete_expired_appointments(session: Session, now: Optional[datetime] = None) -> int:
    """Mark PENDING/CONFIRMED appointments whose end_at is in the past as COMPLETED."""
    now = now or datetime.now()
    result = session.execute(
        update(Appointment)
        .where(Appointment.status.in_(ACTIVE_STATUSES))
        .where(Appointment.end_at < now)
        .values(status=AppointmentStatus.COMPLETED)
        .execution_options(synchronize_session="fetch")
    )
    session.commit()
    return result.rowcount
