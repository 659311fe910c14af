# salon/services/dashboard.py

from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from salon.core import day_bounds
from salon.models import Appointment, AppointmentStatus, Manicurist


def _scoped(stmt, business_id, manicurist_id):
    stmt = stmt.where(Appointment.business_id == business_id)
    if manicurist_id:
        stmt = stmt.where(Appointment.manicurist_id == manicurist_id)
    return stmt


def _revenue(session, business_id, manicurist_id, start, end) -> Decimal:
    stmt = _scoped(
        select(func.coalesce(func.sum(Appointment.price), 0))
        .where(Appointment.status == AppointmentStatus.COMPLETED)
        .where(Appointment.start_at >= start)
        .where(Appointment.start_at <= end),
        business_id,
        manicurist_id,
    )
    return Decimal(str(session.exec(stmt).one()))


def get_dashboard_stats(
    session: Session,
    business_id: str,
    start: datetime,
    end: datetime,
    manicurist_id: Optional[str] = None,
    today: Optional[date] = None,
) -> dict:
    today_start, today_end = day_bounds(today or date.today())

    by_status = dict(session.exec(
        _scoped(
            select(Appointment.status, func.count())
            .where(Appointment.start_at >= today_start)
            .where(Appointment.start_at <= today_end)
            .group_by(Appointment.status),
            business_id,
            manicurist_id,
        )
    ).all())

    appointments_range = session.exec(
        _scoped(
            select(func.count())
            .select_from(Appointment)
            .where(Appointment.start_at >= start)
            .where(Appointment.start_at <= end),
            business_id,
            manicurist_id,
        )
    ).one()

    return {
        "today_appointments": sum(by_status.values()),
        "confirmed_today": by_status.get(AppointmentStatus.CONFIRMED, 0),
        "pending_today": by_status.get(AppointmentStatus.PENDING, 0),
        "completed_today": by_status.get(AppointmentStatus.COMPLETED, 0),
        "revenue_today": _revenue(session, business_id, manicurist_id, today_start, today_end),
        "revenue_range": _revenue(session, business_id, manicurist_id, start, end),
        "appointments_range": appointments_range,
    }


def get_manicurist_productivity(
    session: Session,
    business_id: str,
    start: datetime,
    end: datetime,
    manicurist_id: Optional[str] = None,
) -> List[dict]:
    stmt = select(Manicurist).where(Manicurist.business_id == business_id).where(Manicurist.is_active == True)  # noqa: E712
    if manicurist_id:
        stmt = stmt.where(Manicurist.id == manicurist_id)

    rows = []
    for manicurist in session.exec(stmt.order_by(Manicurist.name)).all():
        appts = session.exec(
            select(Appointment)
            .where(Appointment.manicurist_id == manicurist.id)
            .where(Appointment.start_at >= start)
            .where(Appointment.start_at <= end)
        ).all()
        completed = [a for a in appts if a.status == AppointmentStatus.COMPLETED]
        revenue = sum((a.price for a in completed), Decimal("0"))
        rows.append({
            "manicurist_id": manicurist.id,
            "name": manicurist.name,
            "color": manicurist.color,
            "total_appointments": len(appts),
            "completed_appointments": len(completed),
            "total_revenue": revenue,
            "avg_per_appointment": revenue / len(completed) if completed else Decimal("0"),
        })
    return rows
