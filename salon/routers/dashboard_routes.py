# salon/routers/dashboard_routes.py

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from salon.auth import get_current_user
from salon.db import get_session
from salon.models import User, UserRole
from salon.schemas import DashboardStats, ManicuristProductivity
from salon.services import dashboard
from salon.services.staff import get_manicurist_for_user

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
)


class DashboardResponse(BaseModel):
    stats: DashboardStats
    productivity: List[ManicuristProductivity]


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    manicurist_id: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    # defaults to the last 30 days
    date_to = date_to or date.today()
    date_from = date_from or date_to - timedelta(days=30)
    start = datetime.combine(date_from, time.min)
    end = datetime.combine(date_to, time.max)

    # manicurists only see their own numbers
    if current_user.role != UserRole.ADMIN:
        own = get_manicurist_for_user(session, current_user.id)
        if own is None:
            return {"stats": _empty_stats(), "productivity": []}
        manicurist_id = own.id

    return {
        "stats": dashboard.get_dashboard_stats(session, current_user.business_id, start, end, manicurist_id),
        "productivity": dashboard.get_manicurist_productivity(
            session, current_user.business_id, start, end, manicurist_id
        ),
    }


def _empty_stats() -> dict:
    return {
        "today_appointments": 0,
        "confirmed_today": 0,
        "pending_today": 0,
        "completed_today": 0,
        "revenue_today": 0,
        "revenue_range": 0,
        "appointments_range": 0,
    }
